"""Run external control utilities (launchctl, systemctl)."""

from __future__ import annotations

import asyncio
import shlex
from dataclasses import dataclass
from typing import Sequence

from loguru import logger

from nix_installer.action.errors import CommandError, CommandSpawnError


@dataclass
class CommandOutput:
    """Exit status and captured output of a finished command."""

    command: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""


async def execute_command(command: Sequence[str]) -> CommandOutput:
    """Run ``command`` to completion, raising on spawn failure or non-zero exit.

    The child gets its own process group so a Ctrl-C aimed at the installer
    does not also interrupt ``launchctl`` halfway through a registration.
    """
    argv = list(command)
    logger.debug(f"Executing `{shlex.join(argv)}`")
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            process_group=0,
        )
    except OSError as e:
        raise CommandSpawnError(argv, e) from e

    raw_out, raw_err = await proc.communicate()
    output = CommandOutput(
        command=argv,
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=raw_out.decode("utf-8", errors="replace"),
        stderr=raw_err.decode("utf-8", errors="replace"),
    )
    if output.returncode != 0:
        raise CommandError(argv, output.returncode, output.stdout, output.stderr)
    logger.debug(f"`{argv[0]}` exited successfully")
    return output
