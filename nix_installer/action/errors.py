"""Errors raised while planning, executing or reverting actions."""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Sequence


class ActionError(Exception):
    """Base class for every action failure.

    ``action_tag`` names the innermost action that failed. It is filled in by
    :class:`~nix_installer.action.base.StatefulAction` the first time the
    error crosses a wrapper.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.action_tag: str | None = None


class InvalidPlanError(ActionError):
    """Plan parameters that cannot describe a working installation."""


class UnknownActionError(ActionError):
    """A persisted action tree names an action this build does not know."""

    def __init__(self, tag: str) -> None:
        super().__init__(f"Unknown action `{tag}`")
        self.tag = tag


class ActionIOError(ActionError):
    """A filesystem operation on ``path`` failed."""

    verb = "access"

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Failed to {self.verb} `{path}`: {cause}")
        self.path = Path(path)
        self.cause = cause


class OpenError(ActionIOError):
    verb = "open"


class WriteError(ActionIOError):
    verb = "write"


class CopyError(ActionIOError):
    verb = "copy to"


class SymlinkError(ActionIOError):
    verb = "symlink"


class RemoveError(ActionIOError):
    verb = "remove"


class CommandError(ActionError):
    """An external command exited with a non-zero status."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int | None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(self._render())

    def _render(self) -> str:
        msg = f"Command `{shlex.join(self.command)}` failed with status {self.returncode}"
        output = self.stderr.strip() or self.stdout.strip()
        if output:
            msg += f": {output}"
        return msg


class CommandSpawnError(CommandError):
    """An external command could not be started at all."""

    def __init__(self, command: Sequence[str], cause: OSError) -> None:
        self.cause = cause
        super().__init__(command, None)

    def _render(self) -> str:
        return f"Failed to run `{shlex.join(self.command)}`: {self.cause}"


class ReceiptError(ActionError):
    """The install receipt could not be read or written."""

    def __init__(self, path: Path, cause: Exception) -> None:
        super().__init__(f"Install receipt `{path}` is unusable: {cause}")
        self.path = Path(path)
        self.cause = cause


class MultipleActionErrors(ActionError):
    """Several actions failed during a best-effort revert pass."""

    def __init__(self, errors: list[ActionError]) -> None:
        lines = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"{len(errors)} actions failed:\n{lines}")
        self.errors = errors
