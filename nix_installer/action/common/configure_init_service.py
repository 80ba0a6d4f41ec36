"""Generic init-service configuration: place the descriptor, load it, start it."""

from __future__ import annotations

import asyncio
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from nix_installer.action.base import Action, ActionDescription, ActionTag, StatefulAction
from nix_installer.action.errors import CopyError, InvalidPlanError, RemoveError, SymlinkError
from nix_installer.command import execute_command
from nix_installer.daemon import ServiceBackend, backend_for
from nix_installer.settings import InitSystem


@dataclass(frozen=True)
class ConfigureInitService(Action):
    """Hand a service descriptor to the init system and optionally start it.

    When ``service_src`` is planned the descriptor is staged elsewhere and
    this action places it at ``service_dest`` (a copy for launchd, a symlink
    for systemd). Unregistering the service is left to the platform action
    that owns this one.
    """

    init: InitSystem
    start_daemon: bool
    service_src: Path | None = None
    service_dest: Path | None = None
    service_name: str | None = None

    @classmethod
    def plan(
        cls,
        init: InitSystem,
        start_daemon: bool,
        service_src: Path | None = None,
        service_dest: Path | None = None,
        service_name: str | None = None,
    ) -> StatefulAction[ConfigureInitService]:
        if init is not InitSystem.NONE and service_dest is None:
            raise InvalidPlanError(f"{init} needs a destination for the service descriptor")
        if init is InitSystem.LAUNCHD and start_daemon and not service_name:
            raise InvalidPlanError("launchd needs a service name to start the daemon")
        if init is InitSystem.SYSTEMD and not service_name and service_dest is not None:
            service_name = service_dest.name

        return StatefulAction(
            cls(
                init=init,
                start_daemon=start_daemon,
                service_src=Path(service_src) if service_src is not None else None,
                service_dest=Path(service_dest) if service_dest is not None else None,
                service_name=service_name,
            )
        )

    @classmethod
    def action_tag(cls) -> ActionTag:
        return ActionTag("configure_init_service")

    @property
    def backend(self) -> ServiceBackend | None:
        return backend_for(self.init)

    def tracing_synopsis(self) -> str:
        if self.init is InitSystem.NONE:
            return "Skip init service configuration (no init system)"
        return f"Configure {self.init} to run the Nix daemon"

    # ------------------------------------------------------------------
    # Execute
    # ------------------------------------------------------------------

    def _execute_commands(self) -> list[list[str]]:
        backend = self.backend
        if backend is None:
            return []
        commands = backend.reload_commands()
        if self.start_daemon:
            commands += backend.start_commands(self.service_dest, self.service_name)
        return commands

    def execute_description(self) -> list[ActionDescription]:
        if self.init is InitSystem.NONE:
            return []
        explanation: list[str] = []
        if self.service_src is not None and self.init is InitSystem.LAUNCHD:
            explanation.append(f"Copy `{self.service_src}` to `{self.service_dest}`")
        elif self.service_src is not None:
            explanation.append(
                f"Symlink `{self.service_src}` to `{self.service_dest}` unless it already exists"
            )
        explanation += [f"Run `{' '.join(cmd)}`" for cmd in self._execute_commands()]
        if not explanation:
            return []
        return [ActionDescription(self.tracing_synopsis(), explanation)]

    async def execute(self) -> None:
        if self.init is InitSystem.NONE:
            return

        if self.service_src is not None:
            if self.init is InitSystem.LAUNCHD:
                await asyncio.to_thread(_copy, self.service_src, self.service_dest)
            elif not self.service_dest.exists():
                await asyncio.to_thread(_symlink, self.service_src, self.service_dest)
            else:
                logger.debug(f"`{self.service_dest}` already exists, not linking it")

        for cmd in self._execute_commands():
            await execute_command(cmd)

    # ------------------------------------------------------------------
    # Revert
    # ------------------------------------------------------------------

    def _revert_commands(self) -> list[list[str]]:
        backend = self.backend
        if backend is None or self.service_src is None:
            return []
        return backend.reload_commands()

    def revert_description(self) -> list[ActionDescription]:
        if self.init is InitSystem.NONE or self.service_src is None:
            return []
        if self.init is InitSystem.LAUNCHD:
            explanation = [f"Remove `{self.service_dest}`"]
        else:
            explanation = [f"Remove `{self.service_dest}` if it links to `{self.service_src}`"]
        explanation += [f"Run `{' '.join(cmd)}`" for cmd in self._revert_commands()]
        return [ActionDescription(f"Unconfigure {self.init} service files", explanation)]

    async def revert(self) -> None:
        if self.init is InitSystem.NONE or self.service_src is None:
            return

        if self.init is InitSystem.LAUNCHD:
            await asyncio.to_thread(_remove, self.service_dest)
        elif self.service_dest.is_symlink() and _links_to(self.service_dest, self.service_src):
            await asyncio.to_thread(_remove, self.service_dest)

        for cmd in self._revert_commands():
            await execute_command(cmd)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            **self._header(),
            "init": self.init.value,
            "start_daemon": self.start_daemon,
            "service_src": str(self.service_src) if self.service_src else None,
            "service_dest": str(self.service_dest) if self.service_dest else None,
            "service_name": self.service_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConfigureInitService:
        src = data.get("service_src")
        dest = data.get("service_dest")
        return cls(
            init=InitSystem(data["init"]),
            start_daemon=bool(data["start_daemon"]),
            service_src=Path(src) if src else None,
            service_dest=Path(dest) if dest else None,
            service_name=data.get("service_name"),
        )


def _copy(src: Path, dest: Path) -> None:
    try:
        shutil.copyfile(src, dest)
    except OSError as e:
        raise CopyError(dest, e) from e


def _symlink(src: Path, dest: Path) -> None:
    try:
        dest.symlink_to(src)
    except OSError as e:
        raise SymlinkError(dest, e) from e


def _remove(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        raise RemoveError(path, e) from e


def _links_to(link: Path, target: Path) -> bool:
    try:
        return Path(os.readlink(link)) == target
    except OSError:
        return False
