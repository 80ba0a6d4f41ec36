"""Write the Determinate Nix Enterprise Edition daemon descriptor and register it."""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NamedTuple

from loguru import logger

from nix_installer.action.base import Action, ActionDescription, ActionTag, StatefulAction
from nix_installer.action.common.configure_init_service import ConfigureInitService
from nix_installer.action.errors import OpenError, WriteError
from nix_installer.command import execute_command
from nix_installer.daemon import ServiceBackend, backend_for, generate_service_descriptor
from nix_installer.daemon.base import DAEMON_LABEL
from nix_installer.settings import InitSystem

DARWIN_ENTERPRISE_EDITION_DAEMON_DEST = Path(
    "/Library/LaunchDaemons/systems.determinate.nix-daemon.plist"
)
DARWIN_ENTERPRISE_EDITION_SERVICE_NAME = DAEMON_LABEL
SERVICE_DEST = Path("/etc/systemd/system/nix-daemon.service")
DETERMINATE_NIX_EE_SERVICE_SRC = Path("/nix/determinate/nix-daemon.service")


class ServicePaths(NamedTuple):
    """Where the descriptor comes from, where it goes and what it is called."""

    service_src: Path | None
    service_dest: Path | None
    service_name: str | None


# launchd gets its plist generated in place, so there is no staged source.
# The systemd source is resolved but this action writes the unit at the
# destination itself; the child only links it when nothing is there yet.
SERVICE_PATHS: dict[InitSystem, ServicePaths] = {
    InitSystem.LAUNCHD: ServicePaths(
        service_src=None,
        service_dest=DARWIN_ENTERPRISE_EDITION_DAEMON_DEST,
        service_name=DARWIN_ENTERPRISE_EDITION_SERVICE_NAME,
    ),
    InitSystem.SYSTEMD: ServicePaths(
        service_src=DETERMINATE_NIX_EE_SERVICE_SRC,
        service_dest=SERVICE_DEST,
        service_name=SERVICE_DEST.name,
    ),
    InitSystem.NONE: ServicePaths(service_src=None, service_dest=None, service_name=None),
}


def resolve_service_paths(init: InitSystem) -> ServicePaths:
    return SERVICE_PATHS[init]


@dataclass(frozen=True)
class ConfigureEnterpriseEditionInitService(Action):
    """Configure the init system to run the Nix daemon.

    Writes the daemon descriptor itself, then delegates loading and
    starting to a :class:`ConfigureInitService` child.
    """

    init: InitSystem
    start_daemon: bool
    service_src: Path | None
    service_dest: Path | None
    service_name: str | None
    configure_init_service: StatefulAction[ConfigureInitService]

    @classmethod
    def plan(
        cls, init: InitSystem, start_daemon: bool
    ) -> StatefulAction[ConfigureEnterpriseEditionInitService]:
        paths = resolve_service_paths(init)
        configure_init_service = ConfigureInitService.plan(
            init,
            start_daemon,
            paths.service_src,
            paths.service_dest,
            paths.service_name,
        )
        return StatefulAction(
            cls(
                init=init,
                start_daemon=start_daemon,
                service_src=paths.service_src,
                service_dest=paths.service_dest,
                service_name=paths.service_name,
                configure_init_service=configure_init_service,
            )
        )

    @classmethod
    def action_tag(cls) -> ActionTag:
        return ActionTag("configure_enterprise_edition_init_service")

    def children(self) -> list[StatefulAction]:
        return [self.configure_init_service]

    @property
    def backend(self) -> ServiceBackend | None:
        return backend_for(self.init)

    def tracing_synopsis(self) -> str:
        backend = self.backend
        if backend is None:
            return "Skip the Determinate Nix Enterprise Edition daemon (no init system)"
        return (
            "Configure the Determinate Nix Enterprise Edition daemon related settings "
            f"with {backend.control_utility}"
        )

    # ------------------------------------------------------------------
    # Execute
    # ------------------------------------------------------------------

    def execute_description(self) -> list[ActionDescription]:
        explanation: list[str] = []
        if self.service_dest is not None:
            explanation.append(f"Create `{self.service_dest}`")
        for child in self.configure_init_service.describe_execute():
            explanation += child.explanation
        return [ActionDescription(self.tracing_synopsis(), explanation)]

    async def execute(self) -> None:
        backend = self.backend
        if backend is not None and self.service_dest is not None:
            data = backend.serialize(generate_service_descriptor())
            await asyncio.to_thread(_write_descriptor, self.service_dest, data)
            logger.debug(f"Wrote {len(data)} bytes to `{self.service_dest}`")

        await self.configure_init_service.try_execute()

    # ------------------------------------------------------------------
    # Revert
    # ------------------------------------------------------------------

    def _unregister_command(self) -> list[str] | None:
        # the child only registers the service when asked to start it
        backend = self.backend
        if backend is None or not self.service_name or not self.start_daemon:
            return None
        return backend.unregister_command(self.service_name)

    def revert_description(self) -> list[ActionDescription]:
        explanation: list[str] = []
        for child in self.configure_init_service.describe_revert():
            explanation += child.explanation
        cmd = self._unregister_command()
        if cmd is not None:
            explanation.append(f"Run `{' '.join(cmd)}`")
        return [
            ActionDescription(
                "Unconfigure Nix daemon related settings"
                + (f" with {self.backend.control_utility}" if self.backend else ""),
                explanation,
            )
        ]

    async def revert(self) -> None:
        await self.configure_init_service.try_revert()

        cmd = self._unregister_command()
        if cmd is not None:
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
            "configure_init_service": self.configure_init_service.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConfigureEnterpriseEditionInitService:
        src = data.get("service_src")
        dest = data.get("service_dest")
        return cls(
            init=InitSystem(data["init"]),
            start_daemon=bool(data["start_daemon"]),
            service_src=Path(src) if src else None,
            service_dest=Path(dest) if dest else None,
            service_name=data.get("service_name"),
            configure_init_service=StatefulAction.from_dict(data["configure_init_service"]),
        )


def _write_descriptor(path: Path, data: bytes) -> None:
    """Create or truncate ``path`` and durably write ``data`` to it."""
    try:
        f = open(path, "w+b")
    except OSError as e:
        raise OpenError(path, e) from e
    with f:
        try:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        except OSError as e:
            raise WriteError(path, e) from e
