"""Service descriptor record and the abstract init-system backend."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

DAEMON_LABEL = "systems.determinate.nix-daemon"
DAEMON_PROGRAM = "/usr/local/bin/determinate-nix-ee"
DAEMON_LOG = "/var/log/determinate-nix-daemon.log"
OPEN_FILES_SOFT_LIMIT = 1048576


@dataclass(frozen=True)
class ResourceLimits:
    number_of_files: int


@dataclass(frozen=True)
class ServiceDescriptor:
    """Everything an init system needs to know to run the daemon."""

    label: str
    program: str
    keep_alive: bool
    run_at_load: bool
    standard_error_path: str
    standard_out_path: str
    soft_resource_limits: ResourceLimits


def generate_service_descriptor() -> ServiceDescriptor:
    """Build the descriptor for the Determinate Nix daemon."""
    return ServiceDescriptor(
        label=DAEMON_LABEL,
        program=DAEMON_PROGRAM,
        keep_alive=True,
        run_at_load=True,
        standard_error_path=DAEMON_LOG,
        standard_out_path=DAEMON_LOG,
        soft_resource_limits=ResourceLimits(number_of_files=OPEN_FILES_SOFT_LIMIT),
    )


class ServiceBackend(ABC):
    """ABC that each init-system backend implements.

    Backends never run anything themselves: they render descriptors and
    build command lines, the actions decide when to execute them.
    """

    #: Name of the control utility, used in user-facing synopses.
    control_utility: str = ""

    @abstractmethod
    def serialize(self, descriptor: ServiceDescriptor) -> bytes:
        """Render ``descriptor`` in the init system's native on-disk format."""

    @abstractmethod
    def reload_commands(self) -> list[list[str]]:
        """Commands that make the init system notice a placed descriptor."""

    @abstractmethod
    def start_commands(self, service_dest: Path, service_name: str) -> list[list[str]]:
        """Commands that register the service and start it."""

    @abstractmethod
    def unregister_command(self, service_name: str) -> list[str]:
        """Command that stops the service and removes its registration."""
