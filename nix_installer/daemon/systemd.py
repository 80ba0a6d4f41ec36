"""Linux systemd backend."""

import textwrap
from pathlib import Path

from nix_installer.daemon.base import ServiceBackend, ServiceDescriptor


class SystemdBackend(ServiceBackend):
    """Renders unit files and ``systemctl`` invocations for a system service."""

    control_utility = "systemctl"

    # ------------------------------------------------------------------
    # Descriptor
    # ------------------------------------------------------------------

    def serialize(self, descriptor: ServiceDescriptor) -> bytes:
        restart = "always" if descriptor.keep_alive else "no"
        unit = textwrap.dedent(f"""\
            [Unit]
            Description=Determinate Nix daemon ({descriptor.label})
            After=network.target

            [Service]
            Type=simple
            ExecStart={descriptor.program}
            Restart={restart}
            StandardOutput=append:{descriptor.standard_out_path}
            StandardError=append:{descriptor.standard_error_path}
            LimitNOFILE={descriptor.soft_resource_limits.number_of_files}

            [Install]
            WantedBy=multi-user.target
        """)
        return unit.encode()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def reload_commands(self) -> list[list[str]]:
        return [_systemctl("daemon-reload")]

    def start_commands(self, service_dest: Path, service_name: str) -> list[list[str]]:
        return [_systemctl("enable", "--now", service_name)]

    def unregister_command(self, service_name: str) -> list[str]:
        return _systemctl("disable", "--now", service_name)


def _systemctl(verb: str, *args: str) -> list[str]:
    """Build ``systemctl <verb> ...``."""
    return ["systemctl", verb, *args]
