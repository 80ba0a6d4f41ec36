"""macOS launchd backend."""

import plistlib
from pathlib import Path

from nix_installer.daemon.base import ServiceBackend, ServiceDescriptor

LAUNCHD_DOMAIN = "system"


class LaunchdBackend(ServiceBackend):
    """Renders LaunchDaemon property lists and ``launchctl`` invocations."""

    control_utility = "launchctl"

    # ------------------------------------------------------------------
    # Descriptor
    # ------------------------------------------------------------------

    def serialize(self, descriptor: ServiceDescriptor) -> bytes:
        plist: dict = {
            "Label": descriptor.label,
            "Program": descriptor.program,
            "KeepAlive": descriptor.keep_alive,
            "RunAtLoad": descriptor.run_at_load,
            "StandardErrorPath": descriptor.standard_error_path,
            "StandardOutPath": descriptor.standard_out_path,
            "SoftResourceLimits": {
                "NumberOfFiles": descriptor.soft_resource_limits.number_of_files,
            },
        }
        return plistlib.dumps(plist, fmt=plistlib.FMT_XML, sort_keys=False)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def reload_commands(self) -> list[list[str]]:
        # launchd reads the plist on bootstrap, there is nothing to reload
        return []

    def start_commands(self, service_dest: Path, service_name: str) -> list[list[str]]:
        return [
            _launchctl("bootstrap", LAUNCHD_DOMAIN, str(service_dest)),
            _launchctl("kickstart", "-k", service_target(service_name)),
        ]

    def unregister_command(self, service_name: str) -> list[str]:
        return _launchctl("bootout", service_target(service_name))


def service_target(service_name: str) -> str:
    """Address ``service_name`` inside the system domain (``system/<name>``)."""
    return "/".join([LAUNCHD_DOMAIN, service_name])


def _launchctl(verb: str, *args: str) -> list[str]:
    """Build ``launchctl <verb> ...``."""
    return ["launchctl", verb, *args]
