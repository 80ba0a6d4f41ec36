"""Pick the backend for an init system."""

from nix_installer.daemon.base import ServiceBackend
from nix_installer.settings import InitSystem


def backend_for(init: InitSystem) -> ServiceBackend | None:
    """Return the backend driving ``init``, or ``None`` when there is no init system."""
    if init is InitSystem.LAUNCHD:
        from nix_installer.daemon.launchd import LaunchdBackend

        return LaunchdBackend()
    if init is InitSystem.SYSTEMD:
        from nix_installer.daemon.systemd import SystemdBackend

        return SystemdBackend()
    return None
