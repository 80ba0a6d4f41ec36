"""Install-time settings shared by the planner and the actions."""

import platform
import shutil
from enum import Enum


class InitSystem(str, Enum):
    """Service manager that will run the Nix daemon."""

    LAUNCHD = "launchd"
    SYSTEMD = "systemd"
    NONE = "none"

    def __str__(self) -> str:
        return self.value


def detect_init_system() -> InitSystem:
    """Pick the init system of the current host."""
    system = platform.system()
    if system == "Darwin":
        return InitSystem.LAUNCHD
    if system == "Linux" and shutil.which("systemctl"):
        return InitSystem.SYSTEMD
    return InitSystem.NONE
