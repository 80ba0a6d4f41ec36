"""Configuration schema."""

from pathlib import Path

from pydantic import BaseModel, Field

from nix_installer.settings import InitSystem, detect_init_system


class InstallSettings(BaseModel):
    """Install-time parameters the action tree is planned from."""

    init: InitSystem = Field(default_factory=detect_init_system)
    start_daemon: bool = True


class Config(BaseModel):
    """Root configuration for nix-installer."""

    install: InstallSettings = Field(default_factory=InstallSettings)
    receipt_path: Path = Path("/nix/receipt.json")
