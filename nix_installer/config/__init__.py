"""Configuration module for nix-installer."""

from nix_installer.config.loader import get_config_path, load_config
from nix_installer.config.schema import Config, InstallSettings

__all__ = ["Config", "InstallSettings", "load_config", "get_config_path"]
