"""Configuration loading utilities."""

import json
import os
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from nix_installer.config.schema import Config

CONFIG_ENV_VAR = "NIX_INSTALLER_CONFIG"


def get_config_path() -> Path:
    """Get the configuration file path, honouring ``NIX_INSTALLER_CONFIG``."""
    env_config = os.getenv(CONFIG_ENV_VAR)
    if env_config:
        return Path(env_config).expanduser()
    return Path.home() / ".nix-installer" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file or return the defaults.

    A missing file is normal. An unreadable or invalid one is reported and
    ignored so the installer can still run with defaults.
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path) as f:
                data = json.load(f)
            return Config.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Using default config.")

    return Config()
