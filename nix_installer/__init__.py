"""nix-installer - revertible install actions for the Nix daemon."""

__version__ = "0.1.0"
__logo__ = "❄️"
