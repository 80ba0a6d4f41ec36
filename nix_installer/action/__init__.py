"""Revertible install actions."""

from nix_installer.action.base import Action, ActionDescription, ActionTag, StatefulAction
from nix_installer.action.errors import ActionError

__all__ = ["Action", "ActionDescription", "ActionError", "ActionTag", "StatefulAction"]
