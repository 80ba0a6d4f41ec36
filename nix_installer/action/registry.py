"""Tag -> action class dispatch used to rebuild persisted action trees."""

from __future__ import annotations

import importlib
from typing import Any

from nix_installer.action.base import Action
from nix_installer.action.errors import UnknownActionError

# (tag, module_path, class_name)
_ACTION_REGISTRY: list[tuple[str, str, str]] = [
    (
        "configure_init_service",
        "nix_installer.action.common.configure_init_service",
        "ConfigureInitService",
    ),
    (
        "configure_enterprise_edition_init_service",
        "nix_installer.action.common.configure_enterprise_edition_init_service",
        "ConfigureEnterpriseEditionInitService",
    ),
]


def registered_tags() -> list[str]:
    return [tag for tag, _, _ in _ACTION_REGISTRY]


def action_class(tag: str) -> type[Action]:
    """Resolve ``tag`` to its action class."""
    for name, module_path, class_name in _ACTION_REGISTRY:
        if name == tag:
            mod = importlib.import_module(module_path)
            return getattr(mod, class_name)
    raise UnknownActionError(tag)


def action_from_dict(data: dict[str, Any]) -> Action:
    """Rebuild an action from its serialized form, dispatching on ``action_name``."""
    tag = data.get("action_name")
    if not isinstance(tag, str):
        raise UnknownActionError(repr(tag))
    return action_class(tag).from_dict(data)
