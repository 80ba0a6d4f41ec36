"""Plan, run and roll back the install as a tree of stateful actions.

The plan is also the durable state: after every root action it is written
to the receipt, so an interrupted install can be resumed or uninstalled by
loading the receipt back.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from nix_installer import __version__
from nix_installer.action.base import ActionDescription, StatefulAction
from nix_installer.action.common.configure_enterprise_edition_init_service import (
    ConfigureEnterpriseEditionInitService,
)
from nix_installer.action.errors import ActionError, MultipleActionErrors, ReceiptError
from nix_installer.config.schema import InstallSettings


@dataclass
class InstallPlan:
    """Ordered root actions plus the settings they were planned from."""

    settings: InstallSettings
    actions: list[StatefulAction] = field(default_factory=list)
    version: str = __version__

    @classmethod
    def plan(cls, settings: InstallSettings) -> InstallPlan:
        """Build the action tree. Pure: nothing on the host is touched."""
        actions: list[StatefulAction] = [
            ConfigureEnterpriseEditionInitService.plan(settings.init, settings.start_daemon),
        ]
        return cls(settings=settings, actions=actions)

    # ------------------------------------------------------------------
    # Descriptions
    # ------------------------------------------------------------------

    def describe_install(self) -> list[ActionDescription]:
        descriptions: list[ActionDescription] = []
        for action in self.actions:
            descriptions += action.describe_execute()
        return descriptions

    def describe_uninstall(self) -> list[ActionDescription]:
        descriptions: list[ActionDescription] = []
        for action in reversed(self.actions):
            descriptions += action.describe_revert()
        return descriptions

    @property
    def completed(self) -> bool:
        return all(action.completed for action in self.actions)

    # ------------------------------------------------------------------
    # Execute / Revert
    # ------------------------------------------------------------------

    async def install(self, receipt_path: Path | None = None) -> None:
        """Execute every root action in order, persisting progress after each one.

        The first failure stops the install and propagates; the receipt then
        records exactly which actions completed.
        """
        for action in self.actions:
            try:
                await action.try_execute()
            except ActionError:
                if receipt_path is not None:
                    self._write_receipt_after_failure(receipt_path)
                raise
            if receipt_path is not None:
                self.write_receipt(receipt_path)
        logger.info("Install complete")

    def _write_receipt_after_failure(self, receipt_path: Path) -> None:
        # the action's error is what the caller must see
        try:
            self.write_receipt(receipt_path)
        except ReceiptError as e:
            logger.error(f"Could not record progress after a failed action: {e}")

    async def uninstall(self, receipt_path: Path | None = None) -> None:
        """Revert every completed root action in reverse order.

        Keeps going past failures so as much as possible is undone, then
        raises the collected errors.
        """
        errors: list[ActionError] = []
        for action in reversed(self.actions):
            try:
                await action.try_revert()
            except ActionError as e:
                errors.append(e)
            if receipt_path is None:
                continue
            if errors:
                self._write_receipt_after_failure(receipt_path)
            else:
                self.write_receipt(receipt_path)

        if errors:
            if len(errors) == 1:
                raise errors[0]
            raise MultipleActionErrors(errors)

        if receipt_path is not None and receipt_path.exists():
            receipt_path.unlink()
            logger.debug(f"Removed receipt `{receipt_path}`")
        logger.info("Uninstall complete")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "settings": self.settings.model_dump(mode="json"),
            "actions": [action.to_dict() for action in self.actions],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InstallPlan:
        return cls(
            settings=InstallSettings.model_validate(data["settings"]),
            actions=[StatefulAction.from_dict(a) for a in data["actions"]],
            version=data.get("version", __version__),
        )

    def write_receipt(self, path: Path) -> None:
        """Atomically replace the receipt at ``path`` with the current state."""
        payload = json.dumps(self.to_dict(), indent=2)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
            with os.fdopen(fd, "w") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except OSError as e:
            raise ReceiptError(path, e) from e
        logger.debug(f"Wrote receipt `{path}`")

    @classmethod
    def load_receipt(cls, path: Path) -> InstallPlan:
        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ReceiptError(path, e) from e
        try:
            return cls.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ReceiptError(path, e) from e
