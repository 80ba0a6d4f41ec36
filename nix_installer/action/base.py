"""The action contract and the stateful wrapper that makes it resumable.

Every unit of host mutation is an :class:`Action`. Actions are planned
without side effects, described to the user, then executed and, if needed,
reverted. :class:`StatefulAction` records whether the mutation already
happened so a resumed or aborted install never repeats or undoes a step
twice.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from loguru import logger

from nix_installer.action.errors import ActionError


@dataclass(frozen=True)
class ActionTag:
    """Stable identifier of an action variant, also its persisted discriminator."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ActionDescription:
    """One-line synopsis plus the ordered steps it expands to."""

    description: str
    explanation: list[str] = field(default_factory=list)


class Action(ABC):
    """ABC that every install step implements."""

    @classmethod
    @abstractmethod
    def action_tag(cls) -> ActionTag:
        """Constant identifier of this action variant."""

    @abstractmethod
    def tracing_synopsis(self) -> str:
        """One-line description computed from the planned parameters."""

    @abstractmethod
    def execute_description(self) -> list[ActionDescription]:
        """Preview every side effect :meth:`execute` will cause."""

    @abstractmethod
    async def execute(self) -> None:
        """Apply the mutation."""

    @abstractmethod
    def revert_description(self) -> list[ActionDescription]:
        """Preview every side effect :meth:`revert` will cause."""

    @abstractmethod
    async def revert(self) -> None:
        """Undo what :meth:`execute` applied."""

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Serialize planned parameters (and owned children) to JSON-compatible data."""

    @classmethod
    @abstractmethod
    def from_dict(cls, data: dict[str, Any]) -> Action:
        """Inverse of :meth:`to_dict`."""

    def children(self) -> list[StatefulAction]:
        """Owned child actions, in execution order."""
        return []

    def _header(self) -> dict[str, Any]:
        return {"action_name": self.action_tag().name}


A = TypeVar("A", bound=Action)


class StatefulAction(Generic[A]):
    """An action plus a persisted "completed" marker.

    ``completed`` only flips after the wrapped call succeeds, so the marker
    always tells which side effects actually happened.
    """

    def __init__(self, action: A, completed: bool = False) -> None:
        self.action = action
        self.completed = completed

    def __repr__(self) -> str:
        return f"StatefulAction({self.action!r}, completed={self.completed})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatefulAction):
            return NotImplemented
        return self.action == other.action and self.completed == other.completed

    @property
    def tag(self) -> ActionTag:
        return self.action.action_tag()

    # ------------------------------------------------------------------
    # Descriptions
    # ------------------------------------------------------------------

    def describe_execute(self) -> list[ActionDescription]:
        if self.completed:
            return []
        return self.action.execute_description()

    def describe_revert(self) -> list[ActionDescription]:
        if not self.completed:
            return []
        return self.action.revert_description()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def try_execute(self) -> None:
        """Execute unless a previous run already did."""
        synopsis = self.action.tracing_synopsis()
        if self.completed:
            logger.debug(f"Skipped: {synopsis}")
            return
        logger.debug(f"Executing: {synopsis}")
        try:
            await self.action.execute()
        except ActionError as e:
            self._tag_error(e)
            raise
        self.completed = True
        logger.debug(f"Completed: {synopsis}")

    async def try_revert(self) -> None:
        """Revert unless nothing was executed (or it was already reverted)."""
        synopsis = self.action.tracing_synopsis()
        if not self.completed:
            logger.debug(f"Skipped revert: {synopsis}")
            return
        logger.debug(f"Reverting: {synopsis}")
        try:
            await self.action.revert()
        except ActionError as e:
            self._tag_error(e)
            raise
        self.completed = False
        logger.debug(f"Reverted: {synopsis}")

    def _tag_error(self, error: ActionError) -> None:
        # keep the innermost tag when a child already claimed the error
        if error.action_tag is None:
            error.action_tag = self.tag.name
            logger.error(f"Action `{error.action_tag}` failed: {error}")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action.to_dict(), "completed": self.completed}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StatefulAction:
        from nix_installer.action.registry import action_from_dict

        return cls(action_from_dict(data["action"]), completed=bool(data.get("completed", False)))
