"""Pytest configuration and fixtures for nix-installer tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import pytest

from nix_installer.action.base import Action, ActionDescription, ActionTag
from nix_installer.action.common import configure_enterprise_edition_init_service as ee
from nix_installer.action.common import configure_init_service
from nix_installer.action.errors import CommandError
from nix_installer.command import CommandOutput
from nix_installer.settings import InitSystem

LABEL = "systems.determinate.nix-daemon"


class CommandRecorder:
    """Stands in for ``execute_command``: records argv, optionally fails by verb."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.fail_verbs: set[str] = set()
        self.hooks: list[Callable[[list[str]], None]] = []

    async def __call__(self, command) -> CommandOutput:
        argv = list(command)
        self.calls.append(argv)
        for hook in self.hooks:
            hook(argv)
        if len(argv) > 1 and argv[1] in self.fail_verbs:
            raise CommandError(argv, 113, "", "Boot-out failed: 113: Could not find service")
        return CommandOutput(command=argv, returncode=0)

    def verbs(self) -> list[str]:
        return [argv[1] for argv in self.calls]


@dataclass
class FakeAction(Action):
    """Counts lifecycle calls; can be told to fail or to run a check first."""

    name: str = "fake"
    fail_execute: bool = False
    fail_revert: bool = False
    before_execute: Callable[[], None] | None = None
    executed: int = 0
    reverted: int = 0
    error: CommandError = field(default_factory=lambda: CommandError(["fake"], 1))

    @classmethod
    def action_tag(cls) -> ActionTag:
        return ActionTag("fake_action")

    def tracing_synopsis(self) -> str:
        return f"Fake action {self.name}"

    def execute_description(self) -> list[ActionDescription]:
        return [ActionDescription(self.tracing_synopsis(), [f"Do {self.name}"])]

    async def execute(self) -> None:
        if self.before_execute is not None:
            self.before_execute()
        if self.fail_execute:
            raise self.error
        self.executed += 1

    def revert_description(self) -> list[ActionDescription]:
        return [ActionDescription(f"Undo {self.name}", [f"Undo {self.name}"])]

    async def revert(self) -> None:
        if self.fail_revert:
            raise self.error
        self.reverted += 1

    def to_dict(self) -> dict[str, Any]:
        return {**self._header(), "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FakeAction:
        return cls(name=data["name"])


@pytest.fixture
def commands(monkeypatch) -> CommandRecorder:
    """Replace every external command with a recorder."""
    recorder = CommandRecorder()
    monkeypatch.setattr(configure_init_service, "execute_command", recorder)
    monkeypatch.setattr(ee, "execute_command", recorder)
    return recorder


@pytest.fixture
def launchd_paths(tmp_path, monkeypatch) -> ee.ServicePaths:
    """Point the launchd destination at a temporary LaunchDaemons directory."""
    dest = tmp_path / "LaunchDaemons" / f"{LABEL}.plist"
    dest.parent.mkdir()
    paths = ee.ServicePaths(service_src=None, service_dest=dest, service_name=LABEL)
    monkeypatch.setitem(ee.SERVICE_PATHS, InitSystem.LAUNCHD, paths)
    return paths


@pytest.fixture
def systemd_paths(tmp_path, monkeypatch) -> ee.ServicePaths:
    """Point the systemd source and destination at temporary directories."""
    src = tmp_path / "determinate" / "nix-daemon.service"
    dest = tmp_path / "system" / "nix-daemon.service"
    src.parent.mkdir()
    dest.parent.mkdir()
    paths = ee.ServicePaths(service_src=src, service_dest=dest, service_name=dest.name)
    monkeypatch.setitem(ee.SERVICE_PATHS, InitSystem.SYSTEMD, paths)
    return paths


@pytest.fixture
def config_file(tmp_path, monkeypatch) -> Path:
    """Isolate configuration from the real home directory."""
    path = tmp_path / "config.json"
    monkeypatch.setenv("NIX_INSTALLER_CONFIG", str(path))
    return path
