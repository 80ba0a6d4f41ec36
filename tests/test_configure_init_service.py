"""Tests for the generic init-service action."""

import asyncio
import os

import pytest

from conftest import LABEL
from nix_installer.action.common.configure_init_service import ConfigureInitService
from nix_installer.action.errors import CopyError, InvalidPlanError
from nix_installer.settings import InitSystem


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


def test_plan_requires_destination(tmp_path):
    with pytest.raises(InvalidPlanError):
        ConfigureInitService.plan(InitSystem.LAUNCHD, True, None, None, LABEL)


def test_plan_launchd_start_requires_name(tmp_path):
    with pytest.raises(InvalidPlanError):
        ConfigureInitService.plan(InitSystem.LAUNCHD, True, None, tmp_path / "x.plist", None)


def test_plan_systemd_defaults_unit_name(tmp_path):
    action = ConfigureInitService.plan(
        InitSystem.SYSTEMD, True, None, tmp_path / "nix-daemon.service"
    )
    assert action.action.service_name == "nix-daemon.service"


def test_plan_none_needs_nothing():
    action = ConfigureInitService.plan(InitSystem.NONE, True)
    assert action.action.service_dest is None
    assert action.describe_execute() == []


# ---------------------------------------------------------------------------
# launchd
# ---------------------------------------------------------------------------


def test_launchd_start_bootstraps_and_kickstarts(tmp_path, commands):
    dest = tmp_path / f"{LABEL}.plist"
    action = ConfigureInitService.plan(InitSystem.LAUNCHD, True, None, dest, LABEL)

    asyncio.run(action.try_execute())

    assert commands.calls == [
        ["launchctl", "bootstrap", "system", str(dest)],
        ["launchctl", "kickstart", "-k", f"system/{LABEL}"],
    ]


def test_launchd_without_start_runs_nothing(tmp_path, commands):
    dest = tmp_path / f"{LABEL}.plist"
    action = ConfigureInitService.plan(InitSystem.LAUNCHD, False, None, dest, LABEL)

    assert action.describe_execute() == []
    asyncio.run(action.try_execute())

    assert commands.calls == []
    assert action.completed is True


def test_launchd_copies_staged_source_and_revert_removes_it(tmp_path, commands):
    src = tmp_path / "staged.plist"
    src.write_bytes(b"<plist/>")
    dest = tmp_path / "dest.plist"
    action = ConfigureInitService.plan(InitSystem.LAUNCHD, False, src, dest, LABEL)

    steps = action.describe_execute()[0].explanation
    assert steps == [f"Copy `{src}` to `{dest}`"]

    asyncio.run(action.try_execute())
    assert dest.read_bytes() == b"<plist/>"

    asyncio.run(action.try_revert())
    assert not dest.exists()
    assert src.exists()


def test_launchd_missing_source_raises_copy_error(tmp_path, commands):
    dest = tmp_path / "dest.plist"
    action = ConfigureInitService.plan(
        InitSystem.LAUNCHD, True, tmp_path / "missing.plist", dest, LABEL
    )

    with pytest.raises(CopyError) as excinfo:
        asyncio.run(action.try_execute())

    assert excinfo.value.path == dest
    assert commands.calls == []
    assert action.completed is False


def test_launchd_revert_without_source_touches_nothing(tmp_path, commands):
    dest = tmp_path / "dest.plist"
    dest.write_text("generated elsewhere")
    action = ConfigureInitService.plan(InitSystem.LAUNCHD, True, None, dest, LABEL)
    action.completed = True

    assert action.describe_revert() == []
    asyncio.run(action.try_revert())

    assert dest.exists()
    assert commands.calls == []


# ---------------------------------------------------------------------------
# systemd
# ---------------------------------------------------------------------------


def test_systemd_links_source_when_destination_missing(systemd_paths, commands):
    src, dest, name = systemd_paths
    src.write_text("[Unit]\n")
    action = ConfigureInitService.plan(InitSystem.SYSTEMD, True, src, dest, name)

    asyncio.run(action.try_execute())

    assert dest.is_symlink()
    assert os.readlink(dest) == str(src)
    assert commands.calls == [
        ["systemctl", "daemon-reload"],
        ["systemctl", "enable", "--now", "nix-daemon.service"],
    ]


def test_systemd_keeps_existing_destination(systemd_paths, commands):
    src, dest, name = systemd_paths
    dest.write_text("generated in place")
    action = ConfigureInitService.plan(InitSystem.SYSTEMD, False, src, dest, name)

    asyncio.run(action.try_execute())

    assert not dest.is_symlink()
    assert dest.read_text() == "generated in place"
    assert commands.calls == [["systemctl", "daemon-reload"]]


def test_systemd_revert_removes_only_own_symlink(systemd_paths, commands):
    src, dest, name = systemd_paths
    src.write_text("[Unit]\n")
    action = ConfigureInitService.plan(InitSystem.SYSTEMD, False, src, dest, name)
    asyncio.run(action.try_execute())
    commands.calls.clear()

    asyncio.run(action.try_revert())

    assert not dest.exists()
    assert src.exists()
    assert commands.calls == [["systemctl", "daemon-reload"]]


def test_systemd_revert_leaves_regular_file(systemd_paths, commands):
    src, dest, name = systemd_paths
    dest.write_text("generated in place")
    action = ConfigureInitService.plan(InitSystem.SYSTEMD, False, src, dest, name)
    asyncio.run(action.try_execute())

    asyncio.run(action.try_revert())

    assert dest.read_text() == "generated in place"


# ---------------------------------------------------------------------------
# No init system
# ---------------------------------------------------------------------------


def test_none_is_inert(commands):
    action = ConfigureInitService.plan(InitSystem.NONE, True)

    asyncio.run(action.try_execute())
    asyncio.run(action.try_revert())

    assert commands.calls == []
    assert action.action.revert_description() == []
