"""Tests for the stateful wrapper around actions."""

import asyncio

import pytest

from conftest import FakeAction
from nix_installer.action.base import ActionTag, StatefulAction
from nix_installer.action.common.configure_init_service import ConfigureInitService
from nix_installer.action.errors import ActionError, CommandError, UnknownActionError
from nix_installer.action.registry import action_class, action_from_dict, registered_tags
from nix_installer.settings import InitSystem


def test_try_execute_runs_once():
    action = StatefulAction(FakeAction())

    asyncio.run(action.try_execute())
    asyncio.run(action.try_execute())

    assert action.action.executed == 1
    assert action.completed is True


def test_failed_execute_leaves_marker_and_propagates_same_error():
    fake = FakeAction(fail_execute=True)
    action = StatefulAction(fake)

    with pytest.raises(CommandError) as excinfo:
        asyncio.run(action.try_execute())

    assert excinfo.value is fake.error
    assert excinfo.value.action_tag == "fake_action"
    assert action.completed is False


def test_retry_after_failure_executes_again():
    fake = FakeAction(fail_execute=True)
    action = StatefulAction(fake)
    with pytest.raises(ActionError):
        asyncio.run(action.try_execute())

    fake.fail_execute = False
    asyncio.run(action.try_execute())

    assert fake.executed == 1
    assert action.completed is True


def test_try_revert_skips_when_not_completed():
    action = StatefulAction(FakeAction())

    asyncio.run(action.try_revert())

    assert action.action.reverted == 0
    assert action.completed is False


def test_execute_revert_execute_cycle():
    action = StatefulAction(FakeAction())

    asyncio.run(action.try_execute())
    asyncio.run(action.try_revert())
    asyncio.run(action.try_revert())
    asyncio.run(action.try_execute())

    assert action.action.executed == 2
    assert action.action.reverted == 1
    assert action.completed is True


def test_failed_revert_keeps_completed():
    fake = FakeAction()
    action = StatefulAction(fake)
    asyncio.run(action.try_execute())

    fake.fail_revert = True
    with pytest.raises(CommandError):
        asyncio.run(action.try_revert())

    assert action.completed is True


def test_innermost_tag_is_kept():
    fake = FakeAction(fail_execute=True)
    fake.error.action_tag = "configure_init_service"
    action = StatefulAction(fake)

    with pytest.raises(CommandError) as excinfo:
        asyncio.run(action.try_execute())

    assert excinfo.value.action_tag == "configure_init_service"


def test_descriptions_follow_marker():
    action = StatefulAction(FakeAction(name="thing"))

    assert action.describe_execute()[0].explanation == ["Do thing"]
    assert action.describe_revert() == []

    asyncio.run(action.try_execute())

    assert action.describe_execute() == []
    assert action.describe_revert()[0].description == "Undo thing"


def test_tag_is_constant():
    action = StatefulAction(FakeAction())
    assert action.tag == ActionTag("fake_action")
    assert str(action.tag) == "fake_action"


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def test_stateful_round_trip_keeps_marker():
    action = ConfigureInitService.plan(InitSystem.NONE, start_daemon=False)
    action.completed = True

    data = action.to_dict()
    restored = StatefulAction.from_dict(data)

    assert data["action"]["action_name"] == "configure_init_service"
    assert restored == action
    assert restored.completed is True


def test_unknown_tag_is_rejected():
    with pytest.raises(UnknownActionError, match="create_directory"):
        action_from_dict({"action_name": "create_directory"})


def test_missing_tag_is_rejected():
    with pytest.raises(UnknownActionError):
        action_from_dict({"init": "launchd"})


def test_registry_tags_match_classes():
    for tag in registered_tags():
        assert action_class(tag).action_tag().name == tag
