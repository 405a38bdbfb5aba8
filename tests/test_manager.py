import logging
from datetime import timezone

import pytest

from netmgmt.codes import Activity
from netmgmt.manager import ActivityConfig, Manager
from netmgmt.store import InMemoryEventStore, Store


class _FailingStore(Store):
    def save(self, event):
        raise RuntimeError("disk full")

    def get(self, account_id, offset, limit, descending):
        return []

    def close(self):
        pass


def test_config_defaults_to_enabled():
    assert ActivityConfig.from_env({}).enabled is True


@pytest.mark.parametrize(
    "value, expected",
    [("false", False), ("0", False), ("F", False), ("true", True), ("1", True)],
)
def test_config_parses_booleans(value, expected):
    config = ActivityConfig.from_env({"NB_EVENT_ACTIVITY_LOG_ENABLED": value})
    assert config.enabled is expected


def test_config_rejects_invalid_value():
    with pytest.raises(ValueError):
        ActivityConfig.from_env({"NB_EVENT_ACTIVITY_LOG_ENABLED": "maybe"})


def test_manager_reads_process_environment(monkeypatch):
    monkeypatch.setenv("NB_EVENT_ACTIVITY_LOG_ENABLED", "false")
    manager = Manager(InMemoryEventStore())
    assert manager.config.enabled is False


def test_store_event_saves_in_background():
    store = InMemoryEventStore()
    manager = Manager(store, ActivityConfig(enabled=True))
    meta = {"peer": "peer-1"}
    manager.store_event("user-1", "peer-1", "account-1", Activity.PEER_RENAMED, meta)
    assert manager.wait(5) is True
    events = store.get("account-1", 0, 10, False)
    assert len(events) == 1
    event = events[0]
    assert event.initiator_id == "user-1"
    assert event.target_id == "peer-1"
    assert event.activity == Activity.PEER_RENAMED
    assert event.meta == meta
    assert event.timestamp.tzinfo == timezone.utc


def test_disabled_manager_saves_nothing():
    store = InMemoryEventStore()
    manager = Manager(store, ActivityConfig(enabled=False))
    manager.store_event("user-1", "peer-1", "account-1", Activity.PEER_RENAMED, None)
    assert manager.wait(5) is True
    assert store.get("account-1", 0, 10, False) == []


def test_none_meta_becomes_empty_dict():
    store = InMemoryEventStore()
    manager = Manager(store, ActivityConfig())
    manager.store_event("sys", "t", "acc", Activity.USER_JOINED, None)
    manager.wait(5)
    assert store.get("acc", 0, 10, False)[0].meta == {}


def test_store_failure_is_logged(caplog):
    manager = Manager(_FailingStore(), ActivityConfig())
    with caplog.at_level(logging.ERROR, logger="netmgmt.manager"):
        manager.store_event("u", "t", "acc", Activity.USER_JOINED, {})
        assert manager.wait(5) is True
    assert any("disk full" in record.getMessage() for record in caplog.records)