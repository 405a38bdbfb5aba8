from datetime import datetime, timezone

from netmgmt.codes import Activity
from netmgmt.event import SYSTEM_INITIATOR, ActivityDescriber, Event


def _event():
    return Event(
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        activity=Activity.USER_DELETED,
        id=5,
        initiator_id="initiator",
        initiator_name="Initiator",
        initiator_email="initiator@example.com",
        target_id="target",
        account_id="account",
        meta={"email": "target@example.com", "name": "Target"},
    )


def test_copy_equals_original():
    event = _event()
    assert event.copy() == event


def test_copy_meta_is_independent():
    event = _event()
    copied = event.copy()
    copied.meta["extra"] = 1
    assert "extra" not in event.meta
    assert copied.meta is not event.meta
    assert copied.meta["name"] == "Target"


def test_copy_of_none_meta_gives_empty_dict():
    event = Event(timestamp=datetime.now(timezone.utc), activity=Activity.USER_JOINED)
    event.meta = None
    assert event.copy().meta == {}


def test_defaults_and_describer():
    event = Event(timestamp=datetime.now(timezone.utc), activity=Activity.USER_JOINED)
    assert event.id == 0
    assert event.meta == {}
    assert isinstance(event.activity, ActivityDescriber)
    assert event.activity.string_code() == "user.join"
    assert SYSTEM_INITIATOR == "sys"