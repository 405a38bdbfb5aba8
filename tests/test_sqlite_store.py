import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from netmgmt.codes import Activity
from netmgmt.crypt import FieldEncrypt, generate_key
from netmgmt.event import Event
from netmgmt.migration import migrate
from netmgmt.sqlite_store import (
    EVENT_SINK_DB,
    FALLBACK_EMAIL,
    FALLBACK_NAME,
    SQLiteStore,
    new_sqlite_store,
)

ACCOUNT = "account_1"
BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    sqlite_store = new_sqlite_store(tmp_path, generate_key())
    yield sqlite_store
    sqlite_store.close()


@pytest.fixture
def raw(tmp_path):
    conn = sqlite3.connect(tmp_path / "raw.db")
    crypt = FieldEncrypt(generate_key())
    migrate(crypt, conn)
    yield conn, crypt, SQLiteStore(conn, crypt)
    conn.close()


def _save_ten(store):
    for i in range(10):
        store.save(
            Event(
                timestamp=BASE + timedelta(seconds=i),
                activity=Activity.PEER_ADDED_BY_USER,
                initiator_id=f"user_{i}",
                target_id=f"peer_{i}",
                account_id=ACCOUNT,
            )
        )


def test_new_sqlite_store(store, tmp_path):
    _save_ten(store)
    assert (tmp_path / EVENT_SINK_DB).exists()

    result = store.get(ACCOUNT, 0, 10, False)
    assert len(result) == 10
    assert result[0].timestamp < result[-1].timestamp

    result = store.get(ACCOUNT, 0, 5, True)
    assert len(result) == 5
    assert result[0].timestamp > result[-1].timestamp


def test_offset_and_other_accounts(store):
    _save_ten(store)
    result = store.get(ACCOUNT, 8, 10, False)
    assert [event.initiator_id for event in result] == ["user_8", "user_9"]
    assert store.get("other", 0, 10, False) == []


def test_save_returns_copy_with_id(store):
    event = Event(timestamp=BASE, activity=Activity.GROUP_CREATED, account_id=ACCOUNT)
    saved = store.save(event)
    assert saved.id == 1
    assert saved is not event
    loaded = store.get(ACCOUNT, 0, 1, False)[0]
    assert loaded.id == 1
    assert loaded.activity == Activity.GROUP_CREATED
    assert loaded.timestamp == BASE


def test_deleted_user_data_is_encrypted(raw):
    conn, crypt, sqlite_store = raw
    meta = {"email": "user@example.com", "name": "Jane"}
    saved = sqlite_store.save(
        Event(
            timestamp=BASE,
            activity=Activity.USER_DELETED,
            initiator_id="admin",
            target_id="jane",
            account_id=ACCOUNT,
            meta=meta,
        )
    )
    assert saved.meta == {"email": "user@example.com", "name": "Jane"}

    stored_email, algo = conn.execute(
        "SELECT email, enc_algo FROM deleted_users WHERE id = 'jane'"
    ).fetchone()
    assert algo == "GCM"
    assert crypt.decrypt(stored_email) == "user@example.com"
    (stored_meta,) = conn.execute("SELECT meta FROM events").fetchone()
    assert stored_meta == ""

    loaded = sqlite_store.get(ACCOUNT, 0, 10, True)[0]
    assert loaded.meta == {"email": "user@example.com", "username": "Jane"}


def test_extra_meta_keeps_other_keys(raw):
    conn, _, sqlite_store = raw
    event = Event(
        timestamp=BASE,
        activity=Activity.USER_DELETED,
        target_id="jane",
        account_id=ACCOUNT,
        meta={"email": "user@example.com", "name": "Jane", "role": "admin"},
    )
    sqlite_store.save(event)
    assert event.meta == {"role": "admin"}
    loaded = sqlite_store.get(ACCOUNT, 0, 10, False)[0]
    assert loaded.meta == {"role": "admin", "email": "user@example.com", "username": "Jane"}


def test_initiator_details_from_deleted_users(raw):
    _, _, sqlite_store = raw
    sqlite_store.save(
        Event(
            timestamp=BASE,
            activity=Activity.USER_DELETED,
            target_id="bob",
            account_id=ACCOUNT,
            meta={"email": "bob@example.com", "name": "Bob"},
        )
    )
    sqlite_store.save(
        Event(
            timestamp=BASE + timedelta(seconds=1),
            activity=Activity.PEER_RENAMED,
            initiator_id="bob",
            account_id=ACCOUNT,
        )
    )
    latest = sqlite_store.get(ACCOUNT, 0, 1, True)[0]
    assert latest.initiator_name == "Bob"
    assert latest.initiator_email == "bob@example.com"


def test_undecryptable_values_fall_back(raw):
    conn, _, sqlite_store = raw
    conn.execute(
        "INSERT INTO deleted_users(id, email, name, enc_algo) VALUES(?, ?, ?, ?)",
        ("peer", "bad", "bad", "GCM"),
    )
    sqlite_store.save(
        Event(timestamp=BASE, activity=Activity.PEER_RENAMED, target_id="peer", account_id=ACCOUNT)
    )
    loaded = sqlite_store.get(ACCOUNT, 0, 1, False)[0]
    assert loaded.meta == {"username": FALLBACK_NAME, "email": FALLBACK_EMAIL}


def test_invalid_key_rejected(tmp_path):
    with pytest.raises(ValueError):
        new_sqlite_store(tmp_path, "AAAA")


def test_context_manager_closes(tmp_path):
    with new_sqlite_store(tmp_path, generate_key()) as sqlite_store:
        sqlite_store.save(Event(timestamp=BASE, activity=Activity.DASHBOARD_LOGIN, account_id="a"))
    with pytest.raises(sqlite3.ProgrammingError):
        sqlite_store.get("a", 0, 1, False)