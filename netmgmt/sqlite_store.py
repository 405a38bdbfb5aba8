"""Activity event store backed by SQLite."""

from __future__ import annotations

import json
import logging
import re
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from netmgmt.codes import Activity
from netmgmt.crypt import FieldEncrypt
from netmgmt.event import Event
from netmgmt.migration import GCM_ENC_ALGO, migrate
from netmgmt.store import Store

logger = logging.getLogger(__name__)

EVENT_SINK_DB = "events.db"
FALLBACK_NAME = "unknown"
FALLBACK_EMAIL = "[email]"

_SELECT_QUERY = """SELECT events.id, activity, timestamp, initiator_id,
        i.name AS initiator_name, i.email AS initiator_email,
        target_id, t.name AS target_name, t.email AS target_email, account_id, meta
    FROM events
    LEFT JOIN (
        SELECT id, MAX(name) AS name, MAX(email) AS email
        FROM deleted_users
        GROUP BY id
    ) i ON events.initiator_id = i.id
    LEFT JOIN (
        SELECT id, MAX(name) AS name, MAX(email) AS email
        FROM deleted_users
        GROUP BY id
    ) t ON events.target_id = t.id
    WHERE account_id = ?
    ORDER BY timestamp {order} LIMIT ? OFFSET ?;"""

_SELECT_DESC_QUERY = _SELECT_QUERY.format(order="DESC")
_SELECT_ASC_QUERY = _SELECT_QUERY.format(order="ASC")

_INSERT_QUERY = (
    "INSERT INTO events(activity, timestamp, initiator_id, target_id, account_id, meta) "
    "VALUES(?, ?, ?, ?, ?, ?)"
)

_INSERT_DELETED_USER_QUERY = (
    "INSERT INTO deleted_users(id, email, name, enc_algo) VALUES(?, ?, ?, ?)"
)

_FRACTION = re.compile(r"(\.\d{6})\d+")


def _format_timestamp(value: datetime) -> str:
    return value.isoformat(sep=" ")


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(r"\1", text)
    return datetime.fromisoformat(text)


class SQLiteStore(Store):
    """Event store keeping events in an SQLite database.

    E-mail addresses and names of deleted users are kept encrypted.
    """

    def __init__(self, conn: sqlite3.Connection, crypt: FieldEncrypt) -> None:
        self._conn = conn
        self._crypt = crypt
        self._lock = threading.Lock()

    def _decrypt_or(self, value: str, fallback: str) -> tuple[str, bool]:
        try:
            return self._crypt.decrypt(value), True
        except ValueError:
            return fallback, False

    def _to_event(self, row: tuple) -> tuple[Event, str | None]:
        (
            event_id,
            operation,
            timestamp,
            initiator,
            initiator_name,
            initiator_email,
            target,
            target_name,
            target_email,
            account,
            json_meta,
        ) = row
        crypt_error = None
        meta: dict[str, Any] = json.loads(json_meta) if json_meta else {}

        if target_name is not None:
            meta["username"], ok = self._decrypt_or(target_name, FALLBACK_NAME)
            if not ok:
                crypt_error = f"failed to decrypt username for target id: {target}"
        if target_email is not None:
            meta["email"], ok = self._decrypt_or(target_email, FALLBACK_EMAIL)
            if not ok:
                crypt_error = f"failed to decrypt email address for target id: {target}"

        event = Event(
            timestamp=_parse_timestamp(timestamp),
            activity=Activity(operation),
            id=event_id,
            initiator_id=initiator or "",
            target_id=target or "",
            account_id=account or "",
            meta=meta,
        )

        if initiator_name is not None:
            event.initiator_name, ok = self._decrypt_or(initiator_name, FALLBACK_NAME)
            if not ok:
                crypt_error = f"failed to decrypt username of initiator: {initiator}"
        if initiator_email is not None:
            event.initiator_email, ok = self._decrypt_or(initiator_email, FALLBACK_EMAIL)
            if not ok:
                crypt_error = f"failed to decrypt email address of initiator: {initiator}"

        return event, crypt_error

    def get(self, account_id: str, offset: int, limit: int, descending: bool) -> list[Event]:
        """Return up to ``limit`` events of the account from ``offset``, ordered by timestamp."""
        query = _SELECT_DESC_QUERY if descending else _SELECT_ASC_QUERY
        with self._lock:
            rows = self._conn.execute(query, (account_id, limit, offset)).fetchall()
        events = []
        crypt_error = None
        for row in rows:
            event, error = self._to_event(row)
            crypt_error = error or crypt_error
            events.append(event)
        if crypt_error:
            logger.warning("%s", crypt_error)
        return events

    def save(self, event: Event) -> Event:
        """Store the event and return a copy carrying the new id.

        When the meta holds both ``email`` and ``name`` they are stored
        encrypted as a deleted user and removed from the event meta.
        """
        with self._lock, self._conn:
            meta = self._save_deleted_user(event)
            json_meta = json.dumps(event.meta) if meta is not None else ""
            cursor = self._conn.execute(
                _INSERT_QUERY,
                (
                    int(event.activity),
                    _format_timestamp(event.timestamp),
                    event.initiator_id,
                    event.target_id,
                    event.account_id,
                    json_meta,
                ),
            )
            new_id = cursor.lastrowid
        stored = event.copy()
        stored.id = new_id
        return stored

    def _save_deleted_user(self, event: Event) -> dict[str, Any] | None:
        meta = event.meta
        if meta is None or "email" not in meta or "name" not in meta:
            return meta
        encrypted_email = self._crypt.encrypt(str(meta["email"]))
        encrypted_name = self._crypt.encrypt(str(meta["name"]))
        self._conn.execute(
            _INSERT_DELETED_USER_QUERY,
            (event.target_id, encrypted_email, encrypted_name, GCM_ENC_ALGO),
        )
        if len(meta) == 2:
            return None
        del meta["email"]
        del meta["name"]
        return meta

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()


def new_sqlite_store(data_dir: str | Path, encryption_key: str) -> SQLiteStore:
    """Open (creating and migrating if needed) the events database in ``data_dir``."""
    db_file = Path(data_dir) / EVENT_SINK_DB
    conn = sqlite3.connect(db_file, check_same_thread=False)
    try:
        crypt = FieldEncrypt(encryption_key)
        migrate(crypt, conn)
    except Exception:
        conn.close()
        raise
    return SQLiteStore(conn, crypt)