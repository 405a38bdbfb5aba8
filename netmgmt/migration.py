"""Schema creation and data migration of the events database."""

from __future__ import annotations

import logging
import sqlite3

from netmgmt.crypt import FieldEncrypt

logger = logging.getLogger(__name__)

GCM_ENC_ALGO = "GCM"

CREATE_TABLE_QUERY = (
    "CREATE TABLE IF NOT EXISTS events "
    "(id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "activity INTEGER, "
    "timestamp DATETIME, "
    "initiator_id TEXT,"
    "account_id TEXT,"
    "meta TEXT,"
    " target_id TEXT);"
)

CREATE_TABLE_DELETED_USERS_QUERY = (
    "CREATE TABLE IF NOT EXISTS deleted_users "
    "(id TEXT NOT NULL, email TEXT NOT NULL, name TEXT, enc_algo TEXT NOT NULL);"
)


def migrate(crypt: FieldEncrypt, conn: sqlite3.Connection) -> None:
    """Create missing tables and columns and re-encrypt legacy rows."""
    conn.execute(CREATE_TABLE_QUERY)
    conn.execute(CREATE_TABLE_DELETED_USERS_QUERY)
    update_deleted_users_table(conn)
    migrate_legacy_encrypted_users_to_gcm(crypt, conn)


def update_deleted_users_table(conn: sqlite3.Connection) -> None:
    """Add the name and enc_algo columns to deleted_users when missing."""
    for column in ("name", "enc_algo"):
        if check_column_exists(conn, "deleted_users", column):
            continue
        logger.debug("Adding %s column to the deleted_users table", column)
        conn.execute(f"ALTER TABLE deleted_users ADD COLUMN {column} TEXT;")
        logger.debug("Successfully added %s column to the deleted_users table", column)


def _legacy_decrypt_field(crypt: FieldEncrypt, value: str | None) -> str:
    return "" if value is None else crypt.legacy_decrypt(value)


def migrate_legacy_encrypted_users_to_gcm(crypt: FieldEncrypt, conn: sqlite3.Connection) -> None:
    """Re-encrypt deleted users stored with legacy CBC encryption using GCM.

    Rows that cannot be decrypted are left untouched.
    """
    logger.debug("Migrating CBC encrypted deleted users to GCM")
    with conn:
        rows = conn.execute(
            "SELECT id, email, name FROM deleted_users WHERE enc_algo IS NULL OR enc_algo != ?",
            (GCM_ENC_ALGO,),
        ).fetchall()
        for user_id, email, name in rows:
            try:
                decrypted_email = _legacy_decrypt_field(crypt, email)
            except ValueError as err:
                logger.warning(
                    "skipping migrating deleted user %s: failed to decrypt email: %s", user_id, err
                )
                continue
            try:
                decrypted_name = _legacy_decrypt_field(crypt, name)
            except ValueError as err:
                logger.warning(
                    "skipping migrating deleted user %s: failed to decrypt name: %s", user_id, err
                )
                continue
            conn.execute(
                "UPDATE deleted_users SET email = ?, name = ?, enc_algo = ? WHERE id = ?",
                (
                    crypt.encrypt(decrypted_email),
                    crypt.encrypt(decrypted_name),
                    GCM_ENC_ALGO,
                    user_id,
                ),
            )
    logger.debug("Successfully migrated CBC encrypted deleted users to GCM")


def check_column_exists(conn: sqlite3.Connection, table_name: str, column_name: str) -> bool:
    """Return whether ``table_name`` has a column called ``column_name``."""
    rows = conn.execute(f"PRAGMA table_info({table_name});").fetchall()
    return any(row[1] == column_name for row in rows)