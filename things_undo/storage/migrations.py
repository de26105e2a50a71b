"""
Database Migrations
~~~~~~~~~~~~~~~~~~~

Creates the snapshot schema: one parent table and three child tables
that cascade on delete. Every statement is idempotent.
"""

from __future__ import annotations

import logging
import sqlite3

from things_undo.exceptions import MigrationError

__all__ = ["TABLES", "INDEXES", "run_migrations"]

logger = logging.getLogger(__name__)

TABLES = {
    "SNAPSHOTS": "snapshots",
    "SNAPSHOT_CREATED": "snapshot_created",
    "SNAPSHOT_MODIFIED": "snapshot_modified",
    "SNAPSHOT_STATUS": "snapshot_status",
}

INDEXES = (
    "idx_snapshots_status",
    "idx_snapshots_created_at",
    "idx_snapshot_created_snapshot_id",
    "idx_snapshot_modified_snapshot_id",
    "idx_snapshot_status_snapshot_id",
)

_SNAPSHOTS = TABLES["SNAPSHOTS"]
_CREATED = TABLES["SNAPSHOT_CREATED"]
_MODIFIED = TABLES["SNAPSHOT_MODIFIED"]
_STATUS = TABLES["SNAPSHOT_STATUS"]

_SCHEMA_SQL = (
    f"""\
CREATE TABLE IF NOT EXISTS {_SNAPSHOTS} (
    id             TEXT PRIMARY KEY,
    description    TEXT NOT NULL,
    operation_type TEXT NOT NULL,
    command        TEXT NOT NULL,
    created_at     TEXT NOT NULL DEFAULT (datetime('now')),
    rolled_back_at TEXT,
    status         TEXT NOT NULL DEFAULT 'active'
)
""",
    # Created items are undone by canceling them.
    f"""\
CREATE TABLE IF NOT EXISTS {_CREATED} (
    id          INTEGER PRIMARY KEY,
    snapshot_id TEXT NOT NULL REFERENCES {_SNAPSHOTS}(id) ON DELETE CASCADE,
    things_id   TEXT NOT NULL,
    item_type   TEXT NOT NULL,
    title       TEXT NOT NULL,
    parent_id   TEXT
)
""",
    # previous_state and modified_fields are JSON text.
    f"""\
CREATE TABLE IF NOT EXISTS {_MODIFIED} (
    id              INTEGER PRIMARY KEY,
    snapshot_id     TEXT NOT NULL REFERENCES {_SNAPSHOTS}(id) ON DELETE CASCADE,
    things_id       TEXT NOT NULL,
    item_type       TEXT NOT NULL,
    previous_state  TEXT NOT NULL,
    modified_fields TEXT NOT NULL
)
""",
    f"""\
CREATE TABLE IF NOT EXISTS {_STATUS} (
    id              INTEGER PRIMARY KEY,
    snapshot_id     TEXT NOT NULL REFERENCES {_SNAPSHOTS}(id) ON DELETE CASCADE,
    things_id       TEXT NOT NULL,
    item_type       TEXT NOT NULL,
    previous_status TEXT NOT NULL,
    new_status      TEXT NOT NULL
)
""",
    f"CREATE INDEX IF NOT EXISTS idx_snapshots_status ON {_SNAPSHOTS}(status)",
    f"CREATE INDEX IF NOT EXISTS idx_snapshots_created_at ON {_SNAPSHOTS}(created_at)",
    f"CREATE INDEX IF NOT EXISTS idx_snapshot_created_snapshot_id "
    f"ON {_CREATED}(snapshot_id)",
    f"CREATE INDEX IF NOT EXISTS idx_snapshot_modified_snapshot_id "
    f"ON {_MODIFIED}(snapshot_id)",
    f"CREATE INDEX IF NOT EXISTS idx_snapshot_status_snapshot_id "
    f"ON {_STATUS}(snapshot_id)",
)


def run_migrations(conn: sqlite3.Connection) -> None:
    """
    Create all snapshot tables and indexes.

    Safe to call on every startup.

    Raises:
        MigrationError: If a schema statement fails.
    """
    try:
        for statement in _SCHEMA_SQL:
            conn.execute(statement)
        if conn.in_transaction:
            conn.commit()
    except sqlite3.Error as exc:
        raise MigrationError(f"Failed to create snapshot schema: {exc}") from exc
    logger.debug("Snapshot schema is up to date")
