"""
Snapshot Store
~~~~~~~~~~~~~~

Durable CRUD over the snapshot tables.

The store never interprets the JSON payloads of modified items; it only
serializes what the snapshot manager hands it and returns the raw text.
Lookups of unknown ids return None rather than raising.
"""

from __future__ import annotations

import json
import logging
import secrets
import sqlite3
import string
import time
from collections.abc import Iterator
from contextlib import contextmanager

from things_undo.core.models import (
    CreatedItemInput,
    CreateSnapshotInput,
    ModifiedItemInput,
    Snapshot,
    SnapshotCreatedItem,
    SnapshotDetails,
    SnapshotModifiedItem,
    SnapshotStatusChange,
    StatusChangeInput,
)
from things_undo.core.status import (
    PENDING_THINGS_ID,
    ItemType,
    OperationType,
    SnapshotStatus,
)
from things_undo.exceptions import SnapshotIntegrityError, StorageError
from things_undo.storage import connection as db
from things_undo.storage.migrations import TABLES

__all__ = ["SnapshotStore", "generate_snapshot_id"]

logger = logging.getLogger(__name__)

_SNAPSHOTS = TABLES["SNAPSHOTS"]
_CREATED = TABLES["SNAPSHOT_CREATED"]
_MODIFIED = TABLES["SNAPSHOT_MODIFIED"]
_STATUS = TABLES["SNAPSHOT_STATUS"]

_SNAPSHOT_COLUMNS = (
    "id, description, operation_type, command, created_at, rolled_back_at, status"
)
_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_snapshot_id() -> str:
    """Return a new id: ``snap-<epoch millis>-<6 base36 chars>``."""
    millis = time.time_ns() // 1_000_000
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"snap-{millis}-{suffix}"


def _row_to_snapshot(row: sqlite3.Row) -> Snapshot:
    return Snapshot(
        id=row["id"],
        description=row["description"],
        operation_type=OperationType(row["operation_type"]),
        command=row["command"],
        created_at=row["created_at"],
        rolled_back_at=row["rolled_back_at"],
        status=SnapshotStatus(row["status"]),
    )


def _row_to_created(row: sqlite3.Row) -> SnapshotCreatedItem:
    return SnapshotCreatedItem(
        id=row["id"],
        snapshot_id=row["snapshot_id"],
        things_id=row["things_id"],
        item_type=ItemType(row["item_type"]),
        title=row["title"],
        parent_id=row["parent_id"],
    )


def _row_to_modified(row: sqlite3.Row) -> SnapshotModifiedItem:
    return SnapshotModifiedItem(
        id=row["id"],
        snapshot_id=row["snapshot_id"],
        things_id=row["things_id"],
        item_type=ItemType(row["item_type"]),
        previous_state=row["previous_state"],
        modified_fields=row["modified_fields"],
    )


def _row_to_status(row: sqlite3.Row) -> SnapshotStatusChange:
    return SnapshotStatusChange(
        id=row["id"],
        snapshot_id=row["snapshot_id"],
        things_id=row["things_id"],
        item_type=ItemType(row["item_type"]),
        previous_status=row["previous_status"],
        new_status=row["new_status"],
    )


class SnapshotStore:
    """
    Repository for snapshots and their child records.

    Args:
        conn: An open connection, usually from ``open_database``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    @classmethod
    def open(cls, db_path: str | None = None) -> SnapshotStore:
        """Open the database at ``db_path`` (default location if None)."""
        return cls(db.open_database(db_path))

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group several writes; all or none of them are kept."""
        with db.transaction(self._conn):
            yield

    def _insert_child(self, sql: str, params: tuple, snapshot_id: str) -> None:
        try:
            self._conn.execute(sql, params)
        except sqlite3.IntegrityError as exc:
            raise SnapshotIntegrityError(
                f"Cannot attach item to snapshot {snapshot_id}: {exc}",
                details={"snapshot_id": snapshot_id},
            ) from exc

    # ── Writes ────────────────────────────────────────────────────────

    def create_snapshot(
        self,
        data: CreateSnapshotInput,
        snapshot_id: str | None = None,
    ) -> Snapshot:
        """
        Insert a parent snapshot row.

        Args:
            data: Description, operation type and command.
            snapshot_id: Explicit id, mainly for deterministic tests.

        Returns:
            The stored snapshot, read back so database defaults are filled.

        Raises:
            SnapshotIntegrityError: If the id is already taken.
            StorageError: If the inserted row cannot be read back.
        """
        new_id = snapshot_id or generate_snapshot_id()
        try:
            self._conn.execute(
                f"INSERT INTO {_SNAPSHOTS} (id, description, operation_type, command) "
                "VALUES (?, ?, ?, ?)",
                (new_id, data.description, data.operation_type.value, data.command),
            )
        except sqlite3.IntegrityError as exc:
            raise SnapshotIntegrityError(
                f"Snapshot id already exists: {new_id}",
                details={"snapshot_id": new_id},
            ) from exc

        snapshot = self.get_snapshot(new_id)
        if snapshot is None:
            raise StorageError(
                f"Snapshot {new_id} was not found after insert",
                details={"snapshot_id": new_id},
            )
        logger.debug("Created snapshot %s (%s)", new_id, data.operation_type)
        return snapshot

    def add_snapshot_created(self, snapshot_id: str, item: CreatedItemInput) -> None:
        """Record an item created by the snapshot's operation."""
        self._insert_child(
            f"INSERT INTO {_CREATED} "
            "(snapshot_id, things_id, item_type, title, parent_id) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                snapshot_id,
                item.things_id,
                item.item_type.value,
                item.title,
                item.parent_id,
            ),
            snapshot_id,
        )

    def add_snapshot_modified(self, snapshot_id: str, item: ModifiedItemInput) -> None:
        """Record an item modified by the snapshot's operation."""
        self._insert_child(
            f"INSERT INTO {_MODIFIED} "
            "(snapshot_id, things_id, item_type, previous_state, modified_fields) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                snapshot_id,
                item.things_id,
                item.item_type.value,
                json.dumps(item.previous_state, default=str),
                json.dumps(list(item.modified_fields)),
            ),
            snapshot_id,
        )

    def add_snapshot_status(self, snapshot_id: str, item: StatusChangeInput) -> None:
        """Record a status change made by the snapshot's operation."""
        self._insert_child(
            f"INSERT INTO {_STATUS} "
            "(snapshot_id, things_id, item_type, previous_status, new_status) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                snapshot_id,
                item.things_id,
                item.item_type.value,
                item.previous_status,
                item.new_status,
            ),
            snapshot_id,
        )

    def update_snapshot_status(
        self,
        snapshot_id: str,
        status: SnapshotStatus,
        only_if_active: bool = False,
    ) -> bool:
        """
        Set a snapshot's status.

        ``rolled_back_at`` is stamped for rollback outcomes and cleared
        for any other status.

        Args:
            snapshot_id: The snapshot to update.
            status: The new status.
            only_if_active: Leave the row alone unless it is still active.

        Returns:
            True if a row was updated.
        """
        status = SnapshotStatus(status)
        rolled_back_expr = (
            "datetime('now')" if status.is_rollback_outcome() else "NULL"
        )
        sql = (
            f"UPDATE {_SNAPSHOTS} SET status = ?, rolled_back_at = {rolled_back_expr} "
            "WHERE id = ?"
        )
        params: tuple = (status.value, snapshot_id)
        if only_if_active:
            sql += " AND status = ?"
            params += (SnapshotStatus.ACTIVE.value,)
        cursor = self._conn.execute(sql, params)
        return cursor.rowcount > 0

    def resolve_created_item(self, snapshot_id: str, title: str, things_id: str) -> int:
        """
        Replace the pending placeholder on created items with a real id.

        Only rows of ``snapshot_id`` whose title matches and whose id is
        still the placeholder are touched.

        Returns:
            Number of rows updated.
        """
        cursor = self._conn.execute(
            f"UPDATE {_CREATED} SET things_id = ? "
            "WHERE snapshot_id = ? AND title = ? AND things_id = ?",
            (things_id, snapshot_id, title, PENDING_THINGS_ID),
        )
        return cursor.rowcount

    def delete_snapshot(self, snapshot_id: str) -> bool:
        """Delete a snapshot and, by cascade, its child rows."""
        cursor = self._conn.execute(
            f"DELETE FROM {_SNAPSHOTS} WHERE id = ?", (snapshot_id,)
        )
        return cursor.rowcount > 0

    def purge_old_snapshots(self, days: int) -> int:
        """
        Delete every snapshot created more than ``days`` days ago.

        Returns:
            Number of snapshots removed. Zero is a normal result.
        """
        cursor = self._conn.execute(
            f"DELETE FROM {_SNAPSHOTS} "
            "WHERE created_at < datetime('now', '-' || ? || ' days')",
            (int(days),),
        )
        if cursor.rowcount:
            logger.info("Purged %d snapshots older than %d days", cursor.rowcount, days)
        return cursor.rowcount

    # ── Reads ─────────────────────────────────────────────────────────

    def get_snapshot(self, snapshot_id: str) -> Snapshot | None:
        row = self._conn.execute(
            f"SELECT {_SNAPSHOT_COLUMNS} FROM {_SNAPSHOTS} WHERE id = ?",
            (snapshot_id,),
        ).fetchone()
        if row is None:
            return None
        return _row_to_snapshot(row)

    def get_snapshot_details(self, snapshot_id: str) -> SnapshotDetails | None:
        """Return a snapshot with its children, each in insertion order."""
        snapshot = self.get_snapshot(snapshot_id)
        if snapshot is None:
            return None

        created = self._conn.execute(
            f"SELECT id, snapshot_id, things_id, item_type, title, parent_id "
            f"FROM {_CREATED} WHERE snapshot_id = ? ORDER BY id",
            (snapshot_id,),
        ).fetchall()
        modified = self._conn.execute(
            f"SELECT id, snapshot_id, things_id, item_type, previous_state, "
            f"modified_fields FROM {_MODIFIED} WHERE snapshot_id = ? ORDER BY id",
            (snapshot_id,),
        ).fetchall()
        statuses = self._conn.execute(
            f"SELECT id, snapshot_id, things_id, item_type, previous_status, "
            f"new_status FROM {_STATUS} WHERE snapshot_id = ? ORDER BY id",
            (snapshot_id,),
        ).fetchall()

        return SnapshotDetails(
            snapshot=snapshot,
            created_items=[_row_to_created(r) for r in created],
            modified_items=[_row_to_modified(r) for r in modified],
            status_changes=[_row_to_status(r) for r in statuses],
        )

    def list_snapshots(
        self,
        status: SnapshotStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Snapshot]:
        """
        List snapshots, most recent first.

        Args:
            status: Only return snapshots with exactly this status.
            limit: Maximum number of rows.
            offset: Rows to skip.
        """
        sql = f"SELECT {_SNAPSHOT_COLUMNS} FROM {_SNAPSHOTS}"
        params: list[str | int] = []
        if status is not None:
            sql += " WHERE status = ?"
            params.append(SnapshotStatus(status).value)
        sql += " ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?"
        params.extend((limit, offset))

        rows = self._conn.execute(sql, params).fetchall()
        return [_row_to_snapshot(r) for r in rows]

    def count_children(self, snapshot_id: str) -> int:
        """Total child rows across all three child tables."""
        total = 0
        for table in (_CREATED, _MODIFIED, _STATUS):
            row = self._conn.execute(
                f"SELECT COUNT(*) FROM {table} WHERE snapshot_id = ?",
                (snapshot_id,),
            ).fetchone()
            total += row[0]
        return total
