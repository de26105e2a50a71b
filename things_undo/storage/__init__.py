"""Snapshot persistence — SQLite connection, schema and repository."""

from things_undo.storage.connection import default_db_path, open_database, transaction
from things_undo.storage.migrations import INDEXES, TABLES, run_migrations
from things_undo.storage.snapshot_store import SnapshotStore, generate_snapshot_id

__all__ = [
    "INDEXES",
    "TABLES",
    "SnapshotStore",
    "default_db_path",
    "generate_snapshot_id",
    "open_database",
    "run_migrations",
    "transaction",
]
