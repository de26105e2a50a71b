"""
Database Connection
~~~~~~~~~~~~~~~~~~~

Opens the SQLite snapshot database and provides a transaction helper.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from things_undo.storage.migrations import run_migrations

__all__ = [
    "MEMORY_DB",
    "STORAGE_DIR_ENV",
    "default_db_path",
    "open_database",
    "transaction",
]

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"
STORAGE_DIR_ENV = "THINGS_UNDO_STORAGE_DIR"


def default_db_path() -> str:
    """
    Return the default database path.

    ``$THINGS_UNDO_STORAGE_DIR/snapshots.db`` when the variable is set,
    otherwise ``~/.things-undo/snapshots.db``.
    """
    storage_dir = os.environ.get(STORAGE_DIR_ENV)
    if not storage_dir:
        storage_dir = os.path.join(os.path.expanduser("~"), ".things-undo")
    return os.path.join(storage_dir, "snapshots.db")


def open_database(db_path: str | None = None) -> sqlite3.Connection:
    """
    Open (creating if needed) the snapshot database.

    The connection runs in autocommit mode; use ``transaction()`` to
    group writes. Foreign keys are enforced and file databases use WAL.
    """
    path = db_path or default_db_path()
    if path != MEMORY_DB:
        parent = os.path.dirname(os.path.abspath(path))
        os.makedirs(parent, exist_ok=True)

    conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if path != MEMORY_DB:
        conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA foreign_keys = ON")
    run_migrations(conn)
    logger.debug("Opened snapshot database at %s", path)
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    Run a block inside one transaction.

    Commits when the block succeeds and rolls back when it raises. A
    nested call joins the transaction that is already open.
    """
    if conn.in_transaction:
        yield conn
        return

    conn.execute("BEGIN")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")
