"""
things-undo — Snapshot and rollback ledger for Things 3 URL-scheme commands.

Things' URL scheme is write-only and has no undo. things-undo records
what each command changed before it runs and, on request, sends the
compensating commands that undo it:

- Snapshots of created, modified and status-changed items
- Rollback plans with warnings for irreversible effects
- A sliding-window rate limiter shared by every outbound command
- CLI and HTTP sidecar for inspecting and rolling back snapshots

Quick Start::

    from things_undo import AddSnapshotData, ItemType, SnapshotLedger

    ledger = SnapshotLedger.default()
    snapshot = ledger.record_add(
        AddSnapshotData(
            title="Buy milk",
            item_type=ItemType.TODO,
            things_id="ABC123",
            command="things:///add?title=Buy%20milk",
        )
    )
    ledger.rollback(snapshot.id, dry_run=True)
"""

from things_undo.core.models import (
    AddSnapshotData,
    BulkSnapshotData,
    CreatedItemInput,
    DispatchResult,
    ModifiedItemInput,
    RollbackAction,
    RollbackOutcome,
    RollbackPlan,
    RollbackResult,
    Snapshot,
    SnapshotDetails,
    StatusChangeData,
    StatusChangeInput,
    UpdateSnapshotData,
)
from things_undo.core.status import (
    PENDING_THINGS_ID,
    ItemStatus,
    ItemType,
    OperationType,
    RollbackActionType,
    SnapshotStatus,
)
from things_undo.dispatch.client import ThingsClient
from things_undo.dispatch.rate_limiter import RateLimiter
from things_undo.dispatch.url_executor import UrlExecutor
from things_undo.exceptions import (
    ConfigError,
    DispatchError,
    RateLimitExceededError,
    RollbackError,
    SnapshotIntegrityError,
    StorageError,
    ThingsUndoError,
)
from things_undo.ledger import SnapshotLedger
from things_undo.rollback.executor import RollbackExecutor
from things_undo.rollback.snapshot_manager import SnapshotManager
from things_undo.storage.snapshot_store import SnapshotStore

__version__ = "0.1.0"

__all__ = [
    # Main entry point
    "SnapshotLedger",
    # Subsystems
    "SnapshotStore",
    "SnapshotManager",
    "RollbackExecutor",
    "RateLimiter",
    "UrlExecutor",
    "ThingsClient",
    # Records
    "Snapshot",
    "SnapshotDetails",
    "AddSnapshotData",
    "UpdateSnapshotData",
    "StatusChangeData",
    "BulkSnapshotData",
    "CreatedItemInput",
    "ModifiedItemInput",
    "StatusChangeInput",
    "RollbackAction",
    "RollbackPlan",
    "RollbackResult",
    "RollbackOutcome",
    "DispatchResult",
    # Enums
    "PENDING_THINGS_ID",
    "ItemStatus",
    "ItemType",
    "OperationType",
    "RollbackActionType",
    "SnapshotStatus",
    # Exceptions
    "ThingsUndoError",
    "ConfigError",
    "StorageError",
    "SnapshotIntegrityError",
    "RollbackError",
    "DispatchError",
    "RateLimitExceededError",
]
