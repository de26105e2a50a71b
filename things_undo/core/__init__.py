"""things-undo core types — status enums and record dataclasses."""

from things_undo.core.models import (
    AddSnapshotData,
    BulkSnapshotData,
    CreatedItemInput,
    CreateSnapshotInput,
    DispatchResult,
    ModifiedItemInput,
    RollbackAction,
    RollbackOutcome,
    RollbackPlan,
    RollbackResult,
    Snapshot,
    SnapshotCreatedItem,
    SnapshotDetails,
    SnapshotModifiedItem,
    SnapshotStatusChange,
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

__all__ = [
    "AddSnapshotData",
    "BulkSnapshotData",
    "CreatedItemInput",
    "CreateSnapshotInput",
    "DispatchResult",
    "ModifiedItemInput",
    "RollbackAction",
    "RollbackOutcome",
    "RollbackPlan",
    "RollbackResult",
    "Snapshot",
    "SnapshotCreatedItem",
    "SnapshotDetails",
    "SnapshotModifiedItem",
    "SnapshotStatusChange",
    "StatusChangeData",
    "StatusChangeInput",
    "UpdateSnapshotData",
    "PENDING_THINGS_ID",
    "ItemStatus",
    "ItemType",
    "OperationType",
    "RollbackActionType",
    "SnapshotStatus",
]
