"""
things-undo Status & Type Enums
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Closed enumerations shared by the store, the manager and the executor.
Values are the literal strings persisted in the snapshot database.
"""

from enum import StrEnum

__all__ = [
    "OperationType",
    "SnapshotStatus",
    "ItemType",
    "ItemStatus",
    "RollbackActionType",
    "PENDING_THINGS_ID",
]

# Stored in place of a Things id when the URL scheme did not report one.
PENDING_THINGS_ID = "pending"


class OperationType(StrEnum):
    """
    Kind of mutating command a snapshot records.

    ``JSON`` is a bulk operation that may contain any mix of
    creations, field updates and status changes.
    """

    ADD = "add"
    ADD_PROJECT = "add-project"
    UPDATE = "update"
    UPDATE_PROJECT = "update-project"
    COMPLETE = "complete"
    CANCEL = "cancel"
    JSON = "json"


class SnapshotStatus(StrEnum):
    """
    Lifecycle of a snapshot.

    - ACTIVE: Recorded and eligible for rollback.
    - ROLLED_BACK: Every planned compensation succeeded.
    - PARTIAL_ROLLBACK: At least one planned compensation failed.
    - EXPIRED: Administrative terminal state, never reached by rollback.
    """

    ACTIVE = "active"
    ROLLED_BACK = "rolled-back"
    PARTIAL_ROLLBACK = "partial-rollback"
    EXPIRED = "expired"

    def is_terminal(self) -> bool:
        """Return True if no further transition is allowed."""
        return self is not SnapshotStatus.ACTIVE

    def is_rollback_outcome(self) -> bool:
        """Return True if this status is the result of a rollback attempt."""
        return self in (SnapshotStatus.ROLLED_BACK, SnapshotStatus.PARTIAL_ROLLBACK)


class ItemType(StrEnum):
    """Things item kinds that snapshots track."""

    TODO = "to-do"
    PROJECT = "project"


class ItemStatus(StrEnum):
    """Things item lifecycle states."""

    OPEN = "open"
    COMPLETED = "completed"
    CANCELED = "canceled"

    def is_irreversible(self) -> bool:
        """Things does not allow a canceled item to be restored."""
        return self is ItemStatus.CANCELED


class RollbackActionType(StrEnum):
    """Compensating action kinds produced by a rollback plan."""

    CANCEL = "cancel"
    RESTORE = "restore"
    REVERT_STATUS = "revert-status"
