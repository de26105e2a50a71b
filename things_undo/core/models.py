"""
things-undo Data Models
~~~~~~~~~~~~~~~~~~~~~~~

Dataclasses that flow between the snapshot store, the snapshot manager
and the rollback executor: stored records (input and read-back),
rollback plans, and rollback / dispatch results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from things_undo.core.status import (
    ItemType,
    OperationType,
    RollbackActionType,
    SnapshotStatus,
)

__all__ = [
    "Snapshot",
    "SnapshotCreatedItem",
    "SnapshotModifiedItem",
    "SnapshotStatusChange",
    "SnapshotDetails",
    "CreateSnapshotInput",
    "CreatedItemInput",
    "ModifiedItemInput",
    "StatusChangeInput",
    "AddSnapshotData",
    "UpdateSnapshotData",
    "StatusChangeData",
    "BulkSnapshotData",
    "RollbackAction",
    "RollbackPlan",
    "RollbackResult",
    "RollbackOutcome",
    "DispatchResult",
]


# ── Stored records ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Snapshot:
    """
    One recorded mutating operation.

    Attributes:
        id: Sortable unique handle, e.g. ``snap-1718000000000-a1b2c3``.
        description: Generated human-readable summary.
        operation_type: The kind of command that was run.
        command: The literal invocation, for display only.
        created_at: UTC insert time as ``YYYY-MM-DD HH:MM:SS``.
        status: Current lifecycle state.
        rolled_back_at: Set when a rollback outcome was recorded.
    """

    id: str
    description: str
    operation_type: OperationType
    command: str
    created_at: str
    status: SnapshotStatus
    rolled_back_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dictionary."""
        return {
            "id": self.id,
            "description": self.description,
            "operation_type": self.operation_type.value,
            "command": self.command,
            "created_at": self.created_at,
            "rolled_back_at": self.rolled_back_at,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class SnapshotCreatedItem:
    """An item the recorded operation created."""

    id: int
    snapshot_id: str
    things_id: str
    item_type: ItemType
    title: str
    parent_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "snapshot_id": self.snapshot_id,
            "things_id": self.things_id,
            "item_type": self.item_type.value,
            "title": self.title,
            "parent_id": self.parent_id,
        }


@dataclass(frozen=True)
class SnapshotModifiedItem:
    """
    An item the recorded operation changed in place.

    ``previous_state`` and ``modified_fields`` are the raw JSON texts
    stored in the database. Only the snapshot manager interprets them.
    """

    id: int
    snapshot_id: str
    things_id: str
    item_type: ItemType
    previous_state: str
    modified_fields: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "snapshot_id": self.snapshot_id,
            "things_id": self.things_id,
            "item_type": self.item_type.value,
            "previous_state": self.previous_state,
            "modified_fields": self.modified_fields,
        }


@dataclass(frozen=True)
class SnapshotStatusChange:
    """An item whose lifecycle status the recorded operation changed."""

    id: int
    snapshot_id: str
    things_id: str
    item_type: ItemType
    previous_status: str
    new_status: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "snapshot_id": self.snapshot_id,
            "things_id": self.things_id,
            "item_type": self.item_type.value,
            "previous_status": self.previous_status,
            "new_status": self.new_status,
        }


@dataclass(frozen=True)
class SnapshotDetails:
    """A snapshot together with all of its child records."""

    snapshot: Snapshot
    created_items: list[SnapshotCreatedItem] = field(default_factory=list)
    modified_items: list[SnapshotModifiedItem] = field(default_factory=list)
    status_changes: list[SnapshotStatusChange] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.snapshot.id

    @property
    def status(self) -> SnapshotStatus:
        return self.snapshot.status

    @property
    def item_count(self) -> int:
        """Number of child records, one per compensable effect."""
        return (
            len(self.created_items)
            + len(self.modified_items)
            + len(self.status_changes)
        )

    def to_dict(self) -> dict[str, Any]:
        data = self.snapshot.to_dict()
        data["created_items"] = [i.to_dict() for i in self.created_items]
        data["modified_items"] = [i.to_dict() for i in self.modified_items]
        data["status_changes"] = [i.to_dict() for i in self.status_changes]
        return data


# ── Store inputs ──────────────────────────────────────────────────────────────


@dataclass
class CreateSnapshotInput:
    """Parent-row fields supplied by the caller."""

    description: str
    operation_type: OperationType
    command: str

    def __post_init__(self) -> None:
        self.operation_type = OperationType(self.operation_type)


@dataclass
class CreatedItemInput:
    """A created item to attach to a snapshot."""

    things_id: str
    item_type: ItemType
    title: str
    parent_id: str | None = None

    def __post_init__(self) -> None:
        self.item_type = ItemType(self.item_type)


@dataclass
class ModifiedItemInput:
    """
    A modified item to attach to a snapshot.

    ``previous_state`` holds the field values read before the update;
    ``modified_fields`` names the fields the update touched.
    """

    things_id: str
    item_type: ItemType
    previous_state: dict[str, Any]
    modified_fields: list[str]

    def __post_init__(self) -> None:
        self.item_type = ItemType(self.item_type)


@dataclass
class StatusChangeInput:
    """A status transition to attach to a snapshot."""

    things_id: str
    item_type: ItemType
    previous_status: str
    new_status: str

    def __post_init__(self) -> None:
        self.item_type = ItemType(self.item_type)


# ── Manager inputs ────────────────────────────────────────────────────────────


@dataclass
class AddSnapshotData:
    """Data describing an add / add-project command."""

    title: str
    item_type: ItemType
    things_id: str
    command: str
    parent_id: str | None = None

    def __post_init__(self) -> None:
        self.item_type = ItemType(self.item_type)


@dataclass
class UpdateSnapshotData:
    """Data describing an update / update-project command."""

    things_id: str
    item_type: ItemType
    previous_state: dict[str, Any]
    modified_fields: list[str]
    command: str

    def __post_init__(self) -> None:
        self.item_type = ItemType(self.item_type)


@dataclass
class StatusChangeData:
    """Data describing a complete / cancel command."""

    things_id: str
    item_type: ItemType
    title: str
    previous_status: str
    new_status: str
    command: str

    def __post_init__(self) -> None:
        self.item_type = ItemType(self.item_type)


@dataclass
class BulkSnapshotData:
    """Data describing a bulk JSON command."""

    command: str
    created_items: list[CreatedItemInput] = field(default_factory=list)
    modified_items: list[ModifiedItemInput] = field(default_factory=list)
    status_changes: list[StatusChangeInput] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return (
            len(self.created_items)
            + len(self.modified_items)
            + len(self.status_changes)
        )


# ── Plans and results ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RollbackAction:
    """
    One compensating command.

    Attributes:
        action: What to do to the item.
        things_id: The Things item the command targets.
        item_type: Selects the to-do or project command variant.
        data: Field values to write back (``restore``) or the status to
            return to (``revert-status``, key ``previous_status``).
    """

    action: RollbackActionType
    things_id: str
    item_type: ItemType
    data: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "things_id": self.things_id,
            "item_type": self.item_type.value,
            "data": self.data,
        }


@dataclass(frozen=True)
class RollbackPlan:
    """Ordered compensating actions for one snapshot, plus warnings."""

    snapshot_id: str
    operation_type: OperationType
    description: str
    actions: list[RollbackAction] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "snapshot_id": self.snapshot_id,
            "operation_type": self.operation_type.value,
            "description": self.description,
            "actions": [a.to_dict() for a in self.actions],
            "warnings": list(self.warnings),
        }


@dataclass
class RollbackResult:
    """Aggregate outcome of executing a rollback plan."""

    snapshot_id: str
    items_rolled_back: int = 0
    items_failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Return True if no compensating action failed."""
        return self.items_failed == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "snapshot_id": self.snapshot_id,
            "items_rolled_back": self.items_rolled_back,
            "items_failed": self.items_failed,
            "errors": list(self.errors),
        }


@dataclass
class RollbackOutcome:
    """
    Everything a rollback request produced.

    ``error`` is set when no plan could be executed (unknown snapshot,
    already rolled back). ``result`` is absent for dry runs.
    """

    snapshot_id: str
    success: bool
    plan: RollbackPlan | None = None
    result: RollbackResult | None = None
    error: str | None = None
    dry_run: bool = False

    @property
    def warnings(self) -> list[str]:
        return list(self.plan.warnings) if self.plan else []

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "snapshot_id": self.snapshot_id,
            "dry_run": self.dry_run,
            "plan": self.plan.to_dict() if self.plan else None,
            "result": self.result.to_dict() if self.result else None,
            "warnings": self.warnings,
            "error": self.error,
        }


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of handing one URL command to Things."""

    succeeded: bool
    url: str = ""
    error_message: str | None = None
    dry_run: bool = False
