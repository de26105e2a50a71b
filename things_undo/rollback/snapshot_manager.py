"""
Snapshot Manager
~~~~~~~~~~~~~~~~

Turns high-level operation data into stored snapshots, and stored
snapshots back into rollback plans.

The manager does not diff Things state. Callers supply the
pre-operation field values they read before the command ran, and the
manager persists exactly that.
"""

from __future__ import annotations

import json
import logging
from typing import assert_never

from things_undo.core.models import (
    AddSnapshotData,
    BulkSnapshotData,
    CreatedItemInput,
    CreateSnapshotInput,
    ModifiedItemInput,
    RollbackAction,
    RollbackPlan,
    Snapshot,
    SnapshotDetails,
    StatusChangeData,
    StatusChangeInput,
    UpdateSnapshotData,
)
from things_undo.core.status import (
    ItemStatus,
    ItemType,
    OperationType,
    RollbackActionType,
    SnapshotStatus,
)
from things_undo.exceptions import InvalidStatusTransitionError
from things_undo.storage.snapshot_store import SnapshotStore

__all__ = ["SnapshotManager"]

logger = logging.getLogger(__name__)


class SnapshotManager:
    """
    Creates snapshots for each command kind and derives rollback plans.

    Every ``create_*`` method writes the parent row and its children in
    one transaction, so a snapshot is never visible half-populated.
    """

    def __init__(self, store: SnapshotStore) -> None:
        self._store = store

    @property
    def store(self) -> SnapshotStore:
        return self._store

    # ── Snapshot creation ─────────────────────────────────────────────

    def create_add_snapshot(
        self, data: AddSnapshotData, snapshot_id: str | None = None
    ) -> Snapshot:
        """Record an ``add`` command that created one item."""
        with self._store.transaction():
            snapshot = self._store.create_snapshot(
                CreateSnapshotInput(
                    description=f'Added {data.item_type} "{data.title}"',
                    operation_type=OperationType.ADD,
                    command=data.command,
                ),
                snapshot_id,
            )
            self._store.add_snapshot_created(
                snapshot.id,
                CreatedItemInput(
                    things_id=data.things_id,
                    item_type=data.item_type,
                    title=data.title,
                    parent_id=data.parent_id,
                ),
            )
        return snapshot

    def create_add_project_snapshot(
        self, data: AddSnapshotData, snapshot_id: str | None = None
    ) -> Snapshot:
        """Record an ``add-project`` command. The item type is always project."""
        with self._store.transaction():
            snapshot = self._store.create_snapshot(
                CreateSnapshotInput(
                    description=f'Added {ItemType.PROJECT} "{data.title}"',
                    operation_type=OperationType.ADD_PROJECT,
                    command=data.command,
                ),
                snapshot_id,
            )
            self._store.add_snapshot_created(
                snapshot.id,
                CreatedItemInput(
                    things_id=data.things_id,
                    item_type=ItemType.PROJECT,
                    title=data.title,
                    parent_id=data.parent_id,
                ),
            )
        return snapshot

    def create_update_snapshot(
        self, data: UpdateSnapshotData, snapshot_id: str | None = None
    ) -> Snapshot:
        """Record an ``update`` / ``update-project`` command."""
        operation_type = (
            OperationType.UPDATE_PROJECT
            if data.item_type is ItemType.PROJECT
            else OperationType.UPDATE
        )
        with self._store.transaction():
            snapshot = self._store.create_snapshot(
                CreateSnapshotInput(
                    description=f"Updated {data.item_type} {data.things_id}",
                    operation_type=operation_type,
                    command=data.command,
                ),
                snapshot_id,
            )
            self._store.add_snapshot_modified(
                snapshot.id,
                ModifiedItemInput(
                    things_id=data.things_id,
                    item_type=data.item_type,
                    previous_state=data.previous_state,
                    modified_fields=data.modified_fields,
                ),
            )
        return snapshot

    def create_status_change_snapshot(
        self, data: StatusChangeData, snapshot_id: str | None = None
    ) -> Snapshot:
        """Record a ``complete`` or ``cancel`` command."""
        if data.new_status == ItemStatus.COMPLETED:
            operation_type, verb = OperationType.COMPLETE, "Completed"
        else:
            operation_type, verb = OperationType.CANCEL, "Canceled"

        with self._store.transaction():
            snapshot = self._store.create_snapshot(
                CreateSnapshotInput(
                    description=f'{verb} {data.item_type} "{data.title}"',
                    operation_type=operation_type,
                    command=data.command,
                ),
                snapshot_id,
            )
            self._store.add_snapshot_status(
                snapshot.id,
                StatusChangeInput(
                    things_id=data.things_id,
                    item_type=data.item_type,
                    previous_status=data.previous_status,
                    new_status=data.new_status,
                ),
            )
        return snapshot

    def create_bulk_snapshot(
        self, data: BulkSnapshotData, snapshot_id: str | None = None
    ) -> Snapshot:
        """Record a bulk ``json`` command with any mix of effects."""
        with self._store.transaction():
            snapshot = self._store.create_snapshot(
                CreateSnapshotInput(
                    description=f"Bulk operation: {data.item_count} items",
                    operation_type=OperationType.JSON,
                    command=data.command,
                ),
                snapshot_id,
            )
            for created in data.created_items:
                self._store.add_snapshot_created(snapshot.id, created)
            for modified in data.modified_items:
                self._store.add_snapshot_modified(snapshot.id, modified)
            for change in data.status_changes:
                self._store.add_snapshot_status(snapshot.id, change)
        return snapshot

    def resolve_pending_item(self, snapshot_id: str, title: str, things_id: str) -> int:
        """
        Attach the real Things id to a created item recorded as pending.

        Callers look the id up through the read interface (by title and
        container) after Things has processed the add command.

        Returns:
            Number of created items updated.
        """
        updated = self._store.resolve_created_item(snapshot_id, title, things_id)
        if updated:
            logger.debug(
                "Resolved %d pending item(s) titled %r in %s to %s",
                updated,
                title,
                snapshot_id,
                things_id,
            )
        return updated

    # ── Rollback planning ─────────────────────────────────────────────

    def get_rollback_plan(self, snapshot_id: str) -> RollbackPlan | None:
        """
        Compute the compensating actions for a snapshot.

        Returns None if the snapshot does not exist or is no longer
        active. Actions come in child-row insertion order: cancels for
        created items, then restores for modified items, then status
        reverts. A change to ``canceled`` produces a warning instead of
        an action because Things cannot undo a cancellation.
        """
        details = self._store.get_snapshot_details(snapshot_id)
        if details is None:
            return None
        if details.status is not SnapshotStatus.ACTIVE:
            return None
        return self._build_plan(details)

    @staticmethod
    def _build_plan(details: SnapshotDetails) -> RollbackPlan:
        actions: list[RollbackAction] = []
        warnings: list[str] = []

        for created in details.created_items:
            actions.append(
                RollbackAction(
                    action=RollbackActionType.CANCEL,
                    things_id=created.things_id,
                    item_type=created.item_type,
                )
            )

        for modified in details.modified_items:
            actions.append(
                RollbackAction(
                    action=RollbackActionType.RESTORE,
                    things_id=modified.things_id,
                    item_type=modified.item_type,
                    data=json.loads(modified.previous_state),
                )
            )

        for change in details.status_changes:
            if change.new_status == ItemStatus.CANCELED:
                warnings.append(
                    f"Item {change.things_id} was canceled. "
                    "Cancellation is irreversible in Things."
                )
                continue
            actions.append(
                RollbackAction(
                    action=RollbackActionType.REVERT_STATUS,
                    things_id=change.things_id,
                    item_type=change.item_type,
                    data={"previous_status": change.previous_status},
                )
            )

        for warning in warnings:
            logger.warning("Snapshot %s: %s", details.id, warning)

        return RollbackPlan(
            snapshot_id=details.id,
            operation_type=details.snapshot.operation_type,
            description=details.snapshot.description,
            actions=actions,
            warnings=warnings,
        )

    def mark_rolled_back(self, snapshot_id: str, status: SnapshotStatus) -> bool:
        """
        Record the outcome of a rollback.

        Only an active snapshot changes; a second call is a no-op.

        Raises:
            InvalidStatusTransitionError: If ``status`` is not a rollback outcome.

        Returns:
            True if the snapshot moved out of ``active``.
        """
        status = SnapshotStatus(status)
        match status:
            case SnapshotStatus.ROLLED_BACK | SnapshotStatus.PARTIAL_ROLLBACK:
                return self._store.update_snapshot_status(
                    snapshot_id, status, only_if_active=True
                )
            case SnapshotStatus.ACTIVE | SnapshotStatus.EXPIRED:
                raise InvalidStatusTransitionError(
                    f"{status} is not a rollback outcome",
                    details={"snapshot_id": snapshot_id, "status": status.value},
                )
            case _:
                assert_never(status)

    # ── Pass-throughs ─────────────────────────────────────────────────

    def get_snapshot(self, snapshot_id: str) -> Snapshot | None:
        return self._store.get_snapshot(snapshot_id)

    def get_snapshot_details(self, snapshot_id: str) -> SnapshotDetails | None:
        return self._store.get_snapshot_details(snapshot_id)

    def list_snapshots(
        self,
        status: SnapshotStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Snapshot]:
        return self._store.list_snapshots(status=status, limit=limit, offset=offset)

    def delete_snapshot(self, snapshot_id: str) -> bool:
        return self._store.delete_snapshot(snapshot_id)

    def purge_old_snapshots(self, days: int) -> int:
        return self._store.purge_old_snapshots(days)
