"""
things-undo — Record and Roll Back Example
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Records an add, an update and a cancel, then previews each rollback.
The dispatcher runs in dry-run mode, so Things is never contacted and
every snapshot stays active.

To run:
    python examples/record_and_rollback.py
"""

import tempfile

from things_undo import (
    AddSnapshotData,
    ItemStatus,
    ItemType,
    SnapshotLedger,
    StatusChangeData,
    UpdateSnapshotData,
)


def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        ledger = SnapshotLedger.from_dict(
            {
                "storage": {"db_path": f"{tmp}/snapshots.db"},
                "dispatch": {"dry_run": True, "auth_token": "example-token"},
            }
        )

        added = ledger.record_add(
            AddSnapshotData(
                title="Buy milk",
                item_type=ItemType.TODO,
                things_id="ABC123",
                command="things:///add?title=Buy%20milk",
            )
        )
        updated = ledger.record_update(
            UpdateSnapshotData(
                things_id="XYZ789",
                item_type=ItemType.TODO,
                previous_state={"title": "Old title", "notes": ""},
                modified_fields=["title"],
                command="things:///update?id=XYZ789&title=New%20title",
            )
        )
        canceled = ledger.record_status_change(
            StatusChangeData(
                things_id="DEF456",
                item_type=ItemType.TODO,
                title="Old idea",
                previous_status=ItemStatus.OPEN,
                new_status=ItemStatus.CANCELED,
                command="things:///update?id=DEF456&canceled=true",
            )
        )

        print("Snapshots (newest first):")
        for snap in ledger.list_snapshots():
            print(f"  {snap.id}  {snap.status:<8}  {snap.description}")
        print()

        for snap in (added, updated, canceled):
            plan = ledger.get_rollback_plan(snap.id)
            print(f"Plan for {snap.description}:")
            for action in plan.actions:
                print(f"  {action.action} {action.things_id} {action.data or ''}")
            for warning in plan.warnings:
                print(f"  WARNING: {warning}")
        print()

        outcome = ledger.rollback(updated.id)
        print(
            f"Rollback of {updated.id}: success={outcome.success} "
            f"dry_run={outcome.dry_run} actions={len(outcome.plan.actions)}"
        )
        print(f"Status now: {ledger.get_snapshot(updated.id).status}")
        ledger.close()


if __name__ == "__main__":
    main()
