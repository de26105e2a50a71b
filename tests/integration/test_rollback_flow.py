"""Integration test: record, inspect, roll back and purge on a file database."""

import pytest

from things_undo import (
    AddSnapshotData,
    BulkSnapshotData,
    CreatedItemInput,
    ItemType,
    ModifiedItemInput,
    OperationType,
    SnapshotLedger,
    SnapshotStatus,
    SnapshotStore,
    StatusChangeInput,
    ThingsClient,
)


@pytest.fixture
def file_ledger(tmp_path, executor):
    store = SnapshotStore.open(str(tmp_path / "flow.db"))
    ledger = SnapshotLedger(store=store, client=ThingsClient(executor, auth_token="tok"))
    yield ledger
    ledger.close()


class TestRollbackFlow:
    """End-to-end ledger scenarios."""

    def test_bulk_roundtrip(self, file_ledger, executor):
        snap = file_ledger.record_bulk(
            BulkSnapshotData(
                command="things:///json?data=[...]",
                created_items=[
                    CreatedItemInput("N1", ItemType.TODO, "New one"),
                    CreatedItemInput("pending", ItemType.PROJECT, "New project"),
                ],
                modified_items=[
                    ModifiedItemInput(
                        "M1", ItemType.TODO, {"title": "Before", "when": "today"}, ["title"]
                    )
                ],
                status_changes=[
                    StatusChangeInput("S1", ItemType.TODO, "open", "canceled"),
                    StatusChangeInput("S2", ItemType.TODO, "canceled", "completed"),
                ],
            )
        )
        assert snap.operation_type is OperationType.JSON
        assert file_ledger.resolve_pending_item(snap.id, "New project", "P1") == 1

        plan = file_ledger.get_rollback_plan(snap.id)
        assert [a.things_id for a in plan.actions] == ["N1", "P1", "M1", "S2"]
        assert plan.warnings == [
            "Item S1 was canceled. Cancellation is irreversible in Things."
        ]

        outcome = file_ledger.rollback(snap.id)
        assert outcome.success
        assert outcome.result.items_rolled_back == 4
        assert executor.urls == [
            "things:///update?auth-token=tok&id=N1&canceled=true",
            "things:///update-project?auth-token=tok&id=P1&canceled=true",
            "things:///update?auth-token=tok&id=M1&title=Before&when=today",
            "things:///update?auth-token=tok&id=S2&canceled=true",
        ]
        assert file_ledger.get_snapshot(snap.id).status is SnapshotStatus.ROLLED_BACK

    def test_rollback_is_single_use(self, file_ledger, executor):
        snap = file_ledger.record_add(
            AddSnapshotData("Buy milk", ItemType.TODO, "ABC123", "c")
        )
        assert file_ledger.rollback(snap.id).success
        second = file_ledger.rollback(snap.id)
        assert not second.success
        assert len(executor.urls) == 1

    def test_listing_survives_reopen(self, tmp_path, executor):
        path = str(tmp_path / "reopen.db")
        first = SnapshotLedger(store=SnapshotStore.open(path), client=ThingsClient(executor))
        ids = [
            first.record_add(AddSnapshotData(f"t{i}", ItemType.TODO, f"X{i}", "c")).id
            for i in range(3)
        ]
        first.close()

        with SnapshotLedger(
            store=SnapshotStore.open(path), client=ThingsClient(executor)
        ) as second:
            assert [s.id for s in second.list_snapshots()] == list(reversed(ids))
