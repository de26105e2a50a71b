"""Tests for executing rollback plans."""

import asyncio

import pytest

from things_undo import (
    AddSnapshotData,
    BulkSnapshotData,
    CreatedItemInput,
    DispatchResult,
    ItemType,
    ModifiedItemInput,
    RollbackExecutor,
    SnapshotStatus,
    StatusChangeData,
    StatusChangeInput,
    ThingsClient,
    UpdateSnapshotData,
)


@pytest.fixture
def rollback(manager, client) -> RollbackExecutor:
    return RollbackExecutor(manager, client)


class TestExecute:
    """Tests for synchronous rollback."""

    def test_add_rollback_cancels_item(self, rollback, manager, add_data, executor):
        snap = manager.create_add_snapshot(add_data)
        outcome = rollback.execute(snap.id)

        assert outcome.success
        assert outcome.result.items_rolled_back == 1
        assert outcome.result.items_failed == 0
        assert executor.urls == [
            "things:///update?auth-token=test-token&id=ABC123&canceled=true"
        ]
        snapshot = manager.get_snapshot(snap.id)
        assert snapshot.status is SnapshotStatus.ROLLED_BACK
        assert snapshot.rolled_back_at is not None

    def test_update_rollback_restores_fields(self, rollback, manager, update_data, executor):
        snap = manager.create_update_snapshot(update_data)
        outcome = rollback.execute(snap.id)
        assert outcome.success
        assert executor.urls == [
            "things:///update?auth-token=test-token&id=XYZ789&title=Old&notes=n"
        ]

    def test_canceled_status_only_warns(self, rollback, manager, cancel_data, executor):
        snap = manager.create_status_change_snapshot(cancel_data)
        outcome = rollback.execute(snap.id)

        assert outcome.success
        assert outcome.result.items_rolled_back == 0
        assert outcome.warnings == [
            "Item T1 was canceled. Cancellation is irreversible in Things."
        ]
        assert executor.urls == []
        assert manager.get_snapshot(snap.id).status is SnapshotStatus.ROLLED_BACK

    def test_revert_to_open_fails(self, rollback, manager, complete_data, executor):
        snap = manager.create_status_change_snapshot(complete_data)
        outcome = rollback.execute(snap.id)

        assert not outcome.success
        assert outcome.result.items_failed == 1
        assert "re-opening" in outcome.result.errors[0]
        assert executor.urls == []
        assert manager.get_snapshot(snap.id).status is SnapshotStatus.PARTIAL_ROLLBACK

    def test_revert_to_completed_resends(self, rollback, manager, executor):
        snap = manager.create_status_change_snapshot(
            StatusChangeData("A", ItemType.TODO, "t", "completed", "canceled", "c")
        )
        # Canceled target produces a warning only
        assert rollback.execute(snap.id).warnings

        bulk = manager.create_bulk_snapshot(
            BulkSnapshotData(
                command="c",
                status_changes=[StatusChangeInput("B", ItemType.TODO, "completed", "open")],
            )
        )
        outcome = rollback.execute(bulk.id)
        assert outcome.success
        assert executor.urls == [
            "things:///update?auth-token=test-token&id=B&completed=true"
        ]

    def test_restore_clears_field_that_was_empty(self, rollback, manager, executor):
        snap = manager.create_update_snapshot(
            UpdateSnapshotData(
                things_id="X1",
                item_type=ItemType.TODO,
                previous_state={"deadline": None},
                modified_fields=["deadline"],
                command="things:///update?id=X1&deadline=2026-01-01",
            )
        )
        outcome = rollback.execute(snap.id)
        assert outcome.success
        assert executor.urls == [
            "things:///update?auth-token=test-token&id=X1&deadline="
        ]

    def test_restore_of_empty_state_is_sent(self, rollback, manager, executor):
        snap = manager.create_update_snapshot(
            UpdateSnapshotData("X", ItemType.TODO, {}, [], "things:///update?id=X")
        )
        outcome = rollback.execute(snap.id)
        assert outcome.success
        assert outcome.result.items_rolled_back == 1
        assert executor.urls == ["things:///update?auth-token=test-token&id=X"]
        assert manager.get_snapshot(snap.id).status is SnapshotStatus.ROLLED_BACK

    def test_revert_to_unknown_status_fails(self, rollback, manager, executor):
        snap = manager.create_bulk_snapshot(
            BulkSnapshotData(
                command="c",
                status_changes=[StatusChangeInput("S", ItemType.TODO, "someday", "completed")],
            )
        )
        outcome = rollback.execute(snap.id)
        assert not outcome.success
        assert outcome.result.errors == [
            "Cannot revert status for S: unknown previous status 'someday'"
        ]
        assert executor.urls == []

    def test_partial_failure_continues(self, rollback, manager, executor):
        snap = manager.create_bulk_snapshot(
            BulkSnapshotData(
                command="c",
                created_items=[
                    CreatedItemInput("A", ItemType.TODO, "a"),
                    CreatedItemInput("B", ItemType.TODO, "b"),
                    CreatedItemInput("C", ItemType.TODO, "c"),
                ],
            )
        )
        executor.fail_on = ["id=B"]
        outcome = rollback.execute(snap.id)

        assert not outcome.success
        assert outcome.result.items_rolled_back == 2
        assert outcome.result.items_failed == 1
        assert outcome.result.errors == ["Things refused"]
        assert len(executor.urls) == 3
        assert manager.get_snapshot(snap.id).status is SnapshotStatus.PARTIAL_ROLLBACK

    def test_pending_item_not_dispatched(self, rollback, manager, executor):
        snap = manager.create_add_snapshot(
            AddSnapshotData("Buy milk", ItemType.TODO, "pending", "c")
        )
        outcome = rollback.execute(snap.id)
        assert outcome.result.items_failed == 1
        assert "pending" in outcome.result.errors[0]
        assert executor.urls == []

    def test_unexpected_error_recorded(self, manager, add_data, executor):
        class ExplodingClient(ThingsClient):
            def dispatch(self, action):
                raise RuntimeError("kaboom")

        snap = manager.create_add_snapshot(add_data)
        outcome = RollbackExecutor(manager, ExplodingClient(executor, "tok")).execute(snap.id)
        assert outcome.result.errors == ["kaboom"]
        assert manager.get_snapshot(snap.id).status is SnapshotStatus.PARTIAL_ROLLBACK

    def test_rate_limited_compensation_fails(self, manager, add_data, executor_factory):
        from things_undo import RateLimiter

        limiter = RateLimiter(max_calls=1)
        limiter.acquire()
        client = ThingsClient(executor_factory(rate_limiter=limiter), auth_token="tok")
        snap = manager.create_add_snapshot(add_data)

        outcome = RollbackExecutor(manager, client).execute(snap.id)
        assert outcome.result.items_failed == 1
        assert outcome.result.errors[0].startswith("Rate limit exceeded. Please wait")


class TestPreconditions:
    """Tests for snapshots that cannot be rolled back."""

    def test_unknown_snapshot(self, rollback):
        outcome = rollback.execute("nope")
        assert not outcome.success
        assert outcome.error == "Snapshot not found: nope"

    def test_second_rollback_refused(self, rollback, manager, add_data, executor):
        snap = manager.create_add_snapshot(add_data)
        rollback.execute(snap.id)
        outcome = rollback.execute(snap.id)
        assert not outcome.success
        assert outcome.error == f"Snapshot already rolled back: {snap.id}"
        assert len(executor.urls) == 1

    def test_dry_run_changes_nothing(self, rollback, manager, add_data, executor):
        snap = manager.create_add_snapshot(add_data)
        outcome = rollback.execute(snap.id, dry_run=True)

        assert outcome.success and outcome.dry_run
        assert len(outcome.plan.actions) == 1
        assert outcome.result is None
        assert executor.urls == []
        assert manager.get_snapshot(snap.id).status is SnapshotStatus.ACTIVE

    def test_dry_run_dispatcher_keeps_snapshot_active(
        self, manager, add_data, executor_factory
    ):
        executor = executor_factory(dry_run=True)
        client = ThingsClient(executor, auth_token="tok")
        snap = manager.create_add_snapshot(add_data)

        outcome = RollbackExecutor(manager, client).execute(snap.id)
        assert outcome.success and outcome.dry_run
        assert outcome.result is None
        assert executor.urls == []
        assert manager.get_snapshot(snap.id).status is SnapshotStatus.ACTIVE

    def test_unsent_compensation_not_counted(self, manager, add_data, executor):
        class PreviewClient(ThingsClient):
            def dispatch(self, action):
                return DispatchResult(succeeded=True, url="things:///x", dry_run=True)

        snap = manager.create_add_snapshot(add_data)
        outcome = RollbackExecutor(manager, PreviewClient(executor, "tok")).execute(snap.id)
        assert not outcome.success
        assert outcome.result.items_rolled_back == 0
        assert outcome.result.errors == [
            "Compensation for ABC123 was not sent (dry run)"
        ]

    def test_status_changed_during_rollback(self, manager, add_data, executor):
        class InterleavingClient(ThingsClient):
            def dispatch(self, action):
                manager.mark_rolled_back(snap.id, SnapshotStatus.ROLLED_BACK)
                return super().dispatch(action)

        snap = manager.create_add_snapshot(add_data)
        rollback = RollbackExecutor(manager, InterleavingClient(executor, "tok"))
        outcome = rollback.execute(snap.id)

        assert not outcome.success
        assert outcome.error == f"Snapshot already rolled back: {snap.id}"
        assert outcome.result.items_rolled_back == 1


class TestExecuteAsync:
    """Tests for asynchronous rollback."""

    @pytest.mark.asyncio
    async def test_add_rollback(self, rollback, manager, add_data, executor):
        snap = manager.create_add_snapshot(add_data)
        outcome = await rollback.execute_async(snap.id)
        assert outcome.success
        assert len(executor.urls) == 1
        assert manager.get_snapshot(snap.id).status is SnapshotStatus.ROLLED_BACK

    @pytest.mark.asyncio
    async def test_mixed_bulk(self, rollback, manager, executor):
        snap = manager.create_bulk_snapshot(
            BulkSnapshotData(
                command="c",
                created_items=[CreatedItemInput("A", ItemType.TODO, "a")],
                modified_items=[
                    ModifiedItemInput("B", ItemType.PROJECT, {"notes": "x"}, ["notes"])
                ],
                status_changes=[
                    StatusChangeInput("C", ItemType.TODO, "open", "canceled")
                ],
            )
        )
        outcome = await rollback.execute_async(snap.id)
        assert outcome.success
        assert outcome.result.items_rolled_back == 2
        assert len(outcome.warnings) == 1
        assert executor.urls[1].startswith("things:///update-project?")

    @pytest.mark.asyncio
    async def test_overlapping_rollbacks_send_once(self, manager, add_data, executor):
        class SlowClient(ThingsClient):
            async def dispatch_async(self, action):
                await asyncio.sleep(0.01)
                return await super().dispatch_async(action)

        snap = manager.create_add_snapshot(add_data)
        rollback = RollbackExecutor(manager, SlowClient(executor, "tok"))
        first, second = await asyncio.gather(
            rollback.execute_async(snap.id), rollback.execute_async(snap.id)
        )

        assert len(executor.urls) == 1
        assert [first.success, second.success].count(True) == 1
        refused = second if first.success else first
        assert refused.error == f"Rollback already in progress: {snap.id}"
        assert manager.get_snapshot(snap.id).status is SnapshotStatus.ROLLED_BACK

    @pytest.mark.asyncio
    async def test_claim_released_after_rollback(self, rollback, manager, add_data):
        snap = manager.create_add_snapshot(add_data)
        await rollback.execute_async(snap.id)
        outcome = await rollback.execute_async(snap.id)
        assert outcome.error == f"Snapshot already rolled back: {snap.id}"

    @pytest.mark.asyncio
    async def test_dry_run(self, rollback, manager, add_data, executor):
        snap = manager.create_add_snapshot(add_data)
        outcome = await rollback.execute_async(snap.id, dry_run=True)
        assert outcome.dry_run
        assert executor.urls == []
