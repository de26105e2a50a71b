"""
Rollback Executor
~~~~~~~~~~~~~~~~~

Executes a rollback plan against Things and records the outcome.

Actions run one at a time, in plan order. A failed action never stops
the remaining ones; every error message is collected. When all actions
have been attempted the snapshot is marked ``rolled-back`` if nothing
failed and ``partial-rollback`` otherwise.

A snapshot is claimed from planning through finalization, so two
overlapping rollbacks of the same snapshot never both send commands.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import assert_never

from things_undo.core.models import (
    DispatchResult,
    RollbackAction,
    RollbackOutcome,
    RollbackPlan,
    RollbackResult,
)
from things_undo.core.status import (
    PENDING_THINGS_ID,
    ItemStatus,
    RollbackActionType,
    SnapshotStatus,
)
from things_undo.dispatch.client import ThingsClient
from things_undo.rollback.snapshot_manager import SnapshotManager

__all__ = ["RollbackExecutor"]

logger = logging.getLogger(__name__)


class RollbackExecutor:
    """
    Applies compensating commands for a snapshot.

    Args:
        manager: Source of plans and sink for the final status.
        client: Command path to Things. Its executor enforces the
            shared rate budget for every compensation. A dispatcher in
            dry-run mode turns every rollback into a dry run.
    """

    def __init__(self, manager: SnapshotManager, client: ThingsClient) -> None:
        self._manager = manager
        self._client = client
        self._in_flight: set[str] = set()
        self._claim_lock = threading.Lock()

    # ── Claiming ──────────────────────────────────────────────────────

    @contextmanager
    def _claim(self, snapshot_id: str) -> Iterator[bool]:
        """Yield True if this caller owns the snapshot's rollback."""
        with self._claim_lock:
            if snapshot_id in self._in_flight:
                owned = False
            else:
                self._in_flight.add(snapshot_id)
                owned = True
        try:
            yield owned
        finally:
            if owned:
                with self._claim_lock:
                    self._in_flight.discard(snapshot_id)

    @staticmethod
    def _busy(snapshot_id: str) -> RollbackOutcome:
        logger.warning("Rollback of %s refused: already in progress", snapshot_id)
        return RollbackOutcome(
            snapshot_id=snapshot_id,
            success=False,
            error=f"Rollback already in progress: {snapshot_id}",
        )

    # ── Planning ──────────────────────────────────────────────────────

    def _plan_or_error(self, snapshot_id: str) -> RollbackPlan | RollbackOutcome:
        plan = self._manager.get_rollback_plan(snapshot_id)
        if plan is not None:
            return plan

        snapshot = self._manager.get_snapshot(snapshot_id)
        if snapshot is None:
            error = f"Snapshot not found: {snapshot_id}"
        elif snapshot.status is not SnapshotStatus.ACTIVE:
            error = f"Snapshot already rolled back: {snapshot_id}"
        else:
            error = "Cannot create rollback plan"
        return RollbackOutcome(snapshot_id=snapshot_id, success=False, error=error)

    def _is_dry_run(self, dry_run: bool) -> bool:
        return dry_run or self._client.executor.dry_run

    @staticmethod
    def _precheck(action: RollbackAction) -> str | None:
        """Return an error for actions that cannot be sent to Things."""
        if action.things_id == PENDING_THINGS_ID:
            return (
                f"Cannot {action.action} {action.item_type}: its Things id was "
                "never resolved from the pending placeholder"
            )
        match action.action:
            case RollbackActionType.CANCEL:
                return None
            case RollbackActionType.RESTORE:
                # An empty mapping still sends a bare update.
                if action.data is None:
                    return f"Nothing to restore for {action.things_id}"
                return None
            case RollbackActionType.REVERT_STATUS:
                previous = (action.data or {}).get("previous_status")
                try:
                    status = ItemStatus(previous)
                except ValueError:
                    return (
                        f"Cannot revert status for {action.things_id}: "
                        f"unknown previous status {previous!r}"
                    )
                match status:
                    case ItemStatus.OPEN:
                        return (
                            f"Cannot revert status for {action.things_id}: "
                            "Things does not support re-opening items"
                        )
                    case ItemStatus.COMPLETED | ItemStatus.CANCELED:
                        return None
                    case _:
                        assert_never(status)
            case _:
                assert_never(action.action)

    # ── Bookkeeping ───────────────────────────────────────────────────

    @staticmethod
    def _record(
        result: RollbackResult,
        action: RollbackAction,
        dispatched: DispatchResult,
    ) -> None:
        if dispatched.succeeded and not dispatched.dry_run:
            result.items_rolled_back += 1
            return
        result.items_failed += 1
        if dispatched.succeeded:
            message = f"Compensation for {action.things_id} was not sent (dry run)"
        else:
            message = dispatched.error_message or f"Failed to rollback {action.things_id}"
        result.errors.append(message)
        logger.error(
            "Compensation %s for %s failed: %s", action.action, action.things_id, message
        )

    def _record_failure(
        self, result: RollbackResult, action: RollbackAction, message: str
    ) -> None:
        self._record(result, action, DispatchResult(succeeded=False, error_message=message))

    def _finish(self, plan: RollbackPlan, result: RollbackResult) -> RollbackOutcome:
        status = (
            SnapshotStatus.ROLLED_BACK
            if result.items_failed == 0
            else SnapshotStatus.PARTIAL_ROLLBACK
        )
        if not self._manager.mark_rolled_back(plan.snapshot_id, status):
            logger.error(
                "Snapshot %s left active state during its rollback", plan.snapshot_id
            )
            return RollbackOutcome(
                snapshot_id=plan.snapshot_id,
                success=False,
                plan=plan,
                result=result,
                error=f"Snapshot already rolled back: {plan.snapshot_id}",
            )
        logger.info(
            "Rollback of %s finished as %s: %d succeeded, %d failed",
            plan.snapshot_id,
            status,
            result.items_rolled_back,
            result.items_failed,
        )
        return RollbackOutcome(
            snapshot_id=plan.snapshot_id,
            success=result.success,
            plan=plan,
            result=result,
        )

    # ── Public API ────────────────────────────────────────────────────

    def execute(self, snapshot_id: str, dry_run: bool = False) -> RollbackOutcome:
        """
        Roll back one snapshot.

        Args:
            snapshot_id: The snapshot to undo.
            dry_run: Return the plan without sending commands or
                changing the snapshot status.
        """
        if self._is_dry_run(dry_run):
            planned = self._plan_or_error(snapshot_id)
            if isinstance(planned, RollbackOutcome):
                return planned
            return RollbackOutcome(
                snapshot_id=snapshot_id, success=True, plan=planned, dry_run=True
            )

        with self._claim(snapshot_id) as owned:
            if not owned:
                return self._busy(snapshot_id)
            planned = self._plan_or_error(snapshot_id)
            if isinstance(planned, RollbackOutcome):
                return planned

            result = RollbackResult(snapshot_id=snapshot_id)
            for action in planned.actions:
                problem = self._precheck(action)
                if problem is not None:
                    self._record_failure(result, action, problem)
                    continue
                try:
                    dispatched = self._client.dispatch(action)
                except Exception as exc:
                    logger.exception("Unexpected error compensating %s", action.things_id)
                    self._record_failure(result, action, str(exc) or type(exc).__name__)
                    continue
                self._record(result, action, dispatched)

            return self._finish(planned, result)

    async def execute_async(
        self, snapshot_id: str, dry_run: bool = False
    ) -> RollbackOutcome:
        """Async version of execute. Each dispatch is awaited before the next."""
        if self._is_dry_run(dry_run):
            planned = self._plan_or_error(snapshot_id)
            if isinstance(planned, RollbackOutcome):
                return planned
            return RollbackOutcome(
                snapshot_id=snapshot_id, success=True, plan=planned, dry_run=True
            )

        with self._claim(snapshot_id) as owned:
            if not owned:
                return self._busy(snapshot_id)
            planned = self._plan_or_error(snapshot_id)
            if isinstance(planned, RollbackOutcome):
                return planned

            result = RollbackResult(snapshot_id=snapshot_id)
            for action in planned.actions:
                problem = self._precheck(action)
                if problem is not None:
                    self._record_failure(result, action, problem)
                    continue
                try:
                    dispatched = await self._client.dispatch_async(action)
                except Exception as exc:
                    logger.exception("Unexpected error compensating %s", action.things_id)
                    self._record_failure(result, action, str(exc) or type(exc).__name__)
                    continue
                self._record(result, action, dispatched)

            return self._finish(planned, result)
