"""
Sidecar Routes
~~~~~~~~~~~~~~

FastAPI route handlers exposing the snapshot ledger.

Routes that only touch the database are plain functions, so FastAPI
runs them in its threadpool instead of on the event loop.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from things_undo.core.status import SnapshotStatus
from things_undo.sidecar.models import (
    DeleteResponse,
    HealthResponse,
    PurgeRequest,
    PurgeResponse,
    RollbackRequest,
    SnapshotListResponse,
)

if TYPE_CHECKING:
    from things_undo.ledger import SnapshotLedger

__all__ = ["register_routes"]


def register_routes(app: Any, ledger: SnapshotLedger) -> None:
    """Register all ledger routes on the FastAPI app."""
    from fastapi import HTTPException, Query

    def _require_snapshot(snapshot_id: str) -> None:
        if ledger.get_snapshot(snapshot_id) is None:
            raise HTTPException(
                status_code=404, detail=f"Snapshot not found: {snapshot_id}"
            )

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        from things_undo import __version__

        return HealthResponse(
            status="ok",
            version=__version__,
            remaining_capacity=ledger.rate_limiter.get_remaining_capacity(),
        )

    @app.get("/snapshots", response_model=SnapshotListResponse)
    def list_snapshots(
        status: SnapshotStatus | None = Query(None),
        limit: int = Query(100, ge=1, le=1000),
        offset: int = Query(0, ge=0),
    ) -> SnapshotListResponse:
        """List snapshots, most recent first."""
        snapshots = ledger.list_snapshots(status=status, limit=limit, offset=offset)
        return SnapshotListResponse(
            snapshots=[s.to_dict() for s in snapshots],
            limit=limit,
            offset=offset,
        )

    @app.post("/snapshots/purge", response_model=PurgeResponse)
    def purge_snapshots(req: PurgeRequest) -> PurgeResponse:
        """Delete snapshots older than the retention period."""
        return PurgeResponse(purged_count=ledger.purge_old_snapshots(req.days))

    @app.get("/snapshots/{snapshot_id}")
    def show_snapshot(snapshot_id: str) -> dict[str, Any]:
        """Return a snapshot with all recorded items."""
        details = ledger.get_snapshot_details(snapshot_id)
        if details is None:
            raise HTTPException(
                status_code=404, detail=f"Snapshot not found: {snapshot_id}"
            )
        return details.to_dict()

    @app.get("/snapshots/{snapshot_id}/plan")
    def rollback_plan(snapshot_id: str) -> dict[str, Any]:
        """Return the compensating actions a rollback would send."""
        _require_snapshot(snapshot_id)
        plan = ledger.get_rollback_plan(snapshot_id)
        if plan is None:
            raise HTTPException(
                status_code=409,
                detail=f"Snapshot already rolled back: {snapshot_id}",
            )
        return plan.to_dict()

    @app.post("/snapshots/{snapshot_id}/rollback")
    async def rollback_snapshot(
        snapshot_id: str, req: RollbackRequest | None = None
    ) -> dict[str, Any]:
        """Roll back a snapshot, or preview it with dry_run."""
        _require_snapshot(snapshot_id)
        dry_run = req.dry_run if req is not None else False
        if ledger.get_rollback_plan(snapshot_id) is None:
            raise HTTPException(
                status_code=409,
                detail=f"Snapshot already rolled back: {snapshot_id}",
            )
        outcome = await ledger.rollback_async(snapshot_id, dry_run=dry_run)
        return outcome.to_dict()

    @app.delete("/snapshots/{snapshot_id}", response_model=DeleteResponse)
    def delete_snapshot(snapshot_id: str) -> DeleteResponse:
        """Delete a snapshot and its recorded items."""
        if not ledger.delete_snapshot(snapshot_id):
            raise HTTPException(
                status_code=404, detail=f"Snapshot not found: {snapshot_id}"
            )
        return DeleteResponse(deleted=True, snapshot_id=snapshot_id)
