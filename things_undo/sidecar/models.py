"""
Sidecar Pydantic Models
~~~~~~~~~~~~~~~~~~~~~~~

Request/response models for the HTTP ledger endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

__all__ = [
    "RollbackRequest",
    "PurgeRequest",
    "PurgeResponse",
    "DeleteResponse",
    "SnapshotListResponse",
    "HealthResponse",
]


class RollbackRequest(BaseModel):
    """Request body for POST /snapshots/{id}/rollback."""

    dry_run: bool = False


class PurgeRequest(BaseModel):
    """Request body for POST /snapshots/purge. Config retention when unset."""

    days: int | None = Field(default=None, ge=0)


class PurgeResponse(BaseModel):
    """Response for POST /snapshots/purge."""

    purged_count: int


class DeleteResponse(BaseModel):
    """Response for DELETE /snapshots/{id}."""

    deleted: bool
    snapshot_id: str


class SnapshotListResponse(BaseModel):
    """Response for GET /snapshots."""

    snapshots: list[dict[str, Any]] = Field(default_factory=list)
    limit: int = 100
    offset: int = 0


class HealthResponse(BaseModel):
    """Response for GET /health."""

    status: str = "ok"
    version: str = ""
    remaining_capacity: int = 0
