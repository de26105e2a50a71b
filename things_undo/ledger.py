"""
SnapshotLedger — Main Entry Point
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Assembles the store, manager, rate limiter, dispatcher and rollback
executor from one configuration and exposes the snapshot ledger API used
by the CLI, the HTTP sidecar and automation scripts.
"""

from __future__ import annotations

import logging
from typing import Any

from things_undo.config.loader import load_config, load_config_from_dict
from things_undo.config.schema import UndoConfig
from things_undo.core.models import (
    AddSnapshotData,
    BulkSnapshotData,
    RollbackOutcome,
    RollbackPlan,
    Snapshot,
    SnapshotDetails,
    StatusChangeData,
    UpdateSnapshotData,
)
from things_undo.core.status import SnapshotStatus
from things_undo.dispatch.client import ThingsClient
from things_undo.dispatch.rate_limiter import RateLimiter
from things_undo.dispatch.url_executor import UrlExecutor
from things_undo.exceptions import AuthTokenError
from things_undo.rollback.executor import RollbackExecutor
from things_undo.rollback.snapshot_manager import SnapshotManager
from things_undo.storage.snapshot_store import SnapshotStore

__all__ = ["SnapshotLedger"]

logger = logging.getLogger(__name__)


class SnapshotLedger:
    """
    Facade over the snapshot and rollback subsystems.

    Args:
        config: Validated configuration. Defaults are used when None.
        store: Pre-built store, e.g. an in-memory one for tests.
        rate_limiter: Shared call budget. A limiter sized from the config
            is created when None.
        client: Pre-built Things client, e.g. one wrapping a fake executor.
    """

    def __init__(
        self,
        config: UndoConfig | None = None,
        store: SnapshotStore | None = None,
        rate_limiter: RateLimiter | None = None,
        client: ThingsClient | None = None,
    ) -> None:
        self._config = config or UndoConfig()

        # ── Subsystems ────────────────────────────────────────────
        self._store = store or SnapshotStore.open(self._config.storage.db_path)
        self._manager = SnapshotManager(self._store)
        if client is None:
            limiter = rate_limiter or RateLimiter(
                max_calls=self._config.rate_limit.max_calls,
                window_ms=self._config.rate_limit.window_ms,
            )
            executor = UrlExecutor(
                rate_limiter=limiter,
                open_command=self._config.dispatch.open_command,
                timeout_seconds=self._config.dispatch.timeout_seconds,
                dry_run=self._config.dispatch.dry_run,
            )
            client = ThingsClient(executor, auth_token=self._config.dispatch.auth_token)
        self._client = client
        self._executor = RollbackExecutor(self._manager, self._client)

    # ── Construction ──────────────────────────────────────────────────

    @classmethod
    def default(cls) -> SnapshotLedger:
        """Create a ledger with default configuration."""
        return cls(load_config_from_dict({}))

    @classmethod
    def from_config(cls, path: str, **overrides: Any) -> SnapshotLedger:
        """Create a ledger from a YAML configuration file."""
        return cls(load_config(path), **overrides)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **overrides: Any) -> SnapshotLedger:
        """Create a ledger from a configuration dictionary."""
        return cls(load_config_from_dict(data), **overrides)

    # ── Properties ────────────────────────────────────────────────────

    @property
    def config(self) -> UndoConfig:
        return self._config

    @property
    def manager(self) -> SnapshotManager:
        return self._manager

    @property
    def store(self) -> SnapshotStore:
        return self._store

    @property
    def client(self) -> ThingsClient:
        return self._client

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._client.executor.rate_limiter

    # ── Recording ─────────────────────────────────────────────────────

    def record_add(self, data: AddSnapshotData) -> Snapshot:
        return self._manager.create_add_snapshot(data)

    def record_add_project(self, data: AddSnapshotData) -> Snapshot:
        return self._manager.create_add_project_snapshot(data)

    def record_update(self, data: UpdateSnapshotData) -> Snapshot:
        return self._manager.create_update_snapshot(data)

    def record_status_change(self, data: StatusChangeData) -> Snapshot:
        return self._manager.create_status_change_snapshot(data)

    def record_bulk(self, data: BulkSnapshotData) -> Snapshot:
        return self._manager.create_bulk_snapshot(data)

    def resolve_pending_item(self, snapshot_id: str, title: str, things_id: str) -> int:
        return self._manager.resolve_pending_item(snapshot_id, title, things_id)

    # ── Queries ───────────────────────────────────────────────────────

    def get_snapshot(self, snapshot_id: str) -> Snapshot | None:
        return self._manager.get_snapshot(snapshot_id)

    def get_snapshot_details(self, snapshot_id: str) -> SnapshotDetails | None:
        return self._manager.get_snapshot_details(snapshot_id)

    def list_snapshots(
        self,
        status: SnapshotStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Snapshot]:
        return self._manager.list_snapshots(status=status, limit=limit, offset=offset)

    def get_rollback_plan(self, snapshot_id: str) -> RollbackPlan | None:
        return self._manager.get_rollback_plan(snapshot_id)

    # ── Rollback ──────────────────────────────────────────────────────

    def _auth_failure(self, snapshot_id: str) -> RollbackOutcome | None:
        """Refuse to start a real rollback that could never reach Things."""
        try:
            self._client.require_token()
        except AuthTokenError as exc:
            return RollbackOutcome(
                snapshot_id=snapshot_id, success=False, error=exc.args[0]
            )
        return None

    def rollback(self, snapshot_id: str, dry_run: bool = False) -> RollbackOutcome:
        """
        Undo a recorded operation.

        Without an auth token only dry runs are possible; a real run is
        refused before the snapshot status is touched. A dispatcher
        configured with ``dispatch.dry_run`` makes every rollback a dry run.
        """
        dry_run = dry_run or self._client.executor.dry_run
        if not dry_run:
            refused = self._auth_failure(snapshot_id)
            if refused is not None:
                return refused
        return self._executor.execute(snapshot_id, dry_run=dry_run)

    async def rollback_async(
        self, snapshot_id: str, dry_run: bool = False
    ) -> RollbackOutcome:
        """Async version of rollback."""
        dry_run = dry_run or self._client.executor.dry_run
        if not dry_run:
            refused = self._auth_failure(snapshot_id)
            if refused is not None:
                return refused
        return await self._executor.execute_async(snapshot_id, dry_run=dry_run)

    # ── Maintenance ───────────────────────────────────────────────────

    def delete_snapshot(self, snapshot_id: str) -> bool:
        return self._manager.delete_snapshot(snapshot_id)

    def purge_old_snapshots(self, days: int | None = None) -> int:
        """Delete snapshots older than ``days`` (config retention if None)."""
        if days is None:
            days = self._config.storage.retention_days
        return self._manager.purge_old_snapshots(days)

    def serve(self, host: str | None = None, port: int | None = None) -> None:
        """Run the HTTP sidecar for this ledger (requires the sidecar extra)."""
        from things_undo.sidecar.server import serve

        serve(self, host=host, port=port)

    def close(self) -> None:
        self._store.close()

    def __enter__(self) -> SnapshotLedger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
