"""Shared fixtures for things-undo tests."""

from __future__ import annotations

import pytest

from things_undo import (
    AddSnapshotData,
    DispatchResult,
    ItemStatus,
    ItemType,
    RateLimiter,
    SnapshotLedger,
    SnapshotManager,
    SnapshotStore,
    StatusChangeData,
    ThingsClient,
    UpdateSnapshotData,
    UrlExecutor,
)
from things_undo.config.loader import load_config_from_dict
from things_undo.dispatch.rate_limiter import reset_default_rate_limiter
from things_undo.storage.connection import MEMORY_DB, open_database


class FakeClock:
    """Manually advanced monotonic clock, in seconds."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


class RecordingExecutor(UrlExecutor):
    """
    UrlExecutor that records URLs instead of spawning ``open``.

    Validation and rate limiting still run. URLs containing any string in
    ``fail_on`` come back as failures.
    """

    def __init__(self, rate_limiter: RateLimiter | None = None, **kwargs) -> None:
        super().__init__(rate_limiter=rate_limiter or RateLimiter(), **kwargs)
        self.urls: list[str] = []
        self.fail_on: list[str] = []

    def _result(self, url: str) -> DispatchResult:
        rejected = self._admit(url)
        if rejected is not None:
            return rejected
        self.urls.append(url)
        if any(marker in url for marker in self.fail_on):
            return DispatchResult(succeeded=False, url=url, error_message="Things refused")
        return DispatchResult(succeeded=True, url=url)

    def execute(self, url: str) -> DispatchResult:
        return self._result(url)

    async def execute_async(self, url: str) -> DispatchResult:
        return self._result(url)


@pytest.fixture(autouse=True)
def _isolated_defaults(monkeypatch, tmp_path):
    """Keep tests away from the user's home directory and shared limiter."""
    monkeypatch.setenv("THINGS_UNDO_STORAGE_DIR", str(tmp_path / "storage"))
    monkeypatch.delenv("THINGS_UNDO_AUTH_TOKEN", raising=False)
    reset_default_rate_limiter()
    yield
    reset_default_rate_limiter()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store():
    """In-memory snapshot store."""
    s = SnapshotStore(open_database(MEMORY_DB))
    yield s
    s.close()


@pytest.fixture
def file_store(tmp_path):
    """Snapshot store backed by a file in tmp_path."""
    s = SnapshotStore.open(str(tmp_path / "snapshots.db"))
    yield s
    s.close()


@pytest.fixture
def manager(store) -> SnapshotManager:
    return SnapshotManager(store)


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def executor_factory():
    """The RecordingExecutor class, for tests that need a custom limiter."""
    return RecordingExecutor


@pytest.fixture
def client(executor) -> ThingsClient:
    """Client with an auth token and a recording executor."""
    return ThingsClient(executor, auth_token="test-token")


@pytest.fixture
def ledger(store, client) -> SnapshotLedger:
    return SnapshotLedger(load_config_from_dict({}), store=store, client=client)


@pytest.fixture
def add_data() -> AddSnapshotData:
    return AddSnapshotData(
        title="Buy milk",
        item_type=ItemType.TODO,
        things_id="ABC123",
        command="things:///add?title=Buy%20milk",
    )


@pytest.fixture
def update_data() -> UpdateSnapshotData:
    return UpdateSnapshotData(
        things_id="XYZ789",
        item_type=ItemType.TODO,
        previous_state={"title": "Old", "notes": "n"},
        modified_fields=["title"],
        command="things:///update?id=XYZ789&title=New",
    )


@pytest.fixture
def complete_data() -> StatusChangeData:
    return StatusChangeData(
        things_id="DEF456",
        item_type=ItemType.TODO,
        title="Write report",
        previous_status=ItemStatus.OPEN,
        new_status=ItemStatus.COMPLETED,
        command="things:///update?id=DEF456&completed=true",
    )


@pytest.fixture
def cancel_data() -> StatusChangeData:
    return StatusChangeData(
        things_id="T1",
        item_type=ItemType.TODO,
        title="Old idea",
        previous_status=ItemStatus.OPEN,
        new_status=ItemStatus.CANCELED,
        command="things:///update?id=T1&canceled=true",
    )
