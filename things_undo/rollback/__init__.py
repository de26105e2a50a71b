"""things-undo rollback engine — snapshot planning and compensation."""

from things_undo.rollback.executor import RollbackExecutor
from things_undo.rollback.snapshot_manager import SnapshotManager

__all__ = [
    "RollbackExecutor",
    "SnapshotManager",
]
