"""
Sidecar ASGI entry point for standalone uvicorn usage.

Usage:
    uvicorn things_undo.sidecar.app:app --host 127.0.0.1 --port 8080

Set ``THINGS_UNDO_CONFIG`` to load a YAML config instead of defaults.
"""

import os

from things_undo.ledger import SnapshotLedger
from things_undo.sidecar.server import create_app

_config_path = os.environ.get("THINGS_UNDO_CONFIG")
_ledger = (
    SnapshotLedger.from_config(_config_path) if _config_path else SnapshotLedger.default()
)
app = create_app(_ledger)
