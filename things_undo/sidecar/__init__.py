"""HTTP sidecar exposing the snapshot ledger."""

from things_undo.sidecar.server import create_app, serve

__all__ = ["create_app", "serve"]
