"""
Sidecar Server
~~~~~~~~~~~~~~

FastAPI HTTP server exposing the snapshot ledger to automation callers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from things_undo.ledger import SnapshotLedger

__all__ = ["create_app", "serve"]


def create_app(ledger: SnapshotLedger) -> Any:
    """
    Create a FastAPI application wired to the given ledger.

    Args:
        ledger: The SnapshotLedger instance to expose via HTTP.

    Returns:
        A FastAPI application instance.
    """
    try:
        from fastapi import FastAPI
    except ImportError:
        raise ImportError(
            "FastAPI is required for the sidecar server. "
            "Install with: pip install things-undo[sidecar]"
        )

    from things_undo import __version__

    app = FastAPI(
        title="things-undo Sidecar",
        description="HTTP API for the Things snapshot ledger",
        version=__version__,
    )

    from things_undo.sidecar.routes import register_routes

    register_routes(app, ledger)
    return app


def serve(ledger: SnapshotLedger, host: str | None = None, port: int | None = None) -> None:
    """Run the sidecar with uvicorn until interrupted."""
    try:
        import uvicorn
    except ImportError:
        raise ImportError(
            "uvicorn is required for the sidecar server. "
            "Install with: pip install things-undo[sidecar]"
        )

    uvicorn.run(
        create_app(ledger),
        host=host or ledger.config.sidecar.host,
        port=port or ledger.config.sidecar.port,
    )
