"""
things-undo — HTTP Sidecar Usage Example
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Shows spinning up the HTTP sidecar and the endpoints available.

To run:
    python examples/sidecar_usage.py

Then from another terminal:
    curl http://127.0.0.1:8080/health
    curl http://127.0.0.1:8080/snapshots
    curl -X POST http://127.0.0.1:8080/snapshots/<id>/rollback \
         -H "Content-Type: application/json" -d '{"dry_run": true}'
"""

from things_undo import SnapshotLedger


def main() -> None:
    print("=" * 60)
    print("things-undo — HTTP Sidecar")
    print("=" * 60)
    print()
    print("Available endpoints:")
    print("  GET    /health                  Health check")
    print("  GET    /snapshots               List snapshots")
    print("  GET    /snapshots/{id}          Snapshot with items")
    print("  GET    /snapshots/{id}/plan     Rollback plan")
    print("  POST   /snapshots/{id}/rollback Roll back (or dry run)")
    print("  DELETE /snapshots/{id}          Delete a snapshot")
    print("  POST   /snapshots/purge         Purge old snapshots")
    print()

    ledger = SnapshotLedger.default()

    try:
        ledger.serve(host="127.0.0.1", port=8080)
    except ImportError:
        print("ERROR: FastAPI and uvicorn are required.")
        print("Install with: pip install things-undo[sidecar]")
    except KeyboardInterrupt:
        print("\nServer stopped.")
    finally:
        ledger.close()


if __name__ == "__main__":
    main()
