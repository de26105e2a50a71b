"""
things-undo CLI
~~~~~~~~~~~~~~~

Command-line interface for inspecting and rolling back snapshots.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from things_undo.exceptions import ThingsUndoError

__all__ = ["main", "build_parser"]


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="things-undo",
        description="things-undo — Snapshot and rollback ledger for Things 3",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a things-undo YAML config",
    )
    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="Snapshot database path (overrides storage.db_path)",
    )
    parser.add_argument(
        "--auth-token",
        type=str,
        default=None,
        help="Things URL scheme auth token (overrides dispatch.auth_token)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command")

    # snapshots command group
    snapshots_parser = subparsers.add_parser("snapshots", help="Inspect stored snapshots")
    snapshot_commands = snapshots_parser.add_subparsers(dest="snapshots_command")

    list_parser = snapshot_commands.add_parser("list", help="List snapshots, newest first")
    list_parser.add_argument(
        "--status",
        type=str,
        default=None,
        choices=["active", "rolled-back", "partial-rollback", "expired"],
        help="Only show snapshots with this status",
    )
    list_parser.add_argument("--limit", type=int, default=100, help="Maximum rows (default: 100)")
    list_parser.add_argument("--offset", type=int, default=0, help="Rows to skip (default: 0)")
    list_parser.add_argument("--json", action="store_true", help="Print JSON")

    show_parser = snapshot_commands.add_parser("show", help="Show one snapshot and its items")
    show_parser.add_argument("snapshot_id", type=str)
    show_parser.add_argument("--json", action="store_true", help="Print JSON")

    delete_parser = snapshot_commands.add_parser("delete", help="Delete one snapshot")
    delete_parser.add_argument("snapshot_id", type=str)

    purge_parser = snapshot_commands.add_parser(
        "purge", help="Delete snapshots older than the retention period"
    )
    purge_parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Age threshold in days (default: storage.retention_days)",
    )

    # rollback command
    rollback_parser = subparsers.add_parser("rollback", help="Undo a recorded operation")
    rollback_parser.add_argument("snapshot_id", type=str)
    rollback_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the compensating actions without sending them",
    )
    rollback_parser.add_argument("--json", action="store_true", help="Print JSON")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP sidecar server")
    serve_parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Bind address (default: sidecar.host)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port number (default: sidecar.port)",
    )

    # version command
    subparsers.add_parser("version", help="Show version")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.version or args.command == "version":
        from things_undo import __version__

        print(f"things-undo {__version__}")
        return 0

    if args.command == "snapshots" and args.snapshots_command is None:
        print(
            "usage: things-undo snapshots {list,show,delete,purge} ...",
            file=sys.stderr,
        )
        return 1

    handlers = {
        "snapshots": _run_snapshots,
        "rollback": _run_rollback,
        "serve": _run_serve,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except ThingsUndoError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def _make_ledger(args: argparse.Namespace) -> Any:
    """Create a SnapshotLedger from config, defaults and flag overrides."""
    from things_undo.config.loader import load_config, load_config_from_dict
    from things_undo.ledger import SnapshotLedger

    config = load_config(args.config) if args.config else load_config_from_dict({})
    if args.db:
        config.storage.db_path = args.db
    if args.auth_token:
        config.dispatch.auth_token = args.auth_token
    return SnapshotLedger(config)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


# ── snapshots ─────────────────────────────────────────────────────────


def _run_snapshots(args: argparse.Namespace) -> int:
    """Dispatch the snapshots subcommands."""
    with _make_ledger(args) as ledger:
        if args.snapshots_command == "list":
            return _snapshots_list(ledger, args)
        if args.snapshots_command == "show":
            return _snapshots_show(ledger, args)
        if args.snapshots_command == "delete":
            if not ledger.delete_snapshot(args.snapshot_id):
                print(f"Snapshot not found: {args.snapshot_id}", file=sys.stderr)
                return 1
            print(f"Deleted {args.snapshot_id}")
            return 0
        if args.snapshots_command == "purge":
            purged = ledger.purge_old_snapshots(args.days)
            print(f"Purged {purged} snapshot(s)")
            return 0
    return 1


def _snapshots_list(ledger: Any, args: argparse.Namespace) -> int:
    snapshots = ledger.list_snapshots(
        status=args.status, limit=args.limit, offset=args.offset
    )
    if args.json:
        _print_json([s.to_dict() for s in snapshots])
        return 0
    if not snapshots:
        print("No snapshots.")
        return 0
    for snap in snapshots:
        print(f"{snap.id}  {snap.created_at}  {snap.status:<16}  {snap.description}")
    return 0


def _snapshots_show(ledger: Any, args: argparse.Namespace) -> int:
    details = ledger.get_snapshot_details(args.snapshot_id)
    if details is None:
        print(f"Snapshot not found: {args.snapshot_id}", file=sys.stderr)
        return 1
    if args.json:
        _print_json(details.to_dict())
        return 0

    snap = details.snapshot
    print(f"ID:          {snap.id}")
    print(f"Description: {snap.description}")
    print(f"Operation:   {snap.operation_type}")
    print(f"Status:      {snap.status}")
    print(f"Created:     {snap.created_at}")
    if snap.rolled_back_at:
        print(f"Rolled back: {snap.rolled_back_at}")
    print(f"Command:     {snap.command}")
    for item in details.created_items:
        print(f"  + created  {item.item_type} {item.things_id} {item.title!r}")
    for item in details.modified_items:
        print(f"  ~ modified {item.item_type} {item.things_id} fields={item.modified_fields}")
    for item in details.status_changes:
        print(
            f"  * status   {item.item_type} {item.things_id} "
            f"{item.previous_status} -> {item.new_status}"
        )
    return 0


# ── rollback ──────────────────────────────────────────────────────────


def _run_rollback(args: argparse.Namespace) -> int:
    """Run or preview a rollback."""
    with _make_ledger(args) as ledger:
        outcome = ledger.rollback(args.snapshot_id, dry_run=args.dry_run)

    if args.json:
        _print_json(outcome.to_dict())
        return 0 if outcome.success else 1

    if outcome.error:
        print(f"Error: {outcome.error}", file=sys.stderr)
        return 1

    for warning in outcome.warnings:
        print(f"Warning: {warning}")

    if outcome.dry_run:
        plan = outcome.plan
        print(f"Dry run for {plan.snapshot_id}: {plan.description}")
        if not plan.actions:
            print("  (no actions)")
        for action in plan.actions:
            print(f"  {action.action:<14} {action.item_type} {action.things_id}")
        return 0

    result = outcome.result
    print(
        f"Rolled back {result.items_rolled_back} item(s), "
        f"{result.items_failed} failed"
    )
    for error in result.errors:
        print(f"  - {error}", file=sys.stderr)
    return 0 if outcome.success else 1


# ── serve ─────────────────────────────────────────────────────────────


def _run_serve(args: argparse.Namespace) -> int:
    """Start the HTTP sidecar server."""
    ledger = _make_ledger(args)
    host = args.host or ledger.config.sidecar.host
    port = args.port or ledger.config.sidecar.port
    print(f"Starting things-undo sidecar on {host}:{port}")
    try:
        ledger.serve(host=host, port=port)
    finally:
        ledger.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
