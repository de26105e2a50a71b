"""
Default Configuration
~~~~~~~~~~~~~~~~~~~~~

Defaults for things-undo when no config file is provided.
"""

from __future__ import annotations

__all__ = ["DEFAULT_CONFIG"]

DEFAULT_CONFIG: dict = {
    "version": "1.0",
    # Things drops URL commands beyond roughly 250 per 10 seconds.
    "rate_limit": {
        "max_calls": 250,
        "window_ms": 10_000,
    },
    "storage": {
        "db_path": None,
        "retention_days": 30,
    },
    "dispatch": {
        "open_command": ["open", "-g"],
        "timeout_seconds": 10.0,
        "dry_run": False,
        "auth_token": None,
    },
    "sidecar": {
        "host": "127.0.0.1",
        "port": 8080,
    },
}
