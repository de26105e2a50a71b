"""
things-undo Custom Exceptions
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

All custom exception classes for things-undo, organized by domain.

Routine conditions (a missing snapshot, a failed compensating command) are
reported through return values. Exceptions are reserved for configuration
problems, integrity violations and an exhausted rate budget on the
synchronous ``RateLimiter.acquire`` call.
"""

__all__ = [
    # Base
    "ThingsUndoError",
    # Config
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigValidationError",
    # Rate limiting
    "RateLimitExceededError",
    # Storage
    "StorageError",
    "SnapshotIntegrityError",
    "MigrationError",
    # Rollback
    "RollbackError",
    "InvalidStatusTransitionError",
    # Dispatch
    "DispatchError",
    "AuthTokenError",
    "InvalidUrlError",
]


# ── Formatting Helper ────────────────────────────────────────────────────────

_SEPARATOR = "─" * 52


def _format_structured_error(
    title: str,
    what_happened: str,
    how_to_fix: str,
) -> str:
    """Build a structured, multi-line error message."""
    lines = [
        f"  {title}",
        f"  {_SEPARATOR}",
        "  What happened:",
        *[f"    {line}" for line in what_happened.strip().splitlines()],
        "",
        "  How to fix:",
        *[f"    {line}" for line in how_to_fix.strip().splitlines()],
    ]
    return "\n".join(lines)


# ── Base Exception ───────────────────────────────────────────────────────────


class ThingsUndoError(Exception):
    """Base exception for all things-undo errors."""

    def __init__(self, message: str = "", details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


# ── Config Exceptions ────────────────────────────────────────────────────────


class ConfigError(ThingsUndoError):
    """Base exception for configuration-related errors."""


class ConfigFileNotFoundError(ConfigError):
    """Raised when a configuration file cannot be found at the specified path."""


class ConfigValidationError(ConfigError):
    """Raised when configuration values fail validation."""


# ── Rate Limit Exceptions ────────────────────────────────────────────────────


class RateLimitExceededError(ThingsUndoError):
    """
    Raised by ``RateLimiter.acquire`` when the call budget is exhausted.

    The condition is local and recoverable: waiting ``wait_ms``
    milliseconds frees at least one slot.

    Structured fields:
    - ``what_happened``: description of the budget breach
    - ``how_to_fix``: actionable remediation steps
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        max_calls: int = 0,
        window_ms: int = 0,
        wait_ms: int = 0,
        details: dict | None = None,
        what_happened: str = "",
        how_to_fix: str = "",
    ) -> None:
        self.max_calls = max_calls
        self.window_ms = window_ms
        self.wait_ms = wait_ms
        wait_seconds = -(-wait_ms // 1000)
        self.what_happened = what_happened or (
            f"{max_calls} Things URL commands were already issued in the last "
            f"{window_ms / 1000:g} seconds."
        )
        self.how_to_fix = how_to_fix or (
            f"1. Wait {wait_seconds} seconds and retry\n"
            f"2. Split large bulk operations into smaller batches\n"
            f"3. Lower the call budget in your config only if Things drops commands:\n"
            f"   rate_limit:\n"
            f"     max_calls: {max(1, max_calls // 2)}"
        )
        super().__init__(message, details)

    def __str__(self) -> str:
        return _format_structured_error(
            title=f"RateLimitExceededError: {self.args[0]}",
            what_happened=self.what_happened,
            how_to_fix=self.how_to_fix,
        )


# ── Storage Exceptions ───────────────────────────────────────────────────────


class StorageError(ThingsUndoError):
    """Base exception for snapshot database errors."""


class SnapshotIntegrityError(StorageError):
    """
    Raised when a child record violates a database constraint.

    The usual cause is attaching an item to a snapshot id that does not
    exist. This is a programming error in the caller.
    """


class MigrationError(StorageError):
    """Raised when the snapshot schema cannot be created or upgraded."""


# ── Rollback Exceptions ──────────────────────────────────────────────────────


class RollbackError(ThingsUndoError):
    """Base exception for rollback errors."""


class InvalidStatusTransitionError(RollbackError, ValueError):
    """Raised when a caller requests a status that is not a rollback outcome."""


# ── Dispatch Exceptions ──────────────────────────────────────────────────────


class DispatchError(ThingsUndoError):
    """Base exception for URL command dispatch errors."""


class AuthTokenError(DispatchError):
    """Raised when a command requires the Things auth token and none is set."""


class InvalidUrlError(DispatchError):
    """Raised when a URL does not use the things:/// scheme."""
