"""
Rate Limiter
~~~~~~~~~~~~

Sliding-window call budget for Things URL commands.

Things silently drops URL scheme calls beyond roughly 250 per 10 seconds.
Every outbound command, including rollback compensations, must record
itself here before it is issued. The limiter never sleeps on its own:
``acquire`` raises when the budget is spent and callers decide whether
to report ``get_wait_time()`` or retry later.
"""

from __future__ import annotations

import asyncio
import math
import threading
import time
from collections import deque
from collections.abc import Callable

from things_undo.exceptions import RateLimitExceededError

__all__ = [
    "RateLimiter",
    "DEFAULT_MAX_CALLS",
    "DEFAULT_WINDOW_MS",
    "get_default_rate_limiter",
    "reset_default_rate_limiter",
]

DEFAULT_MAX_CALLS = 250
DEFAULT_WINDOW_MS = 10_000


class RateLimiter:
    """
    Thread-safe sliding-window limiter.

    Args:
        max_calls: Calls allowed inside one window.
        window_ms: Window length in milliseconds.
        clock: Monotonic time source in seconds. Tests inject a fake.
    """

    def __init__(
        self,
        max_calls: int = DEFAULT_MAX_CALLS,
        window_ms: int = DEFAULT_WINDOW_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_calls < 1:
            raise ValueError(f"max_calls must be positive, got {max_calls}")
        if window_ms < 1:
            raise ValueError(f"window_ms must be positive, got {window_ms}")
        self._max_calls = max_calls
        self._window_ms = window_ms
        self._clock = clock
        self._calls: deque[float] = deque()
        self._sync_lock = threading.RLock()

    @property
    def max_calls(self) -> int:
        return self._max_calls

    @property
    def window_ms(self) -> int:
        return self._window_ms

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def _prune(self, now_ms: float) -> None:
        """Drop timestamps that fell out of the window. Caller holds the lock."""
        window_start = now_ms - self._window_ms
        while self._calls and self._calls[0] <= window_start:
            self._calls.popleft()

    def can_acquire(self) -> bool:
        """Return True if one more call fits in the current window."""
        with self._sync_lock:
            self._prune(self._now_ms())
            return len(self._calls) < self._max_calls

    def acquire(self) -> None:
        """
        Record one call.

        Raises:
            RateLimitExceededError: If the window is already full.
        """
        with self._sync_lock:
            now_ms = self._now_ms()
            self._prune(now_ms)
            if len(self._calls) >= self._max_calls:
                wait_ms = self._wait_time_locked(now_ms)
                raise RateLimitExceededError(
                    f"Rate limit exceeded: {self._max_calls} calls per "
                    f"{self._window_ms / 1000:g} seconds. "
                    f"Wait {math.ceil(wait_ms / 1000)} seconds.",
                    max_calls=self._max_calls,
                    window_ms=self._window_ms,
                    wait_ms=wait_ms,
                )
            self._calls.append(now_ms)

    def _wait_time_locked(self, now_ms: float) -> int:
        if len(self._calls) < self._max_calls or not self._calls:
            return 0
        wait_until = self._calls[0] + self._window_ms
        return max(0, math.ceil(wait_until - now_ms))

    def get_wait_time(self) -> int:
        """Milliseconds until the oldest call leaves the window; 0 if under budget."""
        with self._sync_lock:
            now_ms = self._now_ms()
            self._prune(now_ms)
            return self._wait_time_locked(now_ms)

    def get_count(self) -> int:
        """Number of calls currently inside the window."""
        with self._sync_lock:
            self._prune(self._now_ms())
            return len(self._calls)

    def get_remaining_capacity(self) -> int:
        """Calls still available in the current window."""
        return max(0, self._max_calls - self.get_count())

    def reset(self) -> None:
        """Forget every recorded call."""
        with self._sync_lock:
            self._calls.clear()

    async def acquire_async(self) -> None:
        """Wait until a slot frees up, then acquire it."""
        wait_ms = self.get_wait_time()
        if wait_ms > 0:
            await asyncio.sleep(wait_ms / 1000)
        self.acquire()

    def __repr__(self) -> str:
        return (
            f"<RateLimiter max_calls={self._max_calls} "
            f"window_ms={self._window_ms} count={self.get_count()}>"
        )


# ── Process-wide default ──────────────────────────────────────────────────────

_default_limiter: RateLimiter | None = None
_default_lock = threading.Lock()


def get_default_rate_limiter() -> RateLimiter:
    """Return the shared limiter, creating it with default settings."""
    global _default_limiter
    with _default_lock:
        if _default_limiter is None:
            _default_limiter = RateLimiter()
        return _default_limiter


def reset_default_rate_limiter(limiter: RateLimiter | None = None) -> None:
    """
    Replace the shared limiter.

    With no argument the next ``get_default_rate_limiter()`` call builds
    a fresh instance.
    """
    global _default_limiter
    with _default_lock:
        _default_limiter = limiter
