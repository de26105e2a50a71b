"""Tests for the sliding-window rate limiter."""

import asyncio

import pytest

from things_undo.dispatch.rate_limiter import (
    RateLimiter,
    get_default_rate_limiter,
    reset_default_rate_limiter,
)
from things_undo.exceptions import RateLimitExceededError


class TestRateLimiter:
    """Tests for acquiring and expiring calls."""

    def test_defaults_match_things_budget(self):
        limiter = RateLimiter()
        assert limiter.max_calls == 250
        assert limiter.window_ms == 10_000

    def test_allows_within_limit(self, clock):
        limiter = RateLimiter(max_calls=3, window_ms=1000, clock=clock)
        for _ in range(3):
            assert limiter.can_acquire()
            limiter.acquire()
        assert limiter.get_count() == 3
        assert limiter.get_remaining_capacity() == 0

    def test_blocks_when_exceeded(self, clock):
        limiter = RateLimiter(max_calls=2, window_ms=1000, clock=clock)
        limiter.acquire()
        limiter.acquire()

        assert not limiter.can_acquire()
        with pytest.raises(RateLimitExceededError) as exc_info:
            limiter.acquire()
        assert "Rate limit exceeded" in exc_info.value.args[0]
        assert exc_info.value.max_calls == 2
        assert exc_info.value.wait_ms == 1000

    def test_rejected_call_is_not_recorded(self, clock):
        limiter = RateLimiter(max_calls=1, window_ms=1000, clock=clock)
        limiter.acquire()
        with pytest.raises(RateLimitExceededError):
            limiter.acquire()
        assert limiter.get_count() == 1

    def test_calls_expire_after_window(self, clock):
        limiter = RateLimiter(max_calls=2, window_ms=1000, clock=clock)
        limiter.acquire()
        clock.advance_ms(500)
        limiter.acquire()

        clock.advance_ms(500)
        # First call is exactly one window old and drops out
        assert limiter.get_count() == 1
        assert limiter.can_acquire()

    def test_wait_time_counts_down(self, clock):
        limiter = RateLimiter(max_calls=1, window_ms=1000, clock=clock)
        assert limiter.get_wait_time() == 0
        limiter.acquire()
        clock.advance_ms(250)
        assert limiter.get_wait_time() == 750
        clock.advance_ms(750)
        assert limiter.get_wait_time() == 0

    def test_wait_time_zero_under_budget(self, clock):
        limiter = RateLimiter(max_calls=5, window_ms=1000, clock=clock)
        limiter.acquire()
        assert limiter.get_wait_time() == 0

    def test_reset_clears_window(self, clock):
        limiter = RateLimiter(max_calls=1, window_ms=1000, clock=clock)
        limiter.acquire()
        limiter.reset()
        assert limiter.get_count() == 0
        assert limiter.can_acquire()

    def test_count_never_exceeds_max(self, clock):
        limiter = RateLimiter(max_calls=5, window_ms=1000, clock=clock)
        for _ in range(20):
            if limiter.can_acquire():
                limiter.acquire()
            clock.advance_ms(10)
            assert limiter.get_count() <= 5

    @pytest.mark.parametrize("kwargs", [{"max_calls": 0}, {"window_ms": 0}])
    def test_invalid_settings_raise(self, kwargs):
        with pytest.raises(ValueError):
            RateLimiter(**kwargs)

    def test_structured_error_message(self, clock):
        limiter = RateLimiter(max_calls=1, window_ms=10_000, clock=clock)
        limiter.acquire()
        with pytest.raises(RateLimitExceededError) as exc_info:
            limiter.acquire()
        text = str(exc_info.value)
        assert "What happened:" in text
        assert "How to fix:" in text
        assert "Wait 10 seconds" in text

    def test_repr(self, clock):
        limiter = RateLimiter(max_calls=3, window_ms=1000, clock=clock)
        assert "max_calls=3" in repr(limiter)


class TestRateLimiterScenario:
    """250 calls fill the window; the 251st waits for the oldest to expire."""

    def test_full_things_budget(self, clock):
        limiter = RateLimiter(clock=clock)
        for _ in range(250):
            limiter.acquire()

        assert not limiter.can_acquire()
        wait = limiter.get_wait_time()
        assert 0 < wait <= 10_000

        clock.advance_ms(wait)
        assert limiter.can_acquire()
        limiter.acquire()
        # Every earlier call was made at the same instant and expired together
        assert limiter.get_count() == 1


class TestAcquireAsync:
    """Tests for the awaiting variant."""

    def test_acquires_immediately_under_budget(self, clock):
        limiter = RateLimiter(max_calls=2, window_ms=1000, clock=clock)
        asyncio.run(limiter.acquire_async())
        assert limiter.get_count() == 1

    def test_sleeps_until_slot_frees(self, clock, monkeypatch):
        limiter = RateLimiter(max_calls=1, window_ms=1000, clock=clock)
        limiter.acquire()
        slept = []

        async def fake_sleep(seconds):
            slept.append(seconds)
            clock.advance_ms(seconds * 1000)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        asyncio.run(limiter.acquire_async())
        assert slept == [1.0]
        assert limiter.get_count() == 1


class TestDefaultRateLimiter:
    """Tests for the process-wide limiter."""

    def test_shared_instance(self):
        assert get_default_rate_limiter() is get_default_rate_limiter()

    def test_reset_replaces_instance(self):
        first = get_default_rate_limiter()
        reset_default_rate_limiter()
        assert get_default_rate_limiter() is not first

    def test_reset_with_custom_limiter(self):
        custom = RateLimiter(max_calls=1)
        reset_default_rate_limiter(custom)
        assert get_default_rate_limiter() is custom
