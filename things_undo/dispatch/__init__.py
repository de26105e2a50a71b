"""Outbound command path — rate limiter, URL builder, executor and client."""

from things_undo.dispatch.client import ThingsClient
from things_undo.dispatch.rate_limiter import (
    RateLimiter,
    get_default_rate_limiter,
    reset_default_rate_limiter,
)
from things_undo.dispatch.url_executor import UrlExecutor

__all__ = [
    "RateLimiter",
    "ThingsClient",
    "UrlExecutor",
    "get_default_rate_limiter",
    "reset_default_rate_limiter",
]
