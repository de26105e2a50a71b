"""
URL Executor
~~~~~~~~~~~~

Hands ``things:///`` URLs to macOS ``open`` so Things can process them.

The executor is the single choke point for outbound commands. Every call
records itself in the rate limiter before the subprocess starts, and a
rate-limit rejection comes back as a failed ``DispatchResult``, never as
an exception.
"""

from __future__ import annotations

import asyncio
import logging
import math
import subprocess
from collections.abc import Sequence

from things_undo.core.models import DispatchResult
from things_undo.dispatch.rate_limiter import RateLimiter, get_default_rate_limiter
from things_undo.dispatch.url_builder import THINGS_URL_SCHEME
from things_undo.exceptions import InvalidUrlError, RateLimitExceededError

__all__ = ["UrlExecutor", "DEFAULT_OPEN_COMMAND"]

logger = logging.getLogger(__name__)

# -g keeps Things in the background.
DEFAULT_OPEN_COMMAND: tuple[str, ...] = ("open", "-g")


class UrlExecutor:
    """
    Executes Things URL commands through a subprocess.

    Args:
        rate_limiter: Budget shared with every other dispatcher. Defaults
            to the process-wide limiter.
        open_command: Program and arguments that receive the URL.
        timeout_seconds: Per-command subprocess timeout.
        dry_run: Record the call against the budget but do not spawn.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter | None = None,
        open_command: Sequence[str] = DEFAULT_OPEN_COMMAND,
        timeout_seconds: float = 10.0,
        dry_run: bool = False,
    ) -> None:
        self._rate_limiter = rate_limiter or get_default_rate_limiter()
        self._open_command = tuple(open_command)
        self._timeout = timeout_seconds
        self._dry_run = dry_run

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    @staticmethod
    def validate_url(url: str) -> None:
        """
        Raises:
            InvalidUrlError: If the URL does not use the things:/// scheme.
        """
        if not url.startswith(THINGS_URL_SCHEME):
            raise InvalidUrlError(
                f'Invalid URL scheme. Must start with "{THINGS_URL_SCHEME}"',
                details={"url": url},
            )

    def _admit(self, url: str) -> DispatchResult | None:
        """
        Validate and charge the rate budget.

        Returns a failed result if the command must not be sent,
        otherwise None.
        """
        try:
            self.validate_url(url)
        except InvalidUrlError as exc:
            return DispatchResult(succeeded=False, url=url, error_message=exc.args[0])

        try:
            self._rate_limiter.acquire()
        except RateLimitExceededError as exc:
            wait_seconds = math.ceil(exc.wait_ms / 1000)
            logger.warning("Rate limit reached; rejecting command for %ds", wait_seconds)
            return DispatchResult(
                succeeded=False,
                url=url,
                error_message=f"Rate limit exceeded. Please wait {wait_seconds} seconds.",
            )
        return None

    def execute(self, url: str) -> DispatchResult:
        """Send one URL command and wait for ``open`` to exit."""
        rejected = self._admit(url)
        if rejected is not None:
            return rejected

        if self._dry_run:
            logger.debug("Dry run, not opening %s", url)
            return DispatchResult(succeeded=True, url=url, dry_run=True)

        try:
            proc = subprocess.run(
                [*self._open_command, url],
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return DispatchResult(
                succeeded=False,
                url=url,
                error_message=f"Command timed out after {self._timeout:g} seconds",
            )
        except OSError as exc:
            return DispatchResult(succeeded=False, url=url, error_message=str(exc))

        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip()
            return DispatchResult(
                succeeded=False,
                url=url,
                error_message=stderr
                or f"Command failed with exit code {proc.returncode}",
            )
        return DispatchResult(succeeded=True, url=url)

    async def execute_async(self, url: str) -> DispatchResult:
        """Async version of execute."""
        rejected = self._admit(url)
        if rejected is not None:
            return rejected

        if self._dry_run:
            return DispatchResult(succeeded=True, url=url, dry_run=True)

        try:
            proc = await asyncio.create_subprocess_exec(
                *self._open_command,
                url,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            return DispatchResult(succeeded=False, url=url, error_message=str(exc))

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), self._timeout)
        except TimeoutError:
            proc.kill()
            await proc.wait()
            return DispatchResult(
                succeeded=False,
                url=url,
                error_message=f"Command timed out after {self._timeout:g} seconds",
            )

        if proc.returncode != 0:
            message = stderr.decode(errors="replace").strip()
            return DispatchResult(
                succeeded=False,
                url=url,
                error_message=message
                or f"Command failed with exit code {proc.returncode}",
            )
        return DispatchResult(succeeded=True, url=url)
