"""Transient/permanent classification and jittered backoff for image fetches."""

from __future__ import annotations

import asyncio
import random
from typing import Optional

import aiohttp

from .image_config import DEFAULT_MAX_BACKOFF_SECONDS, DEFAULT_MAX_RETRIES, TRANSIENT_STATUS_CODES


def is_transient(exc: Optional[BaseException], status: Optional[int] = None) -> bool:
    """Return True when a failed attempt is worth retrying.

    Timeouts and 408/429/503/504 are transient. Everything else, 500 included,
    is treated as a broken resource rather than a load spike.
    """

    if isinstance(exc, (asyncio.TimeoutError, aiohttp.ServerTimeoutError)):
        return True
    if status is None and exc is not None:
        status = getattr(exc, "status", None)
    return status in TRANSIENT_STATUS_CODES


class RetryPolicy:
    """Retry budget plus capped exponential backoff with full jitter."""

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_backoff_seconds: float = DEFAULT_MAX_BACKOFF_SECONDS,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.max_retries = max_retries
        self.max_backoff_seconds = max_backoff_seconds
        self._rng = rng or random.Random()

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def backoff_ceiling(self, attempt: int) -> float:
        return min(self.max_backoff_seconds, float(2 ** attempt))

    def backoff(self, attempt: int) -> float:
        """Seconds to wait after failed attempt ``attempt`` (0-based)."""
        return self._rng.uniform(0, self.backoff_ceiling(attempt))

    def should_retry(self, exc: BaseException, attempt: int) -> bool:
        if attempt >= self.max_retries:
            return False
        return is_transient(exc)
