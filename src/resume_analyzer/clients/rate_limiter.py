"""Minimum-interval throttle shared by every outbound LLM call."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Keeps consecutive call issues at least ``min_interval`` seconds apart.

    The timestamp is recorded when a call is *issued*, not when it completes,
    so the limiter bounds sustained throughput rather than per-call latency.
    One instance is meant to be shared by every client in the process; the
    lock serializes concurrent waiters so no two issues can slip through
    inside the same interval.
    """

    def __init__(
        self,
        min_interval: float = 0.3,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_issued: float | None = None
        self._lock = asyncio.Lock()

    @property
    def last_issued(self) -> float | None:
        return self._last_issued

    async def acquire(self) -> float:
        """Wait until a call may be issued and return the issue timestamp."""
        async with self._lock:
            now = self._clock()
            if self._last_issued is not None:
                remaining = self.min_interval - (now - self._last_issued)
                # the event loop may wake a timer up to one clock tick early
                while remaining > 0:
                    logger.debug("Rate limiter sleeping %.3fs", remaining)
                    await self._sleep(remaining)
                    now = self._clock()
                    remaining = self.min_interval - (now - self._last_issued)
            self._last_issued = now
            return now

    async def __aenter__(self) -> RateLimiter:
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None
