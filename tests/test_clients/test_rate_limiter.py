"""Tests for the shared rate limiter."""

from __future__ import annotations

import asyncio

import pytest

from resume_analyzer.clients.rate_limiter import RateLimiter


class FakeClock:
    """Manual clock whose sleep() advances time instead of waiting."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestRateLimiter:
    async def test_first_call_does_not_wait(self, clock):
        limiter = RateLimiter(0.5, clock=clock, sleep=clock.sleep)
        issued = await limiter.acquire()
        assert issued == 0.0
        assert clock.sleeps == []
        assert limiter.last_issued == 0.0

    async def test_back_to_back_calls_are_spaced(self, clock):
        limiter = RateLimiter(0.5, clock=clock, sleep=clock.sleep)
        first = await limiter.acquire()
        second = await limiter.acquire()
        assert second - first == 0.5
        assert clock.sleeps == [0.5]

    async def test_no_wait_after_interval_elapsed(self, clock):
        limiter = RateLimiter(0.5, clock=clock, sleep=clock.sleep)
        await limiter.acquire()
        clock.now += 1.0
        await limiter.acquire()
        assert clock.sleeps == []

    async def test_partial_wait(self, clock):
        limiter = RateLimiter(0.5, clock=clock, sleep=clock.sleep)
        await limiter.acquire()
        clock.now += 0.25
        await limiter.acquire()
        assert clock.sleeps == [0.25]

    async def test_concurrent_callers_never_share_an_interval(self, clock):
        limiter = RateLimiter(0.5, clock=clock, sleep=clock.sleep)
        issued = await asyncio.gather(*(limiter.acquire() for _ in range(8)))
        ordered = sorted(issued)
        gaps = [b - a for a, b in zip(ordered, ordered[1:])]
        assert all(gap >= 0.5 for gap in gaps)

    async def test_zero_interval_never_sleeps(self, clock):
        limiter = RateLimiter(0, clock=clock, sleep=clock.sleep)
        for _ in range(5):
            await limiter.acquire()
        assert clock.sleeps == []

    async def test_async_context_manager(self, clock):
        limiter = RateLimiter(0.5, clock=clock, sleep=clock.sleep)
        async with limiter:
            pass
        assert limiter.last_issued == 0.0

    async def test_real_clock_spacing(self):
        limiter = RateLimiter(0.05)
        loop = asyncio.get_running_loop()
        start = loop.time()
        for _ in range(3):
            await limiter.acquire()
        assert loop.time() - start >= 0.1 - 0.01

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            RateLimiter(-1)
