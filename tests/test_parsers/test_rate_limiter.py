"""Tests for the minimum-interval rate limiter."""

import asyncio
import time

import pytest

from src.parsers.rate_limiter import RateLimiter


@pytest.mark.asyncio
async def test_first_call_does_not_wait() -> None:
    limiter = RateLimiter(10.0)
    waited = await limiter.acquire()
    assert waited == 0.0


@pytest.mark.asyncio
async def test_second_call_waits_for_interval() -> None:
    limiter = RateLimiter(0.2)
    await limiter.acquire()
    start = time.monotonic()
    waited = await limiter.acquire()
    assert waited > 0
    assert time.monotonic() - start >= 0.15


@pytest.mark.asyncio
async def test_concurrent_callers_are_spaced() -> None:
    """Shared instance spaces calls from independent tasks."""
    limiter = RateLimiter(0.1)
    stamps: list[float] = []

    async def call() -> None:
        await limiter.acquire()
        stamps.append(time.monotonic())

    await asyncio.gather(*(call() for _ in range(4)))
    stamps.sort()
    gaps = [b - a for a, b in zip(stamps, stamps[1:])]
    assert all(g >= 0.08 for g in gaps)


@pytest.mark.asyncio
async def test_no_wait_after_interval_elapsed() -> None:
    limiter = RateLimiter(0.05)
    await limiter.acquire()
    await asyncio.sleep(0.1)
    assert limiter.seconds_until_ready() == 0.0
    assert await limiter.acquire() == 0.0


def test_from_rps() -> None:
    assert RateLimiter.from_rps(5.0).min_interval == pytest.approx(0.2)


def test_negative_interval_rejected() -> None:
    with pytest.raises(ValueError):
        RateLimiter(-1)
