"""Tests for the per-source token bucket."""

import time

import pytest

from poker_circuit.sources import RateLimiter


async def test_burst_is_immediate_then_throttled():
    limiter = RateLimiter(requests_per_second=20.0, burst=2)

    start = time.monotonic()
    await limiter.acquire()
    await limiter.acquire()
    burst_elapsed = time.monotonic() - start
    await limiter.acquire()
    total_elapsed = time.monotonic() - start

    assert burst_elapsed < 0.04
    assert total_elapsed >= 0.04


def test_rate_must_be_positive():
    with pytest.raises(ValueError):
        RateLimiter(requests_per_second=0)
