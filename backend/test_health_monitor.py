"""Tests for source health monitoring."""

import asyncio
from datetime import timedelta

from poker_circuit.exceptions import SourceUnavailableError
from poker_circuit.server import HealthMonitor, HealthState
from poker_circuit.sources import RateLimitStatus


def make_monitor(sources, clock, probe_timeout=1.0):
    return HealthMonitor(sources, check_interval=timedelta(minutes=5), probe_timeout=probe_timeout, clock=clock)


def test_sources_start_unknown_and_unusable(make_source, clock):
    monitor = make_monitor([make_source("a")], clock)

    health = monitor.get("a")
    assert health.state == HealthState.UNKNOWN
    assert health.available is False
    assert health.last_checked is None
    assert monitor.is_usable("a") is False
    assert monitor.is_usable("unknown-source") is False


async def test_probe_outcomes_set_state_and_error(make_source, clock):
    ok = make_source("ok")
    refused = make_source("refused", available=False)
    raising = make_source("raising", available=SourceUnavailableError("raising", "HTTP 403"))
    monitor = make_monitor([ok, refused, raising], clock)

    await monitor.check_all()

    assert monitor.is_usable("ok")
    assert monitor.get("ok").error is None
    assert monitor.get("ok").last_checked == clock.now
    assert monitor.get("refused").error == "Source not accessible"
    assert monitor.get("raising").error == "[raising] HTTP 403"
    assert monitor.get("raising").error_count == 1
    assert [h.source_name for h in monitor.snapshot()] == ["ok", "refused", "raising"]


async def test_hung_probe_times_out(make_source, clock):
    class HangingSource(make_source):
        async def check_availability(self):
            await asyncio.sleep(5)
            return True

    monitor = make_monitor([HangingSource("hanging")], clock, probe_timeout=0.05)

    await monitor.check_all()

    health = monitor.get("hanging")
    assert health.state == HealthState.UNAVAILABLE
    assert "timed out" in health.error


async def test_probes_are_throttled_to_interval(make_source, clock):
    source = make_source("a")
    monitor = make_monitor([source], clock)

    await monitor.refresh_if_stale()
    await monitor.refresh_if_stale()
    clock.advance(minutes=4)
    await monitor.refresh_if_stale()
    assert source.probe_calls == 1

    clock.advance(minutes=1)
    await monitor.refresh_if_stale()
    assert source.probe_calls == 2


async def test_concurrent_refreshes_share_one_round(make_source, clock):
    source = make_source("a")
    monitor = make_monitor([source], clock)

    await asyncio.gather(*(monitor.refresh_if_stale() for _ in range(5)))

    assert source.probe_calls == 1


async def test_invalidate_forces_next_probe(make_source, clock):
    source = make_source("a")
    monitor = make_monitor([source], clock)

    await monitor.refresh_if_stale()
    monitor.invalidate()
    await monitor.refresh_if_stale()

    assert source.probe_calls == 2


async def test_unavailable_source_recovers_on_next_probe(make_source, clock):
    source = make_source("a", available=False)
    monitor = make_monitor([source], clock)
    await monitor.check_all()
    assert not monitor.is_usable("a")

    source.available = True
    clock.advance(minutes=5)
    await monitor.refresh_if_stale()

    assert monitor.is_usable("a")
    assert monitor.get("a").error is None


async def test_fetch_outcomes_are_recorded(make_source, clock):
    monitor = make_monitor([make_source("a")], clock)
    await monitor.check_all()

    monitor.record_fetch_success("a", 12)
    assert monitor.get("a").last_fetch_count == 12

    monitor.record_fetch_failure("a", "HTTP 500")
    health = monitor.get("a")
    assert health.state == HealthState.UNAVAILABLE
    assert health.error == "HTTP 500"
    assert health.last_fetch_count == 0
    assert not monitor.is_usable("a")


async def test_rate_limit_state_is_captured(make_source, clock):
    class LimitedSource(make_source):
        def rate_limit_status(self):
            return RateLimitStatus(remaining=42, reset_at=clock.now + timedelta(minutes=1))

    monitor = make_monitor([LimitedSource("limited")], clock)
    await monitor.check_all()

    health = monitor.get("limited")
    assert health.rate_limit_remaining == 42
    assert health.to_dict()["rate_limit_reset"] == (clock.now + timedelta(minutes=1)).isoformat()


def test_snapshot_returns_copies(make_source, clock):
    monitor = make_monitor([make_source("a")], clock)

    monitor.snapshot()[0].error = "tampered"

    assert monitor.get("a").error is None
