"""Shared fixtures: in-memory sources, a controllable clock and record builders."""

import asyncio
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import List, Optional

import pytest

# Add backend directory to path
sys.path.insert(0, str(Path(__file__).parent))

from poker_circuit.aggregator import TournamentDataService
from poker_circuit.server import HealthMonitor
from poker_circuit.services import CacheStore
from poker_circuit.sources import (
    Address,
    BaseTournamentSource,
    Circuit,
    CircuitCategory,
    TournamentRecord,
    Venue,
)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeSource(BaseTournamentSource):
    """In-memory source with scripted results, failures and delays."""

    def __init__(
        self,
        name: str,
        tournaments: Optional[List[TournamentRecord]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        available=True,
        categories=None,
        fetch_timeout: Optional[float] = None,
    ):
        self.name = name
        self.display_name = name.title()
        self.categories = categories
        self.fetch_timeout = fetch_timeout
        super().__init__()
        self.tournaments = list(tournaments or [])
        self.error = error
        self.delay = delay
        self.available = available
        self.fetch_calls = 0
        self.probe_calls = 0
        self.close_calls = 0

    async def fetch(self, time_range, price_range=None):
        self.fetch_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.tournaments)

    async def check_availability(self) -> bool:
        self.probe_calls += 1
        if isinstance(self.available, Exception):
            raise self.available
        return self.available

    async def close(self) -> None:
        self.close_calls += 1


def build_tournament(
    id: str = "t-1",
    name: str = "Main Event",
    venue: str = "The Orleans",
    start: datetime = datetime(2024, 2, 15, 18, 0, tzinfo=timezone.utc),
    buy_in="1700",
    category: Optional[CircuitCategory] = CircuitCategory.MAJOR_TOUR,
    circuit_name: str = "World Series of Poker Circuit",
    city: str = "Las Vegas",
    state: str = "NV",
    days: int = 3,
    source: str = "fake",
) -> TournamentRecord:
    return TournamentRecord(
        id=id,
        name=name,
        circuit=Circuit(
            id=circuit_name.lower().replace(" ", "-"),
            name=circuit_name,
            organizer="Organizer",
            category=category,
        ),
        venue=Venue(name=venue, address=Address(city=city, state=state)),
        buy_in=Decimal(str(buy_in)),
        start_date=start,
        end_date=start + timedelta(days=days),
        source=source,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_tournament():
    return build_tournament


@pytest.fixture
def make_source():
    return FakeSource


@pytest.fixture
def make_service(clock):
    """Build a service over fake sources sharing the fake clock."""
    def _make(sources, ttl=timedelta(minutes=30), fetch_timeout=1.0, persistence=None):
        monitor = HealthMonitor(sources, check_interval=timedelta(minutes=5), probe_timeout=1.0, clock=clock)
        cache = CacheStore(ttl=ttl, persistence=persistence, clock=clock)
        return TournamentDataService(
            sources,
            health_monitor=monitor,
            cache=cache,
            fetch_timeout=fetch_timeout,
            clock=clock,
        )
    return _make
