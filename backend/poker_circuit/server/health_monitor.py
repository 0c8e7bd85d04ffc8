"""Health monitor tracking availability of each tournament source."""

import asyncio
import dataclasses
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..sources.base import BaseTournamentSource
from ..sources.models import utc_now


class HealthState(Enum):
    """Source availability state."""
    UNKNOWN = "unknown"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


@dataclass
class SourceHealth:
    """Liveness snapshot for one source."""
    source_name: str
    available: bool = False
    last_checked: Optional[datetime] = None
    error: Optional[str] = None
    rate_limit_remaining: Optional[int] = None
    rate_limit_reset: Optional[datetime] = None
    state: HealthState = HealthState.UNKNOWN
    error_count: int = 0
    last_fetch_count: Optional[int] = None
    last_fetched_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "source_name": self.source_name,
            "available": self.available,
            "state": self.state.value,
            "last_checked": self.last_checked.isoformat() if self.last_checked else None,
            "error": self.error,
            "rate_limit_remaining": self.rate_limit_remaining,
            "rate_limit_reset": self.rate_limit_reset.isoformat() if self.rate_limit_reset else None,
            "error_count": self.error_count,
            "last_fetch_count": self.last_fetch_count,
            "last_fetched_at": self.last_fetched_at.isoformat() if self.last_fetched_at else None,
        }


class HealthMonitor:
    """
    Tracks last-known availability of every configured source.

    Probes run at most once per check interval; every source is
    re-probed each interval so failed sources recover automatically.
    """

    def __init__(
        self,
        sources: Sequence[BaseTournamentSource],
        check_interval: timedelta = timedelta(minutes=5),
        probe_timeout: float = 5.0,
        clock: Callable[[], datetime] = utc_now,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize health monitor.

        Args:
            sources: Sources to monitor
            check_interval: Minimum time between probe rounds
            probe_timeout: Seconds before a probe counts as failed
            clock: Returns the current UTC time
            logger: Optional logger
        """
        self.logger = logger or logging.getLogger(__name__)
        self.sources: Dict[str, BaseTournamentSource] = {s.name: s for s in sources}
        self.check_interval = check_interval
        self.probe_timeout = probe_timeout
        self._clock = clock
        self._health: Dict[str, SourceHealth] = {
            name: SourceHealth(source_name=name) for name in self.sources
        }
        self._last_check: Optional[datetime] = None
        self._state_lock = threading.RLock()
        self._probe_lock = asyncio.Lock()

    def is_usable(self, source_name: str) -> bool:
        """True only if the last known state of the source is available."""
        with self._state_lock:
            health = self._health.get(source_name)
            return health is not None and health.state == HealthState.AVAILABLE

    def is_stale(self) -> bool:
        with self._state_lock:
            if self._last_check is None:
                return True
            return self._clock() - self._last_check >= self.check_interval

    def invalidate(self) -> None:
        """Force the next refresh_if_stale() to probe."""
        with self._state_lock:
            self._last_check = None

    async def refresh_if_stale(self) -> None:
        """Probe all sources if the last round is older than the interval."""
        if not self.is_stale():
            return

        async with self._probe_lock:
            # Another caller may have probed while we waited for the lock
            if not self.is_stale():
                return
            await self._probe_all()

    async def check_all(self) -> None:
        """Probe all sources now, regardless of the interval."""
        async with self._probe_lock:
            await self._probe_all()

    async def _probe_all(self) -> None:
        names = list(self.sources)
        results = await asyncio.gather(
            *(self._probe(self.sources[name]) for name in names),
            return_exceptions=True
        )
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                self.logger.error(f"Unexpected error probing {name}: {result!r}")

        with self._state_lock:
            self._last_check = self._clock()

        available = sum(1 for name in names if self.is_usable(name))
        self.logger.info(f"Health check complete: {available}/{len(names)} sources available")

    async def _probe(self, source: BaseTournamentSource) -> None:
        try:
            available = await asyncio.wait_for(source.check_availability(), timeout=self.probe_timeout)
            error = None if available else "Source not accessible"
        except asyncio.TimeoutError:
            available, error = False, f"Availability check timed out after {self.probe_timeout}s"
        except Exception as e:
            available, error = False, str(e) or repr(e)

        rate_limit = source.rate_limit_status()
        with self._state_lock:
            health = self._health[source.name]
            health.available = bool(available)
            health.state = HealthState.AVAILABLE if available else HealthState.UNAVAILABLE
            health.last_checked = self._clock()
            health.error = error
            if rate_limit is not None:
                health.rate_limit_remaining = rate_limit.remaining
                health.rate_limit_reset = rate_limit.reset_at
            if not available:
                health.error_count += 1

        if available:
            self.logger.debug(f"Source {source.name} is available")
        else:
            self.logger.warning(f"Source {source.name} is unavailable: {error}")

    def record_fetch_success(self, source_name: str, count: int) -> None:
        """Record a completed fetch for a source."""
        with self._state_lock:
            health = self._health.get(source_name)
            if health is None:
                return
            health.last_fetch_count = count
            health.last_fetched_at = self._clock()

    def record_fetch_failure(self, source_name: str, error: str) -> None:
        """
        Mark a source unavailable after a failed fetch.

        It stays out of rotation until the next probe round.
        """
        with self._state_lock:
            health = self._health.get(source_name)
            if health is None:
                return
            health.available = False
            health.state = HealthState.UNAVAILABLE
            health.error = error
            health.error_count += 1
            health.last_fetch_count = 0
            health.last_fetched_at = self._clock()

    def get(self, source_name: str) -> Optional[SourceHealth]:
        with self._state_lock:
            health = self._health.get(source_name)
            return dataclasses.replace(health) if health else None

    def snapshot(self) -> List[SourceHealth]:
        """
        Copy of every source's health, in source priority order.

        Returns:
            List of SourceHealth copies
        """
        with self._state_lock:
            return [dataclasses.replace(self._health[name]) for name in self.sources]
