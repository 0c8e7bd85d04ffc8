"""Tournament aggregation service merging listings from every source."""

import asyncio
import logging
import time
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from ..config import Settings
from ..exceptions import SourceUnavailableError
from ..server.health_monitor import HealthMonitor, SourceHealth
from ..services.cache_persistence import JsonCachePersistence
from ..services.cache_store import CacheEntry, CacheStore
from ..sources.base import BaseTournamentSource
from ..sources.factory import SourceFactory
from ..sources.models import (
    CircuitCategory,
    PriceRange,
    TimeRange,
    TournamentRecord,
    utc_now,
)
from .deduplicator import Deduplicator
from .filters import FilterEngine, TournamentFilters
from .models import SourceResult, TournamentQueryResult


class TournamentDataService:
    """
    Service for aggregating tournament listings from multiple sources.

    Owns the cache and the health monitor. Each cache miss runs one
    round: usable sources are fetched concurrently, results are merged
    in source priority order, deduplicated, filtered and cached.
    Concurrent callers asking for the same filter share one round.
    """

    def __init__(
        self,
        sources: Sequence[BaseTournamentSource],
        health_monitor: Optional[HealthMonitor] = None,
        cache: Optional[CacheStore] = None,
        fetch_timeout: float = 20.0,
        lookahead: timedelta = timedelta(days=365),
        clock: Callable[[], datetime] = utc_now,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize aggregator service.

        Args:
            sources: Sources in merge priority order
            health_monitor: Health monitor over the same sources
            cache: Cache store for aggregate results
            fetch_timeout: Seconds allowed per source fetch unless the
                source sets its own fetch_timeout
            lookahead: Default window when a filter has no end date
            clock: Returns the current UTC time
            logger: Optional logger
        """
        self.logger = logger or logging.getLogger(__name__)
        self.sources: List[BaseTournamentSource] = list(sources)
        self.health_monitor = health_monitor or HealthMonitor(self.sources, clock=clock)
        self.cache = cache or CacheStore(clock=clock)
        self.fetch_timeout = fetch_timeout
        self.lookahead = lookahead
        self._clock = clock

        self.deduplicator = Deduplicator(self.logger)
        self.filter_engine = FilterEngine(self.logger)

        # One in-flight round per filter signature
        self._inflight: Dict[str, asyncio.Task] = {}
        self._closed = False

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        logger: Optional[logging.Logger] = None
    ) -> "TournamentDataService":
        """Build the service and its sources from configuration."""
        settings = settings or Settings()
        sources = SourceFactory.create_sources(settings.source_names, settings)
        health_monitor = HealthMonitor(
            sources,
            check_interval=timedelta(minutes=settings.health_check_interval_minutes),
            probe_timeout=settings.probe_timeout_seconds,
        )
        persistence = JsonCachePersistence(settings.cache_file) if settings.cache_file else None
        cache = CacheStore(
            ttl=timedelta(minutes=settings.cache_ttl_minutes),
            persistence=persistence,
        )
        return cls(
            sources,
            health_monitor=health_monitor,
            cache=cache,
            fetch_timeout=settings.fetch_timeout_seconds,
            lookahead=timedelta(days=settings.lookahead_days),
            logger=logger,
        )

    async def initialize(self):
        """Load the persisted cache and run the first health check."""
        self.logger.info("Initializing tournament data service...")
        await self.cache.load()
        await self.health_monitor.check_all()
        self.logger.info(f"Initialized with {len(self.sources)} sources")

    async def query(self, filters: Optional[TournamentFilters] = None) -> TournamentQueryResult:
        """
        Get tournaments matching filters together with round metadata.

        Args:
            filters: Caller filters; None means no filtering

        Returns:
            TournamentQueryResult
        """
        filters = filters or TournamentFilters()
        key = filters.cache_key()

        # Peek first: get() evicts expired entries that may serve as a fallback
        fallback = self.cache.peek(key)
        if not filters.force_refresh:
            entry = self.cache.get(key)
            if entry is not None:
                self.logger.debug(f"Cache hit for {key}")
                return self._from_entry(entry)

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run_round(key, filters, fallback))
            self._inflight[key] = task
            task.add_done_callback(lambda t, key=key: self._round_done(key, t))
        else:
            self.logger.debug(f"Joining in-flight round for {key}")

        return await asyncio.shield(task)

    async def get_all_tournaments(self, filters: Optional[TournamentFilters] = None) -> List[TournamentRecord]:
        """
        Get the deduplicated, filtered and sorted tournament list.

        Never raises for source failures; when every source fails the
        result is a stale cached list or an empty one.

        Raises:
            InvalidFilterError: Only through TournamentFilters construction
        """
        result = await self.query(filters)
        return result.tournaments

    get_tournaments = get_all_tournaments

    def get_data_source_health(self) -> List[SourceHealth]:
        """Snapshot of every source's health, in priority order."""
        return self.health_monitor.snapshot()

    async def refresh_all_data(self) -> None:
        """Drop all cached results, re-probe every source and run an unfiltered round."""
        self.logger.info("Refreshing all tournament data")
        self.cache.clear()
        self.health_monitor.invalidate()
        await self.health_monitor.check_all()
        await self.query(TournamentFilters(force_refresh=True))

    async def get_tournaments_by_circuit(self, category: CircuitCategory) -> List[TournamentRecord]:
        return await self.get_all_tournaments(TournamentFilters(circuits=frozenset({category})))

    async def get_upcoming_tournaments(self, limit: int = 10, days: int = 30) -> List[TournamentRecord]:
        """Tournaments starting within the next `days` days, capped at `limit`."""
        # Minute resolution keeps repeated calls on one cache key
        now = self._clock().replace(second=0, microsecond=0)
        filters = TournamentFilters(
            start_date=now,
            end_date=now + timedelta(days=days),
            max_results=limit,
        )
        return await self.get_all_tournaments(filters)

    async def search_tournaments(self, text: str, limit: Optional[int] = None) -> List[TournamentRecord]:
        return await self.get_all_tournaments(TournamentFilters(search=text, max_results=limit))

    async def close(self):
        """Cancel in-flight rounds, close every source and persist the cache."""
        if self._closed:
            return
        self._closed = True

        for task in list(self._inflight.values()):
            task.cancel()
        if self._inflight:
            await asyncio.gather(*self._inflight.values(), return_exceptions=True)

        for source in self.sources:
            try:
                await source.close()
            except Exception as e:
                self.logger.error(f"Error closing source {source.name}: {e}")

        self.cache.clear_expired()
        await self.cache.flush()
        self.logger.info("Tournament data service closed")

    def _from_entry(self, entry: CacheEntry, stale: bool = False) -> TournamentQueryResult:
        return TournamentQueryResult(
            tournaments=list(entry.tournaments),
            from_cache=True,
            stale=stale,
            last_updated=entry.created_at,
        )

    def _round_done(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error(f"Aggregation round for {key} failed: {error!r}")

    async def _run_round(
        self,
        key: str,
        filters: TournamentFilters,
        fallback: Optional[CacheEntry]
    ) -> TournamentQueryResult:
        started = time.time()
        if filters.force_refresh:
            self.cache.invalidate(key)

        await self.health_monitor.refresh_if_stale()

        selected = [
            source for source in self.sources
            if self.health_monitor.is_usable(source.name)
            and source.serves_categories(filters.circuits)
        ]

        time_range = filters.time_range(self.lookahead, now=self._clock())
        price_range = filters.price_range()

        # gather keeps results in source priority order regardless of completion order
        results: List[SourceResult] = list(await asyncio.gather(
            *(self._fetch_source(source, time_range, price_range) for source in selected)
        ))

        succeeded = [r for r in results if r.succeeded]
        if not succeeded:
            if selected:
                self.logger.warning(f"All {len(selected)} sources failed for {key}")
            else:
                self.logger.warning(f"No usable sources for {key}")
            if fallback is not None:
                self.logger.info(f"Serving stale result from {fallback.created_at.isoformat()}")
                stale = self._from_entry(fallback, stale=True)
                stale.sources = results
                return stale
            return TournamentQueryResult(tournaments=[], sources=results)

        merged = [t for result in succeeded for t in result.tournaments]
        unique = self.deduplicator.deduplicate(merged)
        tournaments = self.filter_engine.apply(unique, filters)

        entry = self.cache.set(key, tournaments)
        await self.cache.flush()

        elapsed = (time.time() - started) * 1000
        self.logger.info(
            f"Aggregated {len(tournaments)} tournaments from "
            f"{len(succeeded)}/{len(selected)} sources in {elapsed:.0f}ms"
        )

        return TournamentQueryResult(
            tournaments=tournaments,
            sources=results,
            from_cache=False,
            last_updated=entry.created_at,
        )

    async def _fetch_source(
        self,
        source: BaseTournamentSource,
        time_range: TimeRange,
        price_range: Optional[PriceRange]
    ) -> SourceResult:
        """Fetch one source; failures are captured, never raised."""
        timeout = source.fetch_timeout or self.fetch_timeout
        start_time = time.time()
        error: Optional[str] = None
        tournaments: List[TournamentRecord] = []

        try:
            tournaments = await asyncio.wait_for(source.fetch(time_range, price_range), timeout=timeout)
        except asyncio.TimeoutError:
            error = f"Fetch timed out after {timeout}s"
        except SourceUnavailableError as e:
            error = str(e)
        except Exception as e:
            self.logger.exception(f"Unexpected error fetching from {source.name}")
            error = f"Unexpected error: {e!r}"

        duration_ms = (time.time() - start_time) * 1000

        if error is not None:
            self.logger.warning(f"Source {source.name} failed: {error}")
            self.health_monitor.record_fetch_failure(source.name, error)
            return SourceResult(source_name=source.name, error=error, duration_ms=duration_ms)

        self.health_monitor.record_fetch_success(source.name, len(tournaments))
        self.logger.debug(f"Fetched {len(tournaments)} tournaments from {source.name} in {duration_ms:.0f}ms")
        return SourceResult(source_name=source.name, tournaments=list(tournaments), duration_ms=duration_ms)
