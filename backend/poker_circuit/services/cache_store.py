"""Time-windowed cache of aggregate tournament results."""

import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..sources.models import TournamentRecord, utc_now
from .cache_persistence import JsonCachePersistence


@dataclass(frozen=True)
class CacheEntry:
    """Aggregate result stored under a filter signature."""
    key: str
    tournaments: Tuple[TournamentRecord, ...]
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Check if cache entry is expired."""
        return now >= self.expires_at


class CacheStore:
    """
    Cache of aggregate results keyed by filter signature.

    Entries are superseded, never mutated. Expired entries are evicted
    lazily when read. Mutations only mark the store dirty; flush() writes
    it to persistence.
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(minutes=30),
        persistence: Optional[JsonCachePersistence] = None,
        clock: Callable[[], datetime] = utc_now,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize cache.

        Args:
            ttl: Lifetime of each entry
            persistence: Optional JSON file backing
            clock: Returns the current UTC time
            logger: Optional logger
        """
        self.ttl = ttl
        self.persistence = persistence
        self._clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._flush_lock = asyncio.Lock()
        self._dirty = False

    def get(self, key: str) -> Optional[CacheEntry]:
        """Get a live entry, evicting it if expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self.logger.debug(f"Evicted expired cache entry {key}")
                return None
            return entry

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Get an entry whether or not it has expired, without evicting."""
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, tournaments: Sequence[TournamentRecord]) -> CacheEntry:
        """Store a result under key with a fresh TTL."""
        now = self._clock()
        entry = CacheEntry(
            key=key,
            tournaments=tuple(tournaments),
            created_at=now,
            expires_at=now + self.ttl,
        )
        with self._lock:
            self._entries[key] = entry
            self._dirty = True
        return entry

    def invalidate(self, key: str) -> None:
        with self._lock:
            if self._entries.pop(key, None) is not None:
                self._dirty = True

    def clear_expired(self) -> int:
        """Remove expired entries and return how many were dropped."""
        now = self._clock()
        with self._lock:
            expired = [k for k, v in self._entries.items() if v.is_expired(now)]
            for key in expired:
                del self._entries[key]
            if expired:
                self._dirty = True
        return len(expired)

    def clear(self) -> None:
        """Clear all entries."""
        with self._lock:
            self._entries.clear()
            self._dirty = True

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def dirty(self) -> bool:
        """Whether entries changed since the last flush."""
        return self._dirty

    async def load(self) -> int:
        """
        Load unexpired entries from persistence.

        Returns:
            Number of entries loaded
        """
        if self.persistence is None:
            return 0

        persisted = await self.persistence.load()
        now = self._clock()
        loaded = 0
        with self._lock:
            for key, (tournaments, created_at, expires_at) in persisted.items():
                if now >= expires_at:
                    continue
                self._entries[key] = CacheEntry(
                    key=key,
                    tournaments=tuple(tournaments),
                    created_at=created_at,
                    expires_at=expires_at,
                )
                loaded += 1

        self.logger.info(f"Loaded {loaded} cache entries from {self.persistence.path}")
        return loaded

    async def flush(self) -> bool:
        """
        Write the current entries to persistence if they changed.

        Returns:
            True if a snapshot was written
        """
        if self.persistence is None:
            return False

        # Flushes run one at a time so an older snapshot never lands last
        async with self._flush_lock:
            with self._lock:
                if not self._dirty:
                    return False
                snapshot = {
                    key: (entry.tournaments, entry.created_at, entry.expires_at)
                    for key, entry in self._entries.items()
                }
                self._dirty = False
            try:
                await self.persistence.save(snapshot)
            except asyncio.CancelledError:
                self._dirty = True
                raise
        return True
