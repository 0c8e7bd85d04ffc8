"""Per-source request throttling."""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class RateLimitStatus:
    """Remaining request budget as seen by a source."""
    remaining: Optional[int] = None
    reset_at: Optional[datetime] = None


@dataclass
class RateLimiter:
    """
    Token bucket limiting how often a source is hit.

    Owned by a single source instance; the lock serializes concurrent
    callers of that source.
    """
    requests_per_second: float = 1.0
    burst: int = 1
    _tokens: float = field(default=0.0, init=False)
    _last_update: float = field(default_factory=time.monotonic, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    def __post_init__(self):
        if self.requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        self._tokens = float(self.burst)

    async def acquire(self) -> None:
        """Wait until a request token is available, then consume it."""
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_update
            self._tokens = min(float(self.burst), self._tokens + elapsed * self.requests_per_second)
            self._last_update = now

            if self._tokens < 1:
                wait_time = (1 - self._tokens) / self.requests_per_second
                await asyncio.sleep(wait_time)
                self._last_update = time.monotonic()
                self._tokens = 0.0
            else:
                self._tokens -= 1

    @property
    def available_tokens(self) -> int:
        return int(self._tokens)
