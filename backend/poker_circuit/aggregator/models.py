"""Result models for aggregation rounds."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..sources.models import TournamentRecord


@dataclass
class SourceResult:
    """Outcome of one source's fetch within a round."""
    source_name: str
    tournaments: List[TournamentRecord] = field(default_factory=list)
    error: Optional[str] = None
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_name": self.source_name,
            "count": len(self.tournaments),
            "error": self.error,
            "duration_ms": round(self.duration_ms, 1),
        }


@dataclass
class TournamentQueryResult:
    """
    Aggregate tournaments plus round metadata.

    sources is empty when the result was served from cache.
    """
    tournaments: List[TournamentRecord]
    sources: List[SourceResult] = field(default_factory=list)
    from_cache: bool = False
    stale: bool = False
    last_updated: Optional[datetime] = None

    @property
    def total(self) -> int:
        return len(self.tournaments)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "tournaments": [t.to_dict() for t in self.tournaments],
            "total": self.total,
            "from_cache": self.from_cache,
            "stale": self.stale,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "sources": [s.to_dict() for s in self.sources],
        }
