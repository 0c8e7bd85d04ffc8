"""Aggregation of tournament listings across sources."""

from .models import SourceResult, TournamentQueryResult
from .deduplicator import Deduplicator, dedup_key
from .filters import FilterEngine, GameType, TournamentFilters, circuit_prestige
from .aggregator_service import TournamentDataService

__all__ = [
    "SourceResult",
    "TournamentQueryResult",
    "Deduplicator",
    "dedup_key",
    "FilterEngine",
    "GameType",
    "TournamentFilters",
    "circuit_prestige",
    "TournamentDataService"
]
