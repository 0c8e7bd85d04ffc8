"""Tournament listing sources."""

from .base import BaseTournamentSource, HttpTournamentSource
from .card_player import CardPlayerSource
from .factory import SourceFactory
from .html_cards import CardListingSource
from .models import (
    Address,
    Circuit,
    CircuitCategory,
    Coordinates,
    PriceRange,
    StructureType,
    TimeRange,
    TournamentRecord,
    TournamentStatus,
    TournamentStructure,
    Venue,
)
from .poker_atlas import PokerAtlasSource
from .rate_limit import RateLimiter, RateLimitStatus
from .wpt import WptSource
from .wsop_circuit import WsopCircuitSource

__all__ = [
    "BaseTournamentSource",
    "HttpTournamentSource",
    "CardListingSource",
    "SourceFactory",
    "PokerAtlasSource",
    "WsopCircuitSource",
    "WptSource",
    "CardPlayerSource",
    "RateLimiter",
    "RateLimitStatus",
    "Address",
    "Circuit",
    "CircuitCategory",
    "Coordinates",
    "PriceRange",
    "StructureType",
    "TimeRange",
    "TournamentRecord",
    "TournamentStatus",
    "TournamentStructure",
    "Venue",
]
