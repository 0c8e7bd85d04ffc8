"""Caller filters and the filter/sort engine applied to aggregate results."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, FrozenSet, Iterable, List, Optional

from ..exceptions import InvalidFilterError
from ..sources.models import (
    CircuitCategory,
    PriceRange,
    TimeRange,
    TournamentRecord,
    ensure_utc,
    utc_now,
)


class GameType(Enum):
    """Game family inferred from the tournament name."""
    ALL = "all"
    HOLDEM = "holdem"
    PLO = "plo"
    MIXED = "mixed"


PLO_KEYWORDS = ("plo", "omaha")
MIXED_KEYWORDS = ("horse", "8-game", "mixed")
# Hold'em is whatever is not plainly a PLO or mixed-game event; "mixed" alone
# (as in "Mixed Hold'em") does not exclude it
NON_HOLDEM_KEYWORDS = ("plo", "omaha", "horse", "8-game")

# Lower ranks sort first among tournaments starting at the same instant
CIRCUIT_PRESTIGE = {
    CircuitCategory.MAJOR_TOUR: 0,
    CircuitCategory.INDEPENDENT: 1,
    CircuitCategory.REGIONAL_TOUR: 2,
}
UNCLASSIFIED_PRESTIGE = 3


def circuit_prestige(category: Optional[CircuitCategory]) -> int:
    return CIRCUIT_PRESTIGE.get(category, UNCLASSIFIED_PRESTIGE)


def _to_decimal(value: Any, name: str) -> Optional[Decimal]:
    if value is None or isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise InvalidFilterError(f"{name} must be a number, got {value!r}") from e


def _to_category(value: Any) -> CircuitCategory:
    if isinstance(value, CircuitCategory):
        return value
    try:
        return CircuitCategory(str(value).strip().lower())
    except ValueError as e:
        valid = ", ".join(c.value for c in CircuitCategory)
        raise InvalidFilterError(f"Unknown circuit category {value!r}; expected one of {valid}") from e


@dataclass(frozen=True)
class TournamentFilters:
    """
    Query options for the aggregate tournament list.

    Values are normalized on construction (sets become frozensets,
    category strings become CircuitCategory, states are upper-cased)
    and the combination is validated.

    Raises:
        InvalidFilterError: On contradictory or malformed options
    """
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_buy_in: Optional[Decimal] = None
    max_buy_in: Optional[Decimal] = None
    circuits: FrozenSet[CircuitCategory] = field(default_factory=frozenset)
    states: FrozenSet[str] = field(default_factory=frozenset)
    search: Optional[str] = None
    game_type: GameType = GameType.ALL
    max_results: Optional[int] = None
    force_refresh: bool = False

    def __post_init__(self):
        # Frozen dataclass: normalize through object.__setattr__
        set_ = object.__setattr__
        if self.start_date is not None:
            set_(self, "start_date", ensure_utc(self.start_date))
        if self.end_date is not None:
            set_(self, "end_date", ensure_utc(self.end_date))
        set_(self, "min_buy_in", _to_decimal(self.min_buy_in, "min_buy_in"))
        set_(self, "max_buy_in", _to_decimal(self.max_buy_in, "max_buy_in"))
        set_(self, "circuits", frozenset(_to_category(c) for c in (self.circuits or ())))
        set_(self, "states", frozenset(s.strip().upper() for s in (self.states or ()) if s and s.strip()))
        search = (self.search or "").strip()
        set_(self, "search", search or None)
        if not isinstance(self.game_type, GameType):
            try:
                set_(self, "game_type", GameType(str(self.game_type).lower()))
            except ValueError as e:
                raise InvalidFilterError(f"Unknown game type {self.game_type!r}") from e
        self.validate()

    def validate(self) -> None:
        """Reject contradictory filter combinations."""
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise InvalidFilterError("start_date must not be after end_date")
        if self.min_buy_in is not None and self.min_buy_in < 0:
            raise InvalidFilterError("min_buy_in must not be negative")
        if self.max_buy_in is not None and self.max_buy_in < 0:
            raise InvalidFilterError("max_buy_in must not be negative")
        if (self.min_buy_in is not None and self.max_buy_in is not None
                and self.min_buy_in > self.max_buy_in):
            raise InvalidFilterError("min_buy_in must not exceed max_buy_in")
        if self.max_results is not None and (isinstance(self.max_results, bool) or self.max_results < 1):
            raise InvalidFilterError("max_results must be a positive integer")

    def cache_key(self) -> str:
        """
        Canonical, order-independent signature of the filter.

        force_refresh is excluded: it changes how a result is obtained,
        not which result is wanted.
        """
        signature = {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "min_buy_in": str(self.min_buy_in.normalize()) if self.min_buy_in is not None else None,
            "max_buy_in": str(self.max_buy_in.normalize()) if self.max_buy_in is not None else None,
            "circuits": sorted(c.value for c in self.circuits),
            "states": sorted(self.states),
            "search": self.search.lower() if self.search else None,
            "game_type": self.game_type.value,
            "max_results": self.max_results,
        }
        return json.dumps(signature, sort_keys=True, separators=(",", ":"))

    def time_range(self, lookahead: timedelta = timedelta(days=365), now: Optional[datetime] = None) -> TimeRange:
        """Window passed to sources; open ends default to now and now + lookahead."""
        now = now or utc_now()
        start = self.start_date or (min(now, self.end_date) if self.end_date else now)
        end = self.end_date or max(start, now) + lookahead
        return TimeRange(start=start, end=end)

    def price_range(self) -> Optional[PriceRange]:
        if self.min_buy_in is None and self.max_buy_in is None:
            return None
        return PriceRange(minimum=self.min_buy_in, maximum=self.max_buy_in)


class FilterEngine:
    """Applies caller predicates, deterministic ordering and the result cap."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def apply(self, tournaments: Iterable[TournamentRecord], filters: TournamentFilters) -> List[TournamentRecord]:
        """
        Filter, sort, then truncate.

        Args:
            tournaments: Deduplicated records
            filters: Caller filters

        Returns:
            Ordered, capped list of matching records
        """
        matching = [t for t in tournaments if self.matches(t, filters)]
        ordered = self.sort(matching)
        if filters.max_results is not None:
            ordered = ordered[:filters.max_results]
        return ordered

    def matches(self, tournament: TournamentRecord, filters: TournamentFilters) -> bool:
        """Evaluate every predicate in order; all must hold."""
        if filters.start_date and tournament.start_date < filters.start_date:
            return False
        if filters.end_date and tournament.start_date > filters.end_date:
            return False

        if filters.min_buy_in is not None and tournament.buy_in < filters.min_buy_in:
            return False
        if filters.max_buy_in is not None and tournament.buy_in > filters.max_buy_in:
            return False

        if filters.circuits and tournament.circuit.category not in filters.circuits:
            return False

        if filters.states and tournament.venue.address.state.upper() not in filters.states:
            return False

        if not self.matches_game_type(tournament, filters.game_type):
            return False

        if filters.search and not self._matches_search(tournament, filters.search):
            return False

        return True

    @staticmethod
    def matches_game_type(tournament: TournamentRecord, game_type: GameType) -> bool:
        """Each game type is checked on its own keywords; a name may match several."""
        if game_type == GameType.ALL:
            return True
        name = tournament.name.lower()
        if game_type == GameType.PLO:
            return any(keyword in name for keyword in PLO_KEYWORDS)
        if game_type == GameType.MIXED:
            return any(keyword in name for keyword in MIXED_KEYWORDS)
        return not any(keyword in name for keyword in NON_HOLDEM_KEYWORDS)

    @staticmethod
    def _matches_search(tournament: TournamentRecord, query: str) -> bool:
        query = query.lower()
        fields = (
            tournament.name,
            tournament.venue.name,
            tournament.venue.address.city,
            tournament.venue.address.state,
            tournament.circuit.name,
        )
        return any(query in (value or "").lower() for value in fields)

    @staticmethod
    def sort_key(tournament: TournamentRecord):
        return (
            tournament.start_date,
            circuit_prestige(tournament.circuit.category),
            -tournament.buy_in,
        )

    def sort(self, tournaments: Iterable[TournamentRecord]) -> List[TournamentRecord]:
        """Ascending start, then circuit prestige, then descending buy-in."""
        return sorted(tournaments, key=self.sort_key)
