"""Source-agnostic tournament data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional

from ..exceptions import MalformedRecordError


class CircuitCategory(Enum):
    """Circuit category."""
    MAJOR_TOUR = "major_tour"
    REGIONAL_TOUR = "regional_tour"
    INDEPENDENT = "independent"


class StructureType(Enum):
    """Tournament entry structure."""
    FREEZEOUT = "freezeout"
    REENTRY = "reentry"
    REBUY = "rebuy"


class TournamentStatus(Enum):
    """Tournament lifecycle status."""
    UPCOMING = "upcoming"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so all instants compare safely."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing Z, as a UTC-aware datetime."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return parse_iso_datetime(value)


def _parse_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise MalformedRecordError(f"Invalid amount: {value!r}") from e


@dataclass
class Circuit:
    """Tour or series a tournament belongs to."""
    id: str
    name: str
    organizer: str
    category: Optional[CircuitCategory] = None  # None means unclassified
    website: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "organizer": self.organizer,
            "category": self.category.value if self.category else None,
            "website": self.website,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Circuit":
        category = data.get("category")
        return cls(
            id=data["id"],
            name=data["name"],
            organizer=data.get("organizer", ""),
            category=CircuitCategory(category) if category else None,
            website=data.get("website"),
        )


@dataclass
class Address:
    """Postal address."""
    street: str = ""
    city: str = ""
    state: str = ""
    country: str = "USA"
    postal_code: str = ""


@dataclass
class Coordinates:
    """Geographic coordinates."""
    latitude: float
    longitude: float


@dataclass
class Venue:
    """Casino or card room hosting a tournament."""
    name: str
    address: Address = field(default_factory=Address)
    coordinates: Optional[Coordinates] = None
    timezone: str = "America/New_York"
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "address": {
                "street": self.address.street,
                "city": self.address.city,
                "state": self.address.state,
                "country": self.address.country,
                "postal_code": self.address.postal_code,
            },
            "coordinates": {
                "latitude": self.coordinates.latitude,
                "longitude": self.coordinates.longitude,
            } if self.coordinates else None,
            "timezone": self.timezone,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Venue":
        coordinates = data.get("coordinates")
        return cls(
            id=data.get("id"),
            name=data["name"],
            address=Address(**data.get("address", {})),
            coordinates=Coordinates(**coordinates) if coordinates else None,
            timezone=data.get("timezone", "America/New_York"),
        )


@dataclass
class TournamentStructure:
    """Entry structure, starting stack and blind level length."""
    type: StructureType = StructureType.REENTRY
    starting_stack: int = 20000
    level_duration: int = 40  # minutes


@dataclass
class TournamentRecord:
    """
    Canonical tournament listing.

    ``id`` is source-qualified and only unique within one source's
    record set.
    """
    id: str
    name: str
    circuit: Circuit
    venue: Venue
    buy_in: Decimal
    start_date: datetime
    end_date: datetime
    estimated_field: int = 0
    structure: TournamentStructure = field(default_factory=TournamentStructure)
    prize_guarantee: Optional[Decimal] = None
    status: TournamentStatus = TournamentStatus.UPCOMING
    registration_deadline: Optional[datetime] = None
    late_registration_levels: Optional[int] = None
    source: Optional[str] = None

    def __post_init__(self):
        if not self.id or not self.name:
            raise MalformedRecordError("Tournament requires an id and a name", self.source)
        if not isinstance(self.buy_in, Decimal):
            self.buy_in = _parse_decimal(self.buy_in)
        if self.prize_guarantee is not None and not isinstance(self.prize_guarantee, Decimal):
            self.prize_guarantee = _parse_decimal(self.prize_guarantee)
        if self.buy_in < 0:
            raise MalformedRecordError(f"Negative buy-in for {self.id}: {self.buy_in}", self.source)

        self.start_date = ensure_utc(self.start_date)
        self.end_date = ensure_utc(self.end_date)
        if self.registration_deadline is not None:
            self.registration_deadline = ensure_utc(self.registration_deadline)
        if self.start_date > self.end_date:
            raise MalformedRecordError(
                f"Tournament {self.id} ends before it starts "
                f"({self.start_date.isoformat()} > {self.end_date.isoformat()})",
                self.source
            )

    @property
    def is_upcoming(self) -> bool:
        return self.status == TournamentStatus.UPCOMING

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "circuit": self.circuit.to_dict(),
            "venue": self.venue.to_dict(),
            "buy_in": str(self.buy_in),
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "estimated_field": self.estimated_field,
            "structure": {
                "type": self.structure.type.value,
                "starting_stack": self.structure.starting_stack,
                "level_duration": self.structure.level_duration,
            },
            "prize_guarantee": str(self.prize_guarantee) if self.prize_guarantee is not None else None,
            "status": self.status.value,
            "registration_deadline": (
                self.registration_deadline.isoformat() if self.registration_deadline else None
            ),
            "late_registration_levels": self.late_registration_levels,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TournamentRecord":
        """
        Rebuild a record from ``to_dict`` output.

        Raises:
            MalformedRecordError: If required fields are missing or invalid
        """
        try:
            structure = data.get("structure") or {}
            return cls(
                id=data["id"],
                name=data["name"],
                circuit=Circuit.from_dict(data["circuit"]),
                venue=Venue.from_dict(data["venue"]),
                buy_in=_parse_decimal(data["buy_in"]),
                start_date=_parse_datetime(data["start_date"]),
                end_date=_parse_datetime(data["end_date"]),
                estimated_field=int(data.get("estimated_field") or 0),
                structure=TournamentStructure(
                    type=StructureType(structure.get("type", StructureType.REENTRY.value)),
                    starting_stack=int(structure.get("starting_stack", 20000)),
                    level_duration=int(structure.get("level_duration", 40)),
                ),
                prize_guarantee=_parse_decimal(data.get("prize_guarantee")),
                status=TournamentStatus(data.get("status", TournamentStatus.UPCOMING.value)),
                registration_deadline=_parse_datetime(data.get("registration_deadline")),
                late_registration_levels=data.get("late_registration_levels"),
                source=data.get("source"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedRecordError(f"Cannot rebuild tournament from {data.get('id')!r}: {e}") from e


@dataclass
class TimeRange:
    """Inclusive window of tournament start instants."""
    start: datetime
    end: datetime

    def __post_init__(self):
        self.start = ensure_utc(self.start)
        self.end = ensure_utc(self.end)

    def contains(self, moment: datetime) -> bool:
        return self.start <= ensure_utc(moment) <= self.end


@dataclass
class PriceRange:
    """Inclusive buy-in bounds; either side may be open."""
    minimum: Optional[Decimal] = None
    maximum: Optional[Decimal] = None

    def contains(self, amount: Decimal) -> bool:
        if self.minimum is not None and amount < self.minimum:
            return False
        if self.maximum is not None and amount > self.maximum:
            return False
        return True
