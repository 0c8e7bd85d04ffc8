"""Shared helpers for turning scraped or API listing fields into canonical values."""

import logging
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

from .models import Address, Circuit, CircuitCategory, Venue


MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

STATE_CODES = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR",
    "california": "CA", "colorado": "CO", "connecticut": "CT", "delaware": "DE",
    "florida": "FL", "georgia": "GA", "hawaii": "HI", "idaho": "ID",
    "illinois": "IL", "indiana": "IN", "iowa": "IA", "kansas": "KS",
    "kentucky": "KY", "louisiana": "LA", "maine": "ME", "maryland": "MD",
    "massachusetts": "MA", "michigan": "MI", "minnesota": "MN", "mississippi": "MS",
    "missouri": "MO", "montana": "MT", "nebraska": "NE", "nevada": "NV",
    "new hampshire": "NH", "new jersey": "NJ", "new mexico": "NM", "new york": "NY",
    "north carolina": "NC", "north dakota": "ND", "ohio": "OH", "oklahoma": "OK",
    "oregon": "OR", "pennsylvania": "PA", "rhode island": "RI", "south carolina": "SC",
    "south dakota": "SD", "tennessee": "TN", "texas": "TX", "utah": "UT",
    "vermont": "VT", "virginia": "VA", "washington": "WA", "west virginia": "WV",
    "wisconsin": "WI", "wyoming": "WY",
}

STATE_TIMEZONES = {
    "CA": "America/Los_Angeles", "NV": "America/Los_Angeles", "WA": "America/Los_Angeles",
    "OR": "America/Los_Angeles", "AZ": "America/Phoenix", "CO": "America/Denver",
    "NM": "America/Denver", "UT": "America/Denver", "MT": "America/Denver",
    "TX": "America/Chicago", "IL": "America/Chicago", "WI": "America/Chicago",
    "MN": "America/Chicago", "IA": "America/Chicago", "MO": "America/Chicago",
    "OK": "America/Chicago", "LA": "America/Chicago", "MS": "America/Chicago",
    "AL": "America/Chicago", "KS": "America/Chicago", "NE": "America/Chicago",
    "SD": "America/Chicago", "ND": "America/Chicago",
    "IN": "America/Indiana/Indianapolis", "HI": "Pacific/Honolulu",
    "AK": "America/Anchorage",
}

DEFAULT_TIMEZONE = "America/New_York"

MAJOR_TOURS = (
    (("wsop", "world series"), "World Series of Poker Circuit", "Caesars Entertainment",
     "https://www.wsop.com"),
    (("wpt", "world poker tour"), "World Poker Tour", "WPT Enterprises",
     "https://www.worldpokertour.com"),
    (("ept", "european poker tour"), "European Poker Tour", "PokerStars",
     "https://www.pokerstars.com/ept"),
)

REGIONAL_TOUR_KEYWORDS = ("rungood", "mid-states", "msptour", "heartland", "tour", "series", "classic")


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


class ListingNormalizer:
    """Parses loosely formatted listing text into canonical values."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize normalizer."""
        self.logger = logger or logging.getLogger(__name__)

        self.amount_pattern = re.compile(r"\$?\s*(\d[\d,]*(?:\.\d+)?)\s*([KkMm])?\b")
        self.location_pattern = re.compile(r"^\s*([^,]+?)\s*,\s*([A-Za-z .]+?)\s*(?:\d{5})?\s*$")
        self.date_patterns = [
            # "Mar 28 - Apr 2, 2024"
            ("cross_month", re.compile(
                r"([A-Za-z]+)\.?\s+(\d{1,2})\s*[-–]\s*([A-Za-z]+)\.?\s+(\d{1,2}),?\s+(\d{4})")),
            # "March 15-18, 2024"
            ("month_range", re.compile(r"([A-Za-z]+)\.?\s+(\d{1,2})\s*[-–]\s*(\d{1,2}),?\s+(\d{4})")),
            # "March 15, 2024"
            ("month_day", re.compile(r"([A-Za-z]+)\.?\s+(\d{1,2}),?\s+(\d{4})")),
            # "3/15/2024 - 3/18/2024"
            ("numeric_range", re.compile(
                r"(\d{1,2})/(\d{1,2})/(\d{4})\s*[-–]\s*(\d{1,2})/(\d{1,2})/(\d{4})")),
            # "3/15/2024"
            ("numeric_day", re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")),
        ]

    def parse_amount(self, text: Optional[str]) -> Optional[Decimal]:
        """
        Parse a money amount such as "$1,700", "$1.5M" or "500K".

        Returns:
            Decimal amount or None if no amount is present
        """
        if not text:
            return None

        match = self.amount_pattern.search(text)
        if not match:
            return None

        try:
            amount = Decimal(match.group(1).replace(",", ""))
        except InvalidOperation:
            return None

        suffix = (match.group(2) or "").upper()
        if suffix == "K":
            amount *= 1000
        elif suffix == "M":
            amount *= 1000000
        return amount

    def parse_date_range(self, text: Optional[str]) -> Optional[Tuple[datetime, Optional[datetime]]]:
        """
        Parse a listing date or date range.

        Args:
            text: Date text, e.g. "March 15-18, 2024"

        Returns:
            Tuple of (start, end) in UTC, end is None for single dates;
            None if the text cannot be parsed
        """
        if not text:
            return None

        for kind, pattern in self.date_patterns:
            match = pattern.search(text)
            if not match:
                continue
            try:
                return self._build_range(kind, match.groups())
            except (KeyError, ValueError) as e:
                self.logger.debug(f"Date pattern {kind} matched {text!r} but failed: {e}")

        return None

    def _build_range(self, kind: str, groups: Tuple[str, ...]) -> Tuple[datetime, Optional[datetime]]:
        if kind == "cross_month":
            start_month, start_day, end_month, end_day, year = groups
            end = self._date(int(year), self._month(end_month), int(end_day))
            start = self._date(int(year), self._month(start_month), int(start_day))
            if start > end:
                # "Dec 28 - Jan 3, 2025" starts in the previous year
                start = start.replace(year=start.year - 1)
            return start, end
        if kind == "month_range":
            month, start_day, end_day, year = groups
            month_number = self._month(month)
            return (
                self._date(int(year), month_number, int(start_day)),
                self._date(int(year), month_number, int(end_day)),
            )
        if kind == "month_day":
            month, day, year = groups
            return self._date(int(year), self._month(month), int(day)), None
        if kind == "numeric_range":
            sm, sd, sy, em, ed, ey = (int(g) for g in groups)
            return self._date(sy, sm, sd), self._date(ey, em, ed)
        month, day, year = (int(g) for g in groups)
        return self._date(year, month, day), None

    @staticmethod
    def _month(name: str) -> int:
        return MONTHS[name[:3].lower()]

    @staticmethod
    def _date(year: int, month: int, day: int) -> datetime:
        return datetime(year, month, day, tzinfo=timezone.utc)

    def parse_location(self, text: Optional[str]) -> Tuple[str, str]:
        """
        Split "City, ST" or "City, State Name" into (city, state code).

        Unknown state names are returned as given; unparseable text
        yields the whole string as city.
        """
        if not text:
            return "", ""

        match = self.location_pattern.match(text)
        if not match:
            return text.strip(), ""

        city, state = match.group(1).strip(), match.group(2).strip().rstrip(".")
        return city, self.state_code(state)

    @staticmethod
    def state_code(state: str) -> str:
        if len(state) == 2:
            return state.upper()
        return STATE_CODES.get(state.lower(), state)

    @staticmethod
    def timezone_for_state(state: Optional[str]) -> str:
        return STATE_TIMEZONES.get((state or "").upper(), DEFAULT_TIMEZONE)

    def build_venue(
        self,
        name: str,
        location: Optional[str] = None,
        street: str = "",
        postal_code: str = "",
        venue_id: Optional[str] = None,
    ) -> Venue:
        """Create a Venue from a scraped name and "City, ST" location."""
        city, state = self.parse_location(location)
        return Venue(
            id=venue_id,
            name=name.strip(),
            address=Address(street=street, city=city, state=state, postal_code=postal_code),
            timezone=self.timezone_for_state(state),
        )

    def determine_circuit(
        self,
        series_name: Optional[str],
        organizer: Optional[str] = None,
        id_prefix: str = "src",
    ) -> Circuit:
        """
        Classify a series name into a Circuit.

        Known major tours map to their canonical descriptor; other named
        series are regional tours; events without a series are
        independent.
        """
        if series_name:
            series = series_name.lower()
            for keywords, name, major_organizer, website in MAJOR_TOURS:
                if self._mentions(series, keywords):
                    return Circuit(
                        id=f"{id_prefix}-{slugify(name)}",
                        name=name,
                        organizer=major_organizer,
                        category=CircuitCategory.MAJOR_TOUR,
                        website=website,
                    )

            category = None
            if self._mentions(series, REGIONAL_TOUR_KEYWORDS):
                category = CircuitCategory.REGIONAL_TOUR
            return Circuit(
                id=f"{id_prefix}-{slugify(series_name)}",
                name=series_name.strip(),
                organizer=organizer or "Tournament Organizer",
                category=category,
            )

        return Circuit(
            id=f"{id_prefix}-independent",
            name="Independent Event",
            organizer=organizer or "Venue",
            category=CircuitCategory.INDEPENDENT,
        )

    @staticmethod
    def _mentions(text: str, keywords) -> bool:
        return any(re.search(rf"\b{re.escape(keyword)}\b", text) for keyword in keywords)

    @staticmethod
    def estimate_field(buy_in: Decimal) -> int:
        """Best-effort field size when a source does not publish entries."""
        if buy_in >= 5000:
            return 300
        if buy_in >= 1000:
            return 500
        if buy_in >= 500:
            return 800
        return 450
