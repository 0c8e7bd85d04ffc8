"""Tests for listing normalization helpers."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from poker_circuit.sources import CircuitCategory
from poker_circuit.sources.normalizer import ListingNormalizer, slugify


@pytest.fixture
def normalizer():
    return ListingNormalizer()


def utc(year, month, day):
    return datetime(year, month, day, tzinfo=timezone.utc)


@pytest.mark.parametrize("text, expected", [
    ("$1,700", Decimal("1700")),
    ("Buy-in: $400 + $50", Decimal("400")),
    ("$1.5M GTD", Decimal("1500000")),
    ("500K", Decimal("500000")),
    ("$3,500.50", Decimal("3500.50")),
    ("TBA", None),
    ("", None),
    (None, None),
])
def test_parse_amount(normalizer, text, expected):
    assert normalizer.parse_amount(text) == expected


@pytest.mark.parametrize("text, expected", [
    ("March 15-18, 2024", (utc(2024, 3, 15), utc(2024, 3, 18))),
    ("Mar 28 - Apr 2, 2024", (utc(2024, 3, 28), utc(2024, 4, 2))),
    ("Dec 28 - Jan 3, 2025", (utc(2024, 12, 28), utc(2025, 1, 3))),
    ("Mar 15, 2024", (utc(2024, 3, 15), None)),
    ("3/15/2024 - 3/18/2024", (utc(2024, 3, 15), utc(2024, 3, 18))),
    ("3/15/2024", (utc(2024, 3, 15), None)),
])
def test_parse_date_range(normalizer, text, expected):
    assert normalizer.parse_date_range(text) == expected


@pytest.mark.parametrize("text", ["Coming soon", "", None, "Smarch 3, 2024"])
def test_unparseable_dates_return_none(normalizer, text):
    assert normalizer.parse_date_range(text) is None


@pytest.mark.parametrize("text, expected", [
    ("Las Vegas, NV", ("Las Vegas", "NV")),
    ("Atlantic City, New Jersey", ("Atlantic City", "NJ")),
    ("Hollywood, fl 33021", ("Hollywood", "FL")),
    ("Online", ("Online", "")),
    ("", ("", "")),
])
def test_parse_location(normalizer, text, expected):
    assert normalizer.parse_location(text) == expected


def test_build_venue_sets_timezone_from_state(normalizer):
    venue = normalizer.build_venue(" Bellagio ", "Las Vegas, NV")

    assert venue.name == "Bellagio"
    assert venue.address.city == "Las Vegas"
    assert venue.timezone == "America/Los_Angeles"
    assert normalizer.build_venue("Borgata", "Atlantic City, NJ").timezone == "America/New_York"


@pytest.mark.parametrize("series, category, name", [
    ("WSOP Circuit Cherokee", CircuitCategory.MAJOR_TOUR, "World Series of Poker Circuit"),
    ("World Poker Tour Choctaw", CircuitCategory.MAJOR_TOUR, "World Poker Tour"),
    ("RunGood Poker Series", CircuitCategory.REGIONAL_TOUR, "RunGood Poker Series"),
    ("Borgata Winter Open", None, "Borgata Winter Open"),
    ("September Deepstack Series", CircuitCategory.REGIONAL_TOUR, "September Deepstack Series"),
    ("Winter Tournament Week", None, "Winter Tournament Week"),
    (None, CircuitCategory.INDEPENDENT, "Independent Event"),
])
def test_determine_circuit(normalizer, series, category, name):
    circuit = normalizer.determine_circuit(series, id_prefix="x")

    assert circuit.category == category
    assert circuit.name == name
    assert circuit.id.startswith("x-")


@pytest.mark.parametrize("buy_in, field", [(10000, 300), (1700, 500), (600, 800), (250, 450)])
def test_estimate_field(normalizer, buy_in, field):
    assert normalizer.estimate_field(Decimal(buy_in)) == field


def test_slugify():
    assert slugify("Main Event #12 (Day 1A)") == "main-event-12-day-1a"
