"""Tests for tournament deduplication."""

from datetime import datetime, timedelta, timezone

from poker_circuit.aggregator import Deduplicator, dedup_key


def test_key_is_case_insensitive_and_date_based(make_tournament):
    morning = make_tournament(name="Main Event", venue="Orleans",
                              start=datetime(2024, 2, 15, 10, tzinfo=timezone.utc))
    evening = make_tournament(name="MAIN EVENT", venue="orleans",
                              start=datetime(2024, 2, 15, 20, tzinfo=timezone.utc))

    assert dedup_key(morning) == "main event|orleans|2024-02-15"
    assert dedup_key(morning) == dedup_key(evening)


def test_first_record_wins_and_order_is_preserved(make_tournament):
    first = make_tournament(id="a-1", name="Main Event", venue="Orleans", buy_in=1700)
    other = make_tournament(id="a-2", name="Ladies Event", venue="Orleans")
    duplicate = make_tournament(id="b-1", name="main event", venue="ORLEANS", buy_in=1650)

    result = Deduplicator().deduplicate([first, other, duplicate])

    assert [t.id for t in result] == ["a-1", "a-2"]


def test_distinct_days_and_venues_are_kept(make_tournament):
    day_one = make_tournament(id="d1")
    day_two = make_tournament(id="d2", start=day_one.start_date + timedelta(days=1))
    elsewhere = make_tournament(id="v2", venue="Bellagio")

    result = Deduplicator().deduplicate([day_one, day_two, elsewhere])

    assert len(result) == 3


def test_near_matches_are_not_merged(make_tournament):
    a = make_tournament(id="a", name="Main Event")
    b = make_tournament(id="b", name="Main Event #12")

    assert len(Deduplicator().deduplicate([a, b])) == 2
