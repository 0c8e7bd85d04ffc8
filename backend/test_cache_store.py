"""Tests for the result cache and its JSON persistence."""

import json
from datetime import timedelta

from poker_circuit.services import CacheStore, JsonCachePersistence


def test_entry_lives_until_ttl(clock, make_tournament):
    cache = CacheStore(ttl=timedelta(minutes=30), clock=clock)
    entry = cache.set("k", [make_tournament()])

    assert entry.expires_at == entry.created_at + timedelta(minutes=30)
    clock.advance(minutes=29, seconds=59)
    assert cache.get("k") is entry

    clock.advance(seconds=1)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_peek_returns_expired_entry_without_evicting(clock, make_tournament):
    cache = CacheStore(ttl=timedelta(minutes=1), clock=clock)
    cache.set("k", [make_tournament()])
    clock.advance(minutes=5)

    assert cache.peek("k") is not None
    assert cache.keys() == ["k"]


def test_set_supersedes_previous_entry(clock, make_tournament):
    cache = CacheStore(clock=clock)
    old = cache.set("k", [make_tournament(id="old")])
    clock.advance(minutes=1)
    new = cache.set("k", [make_tournament(id="new")])

    assert cache.get("k") is new
    assert old.tournaments[0].id == "old"
    assert new.created_at > old.created_at


def test_clear_expired_and_invalidate(clock, make_tournament):
    cache = CacheStore(ttl=timedelta(minutes=10), clock=clock)
    cache.set("old", [])
    clock.advance(minutes=5)
    cache.set("fresh", [make_tournament()])
    clock.advance(minutes=6)

    assert cache.clear_expired() == 1
    assert cache.keys() == ["fresh"]

    cache.invalidate("fresh")
    assert len(cache) == 0


def test_mutations_mark_dirty_without_writing(tmp_path, clock, make_tournament):
    path = tmp_path / "tournaments.json"
    cache = CacheStore(persistence=JsonCachePersistence(str(path)), clock=clock)

    cache.set("k", [make_tournament()])
    cache.invalidate("k")

    assert cache.dirty
    assert not path.exists()


async def test_flush_writes_only_when_dirty(tmp_path, clock, make_tournament):
    path = tmp_path / "tournaments.json"
    cache = CacheStore(persistence=JsonCachePersistence(str(path)), clock=clock)

    assert await cache.flush() is False
    cache.set("k", [make_tournament()])
    assert await cache.flush() is True
    assert not cache.dirty
    assert await cache.flush() is False
    assert list(json.loads(path.read_text())["entries"]) == ["k"]


async def test_flush_without_persistence_is_a_no_op(clock, make_tournament):
    cache = CacheStore(clock=clock)
    cache.set("k", [make_tournament()])

    assert await cache.flush() is False


async def test_persistence_round_trips_records(tmp_path, clock, make_tournament):
    path = tmp_path / "cache" / "tournaments.json"
    record = make_tournament(buy_in="1700.50")
    writer = CacheStore(persistence=JsonCachePersistence(str(path)), clock=clock)
    writer.set("k", [record])
    await writer.flush()

    reader = CacheStore(persistence=JsonCachePersistence(str(path)), clock=clock)
    assert await reader.load() == 1

    restored = reader.get("k").tournaments[0]
    assert restored == record
    assert json.loads(path.read_text())["version"] == 1
    assert list(path.parent.iterdir()) == [path]


async def test_expired_entries_are_dropped_on_load(tmp_path, clock, make_tournament):
    path = tmp_path / "tournaments.json"
    writer = CacheStore(ttl=timedelta(minutes=10), persistence=JsonCachePersistence(str(path)), clock=clock)
    writer.set("old", [make_tournament()])
    clock.advance(minutes=5)
    writer.set("fresh", [make_tournament()])
    await writer.flush()
    clock.advance(minutes=6)

    reader = CacheStore(persistence=JsonCachePersistence(str(path)), clock=clock)

    assert await reader.load() == 1
    assert reader.keys() == ["fresh"]


async def test_unreadable_or_foreign_files_are_ignored(tmp_path):
    garbage = tmp_path / "garbage.json"
    garbage.write_text("{not json")
    future = tmp_path / "future.json"
    future.write_text(json.dumps({"version": 99, "entries": {}}))

    assert await JsonCachePersistence(str(garbage)).load() == {}
    assert await JsonCachePersistence(str(future)).load() == {}
    assert await JsonCachePersistence(str(tmp_path / "missing.json")).load() == {}


async def test_malformed_entry_is_skipped(tmp_path, clock, make_tournament):
    path = tmp_path / "tournaments.json"
    cache = CacheStore(persistence=JsonCachePersistence(str(path)), clock=clock)
    cache.set("good", [make_tournament()])
    await cache.flush()
    document = json.loads(path.read_text())
    document["entries"]["bad"] = {"tournaments": [{"id": "x"}], "created_at": "2024-01-01T00:00:00+00:00",
                                  "expires_at": "2099-01-01T00:00:00+00:00"}
    path.write_text(json.dumps(document))

    entries = await JsonCachePersistence(str(path)).load()

    assert list(entries) == ["good"]
