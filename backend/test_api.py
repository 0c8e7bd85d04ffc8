"""Tests for the HTTP facade."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from main import create_app
from poker_circuit.config import Settings
from poker_circuit.exceptions import SourceUnavailableError
from poker_circuit.sources import CircuitCategory


@pytest.fixture
def sources(make_source, make_tournament):
    atlas = make_source("atlas", [
        make_tournament(id="pa-1", name="Main Event", buy_in=1700),
        make_tournament(id="pa-2", name="PLO Bounty", venue="Bellagio", buy_in=600,
                        start=datetime(2024, 2, 20, 18, tzinfo=timezone.utc)),
        make_tournament(id="pa-3", name="Deepstack", venue="Borgata", city="Atlantic City", state="NJ",
                        buy_in=400, category=CircuitCategory.REGIONAL_TOUR, circuit_name="Borgata Poker Open",
                        start=datetime(2024, 3, 1, 18, tzinfo=timezone.utc)),
    ])
    broken = make_source("broken", error=SourceUnavailableError("broken", "HTTP 502"))
    return [atlas, broken]


@pytest.fixture
def client(sources, make_service):
    app = create_app(settings=Settings(_env_file=None), service=make_service(sources))
    with TestClient(app) as test_client:
        yield test_client


def test_health_endpoint(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_list_tournaments_with_meta(client, sources):
    first = client.get("/api/tournaments").json()
    second = client.get("/api/tournaments").json()

    assert [t["id"] for t in first["tournaments"]] == ["pa-1", "pa-2", "pa-3"]
    assert first["tournaments"][0]["buy_in"] == "1700"
    assert first["meta"]["total"] == 3
    assert first["meta"]["fromCache"] is False
    assert first["meta"]["lastUpdated"] is not None
    stats = {s["source_name"]: s for s in first["meta"]["sources"]}
    assert stats["atlas"]["count"] == 3
    assert stats["broken"]["error"] == "[broken] HTTP 502"

    assert second["meta"]["fromCache"] is True
    assert sources[0].fetch_calls == 1


def test_query_parameters_become_filters(client):
    by_state = client.get("/api/tournaments", params={"states": "nj"}).json()
    by_price = client.get("/api/tournaments", params={"minBuyIn": "500", "maxBuyIn": "1000"}).json()
    by_circuit = client.get("/api/tournaments", params={"circuits": "regional_tour,independent"}).json()
    by_game = client.get("/api/tournaments", params={"gameType": "plo"}).json()
    by_search = client.get("/api/tournaments", params={"search": "bellagio"}).json()
    limited = client.get("/api/tournaments", params={"limit": 1}).json()

    assert [t["id"] for t in by_state["tournaments"]] == ["pa-3"]
    assert [t["id"] for t in by_price["tournaments"]] == ["pa-2"]
    assert [t["id"] for t in by_circuit["tournaments"]] == ["pa-3"]
    assert [t["id"] for t in by_game["tournaments"]] == ["pa-2"]
    assert [t["id"] for t in by_search["tournaments"]] == ["pa-2"]
    assert [t["id"] for t in limited["tournaments"]] == ["pa-1"]


def test_date_only_end_covers_the_whole_day(client):
    response = client.get("/api/tournaments", params={"startDate": "2024-02-15", "endDate": "2024-02-20"})

    assert [t["id"] for t in response.json()["tournaments"]] == ["pa-1", "pa-2"]


@pytest.mark.parametrize("params", [
    {"minBuyIn": "500", "maxBuyIn": "100"},
    {"startDate": "2024-03-01", "endDate": "2024-02-01"},
    {"startDate": "next tuesday"},
    {"circuits": "world_series"},
    {"gameType": "stud"},
    {"limit": 0},
])
def test_invalid_filters_return_400(client, params):
    response = client.get("/api/tournaments", params=params)

    assert response.status_code == 400
    assert response.json()["detail"]


def test_refresh_refetches(client, sources):
    client.get("/api/tournaments")

    response = client.post("/api/tournaments/refresh")

    assert response.status_code == 200
    assert response.json()["status"] == "refreshed"
    assert sources[0].fetch_calls == 2


def test_sources_health(client):
    client.get("/api/tournaments")

    health = client.get("/api/sources/health").json()["sources"]

    assert [h["source_name"] for h in health] == ["atlas", "broken"]
    assert health[0]["state"] == "available"
    assert health[1]["state"] == "unavailable"
    assert health[1]["error"] == "[broken] HTTP 502"
