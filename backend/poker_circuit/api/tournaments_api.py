"""Tournament and source health API endpoints."""

import logging
from datetime import datetime, time, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from ..aggregator import TournamentDataService, TournamentFilters
from ..exceptions import InvalidFilterError

logger = logging.getLogger(__name__)


# Pydantic models for API responses

class SourceStats(BaseModel):
    """Per-source outcome of the round that produced a result."""
    source_name: str
    count: int
    error: Optional[str] = None
    duration_ms: float


class QueryMeta(BaseModel):
    """Metadata accompanying a tournament list."""
    total: int
    lastUpdated: Optional[datetime] = None
    fromCache: bool
    stale: bool = False
    sources: List[SourceStats] = []


class TournamentListResponse(BaseModel):
    """Response model for tournament queries."""
    tournaments: List[Dict[str, Any]]
    meta: QueryMeta


class SourceHealthResponse(BaseModel):
    """Response model for the source health snapshot."""
    sources: List[Dict[str, Any]]
    timestamp: datetime


router = APIRouter(prefix="/api", tags=["tournaments"])


def get_service(request: Request) -> TournamentDataService:
    """Tournament service built by the application lifespan."""
    return request.app.state.tournament_service


def _split(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _parse_date(value: Optional[str], name: str, end_of_day: bool = False) -> Optional[datetime]:
    """Parse an ISO date or datetime; bare dates cover the whole day."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise InvalidFilterError(f"{name} must be an ISO-8601 date, got {value!r}") from e
    if len(text) == 10:
        parsed = datetime.combine(parsed.date(), time.max if end_of_day else time.min)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@router.get("/tournaments", response_model=TournamentListResponse)
async def get_tournaments(
    startDate: Optional[str] = Query(None, description="ISO date or datetime"),
    endDate: Optional[str] = Query(None, description="ISO date or datetime"),
    minBuyIn: Optional[Decimal] = None,
    maxBuyIn: Optional[Decimal] = None,
    circuits: Optional[str] = Query(None, description="Comma-separated circuit categories"),
    states: Optional[str] = Query(None, description="Comma-separated state codes"),
    gameType: Optional[str] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    refresh: bool = False,
    service: TournamentDataService = Depends(get_service)
) -> TournamentListResponse:
    """Get the aggregated tournament list."""
    try:
        filters = TournamentFilters(
            start_date=_parse_date(startDate, "startDate"),
            end_date=_parse_date(endDate, "endDate", end_of_day=True),
            min_buy_in=minBuyIn,
            max_buy_in=maxBuyIn,
            circuits=frozenset(_split(circuits)),
            states=frozenset(_split(states)),
            game_type=gameType or "all",
            search=search,
            max_results=limit,
            force_refresh=refresh,
        )
    except InvalidFilterError as e:
        logger.info(f"Rejected tournament query: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    result = await service.query(filters)

    return TournamentListResponse(
        tournaments=[t.to_dict() for t in result.tournaments],
        meta=QueryMeta(
            total=result.total,
            lastUpdated=result.last_updated,
            fromCache=result.from_cache,
            stale=result.stale,
            sources=[SourceStats(**s.to_dict()) for s in result.sources],
        ),
    )


@router.post("/tournaments/refresh")
async def refresh_tournaments(service: TournamentDataService = Depends(get_service)) -> Dict[str, Any]:
    """Clear the cache, re-probe sources and re-fetch everything."""
    await service.refresh_all_data()
    health = service.get_data_source_health()
    return {
        "status": "refreshed",
        "available_sources": sum(1 for h in health if h.available),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/sources/health", response_model=SourceHealthResponse)
async def get_sources_health(service: TournamentDataService = Depends(get_service)) -> SourceHealthResponse:
    """Get last known health of every source."""
    return SourceHealthResponse(
        sources=[h.to_dict() for h in service.get_data_source_health()],
        timestamp=datetime.now(timezone.utc),
    )
