"""PokerAtlas REST API source - primary tournament listing provider."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from ..exceptions import MalformedRecordError, SourceUnavailableError
from .base import HttpTournamentSource
from .models import (
    Address,
    Coordinates,
    PriceRange,
    StructureType,
    TimeRange,
    TournamentRecord,
    TournamentStatus,
    TournamentStructure,
    Venue,
    parse_iso_datetime,
)
from .rate_limit import RateLimitStatus


STATUS_MAP = {
    "scheduled": TournamentStatus.UPCOMING,
    "running": TournamentStatus.RUNNING,
    "completed": TournamentStatus.COMPLETED,
    "cancelled": TournamentStatus.CANCELLED,
}


class PokerAtlasSource(HttpTournamentSource):
    """Tournament listings from the PokerAtlas JSON API."""

    name = "poker_atlas"
    display_name = "PokerAtlas"
    base_url = "https://api.pokeratlas.com/v1"
    probe_path = "/status"
    page_size = 100
    max_pages = 10

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        requests_per_second: float = 2.0,
        probe_timeout: float = 5.0,
        request_timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize PokerAtlas source.

        Args:
            api_key: Optional bearer token
            base_url: Override for the API base URL
            requests_per_second: Self-imposed request rate
            probe_timeout: Timeout for the status probe
            request_timeout: Timeout for data requests
            transport: Optional httpx transport
            logger: Optional logger
        """
        self.api_key = api_key
        self._server_rate_limit: Optional[RateLimitStatus] = None
        super().__init__(
            base_url=base_url,
            requests_per_second=requests_per_second,
            probe_timeout=probe_timeout,
            request_timeout=request_timeout,
            transport=transport,
            logger=logger
        )

    def default_headers(self) -> dict:
        headers = {"Accept": "application/json", "User-Agent": "PokerCircuitCoordinator/1.0"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def on_response(self, response: httpx.Response) -> None:
        """Track the server-side rate limit advertised in response headers."""
        remaining = response.headers.get("x-ratelimit-remaining")
        reset = response.headers.get("x-ratelimit-reset")
        if remaining is None and reset is None:
            return

        try:
            self._server_rate_limit = RateLimitStatus(
                remaining=int(remaining) if remaining is not None else None,
                reset_at=datetime.fromtimestamp(int(reset), tz=timezone.utc) if reset is not None else None,
            )
        except ValueError:
            self.logger.warning(f"Ignoring unparseable rate-limit headers: {remaining!r}, {reset!r}")

    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        return self._server_rate_limit

    async def check_availability(self) -> bool:
        """Probe the API status endpoint."""
        client = self._get_client()
        try:
            response = await client.get(self.probe_path, timeout=self.probe_timeout)
        except httpx.HTTPError as e:
            raise SourceUnavailableError(self.name, f"Status check failed: {e!r}") from e

        self.on_response(response)
        if response.status_code in (401, 403):
            raise SourceUnavailableError(self.name, "API key rejected", status_code=response.status_code)
        if response.status_code == 429:
            raise SourceUnavailableError(self.name, "Rate limit exhausted", status_code=429)
        return response.status_code < 400

    async def fetch(
        self,
        time_range: TimeRange,
        price_range: Optional[PriceRange] = None
    ) -> List[TournamentRecord]:
        """
        Fetch tournaments in the date range, following pagination.

        Raises:
            SourceUnavailableError: On request failure or an unexpected payload
        """
        params: Dict[str, Any] = {
            "start_date": time_range.start.date().isoformat(),
            "end_date": time_range.end.date().isoformat(),
            "per_page": self.page_size,
            "format": "json",
        }
        if price_range and price_range.minimum is not None:
            params["min_buy_in"] = str(price_range.minimum)
        if price_range and price_range.maximum is not None:
            params["max_buy_in"] = str(price_range.maximum)

        events: List[Dict[str, Any]] = []
        for page in range(1, self.max_pages + 1):
            response = await self.request("GET", "/tournaments", params={**params, "page": page})
            data = self._payload(response, "events")

            events.extend(data["events"])
            if not data.get("has_more"):
                break

        self.logger.info(f"Fetched {len(events)} PokerAtlas events")
        return self.normalize_entries(events, self._map_event)

    async def get_tournaments_by_venue(self, venue_id: str) -> List[TournamentRecord]:
        """
        Fetch the listings of one PokerAtlas venue.

        Raises:
            SourceUnavailableError: On request failure or an unexpected payload
        """
        response = await self.request(
            "GET", "/tournaments", params={"venue_id": venue_id, "per_page": 50, "format": "json"}
        )
        data = self._payload(response, "events")
        return self.normalize_entries(data["events"], self._map_event)

    async def get_tournament_by_id(self, event_id: str) -> Optional[TournamentRecord]:
        """
        Fetch a single event by its PokerAtlas id.

        Returns:
            The record, or None if the event does not exist or is malformed

        Raises:
            SourceUnavailableError: On any other request failure
        """
        try:
            response = await self.request("GET", f"/tournaments/{event_id}")
        except SourceUnavailableError as e:
            if e.status_code == 404:
                return None
            raise

        data = self._payload(response, "event")
        try:
            return self._map_event(data["event"])
        except MalformedRecordError as e:
            self.logger.warning(f"Dropping malformed PokerAtlas event {event_id!r}: {e}")
            return None

    def _payload(self, response: httpx.Response, field: str) -> Dict[str, Any]:
        try:
            data = response.json()
            data[field]
        except (ValueError, KeyError, TypeError) as e:
            raise SourceUnavailableError(self.name, f"Unexpected response payload: {e!r}") from e
        return data

    def _map_event(self, event: Dict[str, Any]) -> TournamentRecord:
        """
        Map a PokerAtlas event to a TournamentRecord.

        Raises:
            MalformedRecordError: If required fields are missing or invalid
        """
        try:
            venue_data = event["venue"]
            state = venue_data.get("state", "")
            latitude = venue_data.get("latitude")
            longitude = venue_data.get("longitude")
            venue = Venue(
                id=f"pa-{venue_data['id']}",
                name=venue_data["name"],
                address=Address(
                    street=venue_data.get("address", ""),
                    city=venue_data.get("city", ""),
                    state=state,
                    postal_code=venue_data.get("zip", ""),
                ),
                coordinates=(
                    Coordinates(latitude=float(latitude), longitude=float(longitude))
                    if latitude is not None and longitude is not None else None
                ),
                timezone=self.normalizer.timezone_for_state(state),
            )

            series = event.get("series") or {}
            circuit = self.normalizer.determine_circuit(
                series.get("name"), series.get("organizer"), id_prefix="pa"
            )
            if series.get("website"):
                circuit.website = series["website"]

            structure_data = event.get("structure") or {}
            structure = TournamentStructure(
                type=StructureType(structure_data.get("type") or "reentry"),
                starting_stack=int(structure_data.get("starting_stack") or 20000),
                level_duration=int(structure_data.get("level_duration") or 40),
            )

            buy_in = Decimal(str(event["buy_in"]))
            deadline = event.get("registration_deadline")
            guarantee = event.get("guaranteed_prize")

            return TournamentRecord(
                id=f"pa-{event['id']}",
                name=event["name"],
                circuit=circuit,
                venue=venue,
                buy_in=buy_in,
                start_date=parse_iso_datetime(event["start_date"]),
                end_date=parse_iso_datetime(event.get("end_date") or event["start_date"]),
                estimated_field=int(event.get("estimated_entries") or self.normalizer.estimate_field(buy_in)),
                structure=structure,
                prize_guarantee=Decimal(str(guarantee)) if guarantee is not None else None,
                status=STATUS_MAP.get(event.get("status"), TournamentStatus.UPCOMING),
                registration_deadline=parse_iso_datetime(deadline) if deadline else None,
                late_registration_levels=event.get("late_registration_levels"),
                source=self.name,
            )
        except MalformedRecordError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError, ArithmeticError) as e:
            event_id = event.get("id") if isinstance(event, dict) else None
            raise MalformedRecordError(f"Event {event_id!r}: {e!r}", self.name) from e
