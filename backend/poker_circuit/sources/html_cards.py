"""Base for sources that scrape tournament cards out of schedule pages."""

from abc import abstractmethod
from datetime import timedelta
from typing import Dict, List, Optional

from selectolax.lexbor import LexborHTMLParser, LexborNode

from ..exceptions import MalformedRecordError, SourceUnavailableError
from .base import HttpTournamentSource
from .models import (
    Circuit,
    PriceRange,
    TimeRange,
    TournamentRecord,
    TournamentStatus,
    TournamentStructure,
    utc_now,
)
from .normalizer import slugify


class CardListingSource(HttpTournamentSource):
    """
    Scrapes one card per tournament from a schedule page.

    Subclasses provide the listing paths, selectors and circuit; paths
    are tried in order until one yields cards.
    """

    id_prefix: str = "html"
    listing_paths: List[str] = ["/"]
    card_selector: str = ".tournament-card"
    field_selectors: Dict[str, str] = {
        "name": ".event-name, h3, h4",
        "venue": ".venue-name",
        "location": ".location",
        "dates": ".date",
        "buy_in": ".buy-in",
        "guarantee": ".guarantee",
    }
    default_duration_days: int = 3
    starting_stack: int = 25000

    @abstractmethod
    def circuit(self) -> Circuit:
        """Circuit every card on this site belongs to."""
        pass

    async def fetch(
        self,
        time_range: TimeRange,
        price_range: Optional[PriceRange] = None
    ) -> List[TournamentRecord]:
        """
        Scrape the schedule pages and keep events starting within the range.

        Raises:
            SourceUnavailableError: If every listing path failed to load
        """
        last_error: Optional[SourceUnavailableError] = None
        for path in self.listing_paths:
            try:
                response = await self.request("GET", path)
            except SourceUnavailableError as e:
                self.logger.warning(f"{self.display_name} page {path} failed: {e}")
                last_error = e
                continue

            cards = self.extract_cards(response.text)
            if not cards:
                self.logger.info(f"No tournament cards found on {self.display_name} page {path}")
                continue

            records = self.normalize_entries(cards, self._map_card)
            in_range = [r for r in records if time_range.contains(r.start_date)]
            self.logger.info(
                f"Scraped {len(records)} {self.display_name} events from {path}, {len(in_range)} in range"
            )
            return in_range

        if last_error is not None:
            raise last_error
        return []

    def extract_cards(self, html: str) -> List[Dict[str, str]]:
        """Pull the raw text fields out of every card on the page."""
        parser = LexborHTMLParser(html)
        cards = []
        for node in parser.css(self.card_selector):
            cards.append({
                field_name: self._text(node, selector)
                for field_name, selector in self.field_selectors.items()
            })
        return cards

    @staticmethod
    def _text(node: LexborNode, selector: str) -> str:
        found = node.css_first(selector)
        return found.text(strip=True) if found is not None else ""

    def _map_card(self, card: Dict[str, str]) -> TournamentRecord:
        name = card.get("name", "")
        venue_name = card.get("venue", "")
        if not name or not venue_name:
            raise MalformedRecordError(f"Card missing name or venue: {card!r}", self.name)

        dates = self.normalizer.parse_date_range(card.get("dates"))
        if dates is None:
            raise MalformedRecordError(f"Unparseable dates {card.get('dates')!r} for {name!r}", self.name)
        start, end = dates
        end = end or start + timedelta(days=self.default_duration_days)

        buy_in = self.normalizer.parse_amount(card.get("buy_in"))
        if not buy_in:
            raise MalformedRecordError(f"Missing buy-in for {name!r}", self.name)

        now = utc_now()
        if start > now:
            status = TournamentStatus.UPCOMING
        elif end >= now:
            status = TournamentStatus.RUNNING
        else:
            status = TournamentStatus.COMPLETED

        return TournamentRecord(
            id=f"{self.id_prefix}-{slugify(name)}-{slugify(venue_name)}-{start.date().isoformat()}",
            name=name,
            circuit=self.circuit(),
            venue=self.normalizer.build_venue(venue_name, card.get("location")),
            buy_in=buy_in,
            start_date=start,
            end_date=end,
            estimated_field=self.normalizer.estimate_field(buy_in),
            structure=TournamentStructure(starting_stack=self.starting_stack),
            prize_guarantee=self.normalizer.parse_amount(card.get("guarantee")),
            status=status,
            late_registration_levels=10,
            source=self.name,
        )
