"""CardPlayer tournament schedule scraper."""

from datetime import timedelta
from typing import Dict, List, Optional

from selectolax.lexbor import LexborHTMLParser

from ..exceptions import MalformedRecordError
from .base import HttpTournamentSource
from .models import PriceRange, TimeRange, TournamentRecord, TournamentStatus, utc_now
from .normalizer import slugify


class CardPlayerSource(HttpTournamentSource):
    """
    Series schedules from CardPlayer's tournament tables.

    Rows follow the layout Date | Series | Casino | Location, with an
    optional fifth buy-in column. Series of any circuit are listed.
    """

    name = "card_player"
    display_name = "CardPlayer"
    base_url = "https://www.cardplayer.com"
    probe_path = "/poker-tournaments"
    fetch_timeout = 30.0

    table_selector = "table"
    default_duration_days = 7
    default_buy_in_text = "$0"

    async def fetch(
        self,
        time_range: TimeRange,
        price_range: Optional[PriceRange] = None
    ) -> List[TournamentRecord]:
        response = await self.request("GET", "/poker-tournaments")
        rows = self.extract_rows(response.text)
        records = self.normalize_entries(rows, self._map_row)
        return [r for r in records if time_range.contains(r.start_date)]

    def extract_rows(self, html: str) -> List[Dict[str, str]]:
        """Collect the cell texts of every data row in tournament tables."""
        parser = LexborHTMLParser(html)
        rows = []
        for table in parser.css(self.table_selector):
            table_text = table.text().lower()
            if not any(word in table_text for word in ("casino", "tournament", "poker")):
                continue

            for row in table.css("tr"):
                if row.css_first("th") is not None:
                    continue
                cells = [cell.text(strip=True) for cell in row.css("td")]
                if len(cells) < 4:
                    continue
                rows.append({
                    "dates": cells[0],
                    "series": cells[1],
                    "venue": cells[2],
                    "location": cells[3],
                    "buy_in": cells[4] if len(cells) > 4 else "",
                })
        return rows

    def _map_row(self, row: Dict[str, str]) -> Optional[TournamentRecord]:
        series, venue_name = row["series"], row["venue"]
        if not series or not venue_name:
            return None

        dates = self.normalizer.parse_date_range(row["dates"])
        if dates is None:
            raise MalformedRecordError(f"Unparseable dates {row['dates']!r} for {series!r}", self.name)
        start, end = dates
        end = end or start + timedelta(days=self.default_duration_days)

        buy_in = self.normalizer.parse_amount(row.get("buy_in") or self.default_buy_in_text)
        if buy_in is None:
            raise MalformedRecordError(f"Unparseable buy-in {row['buy_in']!r} for {series!r}", self.name)
        now = utc_now()
        status = TournamentStatus.UPCOMING if start > now else (
            TournamentStatus.RUNNING if end >= now else TournamentStatus.COMPLETED
        )

        return TournamentRecord(
            id=f"cp-{slugify(series)}-{slugify(venue_name)}-{start.date().isoformat()}",
            name=series,
            circuit=self.normalizer.determine_circuit(series, id_prefix="cp"),
            venue=self.normalizer.build_venue(venue_name, row["location"]),
            buy_in=buy_in,
            start_date=start,
            end_date=end,
            estimated_field=self.normalizer.estimate_field(buy_in),
            status=status,
            source=self.name,
        )
