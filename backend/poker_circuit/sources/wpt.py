"""World Poker Tour schedule scraper."""

from .html_cards import CardListingSource
from .models import Circuit, CircuitCategory


class WptSource(CardListingSource):
    """WPT main tour stops, falling back to the schedule page."""

    name = "wpt"
    display_name = "WPT"
    base_url = "https://www.worldpokertour.com"
    probe_path = "/tournaments"
    categories = frozenset({CircuitCategory.MAJOR_TOUR})
    fetch_timeout = 30.0

    id_prefix = "wpt"
    listing_paths = ["/tournaments", "/schedule"]
    card_selector = ".tournament-card, .event-card, .tour-event, .schedule-item"
    field_selectors = {
        "name": ".event-title, .tournament-name, h3, h2",
        "venue": ".venue, .casino-name",
        "location": ".location, .city",
        "dates": ".dates, .event-date, .date",
        "buy_in": ".buy-in, .buyin",
        "guarantee": ".guarantee, .prize-pool",
    }
    default_duration_days = 5
    starting_stack = 40000

    def circuit(self) -> Circuit:
        return Circuit(
            id="wpt-main-tour",
            name="World Poker Tour",
            organizer="WPT Enterprises",
            category=CircuitCategory.MAJOR_TOUR,
            website="https://www.worldpokertour.com",
        )
