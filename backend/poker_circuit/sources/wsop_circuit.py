"""WSOP Circuit schedule scraper."""

from .html_cards import CardListingSource
from .models import Circuit, CircuitCategory


class WsopCircuitSource(CardListingSource):
    """Circuit stops listed on the WSOP website (no public API)."""

    name = "wsop_circuit"
    display_name = "WSOP Circuit"
    base_url = "https://www.wsop.com"
    probe_path = "/circuits"
    categories = frozenset({CircuitCategory.MAJOR_TOUR})
    fetch_timeout = 30.0

    id_prefix = "wsop"
    listing_paths = ["/circuits"]
    card_selector = ".circuit-stop, .event-card, .tournament-card"
    field_selectors = {
        "name": ".event-name, .tournament-name, h3, h4",
        "venue": ".venue-name, .location",
        "location": ".city-state, .location-details",
        "dates": ".date, .event-dates",
        "buy_in": ".buy-in, .buyin, .price",
        "guarantee": ".guarantee, .guaranteed",
    }
    default_duration_days = 3
    starting_stack = 25000

    def circuit(self) -> Circuit:
        return Circuit(
            id="wsop-circuit",
            name="World Series of Poker Circuit",
            organizer="Caesars Entertainment",
            category=CircuitCategory.MAJOR_TOUR,
            website="https://www.wsop.com",
        )
