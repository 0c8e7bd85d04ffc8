"""Application configuration."""

from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Server configuration
    app_name: str = "Poker Circuit Data API"
    debug: bool = False
    log_level: str = "INFO"

    # Source configuration, in merge priority order
    enabled_sources: str = "poker_atlas,wsop_circuit,wpt,card_player"  # Comma-separated list

    # PokerAtlas settings
    poker_atlas_api_key: Optional[str] = None
    poker_atlas_base_url: str = "https://api.pokeratlas.com/v1"
    poker_atlas_requests_per_second: float = 2.0

    # Scraper settings
    scraper_requests_per_second: float = 0.5

    # Health settings
    health_check_interval_minutes: float = 5
    probe_timeout_seconds: float = 5

    # Aggregation settings
    fetch_timeout_seconds: float = 20
    lookahead_days: int = 365

    # Cache settings
    cache_ttl_minutes: float = 30
    cache_file: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env

    @property
    def source_names(self) -> List[str]:
        return [name.strip().lower() for name in self.enabled_sources.split(",") if name.strip()]
