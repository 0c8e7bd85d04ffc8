"""Factory for creating tournament source instances."""

import logging
from typing import Dict, List, Optional, Type

from ..config import Settings
from .base import BaseTournamentSource, HttpTournamentSource
from .card_player import CardPlayerSource
from .poker_atlas import PokerAtlasSource
from .wpt import WptSource
from .wsop_circuit import WsopCircuitSource


class SourceFactory:
    """Factory class for creating tournament source instances."""

    # Registry of available sources
    _sources: Dict[str, Type[BaseTournamentSource]] = {
        "poker_atlas": PokerAtlasSource,
        "wsop_circuit": WsopCircuitSource,
        "wpt": WptSource,
        "card_player": CardPlayerSource,
    }

    @classmethod
    def register_source(cls, name: str, source_class: Type[BaseTournamentSource]) -> None:
        """
        Register a new source type.

        Args:
            name: Name identifier for the source
            source_class: Class that extends BaseTournamentSource
        """
        if not issubclass(source_class, BaseTournamentSource):
            raise TypeError(f"{source_class} must be a subclass of BaseTournamentSource")

        cls._sources[name.lower()] = source_class
        logging.info(f"Registered source: {name}")

    @classmethod
    def create_source(
        cls,
        source_name: str,
        settings: Optional[Settings] = None,
        logger: Optional[logging.Logger] = None
    ) -> BaseTournamentSource:
        """
        Create a source instance by name.

        Args:
            source_name: Name of the source to create
            settings: Settings providing credentials and rates
            logger: Optional logger instance

        Returns:
            Instance of the requested source

        Raises:
            ValueError: If source name is not recognized
        """
        source_name = source_name.lower()

        if source_name not in cls._sources:
            available = ", ".join(cls._sources.keys())
            raise ValueError(
                f"Unknown source '{source_name}'. "
                f"Available sources: {available}"
            )

        settings = settings or Settings()
        source_class = cls._sources[source_name]

        if logger is None:
            logger = logging.getLogger(f"sources.{source_name}")

        if issubclass(source_class, PokerAtlasSource):
            return source_class(
                api_key=settings.poker_atlas_api_key,
                base_url=settings.poker_atlas_base_url,
                requests_per_second=settings.poker_atlas_requests_per_second,
                probe_timeout=settings.probe_timeout_seconds,
                logger=logger
            )
        if issubclass(source_class, HttpTournamentSource):
            return source_class(
                requests_per_second=settings.scraper_requests_per_second,
                probe_timeout=settings.probe_timeout_seconds,
                logger=logger
            )
        return source_class(logger=logger)

    @classmethod
    def list_sources(cls) -> list:
        """
        Get list of available source names.

        Returns:
            List of registered source names
        """
        return list(cls._sources.keys())

    @classmethod
    def create_sources(
        cls,
        source_names: List[str],
        settings: Optional[Settings] = None,
        logger: Optional[logging.Logger] = None
    ) -> List[BaseTournamentSource]:
        """
        Create source instances, preserving the given priority order.

        Unknown or failing sources are logged and skipped.

        Args:
            source_names: Source names in merge priority order
            settings: Settings providing credentials and rates
            logger: Optional logger instance

        Returns:
            List of source instances
        """
        sources = []

        for name in source_names:
            try:
                sources.append(cls.create_source(name, settings, logger))
                logging.info(f"Created source: {name}")
            except (ValueError, TypeError) as e:
                logging.error(f"Failed to create source {name}: {e}")

        return sources
