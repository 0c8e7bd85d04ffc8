"""Collapse records that describe the same tournament."""

import logging
from typing import Iterable, List, Optional

from ..sources.models import TournamentRecord


def dedup_key(tournament: TournamentRecord) -> str:
    """Lowercased name, lowercased venue name and the UTC calendar date of the start."""
    return "|".join((
        tournament.name.lower(),
        tournament.venue.name.lower(),
        tournament.start_date.date().isoformat(),
    ))


class Deduplicator:
    """
    Order-preserving deduplication.

    The first record seen for a key wins; callers pass records in
    source priority order so the highest-priority source's version is
    kept. No fuzzy matching is attempted.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def deduplicate(self, tournaments: Iterable[TournamentRecord]) -> List[TournamentRecord]:
        seen = set()
        unique = []
        duplicates = 0
        for tournament in tournaments:
            key = dedup_key(tournament)
            if key in seen:
                duplicates += 1
                continue
            seen.add(key)
            unique.append(tournament)

        if duplicates:
            self.logger.debug(f"Removed {duplicates} duplicate tournaments")
        return unique
