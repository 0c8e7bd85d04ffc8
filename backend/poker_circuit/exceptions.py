"""Exception hierarchy for the poker circuit data service."""

from typing import Optional


class PokerCircuitError(Exception):
    """Base exception for all poker circuit errors."""
    pass


class SourceUnavailableError(PokerCircuitError):
    """
    A source could not complete a liveness check or a fetch.

    Recorded against the source's health; never propagated to callers
    of the aggregate query.
    """

    def __init__(self, source_name: str, message: str, status_code: Optional[int] = None):
        self.source_name = source_name
        self.message = message
        self.status_code = status_code
        super().__init__(f"[{source_name}] {message}")


class MalformedRecordError(PokerCircuitError):
    """A single entry from a source could not be normalized."""

    def __init__(self, message: str, source_name: Optional[str] = None):
        self.source_name = source_name
        prefix = f"[{source_name}] " if source_name else ""
        super().__init__(f"{prefix}{message}")


class InvalidFilterError(PokerCircuitError, ValueError):
    """Filter combination violates the query contract."""
    pass
