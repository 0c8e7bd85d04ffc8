"""Abstract base classes for tournament data sources."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, FrozenSet, Iterable, List, Optional

import httpx

from ..exceptions import MalformedRecordError, SourceUnavailableError
from .models import CircuitCategory, PriceRange, TimeRange, TournamentRecord
from .normalizer import ListingNormalizer
from .rate_limit import RateLimiter, RateLimitStatus


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class BaseTournamentSource(ABC):
    """
    Abstract base class for all tournament listing sources.

    A source is a stateless request executor: it fetches listings and
    answers liveness probes. The only state it may hold is its own
    rate-limit bookkeeping and transport resources released by close().
    """

    # Registry name; also used as the health key
    name: str = "base"
    display_name: str = "Base Source"
    # Circuit categories this source can produce; None means mixed
    categories: Optional[FrozenSet[CircuitCategory]] = None
    fetch_timeout: Optional[float] = None

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize the source with optional logger."""
        self.logger = logger or logging.getLogger(f"sources.{self.name}")

    @abstractmethod
    async def fetch(
        self,
        time_range: TimeRange,
        price_range: Optional[PriceRange] = None
    ) -> List[TournamentRecord]:
        """
        Fetch current listings.

        Args:
            time_range: Window of tournament start dates of interest
            price_range: Optional buy-in bounds a source may push upstream

        Returns:
            List of normalized TournamentRecord objects

        Raises:
            SourceUnavailableError: If the fetch as a whole failed
        """
        pass

    @abstractmethod
    async def check_availability(self) -> bool:
        """
        Cheap liveness probe, independent of fetch.

        Returns:
            bool: True if the source is reachable
        """
        pass

    async def close(self) -> None:
        """Release held resources. Safe to call repeatedly."""
        return None

    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        """Current rate-limit state, if the source tracks one."""
        return None

    def serves_categories(self, requested: Optional[Iterable[CircuitCategory]]) -> bool:
        """Whether this source can produce any of the requested circuit categories."""
        if not requested or self.categories is None:
            return True
        return bool(self.categories.intersection(requested))

    def normalize_entries(
        self,
        entries: Iterable[Any],
        normalize: Callable[[Any], Optional[TournamentRecord]]
    ) -> List[TournamentRecord]:
        """
        Normalize raw entries, dropping the malformed ones.

        Args:
            entries: Raw entries (JSON dicts, HTML nodes, ...)
            normalize: Callable returning a record, None to skip, or
                raising MalformedRecordError; other data errors
                raised while normalizing also drop the entry

        Returns:
            Records that normalized cleanly
        """
        records = []
        dropped = 0
        for entry in entries:
            try:
                record = normalize(entry)
            except MalformedRecordError as e:
                dropped += 1
                self.logger.warning(f"Dropping malformed entry from {self.name}: {e}")
                continue
            except (TypeError, ValueError, AttributeError, ArithmeticError) as e:
                dropped += 1
                self.logger.warning(f"Dropping entry from {self.name} that failed to normalize: {e!r}")
                continue
            if record is not None:
                records.append(record)

        if dropped:
            self.logger.info(f"{self.name}: kept {len(records)} entries, dropped {dropped} malformed")
        return records


class HttpTournamentSource(BaseTournamentSource):
    """Source backed by an httpx client with internal rate limiting."""

    base_url: str = ""
    probe_path: str = "/"

    def __init__(
        self,
        base_url: Optional[str] = None,
        requests_per_second: float = 1.0,
        probe_timeout: float = 5.0,
        request_timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize HTTP source.

        Args:
            base_url: Override for the class-level base URL
            requests_per_second: Self-imposed request rate
            probe_timeout: Timeout for check_availability in seconds
            request_timeout: Timeout for data requests in seconds
            transport: Optional httpx transport (used by tests)
            logger: Optional logger
        """
        super().__init__(logger)
        self.base_url = (base_url or self.base_url).rstrip("/")
        self.probe_timeout = probe_timeout
        self.request_timeout = request_timeout
        self.rate_limiter = RateLimiter(requests_per_second=requests_per_second)
        self.normalizer = ListingNormalizer(self.logger)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def default_headers(self) -> dict:
        return {"User-Agent": DEFAULT_USER_AGENT, "Accept": "text/html,application/json"}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.default_headers(),
                timeout=self.request_timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Issue a rate-limited request.

        Raises:
            SourceUnavailableError: On transport errors or non-2xx responses
        """
        await self.rate_limiter.acquire()
        client = self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SourceUnavailableError(
                self.name,
                f"Received HTTP {e.response.status_code} from {e.request.url}",
                status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise SourceUnavailableError(self.name, f"Request to {path} failed: {e!r}") from e

        self.on_response(response)
        return response

    def on_response(self, response: httpx.Response) -> None:
        """Hook for sources that read bookkeeping headers."""
        return None

    async def check_availability(self) -> bool:
        """Probe the source with a HEAD request under a short timeout."""
        client = self._get_client()
        try:
            response = await client.head(self.probe_path, timeout=self.probe_timeout)
        except httpx.HTTPError as e:
            raise SourceUnavailableError(self.name, f"Probe failed: {e!r}") from e

        self.on_response(response)
        if response.status_code >= 400:
            raise SourceUnavailableError(
                self.name,
                f"Probe returned HTTP {response.status_code}",
                status_code=response.status_code
            )
        return True

    async def close(self) -> None:
        """Close the HTTP client if one was opened."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self.logger.info(f"Closed HTTP client for {self.name}")
        self._client = None

    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        return RateLimitStatus(remaining=self.rate_limiter.available_tokens)
