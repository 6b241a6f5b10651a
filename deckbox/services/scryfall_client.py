"""
Scryfall card lookup.

Fetches a single card record by fuzzy name from Scryfall's /cards/named
endpoint. All requests made through one client pass a shared rate limiter,
and throttled or dropped requests are retried on a fixed policy:

- HTTP 429: up to ``max_retries`` retries, sleeping 2**attempt seconds
- connectivity loss on the first attempt: one retry
- HTTP 404: no retry, the provider's reason is surfaced

API docs: https://scryfall.com/docs/api/cards/named
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import Self

import httpx
from pydantic import ValidationError

from deckbox.config import settings
from deckbox.models.card_record import CardRecord

logger = logging.getLogger(__name__)

DEFAULT_NOT_FOUND_MESSAGE = "Card not found"


class CardLookupError(Exception):
    """Base class for provider lookup failures."""

    pass


class CardNotFoundError(CardLookupError):
    """The provider has no fuzzy match for the requested name."""

    def __init__(self, name: str, reason: str = DEFAULT_NOT_FOUND_MESSAGE):
        self.name = name
        self.reason = reason
        super().__init__(reason)


class RateLimitedError(CardLookupError):
    """The provider kept throttling after the local retry budget was spent."""

    def __init__(self, name: str, attempts: int):
        self.name = name
        self.attempts = attempts
        super().__init__(f"Rate limited by Scryfall after {attempts} attempts for '{name}'")


class CardNetworkError(CardLookupError):
    """Transport failure, unexpected status, or undecodable response."""

    pass


class RateLimiter:
    """
    Single shared gate enforcing a minimum interval between request starts.

    The wait check and the timestamp update happen under one lock, so
    concurrent callers queue behind each other instead of all observing an
    elapsed interval and firing together.
    """

    def __init__(
        self,
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_interval < 0:
            raise ValueError(f"min_interval must be non-negative, got {min_interval}")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_start: float | None = None

    async def wait(self) -> None:
        """Block until a request may start, then record its start time."""
        async with self._lock:
            if self._last_start is not None:
                remaining = self._last_start + self.min_interval - self._clock()
                if remaining > 0:
                    await self._sleep(remaining)
            self._last_start = self._clock()


class ScryfallClient:
    """
    Card record source backed by Scryfall.

    The rate limiter is injected so one limiter can be shared by every
    lookup in the application. When no ``http_client`` is given the client
    creates and owns one.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        *,
        base_url: str = settings.scryfall_base_url,
        user_agent: str = settings.user_agent,
        timeout: float = settings.request_timeout,
        max_retries: int = settings.max_rate_limit_retries,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.rate_limiter = rate_limiter
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self._sleep = sleep
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_card(self, name: str) -> CardRecord:
        """
        Fetch a card record by fuzzy name.

        Args:
            name: Card name as typed or scanned; need not be exact

        Returns:
            The provider's record for the best match

        Raises:
            CardNotFoundError: No fuzzy match (HTTP 404)
            RateLimitedError: Still throttled after all retries
            CardNetworkError: Transport failure or unexpected response
        """
        url = f"{self.base_url}/cards/named"
        attempt = 0

        while True:
            await self.rate_limiter.wait()

            try:
                response = await self._client.get(
                    url, params={"fuzzy": name}, headers=self._headers
                )
            except httpx.NetworkError as e:
                if attempt == 0:
                    logger.warning("Connection lost fetching '%s', retrying once: %s", name, e)
                    attempt += 1
                    continue
                raise CardNetworkError(f"Network error fetching '{name}': {e}") from e
            except httpx.HTTPError as e:
                raise CardNetworkError(f"Network error fetching '{name}': {e}") from e

            if response.status_code == 429:
                if attempt >= self.max_retries:
                    raise RateLimitedError(name, attempt + 1)
                delay = 2**attempt
                logger.warning(
                    "Rate limited fetching '%s' (attempt %d), backing off %ds",
                    name,
                    attempt + 1,
                    delay,
                )
                await self._sleep(delay)
                attempt += 1
                continue

            if response.status_code == 404:
                reason = _not_found_reason(response)
                logger.info("No card found for '%s': %s", name, reason)
                raise CardNotFoundError(name, reason)

            if response.status_code != 200:
                raise CardNetworkError(
                    f"Unexpected status {response.status_code} fetching '{name}'"
                )

            try:
                return CardRecord.model_validate(response.json())
            except (ValueError, ValidationError) as e:
                raise CardNetworkError(f"Malformed card record for '{name}': {e}") from e


def _not_found_reason(response: httpx.Response) -> str:
    """Extract the ``details`` message from a 404 payload."""
    try:
        payload = response.json()
    except ValueError:
        return DEFAULT_NOT_FOUND_MESSAGE

    if isinstance(payload, dict):
        details = payload.get("details")
        if isinstance(details, str) and details:
            return details
    return DEFAULT_NOT_FOUND_MESSAGE
