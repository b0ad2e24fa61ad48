"""
LeagueSight FACEIT API Integration

Rate-limited, retrying async client for FACEIT's public data API.

Every request (retries included) waits for the throttle delay first. The
throttle is shared by all coroutines using the same client, so concurrent
callers start their requests at least one delay apart.

Status handling:
- 200: parsed JSON
- 404: None (the item does not exist, callers skip it)
- 401: AuthenticationError, never retried
- 429: sleep ``rate_limit_multiplier`` x delay and retry until the budget is spent,
       then RateLimitExceeded
- anything else, or a transport error: retry with linearly growing backoff,
  then FaceitApiError
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# FACEIT API base URL
FACEIT_API_BASE = "https://open.faceit.com/data/v4"

# Throttling and retries
DEFAULT_REQUEST_DELAY = 0.5  # seconds
DEFAULT_MAX_RETRIES = 3
RATE_LIMIT_MULTIPLIER = 15
BACKOFF_OFFSET = 5
DEFAULT_TIMEOUT = 10.0


class FaceitApiError(Exception):
    """Upstream request failed after all retries."""

    def __init__(self, message: str, endpoint: str = "", status_code: int | None = None):
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code


class AuthenticationError(FaceitApiError):
    """Upstream rejected the credential (401)."""


class MissingApiKeyError(AuthenticationError):
    """No FACEIT API key is configured."""


class RateLimitExceeded(FaceitApiError):
    """Upstream kept answering 429 until the retry budget was spent."""


class FaceitClient:
    """
    Async client for the FACEIT data API.

    Example:
        >>> async with FaceitClient(api_key="your-api-key") as client:
        ...     player = await client.get_player_by_nickname("s1mple")
        ...     stats = await client.get_match_stats("1-abc...")
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = FACEIT_API_BASE,
        request_delay: float = DEFAULT_REQUEST_DELAY,
        max_retries: int = DEFAULT_MAX_RETRIES,
        rate_limit_multiplier: int = RATE_LIMIT_MULTIPLIER,
        timeout: float = DEFAULT_TIMEOUT,
        game: str = "cs2",
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ):
        """
        Initialize the FACEIT client.

        Args:
            api_key: FACEIT API key. Falls back to the FACEIT_API_KEY
                     environment variable. Missing key raises MissingApiKeyError.
            base_url: API base URL
            request_delay: Throttle delay before every request, in seconds
            max_retries: Retry budget per call
            rate_limit_multiplier: Multiple of request_delay to sleep after a 429
            timeout: Per-request timeout in seconds
            game: Game id used for history and lifetime stats
            transport: Optional httpx transport (tests use httpx.MockTransport)
            sleep: Optional coroutine used for waiting, defaults to asyncio.sleep
        """
        self.api_key = api_key or os.environ.get("FACEIT_API_KEY")
        if not self.api_key:
            raise MissingApiKeyError(
                "No FACEIT API key provided. Set FACEIT_API_KEY environment "
                "variable or pass api_key parameter."
            )

        self.base_url = base_url.rstrip("/")
        self.request_delay = request_delay
        self.max_retries = max_retries
        self.rate_limit_multiplier = rate_limit_multiplier
        self.timeout = timeout
        self.game = game
        self._transport = transport
        self._sleep = sleep or asyncio.sleep
        self._client: httpx.AsyncClient | None = None
        self._throttle_lock: asyncio.Lock | None = None
        self.request_count = 0

    async def __aenter__(self) -> FaceitClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _throttle(self) -> None:
        if self._throttle_lock is None:
            self._throttle_lock = asyncio.Lock()
        async with self._throttle_lock:
            await self._sleep(self.request_delay)

    async def fetch(self, endpoint: str, params: dict[str, Any] | None = None) -> Any | None:
        """
        GET an endpoint relative to the API base.

        Args:
            endpoint: Path such as ``/matches/{id}/stats``
            params: Optional query parameters

        Returns:
            Parsed JSON, or None when upstream answered 404

        Raises:
            AuthenticationError: on 401
            RateLimitExceeded: on 429 after the retry budget is spent
            FaceitApiError: on any other failure after the retry budget is spent
        """
        retries_left = self.max_retries

        while True:
            await self._throttle()
            self.request_count += 1

            try:
                response = await self._get_client().get(endpoint, params=params)
            except httpx.HTTPError as e:
                logger.error(f"FACEIT fetch error for {endpoint}: {e}")
                if retries_left > 0:
                    await self._backoff(retries_left)
                    retries_left -= 1
                    continue
                logger.error(f"FACEIT fetch failed for {endpoint} after all retries")
                raise FaceitApiError(
                    f"API request failed {endpoint}: {e}", endpoint=endpoint
                ) from e

            status = response.status_code

            if status == 429:
                logger.warning(f"Rate limit hit (429) for {endpoint}, sleeping")
                await self._sleep(self.request_delay * self.rate_limit_multiplier)
                if retries_left > 0:
                    retries_left -= 1
                    continue
                raise RateLimitExceeded(
                    f"API rate limit exceeded after retries for {endpoint}",
                    endpoint=endpoint,
                    status_code=status,
                )

            if status == 401:
                raise AuthenticationError(
                    "API authentication failed (401)", endpoint=endpoint, status_code=status
                )

            if status == 404:
                logger.warning(f"Not found (404) for {endpoint}")
                return None

            if response.is_success:
                logger.debug(f"FACEIT {endpoint} -> {status}")
                return response.json()

            logger.error(f"FACEIT request failed {endpoint} ({status}): {response.text}")
            if retries_left > 0:
                await self._backoff(retries_left)
                retries_left -= 1
                continue
            raise FaceitApiError(
                f"API request failed {endpoint} ({status}): {response.text}",
                endpoint=endpoint,
                status_code=status,
            )

    async def _backoff(self, retries_left: int) -> None:
        """Sleep 3x, 4x, 5x the delay as the budget of 3 runs down."""
        await self._sleep(self.request_delay * (BACKOFF_OFFSET - retries_left + 1))

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def get_player_by_nickname(self, nickname: str) -> dict[str, Any] | None:
        """Player profile by FACEIT nickname, None if unknown."""
        return await self.fetch("/players", params={"nickname": nickname})

    async def get_player_history(
        self, player_id: str, limit: int = 20, offset: int = 0
    ) -> dict[str, Any] | None:
        """Most recent matches of a player (max 100 per page)."""
        return await self.fetch(
            f"/players/{player_id}/history",
            params={"game": self.game, "limit": min(limit, 100), "offset": offset},
        )

    async def get_player_stats(self, player_id: str) -> dict[str, Any] | None:
        """Lifetime statistics of a player for the configured game."""
        return await self.fetch(f"/players/{player_id}/stats/{self.game}")

    async def get_championship_matches(
        self, championship_id: str, offset: int = 0, limit: int = 100
    ) -> dict[str, Any] | None:
        """One page of a championship's finished matches."""
        return await self.fetch(
            f"/championships/{championship_id}/matches",
            params={"type": "past", "offset": offset, "limit": limit},
        )

    async def get_match_stats(self, match_id: str) -> dict[str, Any] | None:
        """Round, team and player statistics of a match."""
        return await self.fetch(f"/matches/{match_id}/stats")
