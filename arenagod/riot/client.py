"""
Remote match-data API client.

Typed wrappers for the three upstream operations the tracker needs:
resolve a Riot ID to a player, list a player's Arena match IDs, and fetch
a match's participants. Every request passes through a retry wrapper that
backs off exponentially on rate-limit responses (HTTP 429).

Configuration is passed in explicitly via RiotClientConfig so tests and
multiple configurations can coexist in one process.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from arenagod.config import Settings, settings
from arenagod.models.failure import PlayerNotFoundError, RateLimitedError, TransientApiError
from arenagod.models.match import MatchParticipant, PlayerIdentity, Region
from arenagod.riot.routing import DEFAULT_API_BASE, account_url, match_ids_url, match_url
from arenagod.riot.schemas import MatchInfoPayload, RiotAccountPayload, RiotErrorPayload

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

TOKEN_HEADER = "X-Riot-Token"


@dataclass(frozen=True)
class RiotClientConfig:
    """
    Connection and retry settings for RiotClient.

    Attributes:
        api_token: Credential sent in the X-Riot-Token header
        api_base: Host template with a {continent} placeholder
        queue_id: Game mode filter applied to match listings
        timeout: Per-request timeout in seconds
        max_attempts: Total attempts for a rate-limited request
        base_delay: Backoff base; attempt n waits base_delay * 2**n
    """

    api_token: str = ""
    api_base: str = DEFAULT_API_BASE
    queue_id: int = 1700
    timeout: float = 10.0
    max_attempts: int = 5
    base_delay: float = 1.0

    @classmethod
    def from_settings(cls, source: Settings = settings) -> "RiotClientConfig":
        return cls(
            api_token=source.riot_api_token,
            api_base=source.riot_api_base,
            queue_id=source.arena_queue_id,
            timeout=source.request_timeout,
            max_attempts=source.max_retry_attempts,
            base_delay=source.retry_base_delay,
        )


def backoff_delay(attempt: int, base_delay: float, retry_after: str | None = None) -> float:
    """
    Delay before retry number `attempt` (0-based).

    A Retry-After header longer than the computed backoff wins.
    """
    delay = base_delay * (2**attempt)
    if retry_after:
        try:
            delay = max(delay, float(retry_after))
        except ValueError:
            pass
    return delay


class RiotClient:
    """
    Async client for the upstream match-data API.

    Usage:
        async with RiotClient(RiotClientConfig.from_settings()) as client:
            identity = await client.resolve_identity("Name", "TAG", Region.NA)
    """

    def __init__(
        self,
        config: RiotClientConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config
        self._sleep = sleep
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.timeout)

    async def __aenter__(self) -> "RiotClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    @property
    def _headers(self) -> dict[str, str]:
        return {TOKEN_HEADER: self.config.api_token}

    async def request_with_retry(
        self, url: str, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        """
        GET a URL, retrying only on HTTP 429.

        Makes at most `max_attempts` requests. When every attempt is rate
        limited, the last 429 response is returned rather than raised.
        Transport errors propagate immediately.
        """
        attempts = max(1, self.config.max_attempts)
        response = await self._http.get(url, params=params, headers=self._headers)

        for attempt in range(attempts - 1):
            if response.status_code != httpx.codes.TOO_MANY_REQUESTS:
                return response

            delay = backoff_delay(
                attempt, self.config.base_delay, response.headers.get("Retry-After")
            )
            logger.warning(
                "RATE_LIMITED_RETRY",
                extra={"url": url, "attempt": attempt + 1, "delay": delay},
            )
            await self._sleep(delay)
            response = await self._http.get(url, params=params, headers=self._headers)

        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            logger.error("RATE_LIMIT_RETRIES_EXHAUSTED", extra={"url": url, "attempts": attempts})
        return response

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """Fetch and decode JSON, mapping every failure to TransientApiError."""
        try:
            response = await self.request_with_retry(url, params)
        except httpx.HTTPError as e:
            raise TransientApiError("Could not reach the match-data service.", detail=str(e)) from e

        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            raise RateLimitedError(self.config.max_attempts)
        if response.status_code == httpx.codes.NOT_FOUND:
            # Caller decides whether 404 means "no such player"
            raise _NotFound(url)
        if not response.is_success:
            raise TransientApiError(
                "The match-data service returned an error.",
                detail=_error_detail(response, url),
                status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransientApiError("Malformed response from the match-data service.") from e

    async def resolve_identity(
        self, game_name: str, tag_line: str, region: Region
    ) -> PlayerIdentity:
        """
        Resolve a Riot ID to a player.

        Raises:
            PlayerNotFoundError: If the upstream service has no such player
            TransientApiError: On network, status, or payload failures
        """
        url = account_url(game_name, tag_line, region, self.config.api_base)
        try:
            data = await self._get_json(url)
        except _NotFound:
            raise PlayerNotFoundError(game_name, tag_line) from None

        try:
            account = RiotAccountPayload.model_validate(data)
        except ValidationError as e:
            raise TransientApiError("Malformed account payload.", detail=str(e)) from e

        return PlayerIdentity(
            game_name=account.gameName,
            tag_line=account.tagLine,
            puuid=account.puuid,
            region=region,
        )

    async def list_match_ids(
        self,
        puuid: str,
        region: Region,
        offset: int = 0,
        limit: int = 100,
        start_time: int | None = None,
        end_time: int | None = None,
    ) -> list[str]:
        """
        List Arena match IDs for a player, newest first.

        Args:
            puuid: Player identifier
            region: Player region (selects the routing cluster)
            offset: Index of the first ID to return
            limit: Page size
            start_time: Optional epoch seconds, inclusive lower bound
            end_time: Optional epoch seconds, exclusive upper bound

        Raises:
            TransientApiError: On any failure
        """
        params: dict[str, Any] = {
            "queue": self.config.queue_id,
            "start": offset,
            "count": limit,
        }
        if start_time is not None:
            params["startTime"] = start_time
        if end_time is not None:
            params["endTime"] = end_time

        url = match_ids_url(puuid, region, self.config.api_base)
        try:
            data = await self._get_json(url, params)
        except _NotFound as e:
            raise TransientApiError("Match listing not found.", detail=url, status=404) from e

        if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
            raise TransientApiError("Malformed match ID listing.")
        return data

    async def fetch_match_detail(self, match_id: str, region: Region) -> list[MatchParticipant]:
        """
        Fetch the participant list of a match.

        Raises:
            TransientApiError: On any failure
        """
        url = match_url(match_id, region, self.config.api_base)
        try:
            data = await self._get_json(url)
        except _NotFound as e:
            raise TransientApiError(f"Match {match_id} not found.", detail=url, status=404) from e

        try:
            return MatchInfoPayload.model_validate(data).to_participants()
        except ValidationError as e:
            raise TransientApiError(
                f"Malformed payload for match {match_id}.", detail=str(e)
            ) from e


class _NotFound(Exception):
    """Internal signal for HTTP 404; never escapes this module."""


def _error_detail(response: httpx.Response, url: str) -> str:
    """Status line for a failed request, with the upstream message when present."""
    detail = f"HTTP {response.status_code} for {url}"
    try:
        error = RiotErrorPayload.model_validate(response.json())
    except (ValueError, ValidationError):
        return detail
    return f"{detail}: {error.status.message}"
