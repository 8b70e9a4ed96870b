"""
Upstream proxy endpoint.

Forwards one of three match-data requests to the upstream API, attaching
the API credential so it never reaches the caller. The request type is
selected by the `endpoint` query parameter:

- account: gameName, tagLine
- matches: puuid, start, count, optional startTime/endTime
- match:   matchId

Upstream non-success responses are passed through with their status.
"""

import logging
from typing import Annotated, Any

import httpx
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from arenagod.api.dependencies import get_riot_config
from arenagod.models.failure import InvalidRegionError
from arenagod.models.match import DEFAULT_REGION, parse_region
from arenagod.riot.client import TOKEN_HEADER, RiotClientConfig
from arenagod.riot.routing import account_url, match_ids_url, match_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["riot"])

VALID_ENDPOINTS = frozenset({"account", "matches", "match"})
MAX_PAGE_COUNT = 100


def _error(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


@router.get("/riot")
async def riot_proxy(
    config: Annotated[RiotClientConfig, Depends(get_riot_config)],
    endpoint: str | None = None,
    gameName: str | None = None,
    tagLine: str | None = None,
    puuid: str | None = None,
    matchId: str | None = None,
    region: str | None = None,
    start: Annotated[int, Query(ge=0)] = 0,
    count: Annotated[int, Query(ge=1, le=MAX_PAGE_COUNT)] = 20,
    startTime: int | None = None,
    endTime: int | None = None,
) -> JSONResponse:
    """
    Forward a match-data request upstream.

    Returns 400 for a missing or unknown endpoint or missing parameters,
    503 when no API token is configured, and 500 if the upstream cannot
    be reached.
    """
    if not endpoint:
        return _error("Endpoint is required")
    if endpoint not in VALID_ENDPOINTS:
        return _error("Invalid endpoint")

    try:
        parsed_region = parse_region(region) if region else DEFAULT_REGION
    except InvalidRegionError as e:
        return _error(e.message)

    params: dict[str, Any] | None = None
    if endpoint == "account":
        if not gameName or not tagLine:
            return _error("Game name and tag line are required")
        url = account_url(gameName, tagLine, parsed_region, config.api_base)
    elif endpoint == "matches":
        if not puuid:
            return _error("PUUID is required")
        url = match_ids_url(puuid, parsed_region, config.api_base)
        params = {"queue": config.queue_id, "start": start, "count": count}
        if startTime is not None:
            params["startTime"] = startTime
        if endTime is not None:
            params["endTime"] = endTime
    else:
        if not matchId:
            return _error("Match ID is required")
        url = match_url(matchId, parsed_region, config.api_base)

    if not config.api_token:
        return _error("Upstream API token is not configured", status.HTTP_503_SERVICE_UNAVAILABLE)

    try:
        async with httpx.AsyncClient(timeout=config.timeout) as client:
            response = await client.get(
                url, params=params, headers={TOKEN_HEADER: config.api_token}
            )
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error("RIOT_PROXY_FAILED", extra={"endpoint": endpoint, "error": str(e)})
        return _error("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)

    return JSONResponse(data, status_code=response.status_code)
