"""
Upstream URL construction.

Every endpoint is served from a continent cluster host; the region picks
the cluster. Path segments are percent-encoded.
"""

from urllib.parse import quote

from arenagod.models.match import REGION_TO_CONTINENT, Region

DEFAULT_API_BASE = "https://{continent}.api.riotgames.com"


def continent_for(region: Region) -> str:
    """Routing cluster for a region."""
    return REGION_TO_CONTINENT[region]


def api_host(region: Region, api_base: str = DEFAULT_API_BASE) -> str:
    return api_base.format(continent=continent_for(region))


def account_url(
    game_name: str, tag_line: str, region: Region, api_base: str = DEFAULT_API_BASE
) -> str:
    """Identity lookup by Riot ID."""
    return (
        f"{api_host(region, api_base)}/riot/account/v1/accounts/by-riot-id/"
        f"{quote(game_name, safe='')}/{quote(tag_line, safe='')}"
    )


def match_ids_url(puuid: str, region: Region, api_base: str = DEFAULT_API_BASE) -> str:
    """Match ID listing for a player (query parameters added by the caller)."""
    return f"{api_host(region, api_base)}/lol/match/v5/matches/by-puuid/{quote(puuid, safe='')}/ids"


def match_url(match_id: str, region: Region, api_base: str = DEFAULT_API_BASE) -> str:
    """Match detail."""
    return f"{api_host(region, api_base)}/lol/match/v5/matches/{quote(match_id, safe='')}"
