"""Tests for the remote match-data API client (mocked HTTP)."""

import httpx
import pytest
import respx
from conftest import RecordingSleep

from arenagod.models.failure import (
    FailureKind,
    PlayerNotFoundError,
    RateLimitedError,
    TransientApiError,
)
from arenagod.models.match import Region
from arenagod.riot.client import RiotClient, RiotClientConfig, backoff_delay
from arenagod.riot.routing import account_url, continent_for, match_ids_url, match_url

ACCOUNT_URL = "https://americas.api.riotgames.com/riot/account/v1/accounts/by-riot-id/Tester/NA1"
IDS_URL = "https://americas.api.riotgames.com/lol/match/v5/matches/by-puuid/abc/ids"
MATCH_URL = "https://europe.api.riotgames.com/lol/match/v5/matches/EUW1_42"

MATCH_PAYLOAD = {
    "metadata": {"matchId": "EUW1_42"},
    "info": {
        "gameMode": "CHERRY",
        "participants": [
            {"puuid": "abc", "championName": "Ahri", "placement": 1, "kills": 9},
            {"puuid": "def", "championName": "Zed", "placement": 3},
        ],
    },
}


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
async def client(sleep: RecordingSleep):
    config = RiotClientConfig(api_token="test-token", max_attempts=5, base_delay=1.0)
    async with RiotClient(config, sleep=sleep) as riot_client:
        yield riot_client


class TestRouting:
    def test_regions_map_to_continents(self) -> None:
        """Regions route to their cluster host."""
        assert continent_for(Region.NA) == "americas"
        assert continent_for(Region.EUNE) == "europe"
        assert continent_for(Region.JP) == "asia"
        assert continent_for(Region.OCE) == "sea"

    def test_account_url_encodes_names(self) -> None:
        """Spaces and special characters in Riot IDs are percent-encoded."""
        url = account_url("Hide on bush", "KR 1", Region.KR)
        assert url.endswith("/by-riot-id/Hide%20on%20bush/KR%201")
        assert url.startswith("https://asia.api.riotgames.com/")

    def test_match_urls(self) -> None:
        """Listing and detail URLs follow the upstream path patterns."""
        assert match_ids_url("abc", Region.NA) == IDS_URL
        assert match_url("EUW1_42", Region.EUW) == MATCH_URL

    def test_custom_api_base(self) -> None:
        """The host template can point at another server."""
        url = match_url("NA1_1", Region.NA, "http://localhost:9000/{continent}")
        assert url == "http://localhost:9000/americas/lol/match/v5/matches/NA1_1"


class TestResolveIdentity:
    @respx.mock
    async def test_returns_identity(self, client: RiotClient) -> None:
        """A successful lookup yields the resolved identity."""
        route = respx.get(ACCOUNT_URL).mock(
            return_value=httpx.Response(
                200, json={"puuid": "abc", "gameName": "Tester", "tagLine": "NA1"}
            )
        )

        identity = await client.resolve_identity("Tester", "NA1", Region.NA)

        assert identity.puuid == "abc"
        assert identity.region is Region.NA
        assert route.calls.last.request.headers["X-Riot-Token"] == "test-token"

    @respx.mock
    async def test_not_found(self, client: RiotClient) -> None:
        """Upstream 404 means the player does not exist."""
        respx.get(ACCOUNT_URL).mock(
            return_value=httpx.Response(
                404, json={"status": {"status_code": 404, "message": "Data not found"}}
            )
        )

        with pytest.raises(PlayerNotFoundError) as exc_info:
            await client.resolve_identity("Tester", "NA1", Region.NA)

        assert exc_info.value.kind == FailureKind.NOT_FOUND
        assert "Tester#NA1" in exc_info.value.message

    @respx.mock
    async def test_malformed_payload_is_transient(self, client: RiotClient) -> None:
        """A payload missing required fields is a transient failure."""
        respx.get(ACCOUNT_URL).mock(return_value=httpx.Response(200, json={"gameName": "x"}))

        with pytest.raises(TransientApiError):
            await client.resolve_identity("Tester", "NA1", Region.NA)

    @respx.mock
    async def test_network_error_is_transient(self, client: RiotClient) -> None:
        """Transport errors become TransientApiError."""
        respx.get(ACCOUNT_URL).mock(side_effect=httpx.ConnectError("boom"))

        with pytest.raises(TransientApiError):
            await client.resolve_identity("Tester", "NA1", Region.NA)


class TestListMatchIds:
    @respx.mock
    async def test_forwards_pagination_and_queue(self, client: RiotClient) -> None:
        """Offset, limit and the Arena queue filter are sent as query params."""
        route = respx.get(IDS_URL).mock(return_value=httpx.Response(200, json=["NA1_2", "NA1_1"]))

        ids = await client.list_match_ids("abc", Region.NA, offset=100, limit=100)

        assert ids == ["NA1_2", "NA1_1"]
        params = route.calls.last.request.url.params
        assert params["queue"] == "1700"
        assert params["start"] == "100"
        assert params["count"] == "100"
        assert "startTime" not in params
        assert "endTime" not in params

    @respx.mock
    async def test_forwards_time_window(self, client: RiotClient) -> None:
        """Optional time bounds are forwarded."""
        route = respx.get(IDS_URL).mock(return_value=httpx.Response(200, json=[]))

        await client.list_match_ids("abc", Region.NA, start_time=1000, end_time=2000)

        params = route.calls.last.request.url.params
        assert params["startTime"] == "1000"
        assert params["endTime"] == "2000"

    @respx.mock
    async def test_rejects_non_list_payload(self, client: RiotClient) -> None:
        """A listing that is not a list of strings is malformed."""
        respx.get(IDS_URL).mock(return_value=httpx.Response(200, json={"ids": []}))

        with pytest.raises(TransientApiError):
            await client.list_match_ids("abc", Region.NA)


class TestFetchMatchDetail:
    @respx.mock
    async def test_returns_participants(self, client: RiotClient) -> None:
        """Only puuid, champion and placement are kept from each participant."""
        respx.get(MATCH_URL).mock(return_value=httpx.Response(200, json=MATCH_PAYLOAD))

        participants = await client.fetch_match_detail("EUW1_42", Region.EUW)

        assert [(p.puuid, p.champion_name, p.placement) for p in participants] == [
            ("abc", "Ahri", 1),
            ("def", "Zed", 3),
        ]

    @respx.mock
    async def test_server_error_not_retried(
        self, client: RiotClient, sleep: RecordingSleep
    ) -> None:
        """Non-rate-limit failures surface after a single request."""
        route = respx.get(MATCH_URL).mock(return_value=httpx.Response(503))

        with pytest.raises(TransientApiError) as exc_info:
            await client.fetch_match_detail("EUW1_42", Region.EUW)

        assert route.call_count == 1
        assert sleep.delays == []
        assert exc_info.value.upstream_status == 503

    @respx.mock
    async def test_error_detail_includes_upstream_message(self, client: RiotClient) -> None:
        respx.get(MATCH_URL).mock(
            return_value=httpx.Response(
                403, json={"status": {"status_code": 403, "message": "Forbidden"}}
            )
        )

        with pytest.raises(TransientApiError) as exc_info:
            await client.fetch_match_detail("EUW1_42", Region.EUW)

        assert exc_info.value.detail.endswith(": Forbidden")

    @respx.mock
    async def test_missing_match_is_transient(self, client: RiotClient) -> None:
        """A 404 for a match is skipped like any other fetch failure."""
        respx.get(MATCH_URL).mock(return_value=httpx.Response(404, json={}))

        with pytest.raises(TransientApiError):
            await client.fetch_match_detail("EUW1_42", Region.EUW)


class TestRetryWrapper:
    @respx.mock
    async def test_retries_rate_limit_then_succeeds(
        self, client: RiotClient, sleep: RecordingSleep
    ) -> None:
        """429 responses are retried with exponential backoff."""
        route = respx.get(MATCH_URL).mock(
            side_effect=[
                httpx.Response(429),
                httpx.Response(429),
                httpx.Response(200, json=MATCH_PAYLOAD),
            ]
        )

        participants = await client.fetch_match_detail("EUW1_42", Region.EUW)

        assert len(participants) == 2
        assert route.call_count == 3
        assert sleep.delays == [1.0, 2.0]

    @respx.mock
    async def test_always_rate_limited_stops_at_max_attempts(
        self, client: RiotClient, sleep: RecordingSleep
    ) -> None:
        """A permanently rate-limited endpoint is tried exactly max_attempts times."""
        route = respx.get(MATCH_URL).mock(return_value=httpx.Response(429))

        with pytest.raises(RateLimitedError) as exc_info:
            await client.fetch_match_detail("EUW1_42", Region.EUW)

        assert route.call_count == 5
        assert sleep.delays == [1.0, 2.0, 4.0, 8.0]
        assert exc_info.value.kind == FailureKind.RATE_LIMITED
        assert isinstance(exc_info.value, TransientApiError)

    @respx.mock
    async def test_wrapper_returns_last_response(self, client: RiotClient) -> None:
        """The wrapper hands back the final 429 instead of raising."""
        respx.get(MATCH_URL).mock(return_value=httpx.Response(429))

        response = await client.request_with_retry(MATCH_URL)

        assert response.status_code == 429

    @respx.mock
    async def test_single_attempt_returns_first_response(self, sleep: RecordingSleep) -> None:
        """With max_attempts=1 a 429 is returned without sleeping or retrying."""
        route = respx.get(MATCH_URL).mock(return_value=httpx.Response(429))
        config = RiotClientConfig(api_token="test-token", max_attempts=1)

        async with RiotClient(config, sleep=sleep) as single_shot:
            response = await single_shot.request_with_retry(MATCH_URL)

        assert response.status_code == 429
        assert route.call_count == 1
        assert sleep.delays == []

    @respx.mock
    async def test_non_positive_attempts_still_requests_once(self, sleep: RecordingSleep) -> None:
        """A zero attempt budget is clamped to one request."""
        route = respx.get(MATCH_URL).mock(return_value=httpx.Response(200, json=MATCH_PAYLOAD))
        config = RiotClientConfig(api_token="test-token", max_attempts=0)

        async with RiotClient(config, sleep=sleep) as single_shot:
            response = await single_shot.request_with_retry(MATCH_URL)

        assert response.status_code == 200
        assert route.call_count == 1

    @respx.mock
    async def test_honours_longer_retry_after(
        self, client: RiotClient, sleep: RecordingSleep
    ) -> None:
        """A Retry-After header longer than the backoff is respected."""
        respx.get(MATCH_URL).mock(
            side_effect=[
                httpx.Response(429, headers={"Retry-After": "7"}),
                httpx.Response(200, json=MATCH_PAYLOAD),
            ]
        )

        await client.fetch_match_detail("EUW1_42", Region.EUW)

        assert sleep.delays == [7.0]


class TestBackoffDelay:
    def test_doubles_each_attempt(self) -> None:
        assert [backoff_delay(n, 0.5) for n in range(4)] == [0.5, 1.0, 2.0, 4.0]

    def test_ignores_unparseable_retry_after(self) -> None:
        assert backoff_delay(1, 1.0, "soon") == 2.0

    def test_shorter_retry_after_does_not_shrink_delay(self) -> None:
        assert backoff_delay(3, 1.0, "2") == 8.0
