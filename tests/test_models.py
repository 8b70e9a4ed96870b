"""Tests for domain models and their stored representations."""

import pytest

from arenagod.models.failure import FailureKind, InvalidRegionError, KnownError
from arenagod.models.match import (
    ArenaProgress,
    ManualOverrides,
    MatchParticipant,
    MatchResult,
    Region,
    RiotId,
    SyncOutcome,
    SyncProgress,
    parse_region,
    reduce_to_result,
)


class TestParseRegion:
    def test_case_insensitive(self) -> None:
        assert parse_region("euw") is Region.EUW
        assert parse_region(" Na ") is Region.NA

    def test_passes_region_through(self) -> None:
        assert parse_region(Region.KR) is Region.KR

    def test_rejects_unknown_region(self) -> None:
        """Unknown regions raise a 400-class known error."""
        with pytest.raises(InvalidRegionError) as exc_info:
            parse_region("MOON")

        assert exc_info.value.kind == FailureKind.INVALID_INPUT
        assert exc_info.value.status_code == 400


class TestReduceToResult:
    def test_selects_player_entry(self) -> None:
        participants = [
            MatchParticipant(puuid="other", champion_name="Zed", placement=1),
            MatchParticipant(puuid="me", champion_name="Ahri", placement=3),
        ]

        result = reduce_to_result("NA1_1", participants, "me")

        assert result == MatchResult(match_id="NA1_1", champion="Ahri", placement=3)
        assert not result.is_first_place

    def test_player_absent(self) -> None:
        participants = [MatchParticipant(puuid="other", champion_name="Zed", placement=1)]
        assert reduce_to_result("NA1_1", participants, "me") is None


class TestStoredShapes:
    def test_match_result_keys(self) -> None:
        """History entries use camelCase keys."""
        result = MatchResult(match_id="NA1_7", champion="Jinx", placement=1)

        assert result.to_dict() == {"matchId": "NA1_7", "champion": "Jinx", "placement": 1}
        assert MatchResult.from_dict(result.to_dict()) == result

    def test_progress_lists_are_sorted(self) -> None:
        progress = ArenaProgress(
            played_champions={"Zed", "Ahri"},
            first_place_champions={"Ahri"},
            top_four_champions={"Zed", "Ahri"},
        )

        assert progress.to_dict() == {
            "playedChampions": ["Ahri", "Zed"],
            "firstPlaceChampions": ["Ahri"],
            "topFourChampions": ["Ahri", "Zed"],
        }

    def test_progress_missing_keys_default_empty(self) -> None:
        """Progress saved before top-four tracking still loads."""
        progress = ArenaProgress.from_dict({"playedChampions": ["Lux"], "firstPlaceChampions": []})

        assert progress.played_champions == {"Lux"}
        assert progress.top_four_champions == set()

    def test_riot_id_and_overrides(self) -> None:
        assert RiotId("Name", "TAG").to_dict() == {"gameName": "Name", "tagLine": "TAG"}
        assert ManualOverrides({"Lux"}).to_dict() == {"firstPlaceChampions": ["Lux"]}


class TestSyncProgress:
    def test_eta_minutes_and_seconds(self) -> None:
        progress = SyncProgress(
            total_candidate_matches=100, fetched_count=10, estimated_seconds_remaining=108
        )
        assert progress.format_eta() == "About 1m 48s remaining"

    def test_eta_seconds_only(self) -> None:
        progress = SyncProgress(
            total_candidate_matches=20, fetched_count=10, estimated_seconds_remaining=12
        )
        assert progress.format_eta() == "About 12s remaining"

    def test_eta_done(self) -> None:
        progress = SyncProgress(
            total_candidate_matches=5, fetched_count=5, estimated_seconds_remaining=0
        )
        assert progress.format_eta() == "Almost done"
        assert progress.fraction_complete == 1.0

    def test_fraction_with_no_candidates(self) -> None:
        progress = SyncProgress(
            total_candidate_matches=0, fetched_count=0, estimated_seconds_remaining=0
        )
        assert progress.fraction_complete == 1.0


class TestFailures:
    def test_known_error_detail(self) -> None:
        error = KnownError(
            kind=FailureKind.NOT_FOUND,
            message="Player not found",
            suggestion="Check the tag line",
            status_code=404,
        )

        detail = error.to_detail()

        assert detail.kind == FailureKind.NOT_FOUND
        assert detail.message == "Player not found"
        assert detail.suggestion == "Check the tag line"

    def test_outcome_succeeded(self) -> None:
        assert SyncOutcome().succeeded
        assert not SyncOutcome(error="boom").succeeded
