from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from arenagod.models.failure import InvalidRegionError


class Region(str, Enum):
    """Platform regions selectable by the player."""

    NA = "NA"
    EUW = "EUW"
    EUNE = "EUNE"
    KR = "KR"
    JP = "JP"
    BR = "BR"
    LAN = "LAN"
    LAS = "LAS"
    OCE = "OCE"
    TR = "TR"
    RU = "RU"


# Upstream routing clusters; regions in the same cluster share an API host
REGION_TO_CONTINENT: dict[Region, str] = {
    Region.NA: "americas",
    Region.BR: "americas",
    Region.LAN: "americas",
    Region.LAS: "americas",
    Region.EUW: "europe",
    Region.EUNE: "europe",
    Region.TR: "europe",
    Region.RU: "europe",
    Region.KR: "asia",
    Region.JP: "asia",
    Region.OCE: "sea",
}

DEFAULT_REGION = Region.NA


def parse_region(value: str | Region) -> Region:
    """
    Parse a region name (case-insensitive).

    Raises:
        InvalidRegionError: If the value is not a supported region
    """
    if isinstance(value, Region):
        return value
    try:
        return Region(value.strip().upper())
    except ValueError:
        raise InvalidRegionError(value) from None


@dataclass(frozen=True)
class RiotId:
    """Game name and tag line as entered by the player."""

    game_name: str
    tag_line: str

    def to_dict(self) -> dict[str, str]:
        return {"gameName": self.game_name, "tagLine": self.tag_line}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RiotId":
        return cls(game_name=str(data["gameName"]), tag_line=str(data["tagLine"]))


@dataclass(frozen=True)
class PlayerIdentity:
    """
    A resolved player.

    Attributes:
        game_name: Display name as returned by the upstream service
        tag_line: Tag line as returned by the upstream service
        puuid: Opaque stable player identifier
        region: Region the identity was resolved in
    """

    game_name: str
    tag_line: str
    puuid: str
    region: Region

    @property
    def riot_id(self) -> RiotId:
        return RiotId(game_name=self.game_name, tag_line=self.tag_line)


@dataclass(frozen=True)
class MatchParticipant:
    """One player's entry in a match's participant list."""

    puuid: str
    champion_name: str
    placement: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "puuid": self.puuid,
            "championName": self.champion_name,
            "placement": self.placement,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MatchParticipant":
        return cls(
            puuid=str(data["puuid"]),
            champion_name=str(data["championName"]),
            placement=int(data["placement"]),
        )


@dataclass(frozen=True)
class MatchResult:
    """
    The tracked player's outcome in one match.

    Attributes:
        match_id: Globally unique, lexically sortable match identifier
        champion: Champion the player picked
        placement: Final ranking (1 = first place)
    """

    match_id: str
    champion: str
    placement: int

    @property
    def is_first_place(self) -> bool:
        return self.placement == 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "matchId": self.match_id,
            "champion": self.champion,
            "placement": self.placement,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MatchResult":
        return cls(
            match_id=str(data["matchId"]),
            champion=str(data["champion"]),
            placement=int(data["placement"]),
        )


def reduce_to_result(
    match_id: str, participants: list[MatchParticipant], puuid: str
) -> MatchResult | None:
    """
    Reduce a participant list to the tracked player's result.

    Returns None if the player is not among the participants.
    """
    for participant in participants:
        if participant.puuid == puuid:
            return MatchResult(
                match_id=match_id,
                champion=participant.champion_name,
                placement=participant.placement,
            )
    return None


@dataclass
class ArenaProgress:
    """
    Champion completion sets derived from match history.

    Attributes:
        played_champions: Every champion the player has played
        first_place_champions: Champions with at least one first place
        top_four_champions: Champions with at least one top-four finish
    """

    played_champions: set[str] = field(default_factory=set)
    first_place_champions: set[str] = field(default_factory=set)
    top_four_champions: set[str] = field(default_factory=set)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "playedChampions": sorted(self.played_champions),
            "firstPlaceChampions": sorted(self.first_place_champions),
            "topFourChampions": sorted(self.top_four_champions),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ArenaProgress":
        return cls(
            played_champions=set(data.get("playedChampions", [])),
            first_place_champions=set(data.get("firstPlaceChampions", [])),
            top_four_champions=set(data.get("topFourChampions", [])),
        )


@dataclass
class ManualOverrides:
    """Champions the player marked as first place by hand."""

    first_place_champions: set[str] = field(default_factory=set)

    def to_dict(self) -> dict[str, list[str]]:
        return {"firstPlaceChampions": sorted(self.first_place_champions)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ManualOverrides":
        return cls(first_place_champions=set(data.get("firstPlaceChampions", [])))


@dataclass(frozen=True)
class FetchedMatch:
    """A processed match and whether it came from the local cache."""

    result: MatchResult
    from_cache: bool


@dataclass(frozen=True)
class SyncProgress:
    """
    Snapshot of a running sync, emitted after every batch.

    Ephemeral: never persisted.
    """

    total_candidate_matches: int
    fetched_count: int
    estimated_seconds_remaining: float
    new_first_place_count: int = 0

    @property
    def fraction_complete(self) -> float:
        if self.total_candidate_matches == 0:
            return 1.0
        return self.fetched_count / self.total_candidate_matches

    def format_eta(self) -> str:
        """Human-readable time remaining."""
        seconds = int(round(self.estimated_seconds_remaining))
        if seconds <= 0:
            return "Almost done"
        minutes, seconds = divmod(seconds, 60)
        if minutes:
            return f"About {minutes}m {seconds}s remaining"
        return f"About {seconds}s remaining"


class SyncStrategy(str, Enum):
    """How candidate match IDs are discovered."""

    BACKFILL = "backfill"
    INCREMENTAL = "incremental"


class SyncState(str, Enum):
    """Sync engine state for one update invocation."""

    IDLE = "idle"
    RESOLVING_IDENTITY = "resolving_identity"
    BACKFILLING = "backfilling"
    INCREMENTING = "incrementing"
    MERGING = "merging"
    PROJECTING_PROGRESS = "projecting_progress"
    ERROR = "error"


@dataclass
class SyncOutcome:
    """
    Result of one update invocation.

    `error` carries a user-visible message when the sync could not run;
    partial results are still reflected in the other fields.
    """

    strategy: SyncStrategy | None = None
    new_matches: int = 0
    total_matches: int = 0
    new_first_places: int = 0
    progress: ArenaProgress = field(default_factory=ArenaProgress)
    cancelled: bool = False
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
