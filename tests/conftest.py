import asyncio
from collections.abc import Callable
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from arenagod.db.store import TrackerStore
from arenagod.models.db import Base
from arenagod.models.failure import PlayerNotFoundError, TransientApiError
from arenagod.models.match import MatchParticipant, PlayerIdentity, Region

PLAYER_PUUID = "player-puuid"


def arena_participants(
    champion: str, placement: int, puuid: str = PLAYER_PUUID
) -> list[MatchParticipant]:
    """Participant list with the tracked player and one opponent."""
    opponent_placement = 2 if placement == 1 else 1
    return [
        MatchParticipant(
            puuid="opponent-puuid", champion_name="Garen", placement=opponent_placement
        ),
        MatchParticipant(puuid=puuid, champion_name=champion, placement=placement),
    ]


class FakeRiotClient:
    """
    In-memory stand-in for RiotClient.

    Match listings come from `match_ids` (newest first) or, when a time
    window is given, from `window_ids` keyed by (start, end). `on_list`, if
    set, is called with the running listing-call count.
    """

    def __init__(self) -> None:
        self.identity = PlayerIdentity(
            game_name="Tester", tag_line="NA1", puuid=PLAYER_PUUID, region=Region.NA
        )
        self.player_exists = True
        self.identity_error: Exception | None = None
        self.resolve_gate: asyncio.Event | None = None

        self.match_ids: list[str] = []
        self.window_ids: dict[tuple[int, int], list[str]] = {}
        self.fail_listing_after: int | None = None
        self.on_list: Callable[[int], None] | None = None

        self.matches: dict[str, list[MatchParticipant]] = {}
        self.failing_matches: set[str] = set()

        self.list_calls: list[dict] = []
        self.detail_calls: list[str] = []

    def add_match(self, match_id: str, champion: str, placement: int) -> None:
        self.matches[match_id] = arena_participants(champion, placement)

    async def resolve_identity(
        self, game_name: str, tag_line: str, region: Region
    ) -> PlayerIdentity:
        if self.resolve_gate is not None:
            await self.resolve_gate.wait()
        if self.identity_error is not None:
            raise self.identity_error
        if not self.player_exists:
            raise PlayerNotFoundError(game_name, tag_line)
        return PlayerIdentity(
            game_name=game_name, tag_line=tag_line, puuid=self.identity.puuid, region=region
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
        self.list_calls.append(
            {"offset": offset, "limit": limit, "start_time": start_time, "end_time": end_time}
        )
        if self.fail_listing_after is not None and len(self.list_calls) > self.fail_listing_after:
            raise TransientApiError("Listing failed")
        if self.on_list is not None:
            self.on_list(len(self.list_calls))

        if start_time is not None:
            source = self.window_ids.get((start_time, end_time), [])
        else:
            source = self.match_ids
        return source[offset : offset + limit]

    async def fetch_match_detail(self, match_id: str, region: Region) -> list[MatchParticipant]:
        self.detail_calls.append(match_id)
        if match_id in self.failing_matches or match_id not in self.matches:
            raise TransientApiError(f"Match {match_id} failed")
        return self.matches[match_id]


class RecordingSleep:
    """Replaces asyncio.sleep; records requested delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
async def session_factory(tmp_path: Path):
    """Session factory for a fresh SQLite database file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tracker.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def store(session_factory) -> TrackerStore:
    return TrackerStore(session_factory)


@pytest.fixture
def fake_client() -> FakeRiotClient:
    return FakeRiotClient()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
