"""
Tracker API endpoints.

Exposes the stored profile, match history and champion progress, manual
first-place toggles, and the sync trigger with its status and cancel hooks.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from arenagod.api.dependencies import get_store, get_sync_engine
from arenagod.db.store import TrackerStore
from arenagod.models.failure import KnownError, StorageError
from arenagod.models.match import ArenaProgress, ManualOverrides, SyncOutcome, SyncProgress
from arenagod.services.progress import (
    completion_summary,
    effective_first_place,
    toggle_manual_first_place,
)
from arenagod.services.sync_engine import SyncEngine

router = APIRouter(prefix="/tracker", tags=["tracker"])


class RiotIdModel(BaseModel):
    game_name: str
    tag_line: str


class ProfileResponse(BaseModel):
    """Cached player identity used to pre-fill the sync form."""

    riot_id: RiotIdModel | None = None
    region: str | None = None


class MatchResultModel(BaseModel):
    match_id: str
    champion: str
    placement: int


class HistoryResponse(BaseModel):
    """Stored match history, newest first."""

    matches: list[MatchResultModel] = Field(default_factory=list)
    total: int = 0


class ProgressResponse(BaseModel):
    """Automatic and manual progress plus the effective first-place set."""

    played_champions: list[str] = Field(default_factory=list)
    first_place_champions: list[str] = Field(
        default_factory=list,
        description="First places derived from match history",
    )
    top_four_champions: list[str] = Field(default_factory=list)
    manual_first_place_champions: list[str] = Field(
        default_factory=list,
        description="Champions marked as first place by hand",
    )
    effective_first_place_champions: list[str] = Field(default_factory=list)
    completed: int = 0
    top_four_only: int = 0
    played_only: int = 0
    total: int | None = Field(
        default=None,
        description="Roster size, when a roster was supplied",
    )
    completion_percentage: float | None = None


class SyncRequest(BaseModel):
    """Request model for triggering a sync."""

    game_name: str = Field(..., min_length=1, examples=["Faker"])
    tag_line: str = Field(..., min_length=1, examples=["KR1"])
    region: str = Field(default="NA", examples=["NA", "EUW"])


class SyncProgressModel(BaseModel):
    total_candidate_matches: int
    fetched_count: int
    estimated_seconds_remaining: float
    new_first_place_count: int
    eta: str


class SyncResponse(BaseModel):
    """Outcome of one sync."""

    strategy: str | None = None
    new_matches: int = 0
    total_matches: int = 0
    new_first_places: int = 0
    cancelled: bool = False
    error: str | None = Field(
        default=None,
        description="User-visible message when the sync could not complete",
    )
    progress: ProgressResponse


class SyncStatusResponse(BaseModel):
    busy: bool
    state: str
    progress: SyncProgressModel | None = None


class CancelResponse(BaseModel):
    cancelled: bool


def _progress_response(
    progress: ArenaProgress,
    overrides: ManualOverrides,
    roster: list[str] | None = None,
) -> ProgressResponse:
    summary = completion_summary(progress, overrides, roster)
    return ProgressResponse(
        played_champions=sorted(progress.played_champions),
        first_place_champions=sorted(progress.first_place_champions),
        top_four_champions=sorted(progress.top_four_champions),
        manual_first_place_champions=sorted(overrides.first_place_champions),
        effective_first_place_champions=sorted(effective_first_place(progress, overrides)),
        completed=summary.completed,
        top_four_only=summary.top_four_only,
        played_only=summary.played_only,
        total=summary.total,
        completion_percentage=summary.completion_percentage,
    )


def _sync_progress_model(progress: SyncProgress) -> SyncProgressModel:
    return SyncProgressModel(
        total_candidate_matches=progress.total_candidate_matches,
        fetched_count=progress.fetched_count,
        estimated_seconds_remaining=progress.estimated_seconds_remaining,
        new_first_place_count=progress.new_first_place_count,
        eta=progress.format_eta(),
    )


def _http_error(error: KnownError) -> HTTPException:
    return HTTPException(
        status_code=error.status_code,
        detail=error.to_detail().model_dump(mode="json"),
    )


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    store: Annotated[TrackerStore, Depends(get_store)],
) -> ProfileResponse:
    """Last Riot ID and region submitted for a sync."""
    try:
        riot_id = await store.get_riot_id()
        region = await store.get_region()
    except StorageError as e:
        raise _http_error(e) from e

    return ProfileResponse(
        riot_id=RiotIdModel(game_name=riot_id.game_name, tag_line=riot_id.tag_line)
        if riot_id
        else None,
        region=region.value if region else None,
    )


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    store: Annotated[TrackerStore, Depends(get_store)],
) -> HistoryResponse:
    """Stored match history, newest first."""
    try:
        history = await store.get_match_history()
    except StorageError as e:
        raise _http_error(e) from e

    return HistoryResponse(
        matches=[
            MatchResultModel(match_id=m.match_id, champion=m.champion, placement=m.placement)
            for m in history
        ],
        total=len(history),
    )


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(
    store: Annotated[TrackerStore, Depends(get_store)],
    roster: Annotated[list[str] | None, Query()] = None,
) -> ProgressResponse:
    """
    Champion progress from both sources.

    Pass the full champion list as repeated `roster` parameters to get a
    completion percentage.
    """
    try:
        progress = await store.get_arena_progress()
        overrides = await store.get_manual_overrides()
    except StorageError as e:
        raise _http_error(e) from e
    return _progress_response(progress, overrides, roster)


@router.post("/progress/{champion}/toggle", response_model=ProgressResponse)
async def toggle_first_place(
    champion: str,
    store: Annotated[TrackerStore, Depends(get_store)],
) -> ProgressResponse:
    """
    Flip a champion's manual first-place mark.

    Sync-derived first places are unaffected.
    """
    if not champion.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Champion name cannot be empty",
        )

    try:
        overrides = toggle_manual_first_place(await store.get_manual_overrides(), champion)
        await store.set_manual_overrides(overrides)
        progress = await store.get_arena_progress()
    except StorageError as e:
        raise _http_error(e) from e

    return _progress_response(progress, overrides)


@router.post("/sync", response_model=SyncResponse)
async def run_sync(
    request: SyncRequest,
    engine: Annotated[SyncEngine, Depends(get_sync_engine)],
    store: Annotated[TrackerStore, Depends(get_store)],
) -> SyncResponse:
    """
    Run a sync for a player and wait for it to finish.

    Returns 409 while another sync is running and 400 for an unknown region.
    Identity, upstream and history-read failures are reported in the `error`
    field.
    """
    try:
        outcome: SyncOutcome = await engine.update(
            request.game_name, request.tag_line, request.region
        )
    except KnownError as e:
        raise _http_error(e) from e

    try:
        overrides = await store.get_manual_overrides()
    except StorageError as e:
        raise _http_error(e) from e

    return SyncResponse(
        strategy=outcome.strategy.value if outcome.strategy else None,
        new_matches=outcome.new_matches,
        total_matches=outcome.total_matches,
        new_first_places=outcome.new_first_places,
        cancelled=outcome.cancelled,
        error=outcome.error,
        progress=_progress_response(outcome.progress, overrides),
    )


@router.get("/sync/status", response_model=SyncStatusResponse)
async def sync_status(
    engine: Annotated[SyncEngine, Depends(get_sync_engine)],
) -> SyncStatusResponse:
    """Whether a sync is running, and its latest progress."""
    progress = engine.last_progress
    return SyncStatusResponse(
        busy=engine.is_busy,
        state=engine.state.value,
        progress=_sync_progress_model(progress) if progress else None,
    )


@router.post("/sync/cancel", response_model=CancelResponse)
async def cancel_sync(
    engine: Annotated[SyncEngine, Depends(get_sync_engine)],
) -> CancelResponse:
    """Stop the running sync after its in-flight batch."""
    return CancelResponse(cancelled=engine.cancel())
