"""
Incremental match-history sync.

One `update()` call walks the state machine

    IDLE -> RESOLVING_IDENTITY -> BACKFILLING | INCREMENTING
         -> MERGING -> PROJECTING_PROGRESS -> IDLE

with ERROR reachable from RESOLVING_IDENTITY (and from an unreadable
history or a failed incremental listing), returning to IDLE with a
user-visible message. A backfill listing failure keeps the candidates
already collected and reports the partial load in the outcome.

Strategy:
- Backfill (history empty): walk month-long windows over the last ~2 years,
  oldest window first, paginating each window until a short page.
- Incremental (history present): page newest-first until the first match ID
  already in history; everything before it is new.

Results are checkpointed into history and progress after every batch, so
matches fetched before a later failure or cancellation are kept.

INVARIANTS:
- At most one sync runs per engine (busy flag)
- History never holds two entries with the same match ID
- Progress is always recomputed from the merged history
"""

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from arenagod.config import BACKFILL_WINDOW_SECONDS, Settings, settings
from arenagod.db.store import TrackerStore
from arenagod.models.failure import (
    PlayerNotFoundError,
    StorageError,
    SyncInProgressError,
    TransientApiError,
)
from arenagod.models.match import (
    ArenaProgress,
    FetchedMatch,
    MatchResult,
    PlayerIdentity,
    Region,
    RiotId,
    SyncOutcome,
    SyncProgress,
    SyncState,
    SyncStrategy,
    parse_region,
)
from arenagod.riot.client import RiotClient
from arenagod.services.progress import count_first_places, project_progress
from arenagod.services.scheduler import BatchFetchScheduler, ProgressCallback

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
DEFAULT_BACKFILL_MONTHS = 24


@dataclass(frozen=True)
class SyncConfig:
    """Candidate discovery settings."""

    page_size: int = DEFAULT_PAGE_SIZE
    backfill_months: int = DEFAULT_BACKFILL_MONTHS
    window_seconds: int = BACKFILL_WINDOW_SECONDS

    @classmethod
    def from_settings(cls, source: Settings = settings) -> "SyncConfig":
        return cls(page_size=source.match_page_size, backfill_months=source.backfill_months)


def build_backfill_windows(
    now: int, months: int, window_seconds: int = BACKFILL_WINDOW_SECONDS
) -> list[tuple[int, int]]:
    """
    Half-open [start, end) epoch windows covering the last `months` windows.

    Ordered oldest first; the last window ends at `now`.
    """
    return [
        (now - i * window_seconds, now - (i - 1) * window_seconds) for i in range(months, 0, -1)
    ]


def merge_history(existing: Iterable[MatchResult], new: Iterable[MatchResult]) -> list[MatchResult]:
    """
    Merge new results into history.

    New results are prepended, duplicates collapse by match ID (last write
    wins; a given ID always carries the same content), and the result is
    sorted by match ID descending to approximate newest-first order.
    """
    by_id: dict[str, MatchResult] = {}
    for match in [*new, *existing]:
        by_id[match.match_id] = match
    return sorted(by_id.values(), key=lambda m: m.match_id, reverse=True)


class SyncEngine:
    """
    Coordinates identity lookup, candidate discovery, batch fetching and merging.

    Holds only transient in-flight state; durable state lives in the store.
    """

    def __init__(
        self,
        client: RiotClient,
        store: TrackerStore,
        scheduler: BatchFetchScheduler,
        config: SyncConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.store = store
        self.scheduler = scheduler
        self.config = config or SyncConfig()
        self._clock = clock
        self._lock = asyncio.Lock()
        self._cancel_event = asyncio.Event()
        self.state = SyncState.IDLE
        self.last_progress: SyncProgress | None = None

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    def cancel(self) -> bool:
        """
        Request cancellation of the running sync.

        No new batch starts; the in-flight batch drains and is kept.

        Returns:
            True if a sync was running.
        """
        if not self.is_busy:
            return False
        logger.info("SYNC_CANCEL_REQUESTED")
        self._cancel_event.set()
        return True

    async def update(
        self,
        game_name: str,
        tag_line: str,
        region: Region | str,
        on_progress: ProgressCallback | None = None,
    ) -> SyncOutcome:
        """
        Run one sync for a player.

        Raises:
            SyncInProgressError: If another sync is running
            InvalidRegionError: If the region is not supported
        """
        if self._lock.locked():
            raise SyncInProgressError()

        parsed_region = parse_region(region)

        async with self._lock:
            self._cancel_event = asyncio.Event()
            self.last_progress = None
            try:
                return await self._run(
                    game_name.strip(), tag_line.strip(), parsed_region, on_progress
                )
            finally:
                self.state = SyncState.IDLE

    async def _run(
        self,
        game_name: str,
        tag_line: str,
        region: Region,
        on_progress: ProgressCallback | None,
    ) -> SyncOutcome:
        logger.info(
            "SYNC_STARTED",
            extra={"riot_id": f"{game_name}#{tag_line}", "region": region.value},
        )
        await self._remember_player(RiotId(game_name=game_name, tag_line=tag_line), region)

        self.state = SyncState.RESOLVING_IDENTITY
        try:
            identity = await self.client.resolve_identity(game_name, tag_line, region)
        except (PlayerNotFoundError, TransientApiError) as e:
            return await self._fail(e.message)

        try:
            history = await self.store.get_match_history()
        except StorageError as e:
            return await self._fail(e.message, history=[])
        known_ids = {m.match_id for m in history}
        listing_error: str | None = None

        if history:
            strategy = SyncStrategy.INCREMENTAL
            self.state = SyncState.INCREMENTING
            try:
                candidates = await self.collect_incremental_ids(identity, known_ids)
            except TransientApiError as e:
                return await self._fail(e.message, strategy=strategy, history=history)
        else:
            strategy = SyncStrategy.BACKFILL
            self.state = SyncState.BACKFILLING
            candidates, listing_error = await self.collect_backfill_ids(identity)

        candidates = [match_id for match_id in candidates if match_id not in known_ids]
        if not candidates:
            logger.info("SYNC_NO_NEW_MATCHES", extra={"strategy": strategy.value})
            return SyncOutcome(
                strategy=strategy,
                total_matches=len(history),
                progress=project_progress(history),
                cancelled=self._cancel_event.is_set(),
                error=listing_error,
            )

        merged = history

        async def checkpoint(batch_results: list[FetchedMatch]) -> None:
            nonlocal merged
            if not batch_results:
                return
            merged = merge_history(merged, [item.result for item in batch_results])
            await self._persist(merged, project_progress(merged))

        def emit(progress: SyncProgress) -> None:
            self.last_progress = progress
            if on_progress is not None:
                on_progress(progress)

        fetched = await self.scheduler.fetch_matches(
            candidates,
            identity.puuid,
            region,
            on_progress=emit,
            on_batch=checkpoint,
            cancel_event=self._cancel_event,
        )
        new_results = [item.result for item in fetched]

        self.state = SyncState.MERGING
        merged = merge_history(history, new_results)

        self.state = SyncState.PROJECTING_PROGRESS
        progress = project_progress(merged)
        await self._persist(merged, progress)

        outcome = SyncOutcome(
            strategy=strategy,
            new_matches=len(new_results),
            total_matches=len(merged),
            new_first_places=count_first_places(new_results),
            progress=progress,
            cancelled=self._cancel_event.is_set(),
            error=listing_error,
        )
        logger.info(
            "SYNC_FINISHED",
            extra={
                "strategy": strategy.value,
                "candidates": len(candidates),
                "new_matches": outcome.new_matches,
                "new_first_places": outcome.new_first_places,
                "cancelled": outcome.cancelled,
                "partial": listing_error is not None,
            },
        )
        return outcome

    async def collect_backfill_ids(
        self, identity: PlayerIdentity
    ) -> tuple[list[str], str | None]:
        """
        Candidate IDs from every backfill window, oldest window first.

        A listing failure stops collection; IDs gathered so far are kept.
        Because windows run oldest first, the missing newer matches are
        picked up by the next incremental sync.

        Returns:
            The candidate IDs, and a user-visible message if listing stopped
            early because of an upstream failure (None otherwise).
        """
        windows = build_backfill_windows(
            int(self._clock()), self.config.backfill_months, self.config.window_seconds
        )
        seen: set[str] = set()
        collected: list[str] = []
        listing_error: str | None = None

        for start, end in windows:
            if self._cancel_event.is_set():
                break
            try:
                page_ids = await self._list_window(identity, start, end)
            except TransientApiError as e:
                logger.warning(
                    "BACKFILL_LISTING_FAILED",
                    extra={"window_start": start, "window_end": end, "error": e.message},
                )
                listing_error = (
                    f"History partially loaded: {e.message} Update again to load the rest."
                )
                break

            for match_id in page_ids:
                if match_id not in seen:
                    seen.add(match_id)
                    collected.append(match_id)

        logger.info(
            "BACKFILL_CANDIDATES",
            extra={"windows": len(windows), "candidates": len(collected)},
        )
        return collected, listing_error

    async def _list_window(self, identity: PlayerIdentity, start: int, end: int) -> list[str]:
        page_size = self.config.page_size
        offset = 0
        ids: list[str] = []
        while True:
            page = await self.client.list_match_ids(
                identity.puuid, identity.region, offset, page_size, start, end
            )
            ids.extend(page)
            if len(page) < page_size:
                return ids
            offset += page_size

    async def collect_incremental_ids(
        self, identity: PlayerIdentity, known_ids: set[str]
    ) -> list[str]:
        """
        IDs newer than the most recent known match.

        Pages newest-first and stops at the first known ID or a short page.
        A cancel between pages discards the partial candidates.

        Raises:
            TransientApiError: If a page cannot be listed. Partial candidates
                are discarded; keeping them would leave a gap below them that
                later incremental syncs could never see.
        """
        page_size = self.config.page_size
        offset = 0
        seen: set[str] = set()
        candidates: list[str] = []

        while True:
            if self._cancel_event.is_set():
                logger.info("INCREMENTAL_LISTING_CANCELLED", extra={"offset": offset})
                return []
            page = await self.client.list_match_ids(
                identity.puuid, identity.region, offset, page_size
            )
            for match_id in page:
                if match_id in known_ids:
                    logger.info(
                        "INCREMENTAL_OVERLAP_FOUND",
                        extra={"match_id": match_id, "new": len(candidates)},
                    )
                    return candidates
                if match_id not in seen:
                    seen.add(match_id)
                    candidates.append(match_id)

            if len(page) < page_size:
                return candidates
            offset += page_size

    async def _remember_player(self, riot_id: RiotId, region: Region) -> None:
        try:
            await self.store.set_riot_id(riot_id)
            await self.store.set_region(region)
        except StorageError as e:
            logger.error("STORE_WRITE_FAILED", extra={"key": e.key, "error": e.detail})

    async def _persist(self, history: list[MatchResult], progress: ArenaProgress) -> None:
        """Write history and progress; storage failures are logged, not raised."""
        try:
            await self.store.set_match_history(history)
            await self.store.set_arena_progress(progress)
        except StorageError as e:
            logger.error("STORE_WRITE_FAILED", extra={"key": e.key, "error": e.detail})

    async def _fail(
        self,
        message: str,
        *,
        strategy: SyncStrategy | None = None,
        history: list[MatchResult] | None = None,
    ) -> SyncOutcome:
        self.state = SyncState.ERROR
        logger.warning("SYNC_FAILED", extra={"reason": message})
        if history is None:
            try:
                history = await self.store.get_match_history()
            except StorageError:
                history = []
        return SyncOutcome(
            strategy=strategy,
            total_matches=len(history),
            progress=project_progress(history),
            error=message,
        )
