"""
Batch fetch scheduler.

Turns a list of match IDs into the tracked player's match results while
staying under the upstream rate limit:

- IDs are processed in fixed-size batches
- within a batch, cache misses are fetched concurrently
- batches run strictly one after another, separated by a fixed delay

The inter-batch delay is the admission control for the upstream quota
(N requests per T seconds); it is never skipped except after the final batch
or once cancellation has been requested.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from arenagod.config import Settings, settings
from arenagod.db.store import TrackerStore
from arenagod.models.failure import StorageError, TransientApiError
from arenagod.models.match import (
    FetchedMatch,
    MatchParticipant,
    Region,
    SyncProgress,
    reduce_to_result,
)
from arenagod.riot.client import RiotClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[[SyncProgress], None]
BatchCallback = Callable[[list[FetchedMatch]], Awaitable[None]]
Sleep = Callable[[float], Awaitable[None]]

DEFAULT_BATCH_SIZE = 10


def partition(items: Sequence[T], size: int) -> list[list[T]]:
    """Split a sequence into consecutive chunks of at most `size` items."""
    if size <= 0:
        raise ValueError(f"Batch size must be positive, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def batch_delay_for_budget(
    batch_size: int,
    requests_per_window: int,
    window_seconds: float,
    min_delay: float = 0.0,
) -> float:
    """
    Seconds to wait between batches to stay within a request budget.

    A batch issues up to `batch_size` requests, so spacing batches by
    batch_size * window / requests keeps the average rate under the quota.
    """
    if requests_per_window <= 0:
        raise ValueError("requests_per_window must be positive")
    return max(min_delay, batch_size * window_seconds / requests_per_window)


@dataclass(frozen=True)
class SchedulerConfig:
    """Batch size and inter-batch delay."""

    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay: float = 12.0

    @classmethod
    def from_settings(cls, source: Settings = settings) -> "SchedulerConfig":
        return cls(
            batch_size=source.batch_size,
            batch_delay=batch_delay_for_budget(
                source.batch_size,
                source.requests_per_window,
                source.rate_window_seconds,
                source.min_batch_delay,
            ),
        )


class BatchFetchScheduler:
    """Fetches and caches match detail in rate-limited batches."""

    def __init__(
        self,
        client: RiotClient,
        store: TrackerStore,
        config: SchedulerConfig | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.client = client
        self.store = store
        self.config = config or SchedulerConfig()
        self._sleep = sleep

    async def _fetch_participants(
        self, match_id: str, region: Region
    ) -> list[MatchParticipant] | None:
        """Fetch one match; a failure yields None and is only logged."""
        try:
            return await self.client.fetch_match_detail(match_id, region)
        except TransientApiError as e:
            logger.warning(
                "MATCH_FETCH_FAILED",
                extra={"match_id": match_id, "kind": e.kind.value, "error": e.message},
            )
            return None

    async def _process_batch(
        self, batch: list[str], puuid: str, region: Region
    ) -> list[FetchedMatch]:
        cached = await self.store.get_cached_participants(batch)
        misses = [match_id for match_id in batch if match_id not in cached]

        fetched_lists = await asyncio.gather(
            *(self._fetch_participants(match_id, region) for match_id in misses)
        )
        fetched: dict[str, list[MatchParticipant]] = {}
        for match_id, participants in zip(misses, fetched_lists, strict=True):
            if participants is None:
                continue
            fetched[match_id] = participants
            try:
                await self.store.cache_participants(match_id, participants)
            except StorageError as e:
                logger.error(
                    "MATCH_CACHE_WRITE_FAILED",
                    extra={"match_id": match_id, "error": e.detail},
                )

        results: list[FetchedMatch] = []
        for match_id in batch:
            from_cache = match_id in cached
            participants = cached[match_id] if from_cache else fetched.get(match_id)
            if participants is None:
                continue

            result = reduce_to_result(match_id, participants, puuid)
            if result is None:
                logger.warning("PLAYER_NOT_IN_MATCH", extra={"match_id": match_id})
                continue
            results.append(FetchedMatch(result=result, from_cache=from_cache))

        return results

    async def fetch_matches(
        self,
        match_ids: Sequence[str],
        puuid: str,
        region: Region,
        *,
        on_progress: ProgressCallback | None = None,
        on_batch: BatchCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[FetchedMatch]:
        """
        Process match IDs in rate-limited batches.

        Args:
            match_ids: Candidate IDs, processed in the given order
            puuid: Tracked player; selects the participant in each match
            region: Player region
            on_progress: Receives a SyncProgress after every batch
            on_batch: Awaited with each batch's results (checkpoint hook)
            cancel_event: When set, no further batch is started

        Returns:
            Successfully processed results in insertion order. Failed
            fetches and matches without the player are omitted.
        """
        batches = partition(match_ids, self.config.batch_size)
        total = len(match_ids)
        processed = 0
        first_places = 0
        results: list[FetchedMatch] = []

        logger.info(
            "BATCH_FETCH_STARTED",
            extra={"total": total, "batches": len(batches), "delay": self.config.batch_delay},
        )

        for index, batch in enumerate(batches):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("BATCH_FETCH_CANCELLED", extra={"completed_batches": index})
                break

            batch_results = await self._process_batch(batch, puuid, region)
            results.extend(batch_results)

            processed += len(batch)
            first_places += sum(1 for item in batch_results if item.result.is_first_place)
            remaining_batches = len(batches) - index - 1

            if on_progress is not None:
                on_progress(
                    SyncProgress(
                        total_candidate_matches=total,
                        fetched_count=processed,
                        estimated_seconds_remaining=remaining_batches * self.config.batch_delay,
                        new_first_place_count=first_places,
                    )
                )
            if on_batch is not None:
                await on_batch(batch_results)

            cancelled = cancel_event is not None and cancel_event.is_set()
            if remaining_batches > 0 and not cancelled:
                await self._sleep(self.config.batch_delay)

        logger.info("BATCH_FETCH_FINISHED", extra={"processed": processed, "kept": len(results)})
        return results
