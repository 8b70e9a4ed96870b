"""
Run one match-history sync from the command line.

Usage:
    python -m arenagod.jobs.sync_player "Game Name" TAG --region EUW
"""

import argparse
import asyncio
import logging

from arenagod.db.database import async_session_factory, init_db
from arenagod.db.store import TrackerStore
from arenagod.models.match import REGION_TO_CONTINENT, SyncOutcome, SyncProgress
from arenagod.riot.client import RiotClient, RiotClientConfig
from arenagod.services.scheduler import BatchFetchScheduler, SchedulerConfig
from arenagod.services.sync_engine import SyncConfig, SyncEngine

logger = logging.getLogger(__name__)


def log_progress(progress: SyncProgress) -> None:
    logger.info(
        "Processed %d of %d matches (%d new first places). %s",
        progress.fetched_count,
        progress.total_candidate_matches,
        progress.new_first_place_count,
        progress.format_eta(),
    )


async def run_sync(game_name: str, tag_line: str, region: str) -> SyncOutcome:
    """
    Sync one player against the configured local store.

    Args:
        game_name: Riot ID game name
        tag_line: Riot ID tag line
        region: Region name (NA, EUW, ...)

    Returns:
        The sync outcome
    """
    await init_db()
    store = TrackerStore(async_session_factory)

    async with RiotClient(RiotClientConfig.from_settings()) as client:
        scheduler = BatchFetchScheduler(client, store, SchedulerConfig.from_settings())
        engine = SyncEngine(client, store, scheduler, SyncConfig.from_settings())
        return await engine.update(game_name, tag_line, region, on_progress=log_progress)


def main() -> None:
    """CLI entry point for a single sync."""
    parser = argparse.ArgumentParser(description="Sync Arena match history for a player")
    parser.add_argument("game_name", help="Riot ID game name")
    parser.add_argument("tag_line", help="Riot ID tag line (without #)")
    parser.add_argument(
        "--region",
        default="NA",
        choices=[region.value for region in REGION_TO_CONTINENT],
        help="Player region (default: NA)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    outcome = asyncio.run(run_sync(args.game_name, args.tag_line, args.region))

    if outcome.error:
        logger.error("Sync failed: %s", outcome.error)
        raise SystemExit(1)

    logger.info(
        "Sync complete (%s): %d new matches, %d total, %d new first places. "
        "%d champions played, %d with a first place.",
        outcome.strategy.value if outcome.strategy else "none",
        outcome.new_matches,
        outcome.total_matches,
        outcome.new_first_places,
        len(outcome.progress.played_champions),
        len(outcome.progress.first_place_champions),
    )


if __name__ == "__main__":
    main()
