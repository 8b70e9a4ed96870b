"""
Typed tracker store.

Wraps the key/value table and match cache behind typed accessors. Each
call runs in its own session and commits on success.

Reads tolerate absence and corrupt values and return empty defaults; a
store that cannot be queried raises StorageReadError, so an unreadable
value is never mistaken for an empty one. Writes raise StorageError so
callers can log and continue.
"""

import json
import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from arenagod.db.operations import cache_match, get_cached_matches, get_value, set_value
from arenagod.models.failure import InvalidRegionError, StorageError, StorageReadError
from arenagod.models.match import (
    ArenaProgress,
    ManualOverrides,
    MatchParticipant,
    MatchResult,
    Region,
    RiotId,
    parse_region,
)

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    "RIOT_ID": "arena-god-riot-id",
    "REGION": "arena-god-region",
    "MATCH_HISTORY": "arena-god-match-history",
    "ARENA_PROGRESS": "arena-god-progress",
    "MANUAL_PROGRESS": "arena-god-manual-progress",
}


class TrackerStore:
    """Durable tracker state: identity, region, history, progress and match cache."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # --- raw JSON helpers ---

    async def _read_json(self, key: str) -> Any | None:
        try:
            async with self._session_factory() as session:
                raw = await get_value(session, key)
        except SQLAlchemyError as e:
            logger.error("STORE_READ_FAILED", extra={"key": key, "error": str(e)})
            raise StorageReadError(key, detail=str(e)) from e

        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("STORE_VALUE_CORRUPT", extra={"key": key})
            return None

    async def _write_json(self, key: str, value: Any) -> None:
        payload = json.dumps(value)
        try:
            async with self._session_factory() as session:
                await set_value(session, key, payload)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(key, detail=str(e)) from e

    # --- identity ---

    async def get_riot_id(self) -> RiotId | None:
        data = await self._read_json(STORAGE_KEYS["RIOT_ID"])
        if not isinstance(data, dict):
            return None
        try:
            return RiotId.from_dict(data)
        except KeyError:
            return None

    async def set_riot_id(self, riot_id: RiotId) -> None:
        await self._write_json(STORAGE_KEYS["RIOT_ID"], riot_id.to_dict())

    async def get_region(self) -> Region | None:
        data = await self._read_json(STORAGE_KEYS["REGION"])
        if not isinstance(data, str):
            return None
        try:
            return parse_region(data)
        except InvalidRegionError:
            return None

    async def set_region(self, region: Region) -> None:
        await self._write_json(STORAGE_KEYS["REGION"], region.value)

    # --- history and progress ---

    async def get_match_history(self) -> list[MatchResult]:
        """Stored history, newest first."""
        data = await self._read_json(STORAGE_KEYS["MATCH_HISTORY"])
        if not isinstance(data, list):
            return []

        history: list[MatchResult] = []
        for item in data:
            try:
                history.append(MatchResult.from_dict(item))
            except (KeyError, TypeError, ValueError):
                logger.warning("STORE_HISTORY_ENTRY_SKIPPED", extra={"entry": repr(item)})
        return history

    async def set_match_history(self, history: list[MatchResult]) -> None:
        await self._write_json(STORAGE_KEYS["MATCH_HISTORY"], [m.to_dict() for m in history])

    async def get_arena_progress(self) -> ArenaProgress:
        data = await self._read_json(STORAGE_KEYS["ARENA_PROGRESS"])
        if not isinstance(data, dict):
            return ArenaProgress()
        return ArenaProgress.from_dict(data)

    async def set_arena_progress(self, progress: ArenaProgress) -> None:
        await self._write_json(STORAGE_KEYS["ARENA_PROGRESS"], progress.to_dict())

    async def get_manual_overrides(self) -> ManualOverrides:
        data = await self._read_json(STORAGE_KEYS["MANUAL_PROGRESS"])
        if not isinstance(data, dict):
            return ManualOverrides()
        return ManualOverrides.from_dict(data)

    async def set_manual_overrides(self, overrides: ManualOverrides) -> None:
        await self._write_json(STORAGE_KEYS["MANUAL_PROGRESS"], overrides.to_dict())

    # --- match cache ---

    async def get_cached_participants(
        self, match_ids: Iterable[str]
    ) -> dict[str, list[MatchParticipant]]:
        """
        Cached participant lists for the given matches.

        Entries that cannot be decoded are treated as cache misses.
        """
        try:
            async with self._session_factory() as session:
                rows = await get_cached_matches(session, match_ids)
        except SQLAlchemyError as e:
            logger.error("CACHE_READ_FAILED", extra={"error": str(e)})
            return {}

        cached: dict[str, list[MatchParticipant]] = {}
        for match_id, row in rows.items():
            try:
                cached[match_id] = [MatchParticipant.from_dict(p) for p in row.participants]
            except (KeyError, TypeError, ValueError):
                logger.warning("CACHE_ENTRY_UNREADABLE", extra={"match_id": match_id})
        return cached

    async def cache_participants(self, match_id: str, participants: list[MatchParticipant]) -> bool:
        """
        Write a match's participants to the cache if not already present.

        Returns:
            True if the entry was written, False if it already existed.
        """
        try:
            async with self._session_factory() as session:
                written = await cache_match(session, match_id, [p.to_dict() for p in participants])
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"match-cache/{match_id}", detail=str(e)) from e
        return written
