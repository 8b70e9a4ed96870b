"""
Database CRUD operations.

Provides async functions for reading and writing key/value entries and
the match-detail cache.
"""

from collections.abc import Iterable
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from arenagod.config import CACHE_SCHEMA_VERSION
from arenagod.models.db import KeyValueDB, MatchCacheDB

# --- Key/Value Operations ---


async def get_value(session: AsyncSession, key: str) -> str | None:
    """
    Get the raw string stored under a key.

    Returns None if the key has never been written.
    """
    entry = await session.get(KeyValueDB, key)
    return entry.value if entry else None


async def set_value(session: AsyncSession, key: str, value: str) -> KeyValueDB:
    """Overwrite the whole value stored under a key."""
    entry = await session.get(KeyValueDB, key)

    if entry:
        entry.value = value
    else:
        entry = KeyValueDB(key=key, value=value)
        session.add(entry)

    await session.flush()
    return entry


# --- Match Cache Operations ---


async def get_cached_matches(
    session: AsyncSession, match_ids: Iterable[str]
) -> dict[str, MatchCacheDB]:
    """
    Look up cached match detail for several matches in one query.

    Returns a mapping containing only the IDs that are cached.
    """
    ids = list(match_ids)
    if not ids:
        return {}

    result = await session.execute(select(MatchCacheDB).where(MatchCacheDB.match_id.in_(ids)))
    return {row.match_id: row for row in result.scalars().all()}


async def cache_match(
    session: AsyncSession, match_id: str, participants: list[dict[str, Any]]
) -> bool:
    """
    Cache a match's participant list.

    Write-once: an existing entry is left untouched.

    Returns:
        True if a new row was written, False if the match was already cached.
    """
    existing = await session.get(MatchCacheDB, match_id)
    if existing:
        return False

    session.add(
        MatchCacheDB(
            match_id=match_id,
            schema_version=CACHE_SCHEMA_VERSION,
            participants=participants,
        )
    )
    await session.flush()
    return True


async def count_cached_matches(session: AsyncSession) -> int:
    """Number of cached matches."""
    result = await session.execute(select(func.count()).select_from(MatchCacheDB))
    return int(result.scalar_one())
