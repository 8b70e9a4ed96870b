from arenagod.db.database import async_session_factory, get_session, init_db
from arenagod.db.operations import (
    cache_match,
    count_cached_matches,
    get_cached_matches,
    get_value,
    set_value,
)
from arenagod.db.store import STORAGE_KEYS, TrackerStore

__all__ = [
    "STORAGE_KEYS",
    "TrackerStore",
    "async_session_factory",
    "cache_match",
    "count_cached_matches",
    "get_cached_matches",
    "get_session",
    "get_value",
    "init_db",
    "set_value",
]
