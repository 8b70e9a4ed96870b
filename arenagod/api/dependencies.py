"""
FastAPI dependencies for tracker components.

The sync engine is shared per application (it owns the busy flag), so it
lives on `app.state`. It is created at startup by the lifespan handler, or
lazily on first use when the app runs without one.
"""

from fastapi import Request

from arenagod.db.database import async_session_factory
from arenagod.db.store import TrackerStore
from arenagod.riot.client import RiotClient, RiotClientConfig
from arenagod.services.scheduler import BatchFetchScheduler, SchedulerConfig
from arenagod.services.sync_engine import SyncConfig, SyncEngine


def get_riot_config() -> RiotClientConfig:
    """Upstream connection settings."""
    return RiotClientConfig.from_settings()


def get_store() -> TrackerStore:
    """Tracker store bound to the application database."""
    return TrackerStore(async_session_factory)


def build_sync_engine(store: TrackerStore, riot_config: RiotClientConfig) -> SyncEngine:
    """Wire client, scheduler and engine from settings."""
    client = RiotClient(riot_config)
    scheduler = BatchFetchScheduler(client, store, SchedulerConfig.from_settings())
    return SyncEngine(client, store, scheduler, SyncConfig.from_settings())


def get_sync_engine(request: Request) -> SyncEngine:
    """The application's shared sync engine."""
    engine: SyncEngine | None = getattr(request.app.state, "sync_engine", None)
    if engine is None:
        engine = build_sync_engine(get_store(), get_riot_config())
        request.app.state.sync_engine = engine
    return engine
