from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from arenagod.api import health_router, riot_router, tracker_router
from arenagod.api.dependencies import build_sync_engine, get_riot_config, get_store
from arenagod.config import settings
from arenagod.db.database import init_db


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create tables and the shared sync engine; close its HTTP client on shutdown."""
    await init_db()
    app.state.sync_engine = build_sync_engine(get_store(), get_riot_config())
    yield
    await app.state.sync_engine.client.aclose()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("arenagod"),
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(riot_router)
app.include_router(tracker_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
