from arenagod.api.health import router as health_router
from arenagod.api.riot import router as riot_router
from arenagod.api.tracker import router as tracker_router

__all__ = [
    "health_router",
    "riot_router",
    "tracker_router",
]
