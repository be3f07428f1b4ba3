from fastapi import FastAPI

from .events import router as events_router
from .notifications import router as notifications_router
from .outages import router as outages_router
from .preferences import router as preferences_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(events_router)
    app.include_router(notifications_router)
    app.include_router(outages_router)
    app.include_router(preferences_router)
