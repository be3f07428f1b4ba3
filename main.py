import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from outage_notify.config import get_settings
from outage_notify.infrastructure.channels import notification_manager
from outage_notify.infrastructure.database import engine, initialize_database
from outage_notify.interfaces.api.dependencies import get_notification_service
from outage_notify.interfaces.api.routes import register_routes
from outage_notify.logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare logging and the database at startup and release resources on shutdown."""

    setup_logging(get_settings().log_level)
    initialize_database()
    notification_manager.bind_loop(asyncio.get_running_loop())
    yield
    notification_manager.bind_loop(None)
    if get_notification_service.cache_info().currsize:
        get_notification_service().close()
    engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(title="Outage Notify", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
