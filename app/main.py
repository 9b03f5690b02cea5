import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import Settings, settings as app_settings
from app.core.database import Database
from app.core.errors import register_exception_handlers
from app.api.v1.router import api_router

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(config: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Settings override (tests)
        database: Store handle override; defaults to one built from DATABASE_URL
    """
    config = config or app_settings
    database = database or Database(config.DATABASE_URL, echo=config.DEBUG)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        configure_logging(config.LOG_LEVEL)
        await database.connect()
        app.state.database = database
        logger.info(f"{config.APP_NAME} started")

        yield

        # Shutdown
        await database.disconnect()
        logger.info(f"{config.APP_NAME} stopped")

    app = FastAPI(
        title=config.APP_NAME,
        description="Whiteboard canvas backend: user-owned chats and AI code analysis",
        version=config.APP_VERSION,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include API routes
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
