"""
Homefinder API - FastAPI application entry point.

Serves the marketplace's public property search, the signed-in user's
personalized recommendations and saved preferences, and each agent's
own inventory.
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from homefinder.api import router
from homefinder.config import get_settings
from homefinder.db import dispose_engine, get_session

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Validates required settings on startup and releases pooled database
    connections on shutdown.
    """
    settings = get_settings()
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)

    if not settings.jwt_secret:
        raise RuntimeError("JWT_SECRET is required")
    if not settings.storage_bucket:
        raise RuntimeError("STORAGE_BUCKET is required")

    logger.info("Configuration validated successfully")
    yield
    await dispose_engine()
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Property search, filtering and personalized recommendations "
            "for the Homefinder real-estate marketplace."
        ),
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Session cookies are sent cross-origin, so origins must be explicit
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/health", tags=["health"])
    async def health_check(
        session: Annotated[AsyncSession, Depends(get_session)],
    ) -> dict:
        """
        Health check endpoint.

        Reports "degraded" rather than failing when the database cannot
        be reached.
        """
        try:
            await session.execute(text("SELECT 1"))
            database = "ok"
        except SQLAlchemyError as e:
            logger.warning("Database health check failed: %s", e)
            database = "unavailable"

        return {
            "status": "healthy" if database == "ok" else "degraded",
            "database": database,
            "app": settings.app_name,
            "version": settings.app_version,
        }

    @app.get("/", tags=["root"])
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# Create the application instance
app = create_app()
