"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tasktracker import __version__
from tasktracker.api import auth, tasks
from tasktracker.api.errors import register_exception_handlers
from tasktracker.api.middleware import (
    RateLimiter,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    UnhandledErrorMiddleware,
)
from tasktracker.config import Settings, get_settings
from tasktracker.database import Database

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Build the API application around an explicit store handle."""
    settings = settings or get_settings()
    owns_database = database is None
    database = database or Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle application startup and shutdown events."""
        logger.info(f"Task Tracker API starting in {settings.environment} mode")
        yield
        if owns_database:
            database.dispose()
        logger.info("Database connections closed")

    app = FastAPI(
        title="Task Tracker API",
        description="Personal task tracking with per-user task lists",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    register_exception_handlers(app, settings)

    # Added last-to-first: CORS is outermost, rate limiting runs before routing
    app.add_middleware(UnhandledErrorMiddleware, settings=settings)
    app.add_middleware(SecurityHeadersMiddleware)
    if settings.rate_limit_enabled:
        app.state.rate_limiter = RateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
        app.add_middleware(RateLimitMiddleware, limiter=app.state.rate_limiter)
    if settings.is_development:
        app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(auth.router)
    app.include_router(tasks.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "OK",
            "message": "Task Tracker API is running",
            "timestamp": datetime.now(UTC).isoformat(),
            "environment": settings.environment,
        }

    return app
