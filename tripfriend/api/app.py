# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the TripFriend API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from tripfriend import __version__
from tripfriend.api.errors import register_exception_handlers
from tripfriend.api.middleware.auth import AuthMiddleware
from tripfriend.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from tripfriend.api.routes import health
from tripfriend.api.v1 import router as v1_router
from tripfriend.core.config import get_settings
from tripfriend.infrastructure.background import start_scheduler, stop_scheduler
from tripfriend.infrastructure.cache import close_redis, init_redis
from tripfriend.infrastructure.database import close_database, init_database
from tripfriend.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the application.
    Initializes and cleans up:
    - Database connection pool
    - Redis credential store
    - APScheduler for the daily member purge

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting TripFriend API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    # =========================================================================
    # Startup
    # =========================================================================

    await init_database(settings, create_tables=settings.db.create_tables)
    logger.info("Database connection initialized")

    await init_redis(settings)
    logger.info("Redis connection initialized")

    if settings.scheduler_enabled:
        await start_scheduler(settings)

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    # Stop scheduler first (its job uses the database)
    await stop_scheduler()

    await close_redis()
    logger.info("Redis connection closed")

    await close_database()
    logger.info("Database connection closed")

    logger.info("Shutting down TripFriend API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a new FastAPI instance with all
    middleware, routes, and configurations applied.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="TripFriend API",
        description="Travel companion matching backend",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Disable automatic redirects from /path to /path/
        # This prevents 307 redirects that lose Authorization headers
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.limiter = limiter

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    register_exception_handlers(app)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    # Auth middleware - recovery-mode gate
    app.add_middleware(AuthMiddleware)

    # CORS middleware (added last to execute first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
