# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the SchoolPortal API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from src import __version__
from src.api.dependencies import get_password_hasher
from src.api.middleware import (
    AuthMiddleware,
    RequestContextMiddleware,
    limiter,
    rate_limit_exceeded_handler,
)
from src.api.routes import health
from src.api.v1 import router as v1_router
from src.api.v1.chat_socket import get_chat_manager
from src.core.config import get_settings
from src.infrastructure.cache import RedisError, close_redis, get_redis, init_redis
from src.infrastructure.database import (
    DatabaseError,
    close_database,
    get_session,
    init_database,
)
from src.infrastructure.database.migrations.runner import run_migrations
from src.infrastructure.database.seeds import seed_initial_admin
from src.infrastructure.events import RedisEventRelay, get_event_bus
from src.infrastructure.storage import StorageError, init_storage
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the application.
    Initializes and cleans up:
    - Database connection (and pending migrations when enabled)
    - Blob storage
    - Redis relay for realtime events (when enabled)
    - Chat connection manager subscription

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting SchoolPortal API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    # =========================================================================
    # Startup
    # =========================================================================

    if settings.database.auto_migrate:
        applied = await run_migrations(settings.database.url)
        logger.info("Applied %d migrations", len(applied))

    await init_database(settings)
    logger.info("Database connection initialized")

    if settings.bootstrap.enabled:
        async with get_session() as session:
            await seed_initial_admin(session, settings.bootstrap, get_password_hasher())

    init_storage(settings)
    logger.info("Blob storage initialized (%s)", settings.storage.backend)

    get_chat_manager().attach(get_event_bus())

    relay: RedisEventRelay | None = None
    if settings.redis.enabled:
        try:
            await init_redis(settings)
            relay = RedisEventRelay(get_event_bus(), get_redis(), settings.redis.channel)
            await relay.start()
        except RedisError as e:
            logger.warning("Realtime relay disabled, Redis unavailable: %s", e)
            relay = None

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    if relay is not None:
        await relay.stop()
    if settings.redis.enabled:
        await close_redis()
        logger.info("Redis connection closed")

    get_chat_manager().detach()

    await close_database()
    logger.info("Shutting down SchoolPortal API")


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "Document storage is unavailable"},
    )


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    logger.error("Database failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Database is unavailable"},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a new FastAPI instance with all
    middleware, routes, and configurations applied.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="SchoolPortal API",
        description="School enrollment and management backend",
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
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    # Default rate limit, keyed by the user resolved in AuthMiddleware
    app.add_middleware(SlowAPIMiddleware)

    # Auth middleware - validates JWT tokens
    app.add_middleware(AuthMiddleware)

    # Request ID and structured log context
    app.add_middleware(RequestContextMiddleware)

    # CORS middleware (should be last to execute first)
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
