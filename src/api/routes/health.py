# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

- GET /health - Liveness with a component summary
- GET /health/live - Bare liveness check
- GET /health/ready - Readiness check, 503 when the database is down
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from src import __version__
from src.core.config import get_settings
from src.infrastructure.cache import get_redis, is_redis_initialized
from src.infrastructure.database.connection import check_database_connection
from src.infrastructure.storage import StorageError, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""
    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class ComponentsHealth(BaseModel):
    """All components health status."""
    database: ComponentHealth
    redis: ComponentHealth
    storage: ComponentHealth


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    checked_at: datetime = Field(description="When health was checked")
    components: ComponentsHealth


class ReadinessResponse(BaseModel):
    """Readiness check response model."""
    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


async def check_database() -> ComponentHealth:
    start = time.time()
    if not await check_database_connection():
        logger.error("Database health check failed")
        return ComponentHealth(status="unhealthy", message="Database unreachable")
    return ComponentHealth(status="healthy", latency_ms=round((time.time() - start) * 1000, 2))


async def check_redis() -> ComponentHealth:
    """Redis only matters when the realtime relay is enabled."""
    if not get_settings().redis.enabled:
        return ComponentHealth(status="disabled")
    if not is_redis_initialized():
        return ComponentHealth(status="unhealthy", message="Redis client not initialized")

    start = time.time()
    if not await get_redis().ping():
        logger.error("Redis health check failed")
        return ComponentHealth(status="unhealthy", message="Redis did not answer")
    return ComponentHealth(status="healthy", latency_ms=round((time.time() - start) * 1000, 2))


def check_storage() -> ComponentHealth:
    try:
        storage = get_storage()
    except StorageError as e:
        return ComponentHealth(status="unhealthy", message=str(e))
    return ComponentHealth(status="healthy", message=type(storage).__name__)


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check if the API is healthy with component details.

    Always answers 200 while the process runs; the overall status is
    ``healthy``, ``degraded`` (optional components down) or ``unhealthy``
    (database down).
    """
    settings = get_settings()

    db_health = await check_database()
    redis_health = await check_redis()
    storage_health = check_storage()

    if db_health.status != "healthy":
        overall_status = "unhealthy"
    elif "unhealthy" in (redis_health.status, storage_health.status):
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    return HealthResponse(
        status=overall_status,
        version=__version__,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        checked_at=datetime.now(timezone.utc),
        components=ComponentsHealth(
            database=db_health,
            redis=redis_health,
            storage=storage_health,
        ),
    )


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(response: Response) -> ReadinessResponse:
    """Check if the API is ready to accept traffic.

    Returns 503 when the database is unavailable.
    """
    db_health = await check_database()
    checks: dict[str, Any] = {
        "database": {"status": db_health.status, "latency_ms": db_health.latency_ms},
    }
    ready = db_health.status == "healthy"
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(ready=ready, checks=checks)
