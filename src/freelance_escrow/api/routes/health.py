"""Health check endpoint.

Reports which storage and lock backends are active and, for the database
and Redis backends, whether they answer.
"""

from __future__ import annotations

import sqlalchemy
from fastapi import APIRouter, Depends

from freelance_escrow.api.deps import get_app_settings
from freelance_escrow.config import Settings  # noqa: TC001
from freelance_escrow.logging_config import get_logger
from freelance_escrow.schemas.jobs import HealthResponse

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


async def _storage_status(backend: str) -> str:
    if backend != "database":
        return backend
    try:
        from freelance_escrow.infrastructure.database.engine import _get_engine

        async with _get_engine().connect() as conn:
            await conn.execute(sqlalchemy.text("SELECT 1"))
    except Exception as exc:
        logger.error("health.db_check_failed", error=str(exc))
        return f"unhealthy: {exc}"
    return "database: healthy"


async def _locks_status(backend: str) -> str:
    if backend != "redis":
        return backend
    try:
        from freelance_escrow.infrastructure.redis_client import get_redis

        await get_redis().ping()
    except Exception as exc:
        logger.error("health.redis_check_failed", error=str(exc))
        return f"unhealthy: {exc}"
    return "redis: healthy"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health status of the application and its backends.",
)
@router.get("/api/health", response_model=HealthResponse, include_in_schema=False)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    storage = await _storage_status(settings.storage_backend)
    locks = await _locks_status(settings.lock_backend)

    unhealthy = storage.startswith("unhealthy") or locks.startswith("unhealthy")
    return HealthResponse(
        status="degraded" if unhealthy else "ok",
        storage=storage,
        locks=locks,
    )
