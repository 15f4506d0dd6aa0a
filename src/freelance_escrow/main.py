"""FastAPI application entry point for the freelance escrow service.

Lifecycle:
    1. Build: pick the job repository and lock backends from settings and
       attach them to ``app.state``.
    2. Startup: initialize logging, then the database and Redis when the
       chosen backends need them.
    3. Shutdown: close database and Redis connections gracefully.

Run with:
    uvicorn freelance_escrow.main:app --reload --host 0.0.0.0 --port 4000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from freelance_escrow.config import Settings, get_settings
from freelance_escrow.infrastructure.clock import MonotonicClock
from freelance_escrow.infrastructure.file_store import JsonFileJobRepository
from freelance_escrow.infrastructure.locks import LocalJobLocks, RedisJobLocks
from freelance_escrow.infrastructure.memory_store import InMemoryJobRepository
from freelance_escrow.logging_config import get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from freelance_escrow.domain.repository import JobLocks, JobRepository


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    settings: Settings = app.state.settings

    # 1. Setup structured logging
    setup_logging(
        log_level=settings.app_log_level,
        json_logs=not settings.is_development,
    )
    logger = get_logger(__name__)
    logger.info(
        "app.starting",
        env=settings.app_env,
        storage=settings.storage_backend,
        locks=settings.lock_backend,
    )
    if not settings.escrow_address:
        logger.warning("app.escrow_address_missing")

    # 2. Initialize database
    if settings.storage_backend == "database":
        from freelance_escrow.infrastructure.database.engine import init_db

        await init_db()

    # 3. Initialize Redis
    if settings.lock_backend == "redis":
        from freelance_escrow.infrastructure.redis_client import init_redis

        await init_redis(settings.redis_url)

    logger.info("app.started", host=settings.app_host, port=settings.app_port)

    yield

    # Shutdown
    logger.info("app.shutting_down")
    if settings.storage_backend == "database":
        from freelance_escrow.infrastructure.database.engine import close_db

        await close_db()
    if settings.lock_backend == "redis":
        from freelance_escrow.infrastructure.redis_client import close_redis

        await close_redis()
    logger.info("app.stopped")


def build_repository(settings: Settings) -> JobRepository | None:
    """Shared repository for the memory and file backends.

    The database backend opens a session-bound repository per request.
    """
    if settings.storage_backend == "memory":
        return InMemoryJobRepository()
    if settings.storage_backend == "file":
        return JsonFileJobRepository(settings.jobs_file_path)
    return None


def build_locks(settings: Settings) -> JobLocks:
    if settings.lock_backend == "redis":
        from freelance_escrow.infrastructure.redis_client import get_redis

        return RedisJobLocks(
            get_redis,
            timeout=settings.lock_timeout_seconds,
            blocking_timeout=settings.lock_blocking_timeout_seconds,
        )
    return LocalJobLocks()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory - creates and configures the FastAPI app."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Freelance Escrow",
        description=(
            "Client/freelancer job board with escrow-backed payment. "
            "The server prepares unsigned transfers; wallets sign them."
        ),
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.app_debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # --- Shared collaborators ---
    app.state.settings = settings
    app.state.clock = MonotonicClock()
    app.state.job_repository = build_repository(settings)
    app.state.job_locks = build_locks(settings)

    # --- Middleware ---
    from freelance_escrow.api.middleware import setup_middleware

    setup_middleware(app, settings)

    # --- REST API Routes ---
    from freelance_escrow.api.routes.health import router as health_router
    from freelance_escrow.api.routes.jobs import router as jobs_router

    app.include_router(health_router)
    app.include_router(jobs_router)

    return app


# The app instance used by Uvicorn
app = create_app()
