"""FastAPI dependency injection providers.

The application state (``app.state``) holds the long-lived collaborators
built by ``create_app``: settings, clock, job locks and, for the memory and
file backends, the shared job repository. The database backend gets a
fresh session-bound repository per request instead.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, Request

from freelance_escrow.config import Settings  # noqa: TC001
from freelance_escrow.domain.repository import JobRepository  # noqa: TC001
from freelance_escrow.infrastructure.database.engine import session_scope
from freelance_escrow.infrastructure.database.repositories import SqlJobRepository
from freelance_escrow.services.escrow_service import EscrowFlowService
from freelance_escrow.services.job_service import JobService


def get_app_settings(request: Request) -> Settings:
    """Provide the settings the app was built with."""
    return request.app.state.settings


async def get_job_repository(request: Request) -> AsyncGenerator[JobRepository, None]:
    """Provide the job repository for this request.

    The services commit database writes while they hold the job lock; the
    session is rolled back if the handler raised and closed afterwards.
    """
    if request.app.state.settings.storage_backend == "database":
        async with session_scope() as session:
            yield SqlJobRepository(session)
    else:
        yield request.app.state.job_repository


def get_job_service(
    request: Request,
    repository: JobRepository = Depends(get_job_repository),
) -> JobService:
    """Provide a JobService bound to the request's repository."""
    state = request.app.state
    return JobService(
        repository,
        locks=state.job_locks,
        clock=state.clock,
        currency=state.settings.currency,
    )


def get_escrow_service(
    request: Request,
    jobs: JobService = Depends(get_job_service),
) -> EscrowFlowService:
    """Provide the escrow flow coordinator."""
    return EscrowFlowService(jobs, request.app.state.settings.escrow_address)
