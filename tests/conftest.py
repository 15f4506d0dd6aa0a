"""Shared test fixtures for the freelance escrow test suite.

Provides:
    - A fixed, steppable clock and deterministic job ids
    - In-memory repository and service wiring
    - Jobs at a given status, built with helpers.make_job
"""

from __future__ import annotations

import os

import pytest

from freelance_escrow.domain.enums import JobStatus
from freelance_escrow.domain.models import Job
from freelance_escrow.infrastructure.locks import LocalJobLocks
from freelance_escrow.infrastructure.memory_store import InMemoryJobRepository
from freelance_escrow.services import EscrowFlowService, JobService
from helpers import CLIENT, ESCROW, FREELANCER, StepClock, make_job, sequential_ids

# Importing the app module builds an app from the environment
os.environ.setdefault("STORAGE_BACKEND", "memory")

# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def open_job() -> Job:
    return make_job()


@pytest.fixture
def accepted_job() -> Job:
    return make_job(status=JobStatus.ACCEPTED, freelancer_address=FREELANCER, version=2)


@pytest.fixture
def sample_job_data() -> dict:
    """Return valid create-job arguments."""
    return {
        "title": "Landing page redesign",
        "amount": 10_000_000,
        "client_address": CLIENT,
        "description": "Three sections, responsive, dark mode",
    }


# ---------------------------------------------------------------------------
# Service Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def repository() -> InMemoryJobRepository:
    return InMemoryJobRepository()


@pytest.fixture
def job_service(repository: InMemoryJobRepository) -> JobService:
    return JobService(
        repository,
        locks=LocalJobLocks(),
        clock=StepClock(),
        id_factory=sequential_ids(),
    )


@pytest.fixture
def escrow_service(job_service: JobService) -> EscrowFlowService:
    return EscrowFlowService(job_service, ESCROW)
