"""Job Service - lifecycle use cases and the per-job critical section.

Coordinates between:
    - Authorization guard (who may act)
    - State machine (which transition is legal)
    - Job repository (durable snapshots)
    - Job locks (one writer per job at a time)

Both the REST routes and the escrow flow coordinator go through
``run_transition``, so every mutation follows the same order:
lock -> load -> guard -> transition -> write -> commit.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from freelance_escrow.domain.enums import EventType, JobAction, JobStatus
from freelance_escrow.domain.exceptions import JobNotFoundError, ValidationError
from freelance_escrow.domain.guards import authorize
from freelance_escrow.domain.models import Dispute, Job, JobEvent, Submission
from freelance_escrow.domain.state_machine import (
    JobStateMachine,
    apply_transition,
    validate_transition,
)
from freelance_escrow.infrastructure.clock import MonotonicClock, new_job_id
from freelance_escrow.infrastructure.locks import LocalJobLocks
from freelance_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from freelance_escrow.domain.repository import JobLocks, JobRepository

logger = get_logger(__name__)

ChangeBuilder = Callable[[Job, datetime], dict[str, Any]]


def require_text(field: str, value: object) -> str:
    """Return ``value`` if it is a non-blank string, else raise ValidationError."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field)
    return value


class JobService:
    """Manages the job lifecycle."""

    def __init__(
        self,
        repository: JobRepository,
        locks: JobLocks | None = None,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] = new_job_id,
        currency: str = "XTZ",
    ) -> None:
        self._repo = repository
        self._locks = locks or LocalJobLocks()
        self._clock = clock or MonotonicClock()
        self._id_factory = id_factory
        self._currency = currency

    # ------------------------------------------------------------------
    # Job Creation
    # ------------------------------------------------------------------

    async def create_job(
        self,
        title: str,
        amount: int,
        client_address: str,
        description: str | None = None,
    ) -> Job:
        """Open a new job in OPEN state. ``amount`` is in minor units."""
        require_text("title", title)
        require_text("clientAddress", client_address)
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationError("amount", "must be an integer number of minor units")
        if amount < 0:
            raise ValidationError("amount", "must not be negative")
        if description is not None and not isinstance(description, str):
            raise ValidationError("description", "must be text")

        now = self._clock()
        job = Job(
            id=self._id_factory(),
            title=title,
            description=description or "",
            amount=amount,
            currency=self._currency,
            client_address=client_address,
            created_at=now,
            updated_at=now,
            events=(
                JobEvent(
                    event_type=EventType.JOB_CREATED,
                    old_status=None,
                    new_status=JobStatus.OPEN,
                    actor=client_address,
                    at=now,
                ),
            ),
        )
        await self._repo.create(job)
        await self._repo.commit()

        logger.info("job.created", job_id=job.id, amount=amount, client=client_address)
        return job

    # ------------------------------------------------------------------
    # Freelancer actions
    # ------------------------------------------------------------------

    async def accept(self, job_id: str, freelancer_address: str) -> Job:
        """Assign the caller as freelancer. OPEN -> ACCEPTED."""
        require_text("freelancerAddress", freelancer_address)
        job = await self.run_transition(
            job_id,
            JobAction.ACCEPT,
            freelancer_address,
            lambda job, now: {"freelancer_address": freelancer_address},
        )
        logger.info("job.accepted", job_id=job_id, freelancer=freelancer_address)
        return job

    async def submit(self, job_id: str, freelancer_address: str, work_reference: str) -> Job:
        """Record delivered work. ACCEPTED | FUNDED -> SUBMITTED."""
        require_text("workReference", work_reference)
        job = await self.run_transition(
            job_id,
            JobAction.SUBMIT,
            freelancer_address,
            lambda job, now: {
                "submission": Submission(work_reference=work_reference, at=now),
            },
        )
        logger.info("job.work_submitted", job_id=job_id, work_reference=work_reference)
        return job

    # ------------------------------------------------------------------
    # Disputes
    # ------------------------------------------------------------------

    async def dispute(self, job_id: str, identity: str, reason: str) -> Job:
        """Raise a dispute. Any status -> DISPUTED, client or freelancer only."""
        require_text("reason", reason)
        job = await self.run_transition(
            job_id,
            JobAction.DISPUTE,
            identity,
            lambda job, now: {
                "dispute": Dispute(raised_by=identity, reason=reason, at=now),
            },
        )
        logger.info("job.dispute_raised", job_id=job_id, by=identity)
        return job

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    async def get_job(self, job_id: str) -> Job:
        """Get a job or raise JobNotFoundError."""
        job = await self._repo.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    async def get_status(self, job_id: str) -> dict:
        """Get job status with the actions the state machine would allow next."""
        job = await self.get_job(job_id)
        return {
            "job_id": job.id,
            "status": job.status.value,
            "version": job.version,
            "allowed_actions": JobStateMachine(job.status).allowed_actions(),
        }

    async def get_events(self, job_id: str) -> list[JobEvent]:
        """Get the audit trail, oldest first."""
        job = await self.get_job(job_id)
        return list(job.events)

    # ------------------------------------------------------------------
    # Critical section
    # ------------------------------------------------------------------

    async def run_transition(
        self,
        job_id: str,
        action: JobAction,
        identity: str | None,
        build_changes: ChangeBuilder,
    ) -> Job:
        """Load, authorize, transition and persist one job under its lock.

        ``build_changes`` receives the loaded job and the transition time and
        returns the action-specific fields of the new snapshot. It only runs
        after the guard and the transition table accepted the action.

        Raises:
            JobNotFoundError, ForbiddenError, InvalidTransitionError,
            ConcurrentModificationError, StorageError. On any of these the
            stored job is unchanged.
        """
        async with self._locks.hold(job_id):
            job = await self.get_job(job_id)
            authorize(action, job, identity)
            new_status = validate_transition(job.status, action)
            now = self._clock()
            updated = apply_transition(
                job,
                action,
                actor=identity or "",
                at=now,
                new_status=new_status,
                **build_changes(job, now),
            )
            await self._repo.put(updated)
            await self._repo.commit()
        logger.debug(
            "job.transition",
            job_id=job_id,
            action=action.value,
            old_status=job.status.value,
            new_status=updated.status.value,
            version=updated.version,
        )
        return updated
