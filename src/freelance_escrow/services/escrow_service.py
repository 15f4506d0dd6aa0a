"""Escrow Flow Coordinator - two-phase prepare / confirm for deposits and releases.

    prepare  Builds an unsigned transfer instruction for the client's wallet.
             Reads the job, never writes it, never takes the job lock, and
             returns the same instruction for the same inputs.
    confirm  Records the transaction reference the caller asserts for the
             signed instruction and advances the lifecycle. The only place
             escrow state changes.

The reference is trusted as given: nothing here checks that the transfer
was broadcast, confirmed or for the right amount.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import TYPE_CHECKING

from freelance_escrow.domain.enums import JobAction
from freelance_escrow.domain.exceptions import InvalidTransitionError, MisconfiguredError
from freelance_escrow.domain.guards import authorize
from freelance_escrow.domain.instructions import (
    deposit_instruction,
    release_instruction,
    to_minor_units,
)
from freelance_escrow.domain.models import Release
from freelance_escrow.domain.state_machine import JobStateMachine
from freelance_escrow.logging_config import get_logger
from freelance_escrow.services.job_service import require_text

if TYPE_CHECKING:
    from datetime import datetime

    from freelance_escrow.domain.models import Job, UnsignedInstruction
    from freelance_escrow.services.job_service import JobService

logger = get_logger(__name__)


class EscrowFlowService:
    """Deposit and release flows on top of the job lifecycle."""

    def __init__(self, jobs: JobService, escrow_address: str | None) -> None:
        self._jobs = jobs
        self._escrow_address = escrow_address or None

    @property
    def jobs(self) -> JobService:
        return self._jobs

    # ------------------------------------------------------------------
    # Deposit
    # ------------------------------------------------------------------

    async def prepare_deposit(
        self,
        job_id: str,
        payer: str,
        amount_major_units: Decimal | int | float,
    ) -> UnsignedInstruction:
        """Instruction moving ``amount_major_units`` from the client to escrow.

        Allowed in any status, so a wallet can retry before signing.
        """
        amount_minor = to_minor_units(amount_major_units)
        job = await self._jobs.get_job(job_id)
        authorize(JobAction.DEPOSIT_CONFIRM, job, payer)
        if self._escrow_address is None:
            logger.error("escrow.address_missing", job_id=job_id)
            raise MisconfiguredError("ESCROW_ADDRESS")

        if amount_minor != job.amount:
            logger.warning(
                "escrow.deposit_amount_mismatch",
                job_id=job_id,
                prepared=amount_minor,
                job_amount=job.amount,
            )
        instruction = deposit_instruction(self._escrow_address, amount_minor)
        logger.info("escrow.deposit_prepared", job_id=job_id, amount=amount_minor)
        return instruction

    async def confirm_deposit(self, job_id: str, payer: str, transaction_ref: str) -> Job:
        """Record the deposit. ACCEPTED -> FUNDED.

        The full job amount is credited whatever was actually transferred.
        """
        require_text("transactionRef", transaction_ref)
        job = await self._jobs.run_transition(
            job_id,
            JobAction.DEPOSIT_CONFIRM,
            payer,
            lambda job, now: {
                "escrow": replace(
                    job.escrow,
                    deposited_amount=job.amount,
                    transaction_refs=(*job.escrow.transaction_refs, transaction_ref),
                ),
            },
        )
        logger.info("escrow.deposit_confirmed", job_id=job_id, tx_ref=transaction_ref)
        return job

    # ------------------------------------------------------------------
    # Release
    # ------------------------------------------------------------------

    async def prepare_release(self, job_id: str, client: str) -> UnsignedInstruction:
        """Instruction paying the full job amount to the assigned freelancer."""
        job = await self._jobs.get_job(job_id)
        authorize(JobAction.RELEASE_CONFIRM, job, client)
        instruction = release_instruction(job)
        if not JobStateMachine(job.status).can(JobAction.RELEASE_CONFIRM):
            raise InvalidTransitionError(job.status.value, "release")
        logger.info(
            "escrow.release_prepared",
            job_id=job_id,
            freelancer=instruction.destination,
            amount=instruction.amount,
        )
        return instruction

    async def confirm_release(self, job_id: str, client: str, transaction_ref: str) -> Job:
        """Record the payout. SUBMITTED | FUNDED -> RELEASED."""
        require_text("transactionRef", transaction_ref)
        job = await self._jobs.run_transition(
            job_id,
            JobAction.RELEASE_CONFIRM,
            client,
            lambda job, now: {
                "release": _release_record(job, transaction_ref, now),
            },
        )
        logger.info("escrow.payment_released", job_id=job_id, tx_ref=transaction_ref)
        return job


def _release_record(job: Job, transaction_ref: str, at: datetime) -> Release:
    # Implied by SUBMITTED and FUNDED, still part of the release precondition.
    if job.freelancer_address is None:
        raise InvalidTransitionError(
            job.status.value, JobAction.RELEASE_CONFIRM.value, detail="no freelancer assigned"
        )
    return Release(transaction_ref=transaction_ref, at=at)
