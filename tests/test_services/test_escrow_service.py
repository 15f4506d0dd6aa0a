"""Tests for the deposit and release prepare/confirm flows."""

from __future__ import annotations

from decimal import Decimal

import pytest

from freelance_escrow.domain.enums import InstructionKind, JobStatus
from freelance_escrow.domain.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    JobNotFoundError,
    MisconfiguredError,
    ValidationError,
)
from freelance_escrow.services import EscrowFlowService, JobService
from helpers import CLIENT, ESCROW, FREELANCER, STRANGER


async def _accepted_job(escrow: EscrowFlowService, amount: int = 10_000_000) -> str:
    job = await escrow.jobs.create_job(title="Landing page", amount=amount, client_address=CLIENT)
    await escrow.jobs.accept(job.id, FREELANCER)
    return job.id


async def _funded_job(escrow: EscrowFlowService) -> str:
    job_id = await _accepted_job(escrow)
    await escrow.confirm_deposit(job_id, CLIENT, "ooDeposit")
    return job_id


class TestPrepareDeposit:
    @pytest.mark.asyncio
    async def test_ten_major_units(self, escrow_service: EscrowFlowService) -> None:
        job_id = await _accepted_job(escrow_service)

        instruction = await escrow_service.prepare_deposit(job_id, CLIENT, 10)

        assert instruction.kind == InstructionKind.TRANSFER
        assert instruction.destination == ESCROW
        assert instruction.amount == 10_000_000

    @pytest.mark.asyncio
    async def test_idempotent_and_read_only(self, escrow_service: EscrowFlowService) -> None:
        job_id = await _accepted_job(escrow_service)
        before = await escrow_service.jobs.get_job(job_id)

        first = await escrow_service.prepare_deposit(job_id, CLIENT, Decimal("10"))
        second = await escrow_service.prepare_deposit(job_id, CLIENT, Decimal("10"))

        assert first == second
        assert await escrow_service.jobs.get_job(job_id) == before

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_setup", ["open", "funded"])
    async def test_allowed_in_any_status(
        self, escrow_service: EscrowFlowService, status_setup: str
    ) -> None:
        if status_setup == "open":
            job = await escrow_service.jobs.create_job(
                title="Logo", amount=1_000_000, client_address=CLIENT
            )
            job_id = job.id
        else:
            job_id = await _funded_job(escrow_service)

        instruction = await escrow_service.prepare_deposit(job_id, CLIENT, 1)
        assert instruction.amount == 1_000_000

    @pytest.mark.asyncio
    async def test_mismatched_amount_still_prepared(
        self, escrow_service: EscrowFlowService
    ) -> None:
        job_id = await _accepted_job(escrow_service)
        instruction = await escrow_service.prepare_deposit(job_id, CLIENT, Decimal("2.5"))
        assert instruction.amount == 2_500_000

    @pytest.mark.asyncio
    async def test_only_client(self, escrow_service: EscrowFlowService) -> None:
        job_id = await _accepted_job(escrow_service)
        with pytest.raises(ForbiddenError):
            await escrow_service.prepare_deposit(job_id, FREELANCER, 10)

    @pytest.mark.asyncio
    async def test_missing_escrow_address(self, job_service: JobService) -> None:
        escrow = EscrowFlowService(job_service, "")
        job_id = await _accepted_job(escrow)
        with pytest.raises(MisconfiguredError, match="ESCROW_ADDRESS"):
            await escrow.prepare_deposit(job_id, CLIENT, 10)

    @pytest.mark.asyncio
    async def test_amount_validated_before_lookup(
        self, escrow_service: EscrowFlowService
    ) -> None:
        with pytest.raises(ValidationError):
            await escrow_service.prepare_deposit("missing", CLIENT, -5)

    @pytest.mark.asyncio
    async def test_unknown_job(self, escrow_service: EscrowFlowService) -> None:
        with pytest.raises(JobNotFoundError):
            await escrow_service.prepare_deposit("missing", CLIENT, 10)


class TestConfirmDeposit:
    @pytest.mark.asyncio
    async def test_funds_job(self, escrow_service: EscrowFlowService) -> None:
        job_id = await _accepted_job(escrow_service)

        job = await escrow_service.confirm_deposit(job_id, CLIENT, "0xabc")

        assert job.status == JobStatus.FUNDED
        assert job.escrow.transaction_refs == ("0xabc",)
        assert job.escrow.deposited_amount == job.amount

    @pytest.mark.asyncio
    async def test_other_identity_forbidden_escrow_unchanged(
        self, escrow_service: EscrowFlowService
    ) -> None:
        job_id = await _accepted_job(escrow_service)
        before = await escrow_service.jobs.get_job(job_id)

        with pytest.raises(ForbiddenError):
            await escrow_service.confirm_deposit(job_id, STRANGER, "0xabc")

        after = await escrow_service.jobs.get_job(job_id)
        assert after.escrow == before.escrow
        assert after.status == JobStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_requires_accepted(self, escrow_service: EscrowFlowService) -> None:
        job = await escrow_service.jobs.create_job(
            title="Logo", amount=1, client_address=CLIENT
        )
        with pytest.raises(InvalidTransitionError):
            await escrow_service.confirm_deposit(job.id, CLIENT, "0xabc")

    @pytest.mark.asyncio
    async def test_second_confirm_rejected(self, escrow_service: EscrowFlowService) -> None:
        job_id = await _funded_job(escrow_service)
        with pytest.raises(InvalidTransitionError):
            await escrow_service.confirm_deposit(job_id, CLIENT, "0xdef")
        job = await escrow_service.jobs.get_job(job_id)
        assert job.escrow.transaction_refs == ("ooDeposit",)

    @pytest.mark.asyncio
    async def test_transaction_ref_required(self, escrow_service: EscrowFlowService) -> None:
        job_id = await _accepted_job(escrow_service)
        with pytest.raises(ValidationError, match="transactionRef"):
            await escrow_service.confirm_deposit(job_id, CLIENT, "")


class TestPrepareRelease:
    @pytest.mark.asyncio
    async def test_pays_freelancer(self, escrow_service: EscrowFlowService) -> None:
        job_id = await _funded_job(escrow_service)

        instruction = await escrow_service.prepare_release(job_id, CLIENT)

        assert instruction.destination == FREELANCER
        assert instruction.amount == 10_000_000

    @pytest.mark.asyncio
    async def test_before_accept(self, escrow_service: EscrowFlowService) -> None:
        job = await escrow_service.jobs.create_job(
            title="Logo", amount=1, client_address=CLIENT
        )
        with pytest.raises(InvalidTransitionError):
            await escrow_service.prepare_release(job.id, CLIENT)

    @pytest.mark.asyncio
    async def test_requires_submitted_or_funded(
        self, escrow_service: EscrowFlowService
    ) -> None:
        job_id = await _accepted_job(escrow_service)
        with pytest.raises(InvalidTransitionError):
            await escrow_service.prepare_release(job_id, CLIENT)

    @pytest.mark.asyncio
    async def test_only_client(self, escrow_service: EscrowFlowService) -> None:
        job_id = await _funded_job(escrow_service)
        with pytest.raises(ForbiddenError):
            await escrow_service.prepare_release(job_id, FREELANCER)


class TestConfirmRelease:
    @pytest.mark.asyncio
    async def test_releases_funded_job(self, escrow_service: EscrowFlowService) -> None:
        job_id = await _funded_job(escrow_service)

        job = await escrow_service.confirm_release(job_id, CLIENT, "ooPayout")

        assert job.status == JobStatus.RELEASED
        assert job.release is not None
        assert job.release.transaction_ref == "ooPayout"
        assert job.release.at == job.updated_at

    @pytest.mark.asyncio
    async def test_freelancer_forbidden(self, escrow_service: EscrowFlowService) -> None:
        job_id = await _funded_job(escrow_service)
        with pytest.raises(ForbiddenError):
            await escrow_service.confirm_release(job_id, FREELANCER, "ooPayout")
        assert (await escrow_service.jobs.get_job(job_id)).release is None

    @pytest.mark.asyncio
    async def test_rejected_outside_table(self, escrow_service: EscrowFlowService) -> None:
        job_id = await _accepted_job(escrow_service)
        with pytest.raises(InvalidTransitionError):
            await escrow_service.confirm_release(job_id, CLIENT, "ooPayout")


@pytest.mark.integration
class TestRoundTrip:
    @pytest.mark.asyncio
    async def test_open_to_released(self, escrow_service: EscrowFlowService) -> None:
        jobs = escrow_service.jobs
        job = await jobs.create_job(title="API integration", amount=10_000_000, client_address=CLIENT)
        await jobs.accept(job.id, FREELANCER)
        deposit = await escrow_service.prepare_deposit(job.id, CLIENT, 10)
        await escrow_service.confirm_deposit(job.id, CLIENT, "0xabc")
        await jobs.submit(job.id, FREELANCER, "ipfs://work")
        payout = await escrow_service.prepare_release(job.id, CLIENT)
        final = await escrow_service.confirm_release(job.id, CLIENT, "ooFinal")

        assert deposit.amount == payout.amount == job.amount
        assert final.status == JobStatus.RELEASED
        assert final.release.transaction_ref == "ooFinal"
        assert final.escrow.transaction_refs == ("0xabc",)
        assert final.version == len(final.events) == 5

    @pytest.mark.asyncio
    async def test_dispute_after_release_succeeds(
        self, escrow_service: EscrowFlowService
    ) -> None:
        job_id = await _funded_job(escrow_service)
        await escrow_service.confirm_release(job_id, CLIENT, "ooPayout")

        disputed = await escrow_service.jobs.dispute(job_id, FREELANCER, "follow-up unpaid")

        assert disputed.status == JobStatus.DISPUTED
        assert disputed.release is not None
        assert disputed.release.transaction_ref == "ooPayout"
