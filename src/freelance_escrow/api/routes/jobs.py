"""Job lifecycle and escrow REST API routes.

Prepare endpoints return an unsigned transfer for the caller's wallet to
sign and broadcast; the matching confirm endpoint records the broadcast
transaction and advances the job.

Routes:
    POST   /api/jobs                            - Open a new job
    GET    /api/jobs/{id}                       - Get job details
    GET    /api/jobs/{id}/status                - Lightweight status check
    GET    /api/jobs/{id}/events                - Audit trail
    POST   /api/jobs/{id}/accept                - Freelancer takes the job
    POST   /api/jobs/{id}/submit                - Freelancer delivers work
    POST   /api/jobs/{id}/dispute               - Client or freelancer raises a dispute
    POST   /api/jobs/{id}/deposit/prepare       - Unsigned client -> escrow transfer
    POST   /api/jobs/{id}/deposit/confirm       - Record the deposit, ACCEPTED -> FUNDED
    POST   /api/jobs/{id}/release/prepare       - Unsigned escrow -> freelancer transfer
    POST   /api/jobs/{id}/release/confirm       - Record the payout, -> RELEASED
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from freelance_escrow.api.deps import get_escrow_service, get_job_service
from freelance_escrow.schemas.jobs import (
    AcceptJobRequest,
    ConfirmTransferRequest,
    CreateJobRequest,
    ErrorResponse,
    InstructionResponse,
    JobEventResponse,
    JobResponse,
    JobStatusResponse,
    PrepareDepositRequest,
    PrepareReleaseRequest,
    RaiseDisputeRequest,
    SubmitWorkRequest,
)
from freelance_escrow.services.escrow_service import EscrowFlowService  # noqa: TC001
from freelance_escrow.services.job_service import JobService  # noqa: TC001

router = APIRouter(
    prefix="/api/jobs",
    tags=["Jobs"],
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)


# ---------------------------------------------------------------------------
# Create / Read
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=JobResponse,
    status_code=201,
    summary="Open a new job",
)
async def create_job(
    request: CreateJobRequest,
    svc: JobService = Depends(get_job_service),
) -> JobResponse:
    """Create a new job in OPEN state."""
    job = await svc.create_job(
        title=request.title,
        amount=request.amount,
        client_address=request.client_address,
        description=request.description,
    )
    return JobResponse.model_validate(job)


@router.get("/{job_id}", response_model=JobResponse, summary="Get job details")
async def get_job(
    job_id: str,
    svc: JobService = Depends(get_job_service),
) -> JobResponse:
    job = await svc.get_job(job_id)
    return JobResponse.model_validate(job)


@router.get(
    "/{job_id}/status",
    response_model=JobStatusResponse,
    summary="Lightweight status check",
)
async def get_job_status(
    job_id: str,
    svc: JobService = Depends(get_job_service),
) -> JobStatusResponse:
    """Current status, version and the actions the table allows next."""
    data = await svc.get_status(job_id)
    return JobStatusResponse(**data)


@router.get(
    "/{job_id}/events",
    response_model=list[JobEventResponse],
    summary="Audit trail",
)
async def get_job_events(
    job_id: str,
    svc: JobService = Depends(get_job_service),
) -> list[JobEventResponse]:
    events = await svc.get_events(job_id)
    return [JobEventResponse.model_validate(e) for e in events]


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@router.post("/{job_id}/accept", response_model=JobResponse, summary="Accept a job")
async def accept_job(
    job_id: str,
    request: AcceptJobRequest,
    svc: JobService = Depends(get_job_service),
) -> JobResponse:
    """Freelancer takes an open job. Transitions OPEN -> ACCEPTED."""
    job = await svc.accept(job_id, request.freelancer_address)
    return JobResponse.model_validate(job)


@router.post("/{job_id}/submit", response_model=JobResponse, summary="Submit work")
async def submit_work(
    job_id: str,
    request: SubmitWorkRequest,
    svc: JobService = Depends(get_job_service),
) -> JobResponse:
    """Assigned freelancer delivers work. Transitions ACCEPTED/FUNDED -> SUBMITTED."""
    job = await svc.submit(job_id, request.freelancer_address, request.work_reference)
    return JobResponse.model_validate(job)


@router.post("/{job_id}/dispute", response_model=JobResponse, summary="Raise a dispute")
async def raise_dispute(
    job_id: str,
    request: RaiseDisputeRequest,
    svc: JobService = Depends(get_job_service),
) -> JobResponse:
    """Either party flags the job. Transitions any status -> DISPUTED."""
    job = await svc.dispute(job_id, request.identity, request.reason)
    return JobResponse.model_validate(job)


# ---------------------------------------------------------------------------
# Deposit
# ---------------------------------------------------------------------------


@router.post(
    "/{job_id}/deposit/prepare",
    response_model=InstructionResponse,
    summary="Prepare the escrow deposit",
)
async def prepare_deposit(
    job_id: str,
    request: PrepareDepositRequest,
    escrow: EscrowFlowService = Depends(get_escrow_service),
) -> InstructionResponse:
    instruction = await escrow.prepare_deposit(
        job_id, request.client_address, request.amount_major_units
    )
    return InstructionResponse.model_validate(instruction)


@router.post(
    "/{job_id}/deposit/confirm",
    response_model=JobResponse,
    summary="Confirm the escrow deposit",
)
async def confirm_deposit(
    job_id: str,
    request: ConfirmTransferRequest,
    escrow: EscrowFlowService = Depends(get_escrow_service),
) -> JobResponse:
    """Record the broadcast deposit. Transitions ACCEPTED -> FUNDED."""
    job = await escrow.confirm_deposit(job_id, request.client_address, request.transaction_ref)
    return JobResponse.model_validate(job)


# ---------------------------------------------------------------------------
# Release
# ---------------------------------------------------------------------------


@router.post(
    "/{job_id}/release/prepare",
    response_model=InstructionResponse,
    summary="Prepare the payout to the freelancer",
)
async def prepare_release(
    job_id: str,
    request: PrepareReleaseRequest,
    escrow: EscrowFlowService = Depends(get_escrow_service),
) -> InstructionResponse:
    instruction = await escrow.prepare_release(job_id, request.client_address)
    return InstructionResponse.model_validate(instruction)


@router.post(
    "/{job_id}/release/confirm",
    response_model=JobResponse,
    summary="Confirm the payout to the freelancer",
)
async def confirm_release(
    job_id: str,
    request: ConfirmTransferRequest,
    escrow: EscrowFlowService = Depends(get_escrow_service),
) -> JobResponse:
    """Record the broadcast payout. Transitions SUBMITTED/FUNDED -> RELEASED."""
    job = await escrow.confirm_release(job_id, request.client_address, request.transaction_ref)
    return JobResponse.model_validate(job)
