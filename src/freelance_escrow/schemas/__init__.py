"""Pydantic API schemas."""

from freelance_escrow.schemas.jobs import (
    AcceptJobRequest,
    ConfirmTransferRequest,
    CreateJobRequest,
    ErrorResponse,
    HealthResponse,
    InstructionResponse,
    JobEventResponse,
    JobResponse,
    JobStatusResponse,
    PrepareDepositRequest,
    PrepareReleaseRequest,
    RaiseDisputeRequest,
    SubmitWorkRequest,
)

__all__ = [
    "AcceptJobRequest",
    "ConfirmTransferRequest",
    "CreateJobRequest",
    "ErrorResponse",
    "HealthResponse",
    "InstructionResponse",
    "JobEventResponse",
    "JobResponse",
    "JobStatusResponse",
    "PrepareDepositRequest",
    "PrepareReleaseRequest",
    "RaiseDisputeRequest",
    "SubmitWorkRequest",
]
