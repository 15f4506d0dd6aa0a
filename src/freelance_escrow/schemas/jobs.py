"""Pydantic schemas for the jobs API.

These schemas define the request/response shapes of the HTTP surface. They
are separate from the domain dataclasses to keep the transport and domain
layers apart.

Wire format is camelCase (``clientAddress``, ``transactionRef``). Request
bodies also accept snake_case field names.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from freelance_escrow.domain.enums import EventType, InstructionKind, JobStatus

_REQUEST_CONFIG = ConfigDict(
    alias_generator=AliasGenerator(validation_alias=to_camel),
    validate_by_name=True,
    validate_by_alias=True,
    str_strip_whitespace=True,
)

_RESPONSE_CONFIG = ConfigDict(
    alias_generator=AliasGenerator(serialization_alias=to_camel),
    from_attributes=True,
)

# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class CreateJobRequest(BaseModel):
    """Request body for opening a new job."""

    model_config = _REQUEST_CONFIG

    title: str = Field(..., min_length=1, max_length=500, examples=["Landing page redesign"])
    amount: int = Field(
        ...,
        ge=0,
        strict=True,
        description="Job amount in minor units (10^6 per major unit)",
        examples=[10_000_000],
    )
    client_address: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Wallet identity of the paying client",
        examples=["tz1VSUr8wwNhLAzempoch5d6hLRiTh8Cjcjb"],
    )
    description: str | None = Field(default=None, max_length=10_000)


class AcceptJobRequest(BaseModel):
    """Request body for a freelancer taking an open job."""

    model_config = _REQUEST_CONFIG

    freelancer_address: str = Field(..., min_length=1, max_length=128)


class SubmitWorkRequest(BaseModel):
    """Request body for delivering work."""

    model_config = _REQUEST_CONFIG

    freelancer_address: str = Field(..., min_length=1, max_length=128)
    work_reference: str = Field(
        ...,
        min_length=1,
        max_length=2048,
        description="Where the delivered work can be found (URL, hash, ...)",
    )


class RaiseDisputeRequest(BaseModel):
    """Request body for raising a dispute."""

    model_config = _REQUEST_CONFIG

    identity: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Client or freelancer identity raising the dispute",
    )
    reason: str = Field(..., min_length=1, max_length=2000)


class PrepareDepositRequest(BaseModel):
    """Request body for preparing the client -> escrow transfer."""

    model_config = _REQUEST_CONFIG

    client_address: str = Field(..., min_length=1, max_length=128)
    amount_major_units: Decimal = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        description="Deposit amount in major units, converted at 10^6 minor units each",
        examples=[10],
    )


class PrepareReleaseRequest(BaseModel):
    """Request body for preparing the escrow -> freelancer payout."""

    model_config = _REQUEST_CONFIG

    client_address: str = Field(..., min_length=1, max_length=128)


class ConfirmTransferRequest(BaseModel):
    """Request body for confirming a signed deposit or release."""

    model_config = _REQUEST_CONFIG

    client_address: str = Field(..., min_length=1, max_length=128)
    transaction_ref: str = Field(
        ...,
        min_length=1,
        max_length=256,
        description="Reference of the broadcast transaction (operation hash)",
        examples=["ooXyz..."],
    )


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class EscrowLedgerResponse(BaseModel):
    model_config = _RESPONSE_CONFIG

    deposited_amount: int
    transaction_refs: list[str]


class SubmissionResponse(BaseModel):
    model_config = _RESPONSE_CONFIG

    work_reference: str
    at: datetime


class DisputeResponse(BaseModel):
    model_config = _RESPONSE_CONFIG

    raised_by: str
    reason: str
    at: datetime


class ReleaseResponse(BaseModel):
    model_config = _RESPONSE_CONFIG

    transaction_ref: str
    at: datetime


class JobResponse(BaseModel):
    """Response schema for a job."""

    model_config = _RESPONSE_CONFIG

    id: str
    title: str
    description: str
    amount: int
    currency: str
    client_address: str
    freelancer_address: str | None
    status: JobStatus
    escrow: EscrowLedgerResponse
    submission: SubmissionResponse | None
    dispute: DisputeResponse | None
    release: ReleaseResponse | None
    version: int
    created_at: datetime
    updated_at: datetime


class JobEventResponse(BaseModel):
    """Response schema for an audit event."""

    model_config = _RESPONSE_CONFIG

    event_type: EventType
    old_status: JobStatus | None
    new_status: JobStatus
    actor: str
    at: datetime


class JobStatusResponse(BaseModel):
    """Lightweight status check response."""

    model_config = _RESPONSE_CONFIG

    job_id: str
    status: JobStatus
    version: int
    allowed_actions: list[str] = Field(
        description="Actions the transition table allows from the current status"
    )


class InstructionResponse(BaseModel):
    """Unsigned transfer for the caller's wallet to sign and broadcast."""

    model_config = _RESPONSE_CONFIG

    kind: InstructionKind
    destination: str
    amount: int = Field(description="Amount in minor units")


class ErrorResponse(BaseModel):
    error: str
    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    storage: str = "unknown"
    locks: str = "unknown"
