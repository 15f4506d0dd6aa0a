"""Job entity and its embedded records.

Jobs are immutable snapshots. Every accepted action produces a new ``Job``
via ``dataclasses.replace`` (see ``apply_transition`` in state_machine.py);
nothing in the domain mutates a snapshot in place.

Amounts are integers in the currency's minor unit (10^6 per major unit).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003 - resolved at runtime by pydantic TypeAdapter

from freelance_escrow.domain.enums import EventType, InstructionKind, JobStatus


@dataclass(frozen=True)
class EscrowLedger:
    """Proof references accumulated from confirmed deposits."""

    deposited_amount: int = 0
    transaction_refs: tuple[str, ...] = ()


@dataclass(frozen=True)
class Submission:
    work_reference: str
    at: datetime


@dataclass(frozen=True)
class Dispute:
    raised_by: str
    reason: str
    at: datetime


@dataclass(frozen=True)
class Release:
    transaction_ref: str
    at: datetime


@dataclass(frozen=True)
class JobEvent:
    """One entry of the append-only audit trail.

    Attributes:
        event_type: What happened.
        old_status: Status before the event (None for creation).
        new_status: Status after the event.
        actor: Identity that triggered the event.
        at: When the event was recorded.
    """

    event_type: EventType
    old_status: JobStatus | None
    new_status: JobStatus
    actor: str
    at: datetime


@dataclass(frozen=True)
class Job:
    """A unit of freelance work backed by an escrow deposit.

    ``version`` starts at 1 and grows by one with every successful mutation;
    repositories use it for compare-and-swap writes.
    """

    id: str
    title: str
    amount: int
    client_address: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    currency: str = "XTZ"
    freelancer_address: str | None = None
    status: JobStatus = JobStatus.OPEN
    escrow: EscrowLedger = field(default_factory=EscrowLedger)
    submission: Submission | None = None
    dispute: Dispute | None = None
    release: Release | None = None
    version: int = 1
    events: tuple[JobEvent, ...] = ()


@dataclass(frozen=True)
class UnsignedInstruction:
    """A value transfer an external wallet must sign and broadcast."""

    kind: InstructionKind
    destination: str
    amount: int
