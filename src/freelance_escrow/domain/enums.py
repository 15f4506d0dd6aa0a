"""Domain enumerations for the freelance escrow service.

These enums define the canonical job states, lifecycle actions and audit
event types. They are framework-agnostic (no SQLAlchemy, no FastAPI imports).
"""

import enum


class JobStatus(enum.StrEnum):
    """Lifecycle states of a job.

    Transitions are enforced by the transition table in
    domain/state_machine.py.
    """

    OPEN = "OPEN"
    ACCEPTED = "ACCEPTED"
    FUNDED = "FUNDED"
    SUBMITTED = "SUBMITTED"
    DISPUTED = "DISPUTED"
    RELEASED = "RELEASED"


class JobAction(enum.StrEnum):
    """Mutating actions that move a job between states.

    Prepare steps of the escrow flows are not actions: they never change
    the job and are authorized with the guard of their confirm action.
    """

    ACCEPT = "accept"
    DEPOSIT_CONFIRM = "deposit_confirm"
    SUBMIT = "submit"
    RELEASE_CONFIRM = "release_confirm"
    DISPUTE = "dispute"


class EventType(enum.StrEnum):
    """Types of audit events appended to a job's event trail.

    Creation and every successful transition produce exactly one event.
    """

    JOB_CREATED = "JOB_CREATED"
    FREELANCER_ASSIGNED = "FREELANCER_ASSIGNED"
    DEPOSIT_CONFIRMED = "DEPOSIT_CONFIRMED"
    WORK_SUBMITTED = "WORK_SUBMITTED"
    PAYMENT_RELEASED = "PAYMENT_RELEASED"
    DISPUTE_RAISED = "DISPUTE_RAISED"


class InstructionKind(enum.StrEnum):
    """Kinds of unsigned instructions handed to the external wallet."""

    TRANSFER = "transfer"
