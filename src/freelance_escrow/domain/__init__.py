"""Domain layer - pure business logic with zero framework dependencies."""

from freelance_escrow.domain.enums import (
    EventType,
    InstructionKind,
    JobAction,
    JobStatus,
)
from freelance_escrow.domain.exceptions import (
    ConcurrentModificationError,
    EscrowJobError,
    ForbiddenError,
    InvalidTransitionError,
    JobNotFoundError,
    MisconfiguredError,
    StorageError,
    ValidationError,
)
from freelance_escrow.domain.guards import GuardDecision, authorize
from freelance_escrow.domain.models import Job, UnsignedInstruction
from freelance_escrow.domain.repository import JobLocks, JobRepository
from freelance_escrow.domain.state_machine import (
    JobStateMachine,
    apply_transition,
    validate_transition,
)

__all__ = [
    "EventType",
    "InstructionKind",
    "JobAction",
    "JobStatus",
    "ConcurrentModificationError",
    "EscrowJobError",
    "ForbiddenError",
    "InvalidTransitionError",
    "JobNotFoundError",
    "MisconfiguredError",
    "StorageError",
    "ValidationError",
    "GuardDecision",
    "authorize",
    "Job",
    "UnsignedInstruction",
    "JobLocks",
    "JobRepository",
    "JobStateMachine",
    "apply_transition",
    "validate_transition",
]
