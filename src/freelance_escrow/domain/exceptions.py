"""Domain exceptions for the freelance escrow service.

These exceptions are framework-agnostic and represent business rule violations.
They are caught and translated to HTTP responses by the API layer's middleware.
Every exception carries a stable machine-readable ``code`` and a human-readable
``message``.
"""


class EscrowJobError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "ESCROW_JOB_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Request Errors ---


class ValidationError(EscrowJobError):
    """Raised when a required field is missing or malformed. No state is touched."""

    def __init__(self, field: str, problem: str = "is required") -> None:
        super().__init__(
            message=f"{field} {problem}",
            code="VALIDATION_ERROR",
        )
        self.field = field


class JobNotFoundError(EscrowJobError):
    """Raised when a job ID does not exist."""

    def __init__(self, job_id: str) -> None:
        super().__init__(
            message=f"Job not found: {job_id}",
            code="NOT_FOUND",
        )
        self.job_id = job_id


# --- Authorization Errors ---


class ForbiddenError(EscrowJobError):
    """Raised when the caller's identity does not match the role an action needs."""

    def __init__(self, action: str, reason: str) -> None:
        super().__init__(
            message=f"Not allowed to {action}: {reason}",
            code="FORBIDDEN",
        )
        self.action = action
        self.reason = reason


# --- State Machine Errors ---


class InvalidTransitionError(EscrowJobError):
    """Raised when an action is not legal from the job's current status.

    Example: OPEN -(deposit_confirm)-> FUNDED (the job must be ACCEPTED first).
    """

    def __init__(
        self,
        current_state: str,
        action: str,
        attempted_state: str | None = None,
        detail: str | None = None,
    ) -> None:
        target = f" -> {attempted_state}" if attempted_state else ""
        message = f"Invalid transition: cannot {action} from {current_state}{target}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message=message, code="INVALID_TRANSITION")
        self.current_state = current_state
        self.action = action
        self.attempted_state = attempted_state


# --- Environment Errors ---


class MisconfiguredError(EscrowJobError):
    """Raised when a required setting (e.g. the escrow address) is absent."""

    def __init__(self, setting: str) -> None:
        super().__init__(
            message=f"{setting} not configured on server",
            code="MISCONFIGURED",
        )
        self.setting = setting


# --- Storage Errors ---


class StorageError(EscrowJobError):
    """Raised when the job repository cannot complete a read or write."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="STORAGE_ERROR")


class ConcurrentModificationError(EscrowJobError):
    """Raised when a write targets a stale snapshot or the job lock is busy."""

    def __init__(self, job_id: str, detail: str = "job was modified concurrently") -> None:
        super().__init__(
            message=f"Conflict on job {job_id}: {detail}",
            code="CONFLICT",
        )
        self.job_id = job_id
