"""Job Lifecycle State Machine.

Uses python-statemachine to decide which action is legal from which status.
Every handler in the service layer consults it; no other module compares
status strings. An illegal action raises InvalidTransitionError and leaves
the job untouched.

Transition table:
    OPEN                   -> ACCEPTED   (accept)
    ACCEPTED               -> FUNDED     (deposit_confirm)
    ACCEPTED | FUNDED      -> SUBMITTED  (submit)
    SUBMITTED | FUNDED     -> RELEASED   (release_confirm)
    any status             -> DISPUTED   (dispute)

RELEASED ends the payment flow but is not closed to disputes: a dispute
may still be raised after payout. DISPUTED has no outgoing transition
other than a repeated dispute, so no state is final.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from freelance_escrow.domain.enums import EventType, JobAction, JobStatus
from freelance_escrow.domain.exceptions import InvalidTransitionError
from freelance_escrow.domain.models import Job, JobEvent

if TYPE_CHECKING:
    from datetime import datetime


EVENT_TYPES: dict[JobAction, EventType] = {
    JobAction.ACCEPT: EventType.FREELANCER_ASSIGNED,
    JobAction.DEPOSIT_CONFIRM: EventType.DEPOSIT_CONFIRMED,
    JobAction.SUBMIT: EventType.WORK_SUBMITTED,
    JobAction.RELEASE_CONFIRM: EventType.PAYMENT_RELEASED,
    JobAction.DISPUTE: EventType.DISPUTE_RAISED,
}


class JobStateMachine(StateMachine):
    """State machine for one job sitting at a given status.

    Usage:
        sm = JobStateMachine("ACCEPTED")
        sm.can(JobAction.SUBMIT)   # True
        sm.fire(JobAction.SUBMIT)  # JobStatus.SUBMITTED
    """

    # --- States ---
    OPEN = State("OPEN", initial=True)
    ACCEPTED = State("ACCEPTED")
    FUNDED = State("FUNDED")
    SUBMITTED = State("SUBMITTED")
    RELEASED = State("RELEASED")
    DISPUTED = State("DISPUTED")

    # --- Events / Transitions ---

    accept = OPEN.to(ACCEPTED)
    deposit_confirm = ACCEPTED.to(FUNDED)
    submit = ACCEPTED.to(SUBMITTED) | FUNDED.to(SUBMITTED)
    release_confirm = SUBMITTED.to(RELEASED) | FUNDED.to(RELEASED)
    dispute = (
        OPEN.to(DISPUTED)
        | ACCEPTED.to(DISPUTED)
        | FUNDED.to(DISPUTED)
        | SUBMITTED.to(DISPUTED)
        | RELEASED.to(DISPUTED)
        | DISPUTED.to(DISPUTED)
    )

    def __init__(self, current_status: str = JobStatus.OPEN) -> None:
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(s.value for s in JobStatus)
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )
        super().__init__(start_value=str(current_status))

    @property
    def status(self) -> JobStatus:
        return JobStatus(self.current_state_value)

    def allowed_actions(self) -> list[str]:
        """Return the actions that may fire from the current status, in enum order."""
        allowed = {event.id for event in self.allowed_events}
        return [action.value for action in JobAction if action.value in allowed]

    def can(self, action: JobAction) -> bool:
        return action.value in self.allowed_actions()

    def fire(self, action: JobAction) -> JobStatus:
        """Move to the target status of ``action`` or raise InvalidTransitionError."""
        current = self.status
        try:
            getattr(self, action.value)()
        except TransitionNotAllowed:
            raise InvalidTransitionError(
                current.value, action.value, self._target_of(action)
            ) from None
        return self.status

    def _target_of(self, action: JobAction) -> str | None:
        targets = {
            transition.target.value
            for state in self.states
            for transition in state.transitions
            if transition.match(action.value)
        }
        return targets.pop() if len(targets) == 1 else None


def validate_transition(current_status: str, action: str) -> JobStatus:
    """Validate a transition and return the new status.

    Creates a temporary state machine, fires the named event, and returns
    the resulting status.

    Args:
        current_status: Current JobStatus value.
        action: The action to fire (e.g., "accept").

    Returns:
        The status the job moves to.

    Raises:
        InvalidTransitionError: If the action is illegal from ``current_status``.
        ValueError: If the status or action name is unknown.
    """
    sm = JobStateMachine(current_status)
    try:
        job_action = JobAction(action)
    except ValueError:
        raise ValueError(
            f"Unknown action '{action}'. "
            f"Allowed actions from {current_status}: {sm.allowed_actions()}"
        ) from None
    return sm.fire(job_action)


def apply_transition(
    job: Job,
    action: JobAction,
    *,
    actor: str,
    at: datetime,
    new_status: JobStatus | None = None,
    **changes: object,
) -> Job:
    """Return the snapshot that results from firing ``action`` on ``job``.

    Pure function: ``job`` is not modified. ``changes`` carries the
    action-specific fields (freelancer, submission, escrow, ...). The new
    snapshot gets the target status, a fresh ``updated_at``, the next
    ``version`` and one more audit event.

    ``new_status`` is the result of a ``validate_transition`` the caller
    already ran; without it the transition is validated here.
    """
    if new_status is None:
        new_status = validate_transition(job.status, action)
    event = JobEvent(
        event_type=EVENT_TYPES[action],
        old_status=job.status,
        new_status=new_status,
        actor=actor,
        at=at,
    )
    return replace(
        job,
        **changes,
        status=new_status,
        updated_at=at,
        version=job.version + 1,
        events=(*job.events, event),
    )
