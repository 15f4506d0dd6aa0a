"""Authorization Guard.

One pure predicate per action. Each takes the job and the identity the
caller claims and returns a GuardDecision. No signature is checked here:
the wallet protocol owns that trust, the guard only verifies that the
request claims to come from the role recorded on the job.

Identities are opaque strings compared by exact equality.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from freelance_escrow.domain.enums import JobAction
from freelance_escrow.domain.exceptions import ForbiddenError

if TYPE_CHECKING:
    from freelance_escrow.domain.models import Job


class DenyReason(enum.StrEnum):
    MISSING_IDENTITY = "MISSING_IDENTITY"
    NOT_CLIENT = "NOT_CLIENT"
    NOT_ASSIGNED_FREELANCER = "NOT_ASSIGNED_FREELANCER"
    NOT_A_PARTY = "NOT_A_PARTY"


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    reason: DenyReason | None = None


ALLOW = GuardDecision(allowed=True)

Guard = Callable[["Job", "str | None"], GuardDecision]


def _deny(reason: DenyReason) -> GuardDecision:
    return GuardDecision(allowed=False, reason=reason)


def may_accept(job: Job, identity: str | None) -> GuardDecision:
    """Anyone may take an open job; the caller becomes its freelancer."""
    if not identity:
        return _deny(DenyReason.MISSING_IDENTITY)
    return ALLOW


def may_submit(job: Job, identity: str | None) -> GuardDecision:
    if not identity:
        return _deny(DenyReason.MISSING_IDENTITY)
    if job.freelancer_address is None or identity != job.freelancer_address:
        return _deny(DenyReason.NOT_ASSIGNED_FREELANCER)
    return ALLOW


def may_dispute(job: Job, identity: str | None) -> GuardDecision:
    if not identity:
        return _deny(DenyReason.MISSING_IDENTITY)
    if identity == job.client_address:
        return ALLOW
    if job.freelancer_address is not None and identity == job.freelancer_address:
        return ALLOW
    return _deny(DenyReason.NOT_A_PARTY)


def may_act_as_client(job: Job, identity: str | None) -> GuardDecision:
    """Deposits and releases, prepare and confirm alike, belong to the client."""
    if not identity:
        return _deny(DenyReason.MISSING_IDENTITY)
    if identity != job.client_address:
        return _deny(DenyReason.NOT_CLIENT)
    return ALLOW


GUARDS: dict[JobAction, Guard] = {
    JobAction.ACCEPT: may_accept,
    JobAction.DEPOSIT_CONFIRM: may_act_as_client,
    JobAction.SUBMIT: may_submit,
    JobAction.RELEASE_CONFIRM: may_act_as_client,
    JobAction.DISPUTE: may_dispute,
}


def check(action: JobAction, job: Job, identity: str | None) -> GuardDecision:
    """Evaluate the guard registered for ``action``."""
    return GUARDS[action](job, identity)


def authorize(action: JobAction, job: Job, identity: str | None) -> None:
    """Raise ForbiddenError unless ``identity`` may perform ``action`` on ``job``."""
    decision = check(action, job, identity)
    if not decision.allowed:
        raise ForbiddenError(action.value, str(decision.reason))
