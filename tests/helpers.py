"""Test data builders shared across the suite."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from freelance_escrow.domain.models import Job

CLIENT = "tz1Client000000000000000000000000000"
FREELANCER = "tz1Freelancer0000000000000000000000"
STRANGER = "tz1Stranger00000000000000000000000"
ESCROW = "KT1Escrow0000000000000000000000000"

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class StepClock:
    """Returns T0, T0+1s, T0+2s, ... on successive calls."""

    def __init__(self, start: datetime = T0) -> None:
        self._next = start

    def __call__(self) -> datetime:
        now = self._next
        self._next += timedelta(seconds=1)
        return now


def sequential_ids() -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"job-{next(counter)}"


def make_job(**overrides: object) -> Job:
    """Build a job snapshot directly, bypassing the service layer."""
    defaults: dict[str, object] = {
        "id": "job-1",
        "title": "Landing page redesign",
        "amount": 10_000_000,
        "client_address": CLIENT,
        "created_at": T0,
        "updated_at": T0,
    }
    defaults.update(overrides)
    return Job(**defaults)
