"""Clock and identifier sources injected into the services."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime


class MonotonicClock:
    """Wall clock in UTC that never goes backwards within a process."""

    def __init__(self) -> None:
        self._last: datetime | None = None

    def __call__(self) -> datetime:
        now = datetime.now(UTC)
        if self._last is not None and now < self._last:
            now = self._last
        self._last = now
        return now


def new_job_id() -> str:
    """Return a collision-resistant opaque job identifier."""
    return uuid.uuid4().hex
