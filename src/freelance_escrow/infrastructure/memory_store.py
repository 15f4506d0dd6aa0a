"""In-process job repository.

Jobs are immutable snapshots, so the dict stores them as-is. Used by the
``memory`` storage backend and throughout the test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from freelance_escrow.domain.exceptions import ConcurrentModificationError, StorageError

if TYPE_CHECKING:
    from freelance_escrow.domain.models import Job


class InMemoryJobRepository:
    """Dict-backed JobRepository."""

    def __init__(self, jobs: dict[str, Job] | None = None) -> None:
        self._jobs: dict[str, Job] = dict(jobs or {})

    async def get(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    async def create(self, job: Job) -> None:
        if job.id in self._jobs:
            raise StorageError(f"Job already exists: {job.id}")
        self._jobs[job.id] = job

    async def put(self, job: Job) -> None:
        check_version(self._jobs.get(job.id), job)
        self._jobs[job.id] = job

    async def commit(self) -> None:
        return None

    def __len__(self) -> int:
        return len(self._jobs)


def check_version(stored: Job | None, incoming: Job) -> None:
    """Compare-and-swap precondition shared by the dict-based stores."""
    if stored is None:
        raise StorageError(f"Cannot update unknown job: {incoming.id}")
    if stored.version != incoming.version - 1:
        raise ConcurrentModificationError(
            incoming.id,
            f"stored version {stored.version}, write based on {incoming.version - 1}",
        )
