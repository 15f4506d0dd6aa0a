"""Job Repository and Job Locks protocols.

The service layer depends only on these shapes, never on a storage or
locking technology. Concrete implementations:
    - infrastructure/memory_store.py          (dict, single process)
    - infrastructure/file_store.py            (JSON flat file)
    - infrastructure/database/repositories.py (SQLAlchemy async)
    - infrastructure/locks.py                 (asyncio / redis locks)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

    from freelance_escrow.domain.models import Job


@runtime_checkable
class JobRepository(Protocol):
    """Durable key -> Job store. Pure storage, no business rules.

    Implementations must give read-your-writes consistency within a process
    and must reject stale writes: ``put(job)`` succeeds only when the stored
    version equals ``job.version - 1``.
    """

    async def get(self, job_id: str) -> Job | None:
        """Return the stored job, or None if the id is unknown."""
        ...

    async def create(self, job: Job) -> None:
        """Insert a new job.

        Raises:
            StorageError: If the id is already taken or the write fails.
        """
        ...

    async def put(self, job: Job) -> None:
        """Replace an existing job with a newer snapshot.

        Raises:
            ConcurrentModificationError: If the stored version is not
                ``job.version - 1``.
            StorageError: If the write fails.
        """
        ...

    async def commit(self) -> None:
        """Make every write since the last commit durable.

        Raises:
            StorageError: If the writes cannot be made durable.
        """
        ...


@runtime_checkable
class JobLocks(Protocol):
    """Serializes read-modify-write sequences per job id."""

    def hold(self, job_id: str) -> AbstractAsyncContextManager[None]:
        """Return a context manager holding the lock for ``job_id``."""
        ...
