"""Per-job critical sections.

The load -> guard -> transition -> write sequence for one job must never
interleave with another for the same job. Two JobLocks implementations:

    LocalJobLocks  one asyncio.Lock per job id, single process.
    RedisJobLocks  redis SET NX lock per job id, shared by every process
                   talking to the same redis.

Locks for different job ids are independent.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from redis.exceptions import LockError

from freelance_escrow.domain.exceptions import ConcurrentModificationError
from freelance_escrow.logging_config import get_logger

if TYPE_CHECKING:
    import redis.asyncio as aioredis

logger = get_logger(__name__)


class LocalJobLocks:
    """asyncio locks keyed by job id, dropped once nobody holds or awaits them."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, job_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(job_id, asyncio.Lock())
        self._users[job_id] = self._users.get(job_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[job_id] -= 1
            if self._users[job_id] == 0:
                del self._users[job_id]
                del self._locks[job_id]

    def active(self) -> int:
        """Number of job ids with a holder or waiter."""
        return len(self._locks)


class RedisJobLocks:
    """Distributed locks via redis-py's Lock (token-checked release).

    Args:
        client_factory: Returns the redis client; called on every ``hold`` so
            the client may be initialized after this object is built.
        timeout: Seconds after which redis expires a lock whose holder died.
        blocking_timeout: Seconds to wait for a busy lock before giving up
            with ConcurrentModificationError.
    """

    def __init__(
        self,
        client_factory: Callable[[], aioredis.Redis],
        timeout: float = 10.0,
        blocking_timeout: float = 5.0,
        prefix: str = "job-lock:",
    ) -> None:
        self._client_factory = client_factory
        self._timeout = timeout
        self._blocking_timeout = blocking_timeout
        self._prefix = prefix

    @asynccontextmanager
    async def hold(self, job_id: str) -> AsyncIterator[None]:
        lock = self._client_factory().lock(
            f"{self._prefix}{job_id}",
            timeout=self._timeout,
            blocking_timeout=self._blocking_timeout,
        )
        if not await lock.acquire():
            logger.warning("lock.busy", job_id=job_id, waited=self._blocking_timeout)
            raise ConcurrentModificationError(job_id, "job is locked by another request")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # Expired while held; the version check on write still applies.
                logger.warning("lock.expired_before_release", job_id=job_id)
