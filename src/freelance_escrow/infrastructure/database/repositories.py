"""SQLAlchemy-backed JobRepository.

The repository accepts an AsyncSession. Writes only flush; the service
calls ``commit`` while it still holds the job lock, so a write is durable
before any response reports it. Updates are compare-and-swap on
the ``version`` column: an UPDATE matching zero rows means another writer
got there first.
"""

from __future__ import annotations

from datetime import UTC
from typing import TYPE_CHECKING, Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from freelance_escrow.domain.exceptions import ConcurrentModificationError, StorageError
from freelance_escrow.infrastructure.database.orm_models import JobRecord
from freelance_escrow.infrastructure.serialization import job_from_dict, job_to_dict

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from freelance_escrow.domain.models import Job

_TIMESTAMP_COLUMNS = ("created_at", "updated_at")


def _to_row(job: Job) -> dict[str, Any]:
    row = job_to_dict(job)
    # Timestamps stay datetimes so the column type handles them
    for column in _TIMESTAMP_COLUMNS:
        row[column] = getattr(job, column)
    return row


def _to_job(record: JobRecord) -> Job:
    row = {column.key: getattr(record, column.key) for column in JobRecord.__table__.columns}
    # SQLite drops the offset; stored values are always UTC
    for column in _TIMESTAMP_COLUMNS:
        if row[column].tzinfo is None:
            row[column] = row[column].replace(tzinfo=UTC)
    return job_from_dict(row)


class SqlJobRepository:
    """Data access for jobs."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, job_id: str) -> Job | None:
        """Fetch a job by id, bypassing any stale identity-map copy."""
        result = await self._session.execute(
            select(JobRecord)
            .where(JobRecord.id == job_id)
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        return _to_job(record) if record is not None else None

    async def create(self, job: Job) -> None:
        """Insert a new job."""
        self._session.add(JobRecord(**_to_row(job)))
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise StorageError(f"Job already exists: {job.id}") from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot insert job {job.id}: {exc}") from exc

    async def put(self, job: Job) -> None:
        """Write a newer snapshot if the stored version is the one it was based on."""
        row = _to_row(job)
        del row["id"]
        stmt = (
            update(JobRecord)
            .where(JobRecord.id == job.id, JobRecord.version == job.version - 1)
            .values(**row)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot update job {job.id}: {exc}") from exc
        if result.rowcount == 0:
            raise ConcurrentModificationError(
                job.id, f"no stored version {job.version - 1} to replace"
            )

    async def commit(self) -> None:
        """Commit the session, rolling it back if the commit fails."""
        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise StorageError(f"Cannot commit job changes: {exc}") from exc
