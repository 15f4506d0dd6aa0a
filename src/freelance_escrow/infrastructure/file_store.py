"""JSON flat-file job repository.

The whole store is one JSON object keyed by job id, loaded once at startup
and rewritten on every create/put. Writes go to a temporary file in the
same directory followed by ``os.replace``, so a crash never leaves a
half-written store behind. The in-memory view only changes after the file
write succeeded.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

from freelance_escrow.domain.exceptions import StorageError
from freelance_escrow.infrastructure.memory_store import check_version
from freelance_escrow.infrastructure.serialization import job_from_dict, job_to_dict
from freelance_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from freelance_escrow.domain.models import Job

logger = get_logger(__name__)


class JsonFileJobRepository:
    """JobRepository persisted to a single JSON document."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._jobs: dict[str, Job] = self._load()
        self._write_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def get(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    async def create(self, job: Job) -> None:
        async with self._write_lock:
            if job.id in self._jobs:
                raise StorageError(f"Job already exists: {job.id}")
            await self._save({**self._jobs, job.id: job})

    async def put(self, job: Job) -> None:
        async with self._write_lock:
            check_version(self._jobs.get(job.id), job)
            await self._save({**self._jobs, job.id: job})

    async def commit(self) -> None:
        """Writes are on disk once create or put returns."""
        return None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, Job]:
        if not self._path.exists():
            logger.info("file_store.empty", path=str(self._path))
            return {}
        try:
            raw: dict[str, Any] = json.loads(self._path.read_text(encoding="utf-8"))
            jobs = {job_id: job_from_dict(data) for job_id, data in raw.items()}
        except (OSError, ValueError) as exc:
            logger.error("file_store.load_failed", path=str(self._path), error=str(exc))
            raise StorageError(f"Cannot load job store {self._path}: {exc}") from exc
        logger.info("file_store.loaded", path=str(self._path), jobs=len(jobs))
        return jobs

    async def _save(self, jobs: dict[str, Job]) -> None:
        document = {job_id: job_to_dict(job) for job_id, job in jobs.items()}
        try:
            await asyncio.to_thread(self._write, document)
        except OSError as exc:
            logger.error("file_store.save_failed", path=str(self._path), error=str(exc))
            raise StorageError(f"Cannot write job store {self._path}: {exc}") from exc
        self._jobs = jobs

    def _write(self, document: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
