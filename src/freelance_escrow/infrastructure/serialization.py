"""Job <-> plain-dict conversion shared by the file and database stores.

Uses a pydantic TypeAdapter over the domain dataclasses, so nested records,
enums, tuples and datetimes round-trip without hand-written mapping code.
"""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter

from freelance_escrow.domain.models import Job

_job_adapter: TypeAdapter[Job] = TypeAdapter(Job)


def job_to_dict(job: Job) -> dict[str, Any]:
    """Dump a job to JSON-compatible primitives."""
    return _job_adapter.dump_python(job, mode="json")


def job_from_dict(data: dict[str, Any]) -> Job:
    """Rebuild a job from primitives produced by ``job_to_dict``."""
    return _job_adapter.validate_python(data)
