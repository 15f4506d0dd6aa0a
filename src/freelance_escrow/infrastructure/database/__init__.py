"""Database infrastructure - engine, ORM model, and repository."""

from freelance_escrow.infrastructure.database.engine import (
    close_db,
    init_db,
    session_scope,
)
from freelance_escrow.infrastructure.database.orm_models import Base, JobRecord
from freelance_escrow.infrastructure.database.repositories import SqlJobRepository

__all__ = [
    "Base",
    "JobRecord",
    "SqlJobRepository",
    "session_scope",
    "init_db",
    "close_db",
]
