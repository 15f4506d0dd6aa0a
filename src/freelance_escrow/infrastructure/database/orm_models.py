"""SQLAlchemy 2.0 ORM model for persisted jobs.

One table, ``jobs``. Nested records (escrow ledger, submission, dispute,
release, audit events) are JSON columns holding the shapes produced by
infrastructure/serialization.py.

Design decisions:
    - Opaque string primary keys (the id generator is pluggable).
    - BigInteger for minor-unit amounts (no floating point).
    - JSON columns render as JSONB on PostgreSQL.
    - CHECK constraints on status and amount.
    - ``version`` column for optimistic compare-and-swap updates.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from freelance_escrow.domain.enums import JobStatus

JSONType = JSON().with_variant(JSONB(), "postgresql")

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in JobStatus)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class JobRecord(Base):
    """A persisted job snapshot."""

    __tablename__ = "jobs"

    # --- Primary Key ---
    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # --- Terms ---
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    amount: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Job amount in minor units (10^6 per major unit)",
    )
    currency: Mapped[str] = mapped_column(String(16), nullable=False, default="XTZ")

    # --- Participants ---
    client_address: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="Identity of the paying client",
    )
    freelancer_address: Mapped[str | None] = mapped_column(
        String(128),
        nullable=True,
        default=None,
        comment="Identity of the assigned freelancer (set on accept)",
    )

    # --- Lifecycle ---
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=JobStatus.OPEN.value,
        comment="Current lifecycle state (guarded by the transition table)",
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # --- Embedded records ---
    escrow: Mapped[dict] = mapped_column(JSONType, nullable=False)
    submission: Mapped[dict | None] = mapped_column(JSONType, nullable=True, default=None)
    dispute: Mapped[dict | None] = mapped_column(JSONType, nullable=True, default=None)
    release: Mapped[dict | None] = mapped_column(JSONType, nullable=True, default=None)
    events: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_job_valid_status"),
        CheckConstraint("amount >= 0", name="ck_job_non_negative_amount"),
        CheckConstraint("version >= 1", name="ck_job_version_positive"),
        Index("idx_job_status", "status"),
        Index("idx_job_client", "client_address"),
        Index("idx_job_freelancer", "freelancer_address"),
        Index("idx_job_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<JobRecord id={self.id} status={self.status} version={self.version}>"
