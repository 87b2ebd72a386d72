"""SQLAlchemy ORM model for the deferred work queue.

Rows carry the serialized envelope columns plus delivery state. A row is
pending while both ``processed_at`` and ``failed_at`` are NULL.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base
from shared_kernel.deferred.value_objects import DeferredWorkEnvelope, PendingDelivery
from shared_kernel.execution_context.value_objects import TenantExternalId


class DeferredWorkModel(Base):
    """ORM model for the deferred_work table.

    The partial index keeps polling cheap once most rows are processed.
    ``claimed_until`` is a lease set when a worker fetches the row, so other
    workers skip it until the lease runs out.
    """

    __tablename__ = "deferred_work"
    __table_args__ = (
        Index(
            "ix_deferred_work_pending",
            "enqueued_at",
            postgresql_where=text("processed_at IS NULL AND failed_at IS NULL"),
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    job_name: Mapped[str] = mapped_column(String(255), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    tenant_external_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    principal_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    enqueued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    claimed_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # Retry/DLQ columns
    retry_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    failed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @classmethod
    def from_envelope(cls, envelope: DeferredWorkEnvelope) -> DeferredWorkModel:
        """Build a pending row from a captured envelope."""
        return cls(
            id=envelope.id,
            job_name=envelope.job_name,
            payload=envelope.payload,
            tenant_external_id=(
                envelope.tenant_external_id.value
                if envelope.tenant_external_id is not None
                else None
            ),
            principal_id=envelope.principal_id,
            enqueued_at=envelope.enqueued_at,
            retry_count=0,
        )

    @property
    def is_failed(self) -> bool:
        """Check if this row has been moved to the dead letter state."""
        return self.failed_at is not None

    def to_pending_delivery(self) -> PendingDelivery:
        """Convert this row to the delivery handed to the worker."""
        envelope = DeferredWorkEnvelope(
            id=self.id,
            job_name=self.job_name,
            payload=self.payload,
            tenant_external_id=(
                TenantExternalId(value=self.tenant_external_id)
                if self.tenant_external_id is not None
                else None
            ),
            principal_id=self.principal_id,
            enqueued_at=self.enqueued_at,
        )
        return PendingDelivery(
            envelope=envelope,
            retry_count=self.retry_count,
            last_error=self.last_error,
        )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<DeferredWorkModel("
            f"id={self.id}, "
            f"job_name={self.job_name}, "
            f"processed_at={self.processed_at}, "
            f"retry_count={self.retry_count}"
            f")>"
        )
