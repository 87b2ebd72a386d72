"""SQLAlchemy ORM model for the tenants table.

Stores tenant metadata in PostgreSQL. Tenants represent organizations
and are the top-level isolation boundary in the system.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin


class TenantModel(Base, TimestampMixin):
    """ORM model for tenants table.

    ``id`` is the internal ULID key. ``external_id`` is the public numeric
    identifier used in request paths and deferred work envelopes; lookups by
    it are exact-match through the unique index.
    """

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    external_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, unique=True, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    archived_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<TenantModel(id={self.id}, external_id={self.external_id}, "
            f"name={self.name})>"
        )
