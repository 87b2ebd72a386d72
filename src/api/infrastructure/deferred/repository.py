"""PostgreSQL implementation of the deferred work queue."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.deferred.models import DeferredWorkModel
from shared_kernel.deferred.value_objects import DeferredWorkEnvelope, PendingDelivery

DEFAULT_LEASE_SECONDS = 300.0


class SqlDeferredWorkQueue:
    """PostgreSQL-backed DeferredWorkQueue.

    Fetching claims rows with FOR UPDATE SKIP LOCKED and stamps a lease on
    them before committing, so several workers can poll the same table
    without picking up the same envelope. A delivery whose worker dies keeps
    its lease until it expires and is then fetched again.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        lease_seconds: float = DEFAULT_LEASE_SECONDS,
    ) -> None:
        """Initialize the queue.

        Args:
            session_factory: Factory for creating database sessions
            lease_seconds: How long a fetched delivery stays claimed
        """
        self._session_factory = session_factory
        self._lease = timedelta(seconds=lease_seconds)

    async def enqueue(self, envelope: DeferredWorkEnvelope) -> None:
        """Insert a pending row for the envelope."""
        async with self._session_factory() as session, session.begin():
            session.add(DeferredWorkModel.from_envelope(envelope))

    async def fetch_pending(self, limit: int = 100) -> list[PendingDelivery]:
        """Claim and return pending rows ordered by enqueue time.

        Args:
            limit: Maximum number of deliveries to fetch

        Returns:
            List of claimed deliveries
        """
        now = datetime.now(UTC)
        stmt = (
            select(DeferredWorkModel)
            .where(DeferredWorkModel.processed_at.is_(None))
            .where(DeferredWorkModel.failed_at.is_(None))
            .where(
                or_(
                    DeferredWorkModel.claimed_until.is_(None),
                    DeferredWorkModel.claimed_until < now,
                )
            )
            .order_by(DeferredWorkModel.enqueued_at)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )

        async with self._session_factory() as session, session.begin():
            result = await session.execute(stmt)
            models = result.scalars().all()
            for model in models:
                model.claimed_until = now + self._lease
            return [model.to_pending_delivery() for model in models]

    async def mark_processed(self, envelope_id: UUID) -> None:
        """Mark a row as processed and release its claim."""
        await self._update(
            envelope_id,
            processed_at=datetime.now(UTC),
            claimed_until=None,
        )

    async def mark_retry(self, envelope_id: UUID, retry_count: int, error: str) -> None:
        """Record a failed attempt; the row becomes fetchable again."""
        await self._update(
            envelope_id,
            retry_count=retry_count,
            last_error=error,
            claimed_until=None,
        )

    async def mark_dead_lettered(
        self, envelope_id: UUID, retry_count: int, error: str
    ) -> None:
        """Set failed_at so the row is never fetched again."""
        await self._update(
            envelope_id,
            retry_count=retry_count,
            last_error=error,
            failed_at=datetime.now(UTC),
            claimed_until=None,
        )

    async def _update(self, envelope_id: UUID, **values: object) -> None:
        stmt = (
            update(DeferredWorkModel)
            .where(DeferredWorkModel.id == envelope_id)
            .values(**values)
        )
        async with self._session_factory() as session, session.begin():
            await session.execute(stmt)
