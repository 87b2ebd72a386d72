"""In-memory implementation of the deferred work queue.

Used with ``storage_backend=memory`` and in tests. Entries live for the
lifetime of the process.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from shared_kernel.deferred.value_objects import DeferredWorkEnvelope, PendingDelivery


@dataclass
class _QueuedWork:
    envelope: DeferredWorkEnvelope
    retry_count: int = 0
    last_error: str | None = None
    processed_at: datetime | None = None
    failed_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.processed_at is None and self.failed_at is None

    def to_pending_delivery(self) -> PendingDelivery:
        return PendingDelivery(
            envelope=self.envelope,
            retry_count=self.retry_count,
            last_error=self.last_error,
        )


class InMemoryDeferredWorkQueue:
    """Dictionary-backed DeferredWorkQueue, in enqueue order."""

    def __init__(self) -> None:
        self._entries: dict[UUID, _QueuedWork] = {}

    async def enqueue(self, envelope: DeferredWorkEnvelope) -> None:
        """Store an envelope for later processing.

        Raises:
            ValueError: If an envelope with the same id is already queued
        """
        if envelope.id in self._entries:
            raise ValueError(f"Envelope {envelope.id} is already queued")
        self._entries[envelope.id] = _QueuedWork(envelope=envelope)

    async def fetch_pending(self, limit: int = 100) -> list[PendingDelivery]:
        """Return up to ``limit`` pending deliveries, oldest first."""
        pending = [entry for entry in self._entries.values() if entry.is_pending]
        return [entry.to_pending_delivery() for entry in pending[:limit]]

    async def mark_processed(self, envelope_id: UUID) -> None:
        """Mark an envelope as processed."""
        self._entries[envelope_id].processed_at = datetime.now(UTC)

    async def mark_retry(self, envelope_id: UUID, retry_count: int, error: str) -> None:
        """Record a failed attempt."""
        entry = self._entries[envelope_id]
        entry.retry_count = retry_count
        entry.last_error = error

    async def mark_dead_lettered(
        self, envelope_id: UUID, retry_count: int, error: str
    ) -> None:
        """Move an envelope to the dead letter state."""
        entry = self._entries[envelope_id]
        entry.retry_count = retry_count
        entry.last_error = error
        entry.failed_at = datetime.now(UTC)

    def processed_ids(self) -> list[UUID]:
        """Ids of envelopes that were processed successfully."""
        return [
            entry.envelope.id
            for entry in self._entries.values()
            if entry.processed_at is not None
        ]

    def dead_lettered(self) -> list[PendingDelivery]:
        """Deliveries in the dead letter state, with their final error."""
        return [
            entry.to_pending_delivery()
            for entry in self._entries.values()
            if entry.failed_at is not None
        ]

    def pending_count(self) -> int:
        """Number of envelopes still waiting to be processed."""
        return sum(1 for entry in self._entries.values() if entry.is_pending)
