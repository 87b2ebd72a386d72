"""Protocols (ports) for deferred work.

These protocols define what the capture/restore cycle needs from its
collaborators: a lookup store for tenants (and optionally principals) and a
durable queue that carries envelopes between the scheduling request and the
worker.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable
from uuid import UUID

if TYPE_CHECKING:
    from shared_kernel.deferred.value_objects import (
        DeferredWorkEnvelope,
        PendingDelivery,
    )
    from shared_kernel.execution_context.value_objects import (
        Principal,
        TenantExternalId,
        TenantIdentity,
    )


@runtime_checkable
class TenantLookup(Protocol):
    """Read-only lookup from external tenant id to tenant identity.

    Implementations must use an exact-match query and must not return
    tenants that are archived or deleted. They may be called concurrently
    without coordination.
    """

    async def find_by_external_id(
        self, external_id: TenantExternalId
    ) -> TenantIdentity | None:
        """Resolve an external id.

        Args:
            external_id: The public tenant identifier

        Returns:
            The tenant identity, or None if no live tenant has that id
        """
        ...


@runtime_checkable
class PrincipalLookup(Protocol):
    """Read-only lookup from user id to principal."""

    async def find_by_user_id(self, user_id: str) -> Principal | None:
        """Resolve a user id.

        Args:
            user_id: The captured principal's user id

        Returns:
            The principal, or None if the user no longer exists
        """
        ...


@runtime_checkable
class DeferredWorkQueue(Protocol):
    """Durable transport for deferred work envelopes.

    Delivery is at-least-once: a handler may see the same envelope again if
    the worker stops between running it and ``mark_processed``. Handlers
    must be idempotent.
    """

    async def enqueue(self, envelope: DeferredWorkEnvelope) -> None:
        """Store an envelope for later processing.

        Args:
            envelope: The captured envelope
        """
        ...

    async def fetch_pending(self, limit: int = 100) -> list[PendingDelivery]:
        """Fetch envelopes that are neither processed nor dead-lettered.

        Args:
            limit: Maximum number of deliveries to return

        Returns:
            Pending deliveries ordered by enqueue time
        """
        ...

    async def mark_processed(self, envelope_id: UUID) -> None:
        """Mark an envelope as successfully processed."""
        ...

    async def mark_retry(
        self, envelope_id: UUID, retry_count: int, error: str
    ) -> None:
        """Record a failed attempt; the envelope stays pending."""
        ...

    async def mark_dead_lettered(
        self, envelope_id: UUID, retry_count: int, error: str
    ) -> None:
        """Move an envelope to the dead letter state; it will not be fetched again."""
        ...


DeferredJobHandler = Callable[[dict[str, Any]], Awaitable[None]]
"""A deferred job handler.

Receives the envelope payload and runs inside a scope bound to the restored
execution context, so it reads tenant and principal through ``current_*``.
"""
