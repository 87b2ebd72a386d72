"""Value objects for deferred work.

Value objects are immutable descriptors that provide type safety and
domain semantics for deferred work envelopes and their deliveries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from shared_kernel.execution_context.value_objects import TenantExternalId


@dataclass(frozen=True)
class DeferredWorkEnvelope:
    """A unit of deferred work plus the references needed to re-scope it.

    The envelope never holds a live ExecutionContext or tenant record, only
    the tenant's external id and the principal's user id. This is what lets
    it cross a process boundary through a durable queue.

    Attributes:
        id: Unique identifier for the envelope
        job_name: Name of the registered job handler that consumes it
        payload: Opaque, JSON-compatible job data
        tenant_external_id: Captured tenant, or None meaning "no tenant"
        principal_id: Captured principal's user id, or None
        enqueued_at: When the envelope was captured
    """

    id: UUID
    job_name: str
    payload: dict[str, Any]
    tenant_external_id: TenantExternalId | None
    principal_id: str | None
    enqueued_at: datetime

    @property
    def is_tenanted(self) -> bool:
        """Check if a tenant was captured."""
        return self.tenant_external_id is not None


@dataclass(frozen=True)
class PendingDelivery:
    """An envelope handed to the worker by a queue, with its delivery state.

    Attributes:
        envelope: The envelope to process
        retry_count: Number of failed attempts so far
        last_error: The most recent error message (if any)
    """

    envelope: DeferredWorkEnvelope
    retry_count: int = 0
    last_error: str | None = None
