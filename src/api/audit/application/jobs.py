"""Deferred jobs of the audit bounded context.

Requests schedule audit events with ``capture``; the worker later runs
``AuditRelayJob`` inside the restored execution context.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from audit.domain.value_objects import AuditEvent
from audit.ports.relays import AuditRelay
from shared_kernel.deferred.ports import DeferredJobHandler
from shared_kernel.execution_context import current_principal, require_tenant

AUDIT_RELAY_JOB = "audit.relay"


class AuditRelayJob:
    """Deferred job handler that forwards one audit event to the relay.

    Tenant and principal come from the restored scope. The payload carries
    only what the request knew: action, resource, detail and timestamp.
    """

    def __init__(self, relay: AuditRelay) -> None:
        self._relay = relay

    async def __call__(self, payload: dict[str, Any]) -> None:
        """Build the event from the payload and the active scope.

        Raises:
            TenantNotBoundError: If the work was captured without a tenant
            KeyError: If the payload lacks action, resource or occurred_at
        """
        tenant = require_tenant()
        principal = current_principal()

        event = AuditEvent(
            action=payload["action"],
            resource=payload["resource"],
            tenant_external_id=tenant.external_id.value,
            tenant_name=tenant.name,
            principal_id=principal.user_id if principal is not None else None,
            occurred_at=datetime.fromisoformat(payload["occurred_at"]),
            detail=payload.get("detail", {}),
        )
        await self._relay.relay(event)


def audit_job_handlers(relay: AuditRelay) -> dict[str, DeferredJobHandler]:
    """Job handlers contributed by the audit context, keyed by job name."""
    return {AUDIT_RELAY_JOB: AuditRelayJob(relay)}
