"""HTTP routes for the audit bounded context."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, status

from audit.application.jobs import AUDIT_RELAY_JOB
from audit.dependencies import get_deferred_work_queue
from audit.presentation.models import (
    AuditEventAcceptedResponse,
    RecordAuditEventRequest,
)
from shared_kernel.deferred import DeferredWorkQueue, capture
from shared_kernel.execution_context import TenantIdentity
from shared_kernel.middleware import require_tenant_scope

router = APIRouter(
    prefix="/audit-events",
    tags=["audit"],
)


@router.post(
    "",
    status_code=status.HTTP_202_ACCEPTED,
)
async def record_audit_event(
    request: RecordAuditEventRequest,
    tenant: Annotated[TenantIdentity, Depends(require_tenant_scope)],
    queue: Annotated[DeferredWorkQueue, Depends(get_deferred_work_queue)],
) -> AuditEventAcceptedResponse:
    """Schedule an audit event for relay by the deferred work worker.

    The event is captured with the request's tenant and principal and is
    relayed later, inside a context restored from fresh lookups.

    Args:
        request: The event to record
        tenant: Current tenant (400 for untenanted requests)
        queue: Deferred work queue

    Returns:
        AuditEventAcceptedResponse with the envelope id
    """
    envelope = capture(
        {
            "action": request.action,
            "resource": request.resource,
            "detail": request.detail,
            "occurred_at": datetime.now(UTC).isoformat(),
        },
        job_name=AUDIT_RELAY_JOB,
    )
    await queue.enqueue(envelope)

    return AuditEventAcceptedResponse(
        envelope_id=envelope.id,
        job_name=envelope.job_name,
    )
