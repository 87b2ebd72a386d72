"""Value objects for the audit bounded context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class AuditEvent:
    """A record of something a principal did within a tenant.

    Built by the relay job from the restored execution context, never from
    the payload, so an audit record cannot claim a tenant it did not run in.

    Attributes:
        action: What happened, e.g. "board.archived"
        resource: Identifier of the affected resource
        tenant_external_id: External id of the tenant the work ran in
        tenant_name: Name of that tenant at delivery time
        principal_id: Acting user, or None for system actions
        occurred_at: When the request that scheduled the event was handled
        detail: Additional JSON-compatible data
    """

    action: str
    resource: str
    tenant_external_id: int
    tenant_name: str
    principal_id: str | None
    occurred_at: datetime
    detail: dict[str, Any] = field(default_factory=dict)
