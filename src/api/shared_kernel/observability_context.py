"""Observation context for domain-oriented observability.

Observation contexts collect the correlation metadata that probes attach
to every event they record.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable metadata included with all instrumentation events.

    Attributes:
        request_id: Identifier of the current request (if applicable).
        envelope_id: Identifier of the deferred work envelope being
            processed (if applicable).
        tenant_id: External id of the tenant in scope (if any).
        user_id: Principal in scope (if any).
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(request_id="req-123", tenant_id="1234567")
        probe = DefaultTenantScopeProbe().with_context(context)
    """

    request_id: str | None = None
    envelope_id: str | None = None
    tenant_id: str | None = None
    user_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.request_id is not None:
            result["request_id"] = self.request_id
        if self.envelope_id is not None:
            result["envelope_id"] = self.envelope_id
        if self.tenant_id is not None:
            result["tenant_id"] = self.tenant_id
        if self.user_id is not None:
            result["user_id"] = self.user_id
        result.update(self.extra)
        return result

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        return ObservationContext(
            request_id=self.request_id,
            envelope_id=self.envelope_id,
            tenant_id=self.tenant_id,
            user_id=self.user_id,
            extra={**self.extra, **kwargs},
        )
