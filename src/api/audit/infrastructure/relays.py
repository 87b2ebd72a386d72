"""Audit relay implementations.

The set of relays is closed and chosen once at composition time from
``AuditSettings.relay``.
"""

from __future__ import annotations

import structlog

from audit.domain.value_objects import AuditEvent
from audit.ports.relays import AuditRelay
from infrastructure.settings import AuditRelayKind


class LoggingAuditRelay:
    """Writes each audit event as a structured log record."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._logger = logger or structlog.get_logger().bind(component="audit")

    async def relay(self, event: AuditEvent) -> None:
        """Emit the event at info level."""
        self._logger.info(
            "audit_event",
            action=event.action,
            resource=event.resource,
            tenant_external_id=event.tenant_external_id,
            tenant_name=event.tenant_name,
            principal_id=event.principal_id,
            occurred_at=event.occurred_at.isoformat(),
            detail=event.detail,
        )


class InMemoryAuditRelay:
    """Keeps relayed events in a list, for development and tests."""

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    async def relay(self, event: AuditEvent) -> None:
        """Append the event."""
        self.events.append(event)


class NullAuditRelay:
    """Discards every event."""

    async def relay(self, event: AuditEvent) -> None:
        """Do nothing."""
        return None


def build_audit_relay(kind: AuditRelayKind) -> AuditRelay:
    """Create the relay selected by configuration.

    Args:
        kind: Configured relay kind

    Returns:
        A new relay instance
    """
    match kind:
        case AuditRelayKind.LOG:
            return LoggingAuditRelay()
        case AuditRelayKind.MEMORY:
            return InMemoryAuditRelay()
        case AuditRelayKind.NULL:
            return NullAuditRelay()
    raise ValueError(f"Unknown audit relay kind: {kind!r}")
