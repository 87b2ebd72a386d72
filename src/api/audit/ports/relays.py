"""Audit relay port."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from audit.domain.value_objects import AuditEvent


@runtime_checkable
class AuditRelay(Protocol):
    """Forwards audit events to wherever they are retained."""

    async def relay(self, event: AuditEvent) -> None:
        """Forward one event.

        Args:
            event: The event to forward

        Raises:
            Exception: Any failure; the deferred work worker retries it
        """
        ...
