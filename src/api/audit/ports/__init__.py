"""Ports of the audit bounded context."""

from audit.ports.relays import AuditRelay

__all__ = ["AuditRelay"]
