"""Exceptions for deferred work capture, transport and restore.

The restore errors are deliberately distinct types so the worker can tell a
reference that no longer resolves (dead-letter, retrying will not help) from
a transient failure of the deferred logic itself.
"""

from __future__ import annotations

from uuid import UUID

from shared_kernel.execution_context.value_objects import TenantExternalId


class DeferredWorkError(Exception):
    """Base class for deferred work errors."""

    pass


class UnresolvableTenantError(DeferredWorkError):
    """Raised when an envelope's captured tenant no longer resolves.

    The tenant was deleted or archived between capture and restore. The
    deferred logic must not run, neither untenanted nor under a guessed
    tenant.
    """

    def __init__(self, external_id: TenantExternalId, envelope_id: UUID) -> None:
        super().__init__(
            f"Tenant {external_id} captured by envelope {envelope_id} "
            f"no longer resolves"
        )
        self.external_id = external_id
        self.envelope_id = envelope_id


class UnresolvablePrincipalError(DeferredWorkError):
    """Raised when an envelope's captured principal no longer resolves."""

    def __init__(self, user_id: str, envelope_id: UUID) -> None:
        super().__init__(
            f"Principal {user_id} captured by envelope {envelope_id} "
            f"no longer resolves"
        )
        self.user_id = user_id
        self.envelope_id = envelope_id


class EnvelopeFormatError(DeferredWorkError):
    """Raised when a serialized envelope cannot be decoded."""

    pass


class UnknownJobError(DeferredWorkError):
    """Raised when no handler is registered for an envelope's job name."""

    def __init__(self, job_name: str) -> None:
        super().__init__(f"No deferred job handler registered for '{job_name}'")
        self.job_name = job_name
