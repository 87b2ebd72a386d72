"""Value objects for the execution context.

These are the immutable descriptors carried by a Context Scope: the tenant
the unit of work acts within, the principal performing it, and the session
it belongs to. None of them hold live storage records, so they can be
reconstructed from references on the other side of a deferred-work boundary.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared_kernel.execution_context.exceptions import ContextFieldAlreadySetError


@dataclass(frozen=True)
class TenantExternalId:
    """Externally visible tenant identifier.

    Appears as the leading digit segment of request paths and is what
    deferred work envelopes capture. Distinct from the internal storage key.
    """

    value: int

    def __post_init__(self) -> None:
        # bool is an int subclass; True must not become tenant 1
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(
                f"TenantExternalId requires an int, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValueError(f"TenantExternalId must be positive, got {self.value}")

    def __str__(self) -> str:
        """Return string representation."""
        return str(self.value)

    @classmethod
    def from_string(cls, value: str) -> TenantExternalId:
        """Create TenantExternalId from its decimal string form.

        Args:
            value: Decimal digits, e.g. "1234567"

        Returns:
            TenantExternalId instance

        Raises:
            ValueError: If value is not a positive decimal integer
        """
        if not (value.isascii() and value.isdigit()):
            raise ValueError(f"Invalid TenantExternalId: {value!r}")
        return cls(value=int(value))


@dataclass(frozen=True)
class TenantIdentity:
    """The tenant as seen by a unit of work.

    Attributes:
        internal_id: Storage key (ULID) of the tenant record
        external_id: Public identifier used in paths and envelopes
        name: Display name
    """

    internal_id: str
    external_id: TenantExternalId
    name: str


@dataclass(frozen=True)
class Principal:
    """The authenticated identity performing an action."""

    user_id: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.user_id


@dataclass(frozen=True)
class SessionReference:
    """Reference to the session a request belongs to."""

    session_id: str


@dataclass(frozen=True)
class ExecutionContext:
    """Ambient values visible to one unit of work.

    Instances are immutable. A context starts empty and each field is bound
    at most once while the pipeline sets up the unit of work; every
    ``with_*`` call returns a new instance. Binding a field that is already
    set raises ``ContextFieldAlreadySetError``.

    Example:
        context = (
            ExecutionContext.empty()
            .with_tenant(tenant)
            .with_principal(Principal(user_id="01ARZ3NDEKTSV4RRFFQ69G5FAV"))
        )
        with context_scope(context):
            ...
    """

    tenant: TenantIdentity | None = None
    principal: Principal | None = None
    session: SessionReference | None = None

    @classmethod
    def empty(cls) -> ExecutionContext:
        """Create a context with nothing bound."""
        return cls()

    @property
    def is_tenanted(self) -> bool:
        """Check if a tenant is bound."""
        return self.tenant is not None

    def with_tenant(self, tenant: TenantIdentity) -> ExecutionContext:
        """Return a new context with the tenant bound."""
        if self.tenant is not None:
            raise ContextFieldAlreadySetError("tenant")
        return ExecutionContext(
            tenant=tenant,
            principal=self.principal,
            session=self.session,
        )

    def with_principal(self, principal: Principal) -> ExecutionContext:
        """Return a new context with the principal bound."""
        if self.principal is not None:
            raise ContextFieldAlreadySetError("principal")
        return ExecutionContext(
            tenant=self.tenant,
            principal=principal,
            session=self.session,
        )

    def with_session(self, session: SessionReference) -> ExecutionContext:
        """Return a new context with the session bound."""
        if self.session is not None:
            raise ContextFieldAlreadySetError("session")
        return ExecutionContext(
            tenant=self.tenant,
            principal=self.principal,
            session=session,
        )
