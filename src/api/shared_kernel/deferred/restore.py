"""Restore side of the deferred work boundary."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shared_kernel.deferred.exceptions import (
    UnresolvablePrincipalError,
    UnresolvableTenantError,
)
from shared_kernel.execution_context.value_objects import ExecutionContext, Principal

if TYPE_CHECKING:
    from shared_kernel.deferred.ports import PrincipalLookup, TenantLookup
    from shared_kernel.deferred.value_objects import DeferredWorkEnvelope


class ContextRestorer:
    """Rebuilds an execution context from an envelope's captured references.

    Every restore performs a fresh lookup; nothing from the capturing process
    is assumed to still exist. The result is a new ExecutionContext with the
    same meaning as the captured one. Sessions are request-bound and are
    never restored.
    """

    def __init__(
        self,
        tenant_lookup: TenantLookup,
        principal_lookup: PrincipalLookup | None = None,
    ) -> None:
        """Initialize the restorer.

        Args:
            tenant_lookup: Store used to re-resolve captured tenants
            principal_lookup: Optional store used to re-resolve principals.
                Without it the captured user id is carried over unverified.
        """
        self._tenant_lookup = tenant_lookup
        self._principal_lookup = principal_lookup

    async def restore(self, envelope: DeferredWorkEnvelope) -> ExecutionContext:
        """Build the context the envelope's job must run under.

        Args:
            envelope: The envelope being consumed

        Returns:
            A freshly constructed ExecutionContext

        Raises:
            UnresolvableTenantError: If the captured tenant no longer resolves
            UnresolvablePrincipalError: If a principal lookup is configured
                and the captured principal no longer resolves
        """
        context = ExecutionContext.empty()

        if envelope.tenant_external_id is not None:
            tenant = await self._tenant_lookup.find_by_external_id(
                envelope.tenant_external_id
            )
            if tenant is None:
                raise UnresolvableTenantError(
                    external_id=envelope.tenant_external_id,
                    envelope_id=envelope.id,
                )
            context = context.with_tenant(tenant)

        if envelope.principal_id is not None:
            context = context.with_principal(
                await self._resolve_principal(envelope.principal_id, envelope)
            )

        return context

    async def _resolve_principal(
        self, user_id: str, envelope: DeferredWorkEnvelope
    ) -> Principal:
        if self._principal_lookup is None:
            return Principal(user_id=user_id)

        principal = await self._principal_lookup.find_by_user_id(user_id)
        if principal is None:
            raise UnresolvablePrincipalError(user_id=user_id, envelope_id=envelope.id)
        return principal
