"""Domain probe for the tenant scope request pipeline.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events of resolving the tenant path segment and opening
the request's execution context scope.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantScopeProbe(Protocol):
    """Domain probe for request tenant scoping."""

    def tenant_resolved(self, external_id: str, tenant_id: str) -> None:
        """Record that the path's tenant segment resolved to a tenant."""
        ...

    def untenanted_request(self, path: str) -> None:
        """Record that the request path carried no tenant segment."""
        ...

    def unknown_tenant(self, external_id: str) -> None:
        """Record that the path named a tenant that does not exist."""
        ...

    def tenant_lookup_failed(self, external_id: str, error: Exception) -> None:
        """Record that looking up the tenant raised an error."""
        ...

    def with_context(self, context: ObservationContext) -> TenantScopeProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantScopeProbe:
    """Default implementation of TenantScopeProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultTenantScopeProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantScopeProbe(logger=self._logger, context=context)

    def tenant_resolved(self, external_id: str, tenant_id: str) -> None:
        """Record that the path's tenant segment resolved to a tenant."""
        self._logger.debug(
            "tenant_scope_tenant_resolved",
            external_id=external_id,
            internal_tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def untenanted_request(self, path: str) -> None:
        """Record that the request path carried no tenant segment."""
        self._logger.debug(
            "tenant_scope_untenanted_request",
            path=path,
            **self._get_context_kwargs(),
        )

    def unknown_tenant(self, external_id: str) -> None:
        """Record that the path named a tenant that does not exist."""
        self._logger.info(
            "tenant_scope_unknown_tenant",
            external_id=external_id,
            **self._get_context_kwargs(),
        )

    def tenant_lookup_failed(self, external_id: str, error: Exception) -> None:
        """Record that looking up the tenant raised an error."""
        self._logger.error(
            "tenant_scope_lookup_failed",
            external_id=external_id,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )
