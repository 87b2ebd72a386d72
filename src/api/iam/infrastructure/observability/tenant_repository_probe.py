"""Domain probe for tenant repository operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to tenant persistence and lookup.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantRepositoryProbe(Protocol):
    """Domain probe for tenant repository operations.

    Records domain events during tenant persistence operations.
    """

    def tenant_saved(self, tenant_id: str, external_id: str) -> None:
        """Record that a tenant was successfully saved."""
        ...

    def tenant_deleted(self, tenant_id: str) -> None:
        """Record that a tenant was deleted."""
        ...

    def tenant_lookup_missed(self, external_id: str) -> None:
        """Record that an external id did not resolve to a live tenant."""
        ...

    def duplicate_tenant_name(self, name: str) -> None:
        """Record that a duplicate tenant name was detected."""
        ...

    def duplicate_external_id(self, external_id: str) -> None:
        """Record that a duplicate external id was detected."""
        ...

    def with_context(self, context: ObservationContext) -> TenantRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantRepositoryProbe:
    """Default implementation of TenantRepositoryProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultTenantRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantRepositoryProbe(logger=self._logger, context=context)

    def tenant_saved(self, tenant_id: str, external_id: str) -> None:
        """Record that a tenant was successfully saved."""
        self._logger.info(
            "tenant_saved",
            internal_tenant_id=tenant_id,
            external_id=external_id,
            **self._get_context_kwargs(),
        )

    def tenant_deleted(self, tenant_id: str) -> None:
        """Record that a tenant was deleted."""
        self._logger.info(
            "tenant_deleted",
            internal_tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def tenant_lookup_missed(self, external_id: str) -> None:
        """Record that an external id did not resolve to a live tenant."""
        self._logger.debug(
            "tenant_lookup_missed",
            external_id=external_id,
            **self._get_context_kwargs(),
        )

    def duplicate_tenant_name(self, name: str) -> None:
        """Record that a duplicate tenant name was detected."""
        self._logger.warning(
            "duplicate_tenant_name",
            name=name,
            **self._get_context_kwargs(),
        )

    def duplicate_external_id(self, external_id: str) -> None:
        """Record that a duplicate external id was detected."""
        self._logger.warning(
            "duplicate_tenant_external_id",
            external_id=external_id,
            **self._get_context_kwargs(),
        )
