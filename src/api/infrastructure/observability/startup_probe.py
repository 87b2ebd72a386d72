"""Domain probe for application startup and lifecycle events.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events during application initialization and shutdown.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class StartupProbe(Protocol):
    """Domain probe for application startup operations."""

    def storage_backend_selected(self, backend: str) -> None:
        """Record which storage backend the application composed."""
        ...

    def schema_initialized(self) -> None:
        """Record that database tables were created at startup."""
        ...

    def seed_tenant_created(self, external_id: str, name: str) -> None:
        """Record that a configured seed tenant was created."""
        ...

    def seed_tenant_already_exists(self, external_id: str, name: str) -> None:
        """Record that a configured seed tenant already existed."""
        ...

    def deferred_worker_disabled(self) -> None:
        """Record that the deferred work worker is disabled by configuration."""
        ...

    def with_context(self, context: ObservationContext) -> StartupProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultStartupProbe:
    """Default implementation of StartupProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultStartupProbe:
        """Create a new probe with observation context bound."""
        return DefaultStartupProbe(logger=self._logger, context=context)

    def storage_backend_selected(self, backend: str) -> None:
        """Record which storage backend the application composed."""
        self._logger.info(
            "storage_backend_selected",
            backend=backend,
            **self._get_context_kwargs(),
        )

    def schema_initialized(self) -> None:
        """Record that database tables were created at startup."""
        self._logger.info(
            "database_schema_initialized",
            **self._get_context_kwargs(),
        )

    def seed_tenant_created(self, external_id: str, name: str) -> None:
        """Record that a configured seed tenant was created."""
        self._logger.info(
            "seed_tenant_created",
            external_id=external_id,
            name=name,
            **self._get_context_kwargs(),
        )

    def seed_tenant_already_exists(self, external_id: str, name: str) -> None:
        """Record that a configured seed tenant already existed."""
        self._logger.info(
            "seed_tenant_already_exists",
            external_id=external_id,
            name=name,
            **self._get_context_kwargs(),
        )

    def deferred_worker_disabled(self) -> None:
        """Record that the deferred work worker is disabled by configuration."""
        self._logger.info(
            "deferred_worker_disabled",
            **self._get_context_kwargs(),
        )
