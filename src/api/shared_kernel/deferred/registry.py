"""Registry of deferred job handlers.

Bounded contexts contribute handlers when the application is composed; the
worker resolves envelopes against the finished, read-only mapping. There is
no lookup by class or module name at runtime.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from shared_kernel.deferred.exceptions import UnknownJobError
from shared_kernel.deferred.ports import DeferredJobHandler


class DeferredJobRegistry:
    """Immutable mapping from job name to handler.

    Example:
        registry = DeferredJobRegistry({"audit.relay": relay_audit_event})
        handler = registry.resolve(envelope.job_name)
    """

    def __init__(self, handlers: Mapping[str, DeferredJobHandler]) -> None:
        """Initialize the registry.

        Args:
            handlers: Job name to handler mapping, copied on construction

        Raises:
            ValueError: If a job name is empty
        """
        for job_name in handlers:
            if not job_name or not job_name.strip():
                raise ValueError("Job names must not be empty")
        self._handlers: Mapping[str, DeferredJobHandler] = MappingProxyType(
            dict(handlers)
        )

    def job_names(self) -> frozenset[str]:
        """Return the registered job names."""
        return frozenset(self._handlers)

    def resolve(self, job_name: str) -> DeferredJobHandler:
        """Return the handler for ``job_name``.

        Raises:
            UnknownJobError: If no handler is registered under that name
        """
        try:
            return self._handlers[job_name]
        except KeyError:
            raise UnknownJobError(job_name) from None

    def merged_with(
        self, handlers: Mapping[str, DeferredJobHandler]
    ) -> DeferredJobRegistry:
        """Return a new registry with additional handlers.

        Raises:
            ValueError: If a job name is already registered
        """
        duplicates = set(self._handlers) & set(handlers)
        if duplicates:
            raise ValueError(
                f"Deferred job handlers already registered: {sorted(duplicates)}"
            )
        return DeferredJobRegistry({**self._handlers, **handlers})
