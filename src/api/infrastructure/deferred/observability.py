"""Observability probes for the deferred work worker.

Following Domain Oriented Observability, probes capture domain-significant
events and metrics without cluttering business logic with logging concerns.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

import structlog

logger = structlog.get_logger()


class DeferredWorkerProbe(Protocol):
    """Protocol for deferred work worker observability.

    Implementations can log, emit metrics, or send traces.
    """

    def worker_started(self) -> None:
        """Called when the worker starts."""
        ...

    def worker_stopped(self) -> None:
        """Called when the worker stops."""
        ...

    def poll_loop_error(self, error: str) -> None:
        """Called when fetching or marking deliveries fails."""
        ...

    def delivery_processed(self, envelope_id: UUID, job_name: str) -> None:
        """Called when a delivery's handler completed."""
        ...

    def delivery_failed(
        self, envelope_id: UUID, job_name: str, error: str, retry_count: int
    ) -> None:
        """Called when a delivery failed and will be retried."""
        ...

    def delivery_dead_lettered(
        self, envelope_id: UUID, job_name: str, error: str, retry_count: int
    ) -> None:
        """Called when a delivery is moved to the dead letter state."""
        ...

    def batch_processed(self, count: int) -> None:
        """Called when a batch of deliveries was handled."""
        ...


class DefaultDeferredWorkerProbe:
    """Default implementation using structlog.

    Logs all worker events with appropriate log levels.
    """

    def __init__(self) -> None:
        """Initialize the probe with a logger."""
        self._log = logger.bind(component="deferred_worker")

    def worker_started(self) -> None:
        """Log worker start."""
        self._log.info("deferred_worker_started")

    def worker_stopped(self) -> None:
        """Log worker stop."""
        self._log.info("deferred_worker_stopped")

    def poll_loop_error(self, error: str) -> None:
        """Log poll loop error."""
        self._log.warning("deferred_poll_loop_error", error=error)

    def delivery_processed(self, envelope_id: UUID, job_name: str) -> None:
        """Log successful delivery."""
        self._log.info(
            "deferred_delivery_processed",
            envelope_id=str(envelope_id),
            job_name=job_name,
        )

    def delivery_failed(
        self, envelope_id: UUID, job_name: str, error: str, retry_count: int
    ) -> None:
        """Log failed delivery that will be retried."""
        self._log.warning(
            "deferred_delivery_failed",
            envelope_id=str(envelope_id),
            job_name=job_name,
            error=error,
            retry_count=retry_count,
        )

    def delivery_dead_lettered(
        self, envelope_id: UUID, job_name: str, error: str, retry_count: int
    ) -> None:
        """Log delivery moved to the dead letter state."""
        self._log.error(
            "deferred_delivery_dead_lettered",
            envelope_id=str(envelope_id),
            job_name=job_name,
            error=error,
            retry_count=retry_count,
        )

    def batch_processed(self, count: int) -> None:
        """Log batch processing."""
        if count > 0:
            self._log.info("deferred_batch_processed", count=count)
