"""Deferred work worker.

The worker runs as a background task within the FastAPI application. It
polls the queue, restores each envelope's execution context from fresh
lookups, and runs the registered job handler inside a scope bound to it.
"""

from __future__ import annotations

import asyncio
import contextvars
import copy

import structlog

from infrastructure.deferred.observability import (
    DefaultDeferredWorkerProbe,
    DeferredWorkerProbe,
)
from shared_kernel.deferred.exceptions import (
    UnknownJobError,
    UnresolvablePrincipalError,
    UnresolvableTenantError,
)
from shared_kernel.deferred.ports import DeferredWorkQueue
from shared_kernel.deferred.registry import DeferredJobRegistry
from shared_kernel.deferred.restore import ContextRestorer
from shared_kernel.deferred.value_objects import PendingDelivery
from shared_kernel.execution_context import ExecutionContextError, awith_context

# Retrying cannot fix these, so the delivery is dead-lettered on first sight
_PERMANENT_FAILURES = (
    UnknownJobError,
    UnresolvableTenantError,
    UnresolvablePrincipalError,
    ExecutionContextError,
)


class DeferredWorkWorker:
    """Background worker that delivers deferred work envelopes.

    Each delivery runs in an asyncio task with a brand new, empty
    ``contextvars.Context``, so nothing bound while handling one envelope
    (scope, structlog context) is visible to the next.

    Failure policy:
    - Unknown job names, unresolvable tenants or principals, and handlers
      that fail on the restored scope itself (e.g. no tenant bound) go
      straight to the dead letter state
    - Any other exception (handler or lookup store) is retried on a later
      poll until ``max_retries`` attempts have failed
    """

    def __init__(
        self,
        queue: DeferredWorkQueue,
        restorer: ContextRestorer,
        registry: DeferredJobRegistry,
        probe: DeferredWorkerProbe | None = None,
        poll_interval_seconds: float = 1.0,
        batch_size: int = 100,
        max_retries: int = 5,
    ) -> None:
        """Initialize the worker.

        Args:
            queue: Queue to poll for pending deliveries
            restorer: Rebuilds execution contexts from envelopes
            registry: Job handlers by name
            probe: Observability probe for logging/metrics
            poll_interval_seconds: Pause between polls
            batch_size: Maximum deliveries to process per poll
            max_retries: Failed attempts before moving to the dead letter state
        """
        self._queue = queue
        self._restorer = restorer
        self._registry = registry
        self._probe = probe or DefaultDeferredWorkerProbe()
        self._poll_interval = poll_interval_seconds
        self._batch_size = batch_size
        self._max_retries = max_retries
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        """Check if the poll loop is active."""
        return self._running

    async def start(self) -> None:
        """Start the poll loop as a background task."""
        if self._running:
            return
        self._running = True
        self._probe.worker_started()
        self._task = asyncio.get_running_loop().create_task(
            self._poll_loop(), context=contextvars.Context()
        )

    async def stop(self) -> None:
        """Gracefully stop the worker.

        Cancels the poll loop and waits for it to unwind.
        """
        if not self._running:
            return
        self._running = False

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self._probe.worker_stopped()

    async def run_once(self) -> int:
        """Fetch and deliver one batch of pending envelopes.

        Returns:
            Number of deliveries handled (processed, retried or dead-lettered)
        """
        deliveries = await self._queue.fetch_pending(limit=self._batch_size)
        loop = asyncio.get_running_loop()

        for delivery in deliveries:
            await loop.create_task(
                self._deliver(delivery), context=contextvars.Context()
            )

        self._probe.batch_processed(len(deliveries))
        return len(deliveries)

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                # Queue errors are transient; the next poll tries again
                self._probe.poll_loop_error(str(e))

            await asyncio.sleep(self._poll_interval)

    async def _deliver(self, delivery: PendingDelivery) -> None:
        envelope = delivery.envelope
        structlog.contextvars.bind_contextvars(
            envelope_id=str(envelope.id),
            job_name=envelope.job_name,
        )

        try:
            handler = self._registry.resolve(envelope.job_name)
            context = await self._restorer.restore(envelope)
        except _PERMANENT_FAILURES as e:
            await self._dead_letter(delivery, str(e))
            return
        except Exception as e:
            await self._handle_failure(delivery, str(e))
            return

        structlog.contextvars.bind_contextvars(
            tenant_id=str(context.tenant.external_id) if context.tenant else None,
            user_id=context.principal.user_id if context.principal else None,
        )

        try:
            # Handlers get their own copy so a retry sees the original payload
            await awith_context(context, handler, copy.deepcopy(envelope.payload))
        except _PERMANENT_FAILURES as e:
            await self._dead_letter(delivery, str(e))
            return
        except Exception as e:
            await self._handle_failure(delivery, str(e))
            return

        await self._queue.mark_processed(envelope.id)
        self._probe.delivery_processed(envelope.id, envelope.job_name)

    async def _handle_failure(self, delivery: PendingDelivery, error: str) -> None:
        """Handle a failed attempt, with retry or dead letter."""
        new_retry_count = delivery.retry_count + 1

        if new_retry_count >= self._max_retries:
            await self._dead_letter(delivery, error)
        else:
            envelope = delivery.envelope
            await self._queue.mark_retry(envelope.id, new_retry_count, error)
            self._probe.delivery_failed(
                envelope.id, envelope.job_name, error, new_retry_count
            )

    async def _dead_letter(self, delivery: PendingDelivery, error: str) -> None:
        envelope = delivery.envelope
        retry_count = delivery.retry_count + 1
        await self._queue.mark_dead_lettered(envelope.id, retry_count, error)
        self._probe.delivery_dead_lettered(
            envelope.id, envelope.job_name, error, retry_count
        )
