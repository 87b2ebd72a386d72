"""Unit tests for DeferredWorkWorker.

The worker runs against the in-memory queue and tenant store; handlers are
plain async functions that record what they observed.
"""

import asyncio
from contextvars import ContextVar
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog

from iam.domain.aggregates import Tenant
from infrastructure.deferred import DeferredWorkWorker
from shared_kernel.deferred import ContextRestorer, DeferredJobRegistry
from shared_kernel.execution_context import (
    TenantExternalId,
    context_scope,
    current_principal,
    current_tenant,
    in_scope,
    require_tenant,
)

_marker: ContextVar[str | None] = ContextVar("_marker", default=None)


def _worker(queue, tenant_lookup, handlers, probe=None, **kwargs):
    return DeferredWorkWorker(
        queue=queue,
        restorer=ContextRestorer(tenant_lookup),
        registry=DeferredJobRegistry(handlers),
        probe=probe or MagicMock(),
        **kwargs,
    )


class TestRunOnce:
    """Tests for processing a single batch."""

    @pytest.mark.asyncio
    async def test_handler_runs_in_restored_scope(
        self, queue, make_envelope, tenant_repository, acme_tenant
    ):
        seen = []

        async def handler(payload):
            seen.append((payload, current_tenant(), current_principal()))

        envelope = make_envelope(payload={"n": 1}, principal_id="alice")
        await queue.enqueue(envelope)
        worker = _worker(queue, tenant_repository, {"test.job": handler})

        handled = await worker.run_once()

        assert handled == 1
        [(payload, tenant, principal)] = seen
        assert payload == {"n": 1}
        assert tenant == acme_tenant.to_identity()
        assert principal.user_id == "alice"
        assert queue.processed_ids() == [envelope.id]

    @pytest.mark.asyncio
    async def test_untenanted_envelope_runs_untenanted(
        self, queue, make_envelope, tenant_repository
    ):
        seen = []

        async def handler(payload):
            seen.append((in_scope(), current_tenant()))

        await queue.enqueue(make_envelope(tenant_external_id=None))
        await _worker(queue, tenant_repository, {"test.job": handler}).run_once()

        assert seen == [(True, None)]

    @pytest.mark.asyncio
    async def test_empty_queue(self, queue, tenant_repository):
        probe = MagicMock()
        worker = _worker(queue, tenant_repository, {}, probe=probe)

        assert await worker.run_once() == 0
        probe.batch_processed.assert_called_once_with(0)

    @pytest.mark.asyncio
    async def test_respects_batch_size(
        self, queue, make_envelope, tenant_repository, acme_tenant
    ):
        handler = AsyncMock()
        for _ in range(5):
            await queue.enqueue(make_envelope())
        worker = _worker(queue, tenant_repository, {"test.job": handler}, batch_size=2)

        assert await worker.run_once() == 2
        assert queue.pending_count() == 3


class TestPermanentFailures:
    """Failures that retrying cannot fix are dead-lettered immediately."""

    @pytest.mark.asyncio
    async def test_deleted_tenant_is_dead_lettered(
        self, queue, make_envelope, tenant_repository, acme_tenant
    ):
        handler = AsyncMock()
        envelope = make_envelope()
        await queue.enqueue(envelope)
        await tenant_repository.delete(acme_tenant)
        probe = MagicMock()

        worker = _worker(queue, tenant_repository, {"test.job": handler}, probe=probe)
        await worker.run_once()

        handler.assert_not_awaited()
        [dead] = queue.dead_lettered()
        assert dead.envelope.id == envelope.id
        assert dead.retry_count == 1
        assert "no longer resolves" in dead.last_error
        probe.delivery_dead_lettered.assert_called_once()

    @pytest.mark.asyncio
    async def test_unknown_job_is_dead_lettered(
        self, queue, make_envelope, tenant_repository, acme_tenant
    ):
        await queue.enqueue(make_envelope(job_name="nobody.handles.this"))

        await _worker(queue, tenant_repository, {"test.job": AsyncMock()}).run_once()

        [dead] = queue.dead_lettered()
        assert "nobody.handles.this" in dead.last_error
        assert queue.pending_count() == 0

    @pytest.mark.asyncio
    async def test_unresolvable_tenant_does_not_run_untenanted(
        self, queue, make_envelope, tenant_repository
    ):
        seen = []

        async def handler(payload):
            seen.append(current_tenant())

        await queue.enqueue(make_envelope(tenant_external_id=9999999))
        await _worker(queue, tenant_repository, {"test.job": handler}).run_once()

        assert seen == []
        assert len(queue.dead_lettered()) == 1

    @pytest.mark.asyncio
    async def test_handler_requiring_missing_tenant_is_dead_lettered(
        self, queue, make_envelope, tenant_repository
    ):
        calls = []

        async def handler(payload):
            calls.append(payload)
            require_tenant()

        await queue.enqueue(make_envelope(tenant_external_id=None))
        worker = _worker(
            queue, tenant_repository, {"test.job": handler}, max_retries=5
        )

        await worker.run_once()
        await worker.run_once()

        assert len(calls) == 1
        [dead] = queue.dead_lettered()
        assert dead.retry_count == 1
        assert "no tenant bound" in dead.last_error
        assert queue.pending_count() == 0


class TestRetries:
    """Transient failures are retried until max_retries."""

    @pytest.mark.asyncio
    async def test_handler_failure_is_retried_then_dead_lettered(
        self, queue, make_envelope, tenant_repository, acme_tenant
    ):
        handler = AsyncMock(side_effect=RuntimeError("boom"))
        await queue.enqueue(make_envelope())
        worker = _worker(
            queue, tenant_repository, {"test.job": handler}, max_retries=3
        )

        await worker.run_once()
        [pending] = await queue.fetch_pending()
        assert pending.retry_count == 1
        assert pending.last_error == "boom"

        await worker.run_once()
        await worker.run_once()

        assert handler.await_count == 3
        [dead] = queue.dead_lettered()
        assert dead.retry_count == 3
        assert queue.pending_count() == 0

    @pytest.mark.asyncio
    async def test_lookup_failure_is_retried(self, queue, make_envelope):
        lookup = AsyncMock()
        lookup.find_by_external_id.side_effect = ConnectionError("db down")
        await queue.enqueue(make_envelope())

        await _worker(queue, lookup, {"test.job": AsyncMock()}).run_once()

        [pending] = await queue.fetch_pending()
        assert pending.retry_count == 1
        assert queue.dead_lettered() == []

    @pytest.mark.asyncio
    async def test_retry_sees_original_payload(
        self, queue, make_envelope, tenant_repository, acme_tenant
    ):
        seen = []

        async def handler(payload):
            seen.append(dict(payload))
            payload["mutated"] = True
            if len(seen) == 1:
                raise RuntimeError("first attempt fails")

        await queue.enqueue(make_envelope(payload={"n": 1}))
        worker = _worker(queue, tenant_repository, {"test.job": handler})

        await worker.run_once()
        await worker.run_once()

        assert seen == [{"n": 1}, {"n": 1}]


class TestIsolation:
    """Each delivery starts from an empty context."""

    @pytest.mark.asyncio
    async def test_state_bound_by_one_delivery_is_invisible_to_the_next(
        self, queue, make_envelope, tenant_repository, acme_tenant
    ):
        seen = []

        async def handler(payload):
            seen.append(
                (_marker.get(), structlog.contextvars.get_contextvars().get("leak"))
            )
            _marker.set(payload["name"])
            structlog.contextvars.bind_contextvars(leak=payload["name"])

        for name in ("first", "second", "third"):
            await queue.enqueue(make_envelope(payload={"name": name}))

        await _worker(queue, tenant_repository, {"test.job": handler}).run_once()

        assert seen == [(None, None)] * 3

    @pytest.mark.asyncio
    async def test_caller_scope_is_not_inherited(
        self, queue, make_envelope, tenant_repository, context_b
    ):
        seen = []

        async def handler(payload):
            seen.append(current_tenant())

        await queue.enqueue(make_envelope(tenant_external_id=None))
        worker = _worker(queue, tenant_repository, {"test.job": handler})

        with context_scope(context_b):
            await worker.run_once()

        assert seen == [None]

    @pytest.mark.asyncio
    async def test_interleaved_tenants_are_not_confused(
        self, queue, make_envelope, tenant_repository
    ):
        external_ids = [1000001, 1000002, 1000003]
        for external_id in external_ids:
            await tenant_repository.save(
                Tenant.create(
                    name=f"t{external_id}",
                    external_id=TenantExternalId(value=external_id),
                )
            )

        seen = []

        async def handler(payload):
            await asyncio.sleep(0)
            seen.append((payload["expected"], current_tenant().external_id.value))

        for i in range(30):
            external_id = external_ids[i % 3]
            await queue.enqueue(
                make_envelope(
                    payload={"expected": external_id},
                    tenant_external_id=external_id,
                )
            )

        await _worker(queue, tenant_repository, {"test.job": handler}).run_once()

        assert len(seen) == 30
        assert all(expected == actual for expected, actual in seen)


class TestLifecycle:
    """Tests for start() and stop()."""

    @pytest.mark.asyncio
    async def test_start_processes_in_background(
        self, queue, make_envelope, tenant_repository, acme_tenant
    ):
        done = asyncio.Event()

        async def handler(payload):
            done.set()

        worker = _worker(
            queue, tenant_repository, {"test.job": handler}, poll_interval_seconds=0.01
        )
        await worker.start()
        try:
            await queue.enqueue(make_envelope())
            await asyncio.wait_for(done.wait(), timeout=2)
        finally:
            await worker.stop()

        assert not worker.is_running

    @pytest.mark.asyncio
    async def test_start_and_stop_are_idempotent(self, queue, tenant_repository):
        probe = MagicMock()
        worker = _worker(queue, tenant_repository, {}, probe=probe)

        await worker.start()
        await worker.start()
        await worker.stop()
        await worker.stop()

        probe.worker_started.assert_called_once()
        probe.worker_stopped.assert_called_once()

    @pytest.mark.asyncio
    async def test_poll_loop_survives_queue_errors(self, tenant_repository):
        queue = AsyncMock()
        calls = []

        async def fetch_pending(limit):
            calls.append(limit)
            if len(calls) == 1:
                raise ConnectionError("db down")
            return []

        queue.fetch_pending.side_effect = fetch_pending
        probe = MagicMock()
        worker = _worker(
            queue, tenant_repository, {}, probe=probe, poll_interval_seconds=0.01
        )

        await worker.start()
        try:
            for _ in range(100):
                if queue.fetch_pending.await_count >= 2:
                    break
                await asyncio.sleep(0.01)
        finally:
            await worker.stop()

        probe.poll_loop_error.assert_called_once_with("db down")
        assert queue.fetch_pending.await_count >= 2
