"""Isolation of scopes between concurrent units of work.

Units of work that share execution resources (pool threads, an event loop)
must never observe each other's tenant.
"""

import asyncio
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from shared_kernel.execution_context import (
    ExecutionContext,
    context_scope,
    current_tenant,
    run_isolated,
    scope_depth,
    spawn_isolated,
    submit_isolated,
)
from shared_kernel.execution_context.scope import _scope_stack


def _sample_tenant(samples: int, pause: float):
    seen = []
    for _ in range(samples):
        seen.append(current_tenant())
        time.sleep(pause)
    return seen


class TestThreadPoolIsolation:
    """Pooled threads are reused across units of work."""

    def test_single_thread_pool_never_exposes_previous_tenant(
        self, context_a, context_b, tenant_a, tenant_b
    ):
        """Alternating tenants on one reused thread each see only their own."""
        expected = []
        futures = []
        with ThreadPoolExecutor(max_workers=1) as executor:
            for i in range(200):
                context, tenant = (
                    (context_a, tenant_a) if i % 2 == 0 else (context_b, tenant_b)
                )
                expected.append(tenant)
                futures.append(submit_isolated(executor, context, _sample_tenant, 3, 0))

            results = [future.result() for future in futures]

        for tenant, seen in zip(expected, results):
            assert seen == [tenant, tenant, tenant]

    @pytest.mark.parametrize("seed", range(5))
    def test_concurrent_pool_interleavings(
        self, seed, context_a, context_b, tenant_a, tenant_b
    ):
        """Many interleaved units of work on a small pool keep their tenant."""
        rng = random.Random(seed)
        jobs = []
        with ThreadPoolExecutor(max_workers=4) as executor:
            for _ in range(60):
                context, tenant = rng.choice(
                    [(context_a, tenant_a), (context_b, tenant_b)]
                )
                pause = rng.choice([0, 0.0005, 0.001])
                jobs.append(
                    (tenant, submit_isolated(executor, context, _sample_tenant, 5, pause))
                )

            for tenant, future in jobs:
                assert future.result() == [tenant] * 5

    def test_isolated_task_sees_exactly_one_scope(self, context_a, context_b, tenant_b):
        with ThreadPoolExecutor(max_workers=1) as executor:
            with context_scope(context_a):
                future = submit_isolated(
                    executor, context_b, lambda: (current_tenant(), scope_depth())
                )
            assert future.result() == (tenant_b, 1)

    def test_state_left_on_a_thread_is_invisible_to_isolated_work(
        self, context_a, context_b, tenant_a, tenant_b
    ):
        """A unit of work that leaks a scope on a pool thread does not affect
        isolated work that later runs on the same thread."""

        def leak():
            _scope_stack.set((context_a,))
            return threading.get_ident()

        with ThreadPoolExecutor(max_workers=1) as executor:
            leaking_thread = executor.submit(leak).result()

            # Plain submission runs in the thread's own context and sees the leak
            assert executor.submit(current_tenant).result() == tenant_a

            isolated = submit_isolated(
                executor,
                context_b,
                lambda: (threading.get_ident(), current_tenant(), scope_depth()),
            ).result()
            assert isolated == (leaking_thread, tenant_b, 1)

            assert executor.submit(run_isolated, current_tenant).result() is None


class TestRunIsolated:
    """run_isolated starts from an empty context."""

    def test_caller_scope_is_not_visible(self, context_a):
        with context_scope(context_a):
            assert run_isolated(current_tenant) is None

    def test_scope_opened_inside_does_not_escape(self, context_b, tenant_b):
        def open_and_leave_open():
            _scope_stack.set((context_b,))
            return current_tenant()

        assert run_isolated(open_and_leave_open) == tenant_b
        assert current_tenant() is None


class TestAsyncioIsolation:
    """Tasks interleaved on one event loop."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", range(5))
    async def test_interleaved_tasks_never_observe_each_other(
        self, seed, context_a, context_b, tenant_a, tenant_b
    ):
        rng = random.Random(seed)

        async def sample(delays):
            seen = []
            for delay in delays:
                seen.append(current_tenant())
                await asyncio.sleep(delay)
            seen.append(current_tenant())
            return seen

        expected = []
        tasks = []
        for _ in range(100):
            context, tenant = rng.choice([(context_a, tenant_a), (context_b, tenant_b)])
            delays = [rng.choice([0, 0, 0.0001, 0.001]) for _ in range(4)]
            expected.append(tenant)
            tasks.append(spawn_isolated(context, sample, delays))

        results = await asyncio.gather(*tasks)

        for tenant, seen in zip(expected, results):
            assert seen == [tenant] * 5

    @pytest.mark.asyncio
    async def test_spawned_task_ignores_caller_scope(
        self, context_a, context_b, tenant_a, tenant_b
    ):
        async def observe():
            await asyncio.sleep(0)
            return current_tenant(), scope_depth()

        with context_scope(context_a):
            task = spawn_isolated(context_b, observe)
            assert current_tenant() == tenant_a

        assert await task == (tenant_b, 1)

    @pytest.mark.asyncio
    async def test_created_task_keeps_scope_it_was_created_under(
        self, context_a, tenant_a
    ):
        release = asyncio.Event()

        async def observe():
            await release.wait()
            return current_tenant()

        with context_scope(context_a):
            inherited = asyncio.create_task(observe())
            isolated = spawn_isolated(ExecutionContext.empty(), observe)

        assert current_tenant() is None
        release.set()

        assert await inherited == tenant_a
        assert await isolated is None
