"""Context Scope: task-local visibility of the current execution context.

The scope stack lives in a single ``ContextVar`` holding an immutable tuple.
Opening a scope pushes a context by setting a new tuple; closing it resets
the variable with the token from the push, so the enclosing scope becomes
visible again exactly as it was. Because the storage is a ``ContextVar``,
visibility follows the logical unit of work:

- an asyncio task sees the scope it was created under, and keeps it across
  every ``await`` regardless of which thread the loop runs on;
- a thread started through ``asyncio.to_thread`` or Starlette's threadpool
  receives a copy of the caller's context;
- pooled threads are isolated with ``run_isolated`` / ``submit_isolated``,
  which run each unit of work in a brand new empty ``Context``.

A task started with ``asyncio.create_task`` inside a scope gets a copy of
the creating context, so it keeps seeing that scope's tenant after the
``with`` block has exited. Such a task is a separate unit of work, not part
of the scope's extent. Use ``spawn_isolated`` to start it with exactly the
context it should run under.

Nothing here performs I/O or logging.
"""

from __future__ import annotations

import asyncio
import contextvars
from collections.abc import Awaitable, Callable, Iterator
from concurrent.futures import Executor, Future
from contextlib import contextmanager
from typing import Any, ParamSpec, TypeVar

from shared_kernel.execution_context.exceptions import (
    PrincipalNotBoundError,
    ScopeNotOpenError,
    TenantNotBoundError,
)
from shared_kernel.execution_context.value_objects import (
    ExecutionContext,
    Principal,
    SessionReference,
    TenantIdentity,
)

P = ParamSpec("P")
T = TypeVar("T")

_scope_stack: contextvars.ContextVar[tuple[ExecutionContext, ...]] = (
    contextvars.ContextVar("tenantscope_scope_stack", default=())
)


@contextmanager
def context_scope(context: ExecutionContext) -> Iterator[ExecutionContext]:
    """Make ``context`` current for the dynamic extent of the ``with`` block.

    Exit runs in a ``finally`` block, so exceptions and task cancellation
    restore the enclosing scope the same way a normal return does.

    Args:
        context: The context to expose to ``current_*`` queries

    Yields:
        The same context, for convenience

    Raises:
        TypeError: If ``context`` is not an ExecutionContext
    """
    if not isinstance(context, ExecutionContext):
        raise TypeError(
            f"context_scope requires an ExecutionContext, got {type(context).__name__}"
        )
    token = _scope_stack.set((*_scope_stack.get(), context))
    try:
        yield context
    finally:
        _scope_stack.reset(token)


def with_context(
    context: ExecutionContext,
    fn: Callable[P, T],
    /,
    *args: P.args,
    **kwargs: P.kwargs,
) -> T:
    """Call ``fn`` inside a scope bound to ``context`` and return its result."""
    with context_scope(context):
        return fn(*args, **kwargs)


async def awith_context(
    context: ExecutionContext,
    fn: Callable[P, Awaitable[T]],
    /,
    *args: P.args,
    **kwargs: P.kwargs,
) -> T:
    """Await ``fn`` inside a scope bound to ``context`` and return its result.

    The scope stays visible across suspension points inside ``fn``.
    """
    with context_scope(context):
        return await fn(*args, **kwargs)


def run_isolated(fn: Callable[P, T], /, *args: P.args, **kwargs: P.kwargs) -> T:
    """Call ``fn`` in a brand new, empty ``contextvars.Context``.

    Use at the boundary of a unit of work that runs on a reused execution
    resource, so no scope (or any other context variable) left behind by a
    previous occupant is visible.
    """
    return contextvars.Context().run(fn, *args, **kwargs)


def submit_isolated(
    executor: Executor,
    context: ExecutionContext,
    fn: Callable[..., T],
    /,
    *args: Any,
    **kwargs: Any,
) -> Future[T]:
    """Submit ``fn`` to ``executor`` so that it sees exactly ``context``.

    The task runs in a fresh ``Context`` on whatever pool thread picks it up,
    with ``context`` as its only open scope.
    """
    return executor.submit(run_isolated, with_context, context, fn, *args, **kwargs)


def spawn_isolated(
    context: ExecutionContext,
    fn: Callable[..., Awaitable[T]],
    /,
    *args: Any,
    **kwargs: Any,
) -> asyncio.Task[T]:
    """Start ``fn`` as an asyncio task that sees exactly ``context``.

    Unlike ``asyncio.create_task``, the new task does not inherit the
    caller's scope stack; it starts from an empty ``Context``.
    """
    loop = asyncio.get_running_loop()
    return loop.create_task(
        awith_context(context, fn, *args, **kwargs),
        context=contextvars.Context(),
    )


def in_scope() -> bool:
    """Check if any scope is open in the current unit of work."""
    return bool(_scope_stack.get())


def scope_depth() -> int:
    """Return the number of nested scopes currently open."""
    return len(_scope_stack.get())


def current_context() -> ExecutionContext | None:
    """Return the innermost open context, or None when no scope is open."""
    stack = _scope_stack.get()
    return stack[-1] if stack else None


def current_tenant() -> TenantIdentity | None:
    """Return the tenant of the innermost scope, or None."""
    context = current_context()
    return context.tenant if context is not None else None


def current_principal() -> Principal | None:
    """Return the principal of the innermost scope, or None."""
    context = current_context()
    return context.principal if context is not None else None


def current_session() -> SessionReference | None:
    """Return the session of the innermost scope, or None."""
    context = current_context()
    return context.session if context is not None else None


def require_context() -> ExecutionContext:
    """Return the innermost open context.

    Raises:
        ScopeNotOpenError: If no scope is open
    """
    context = current_context()
    if context is None:
        raise ScopeNotOpenError("context")
    return context


def require_tenant() -> TenantIdentity:
    """Return the current tenant for call sites that cannot run untenanted.

    Raises:
        ScopeNotOpenError: If no scope is open
        TenantNotBoundError: If the open scope is untenanted
    """
    context = current_context()
    if context is None:
        raise ScopeNotOpenError("tenant")
    if context.tenant is None:
        raise TenantNotBoundError()
    return context.tenant


def require_principal() -> Principal:
    """Return the current principal for call sites that need one.

    Raises:
        ScopeNotOpenError: If no scope is open
        PrincipalNotBoundError: If the open scope has no principal
    """
    context = current_context()
    if context is None:
        raise ScopeNotOpenError("principal")
    if context.principal is None:
        raise PrincipalNotBoundError()
    return context.principal
