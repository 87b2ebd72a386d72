"""Execution context and its task-local scope.

The execution context carries the tenant, principal and session a unit of
work runs as. Application code reads it through the ``current_*`` and
``require_*`` functions; only the request and worker pipelines open scopes.
"""

from shared_kernel.execution_context.exceptions import (
    ContextFieldAlreadySetError,
    ExecutionContextError,
    PrincipalNotBoundError,
    ScopeNotOpenError,
    TenantNotBoundError,
)
from shared_kernel.execution_context.scope import (
    awith_context,
    context_scope,
    current_context,
    current_principal,
    current_session,
    current_tenant,
    in_scope,
    require_context,
    require_principal,
    require_tenant,
    run_isolated,
    scope_depth,
    spawn_isolated,
    submit_isolated,
    with_context,
)
from shared_kernel.execution_context.value_objects import (
    ExecutionContext,
    Principal,
    SessionReference,
    TenantExternalId,
    TenantIdentity,
)

__all__ = [
    "ContextFieldAlreadySetError",
    "ExecutionContext",
    "ExecutionContextError",
    "Principal",
    "PrincipalNotBoundError",
    "ScopeNotOpenError",
    "SessionReference",
    "TenantExternalId",
    "TenantIdentity",
    "TenantNotBoundError",
    "awith_context",
    "context_scope",
    "current_context",
    "current_principal",
    "current_session",
    "current_tenant",
    "in_scope",
    "require_context",
    "require_principal",
    "require_tenant",
    "run_isolated",
    "scope_depth",
    "spawn_isolated",
    "submit_isolated",
    "with_context",
]
