"""FastAPI dependencies over the request's execution context.

These are async so they run on the request task, where the scope opened by
``TenantScopeMiddleware`` is visible.

Usage in FastAPI routes:
    @router.post("/example")
    async def example(
        tenant: Annotated[TenantIdentity, Depends(require_tenant_scope)],
    ):
        ...
"""

from __future__ import annotations

from fastapi import HTTPException, status

from shared_kernel.execution_context.scope import require_context
from shared_kernel.execution_context.value_objects import (
    ExecutionContext,
    TenantIdentity,
)


async def get_execution_context() -> ExecutionContext:
    """Return the request's execution context.

    Raises:
        ScopeNotOpenError: If the route is served without TenantScopeMiddleware.
            This is a wiring error and surfaces as a 500.
    """
    return require_context()


async def require_tenant_scope() -> TenantIdentity:
    """Return the request's tenant, rejecting untenanted requests.

    Raises:
        HTTPException 400: If the request path has no tenant segment.
    """
    context = require_context()
    if context.tenant is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This endpoint requires a tenant path prefix",
        )
    return context.tenant
