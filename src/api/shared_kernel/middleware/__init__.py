"""Shared middleware for cross-cutting concerns.

This module contains the ASGI middleware that opens a tenant-aware
execution context scope for every request, and FastAPI dependencies that
read the scope from route handlers.
"""

from shared_kernel.middleware.dependencies import (
    get_execution_context,
    require_tenant_scope,
)
from shared_kernel.middleware.tenant_scope import (
    HeaderIdentityExtractor,
    IdentityExtractor,
    TenantScopeMiddleware,
)

__all__ = [
    "HeaderIdentityExtractor",
    "IdentityExtractor",
    "TenantScopeMiddleware",
    "get_execution_context",
    "require_tenant_scope",
]
