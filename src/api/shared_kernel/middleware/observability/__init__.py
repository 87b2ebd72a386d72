"""Observability for shared middleware operations."""

from shared_kernel.middleware.observability.tenant_scope_probe import (
    DefaultTenantScopeProbe,
    TenantScopeProbe,
)

__all__ = [
    "DefaultTenantScopeProbe",
    "TenantScopeProbe",
]
