"""Tenant path resolution."""

from shared_kernel.tenancy.resolver import (
    DEFAULT_MIN_DIGITS,
    InvalidTenantPathConfigError,
    ResolvedTarget,
    TenantPathResolver,
    validate_tenant_path_config,
)

__all__ = [
    "DEFAULT_MIN_DIGITS",
    "InvalidTenantPathConfigError",
    "ResolvedTarget",
    "TenantPathResolver",
    "validate_tenant_path_config",
]
