"""Unit test fixtures shared across bounded contexts."""

import pytest
import pytest_asyncio

from iam.domain.aggregates import Tenant
from iam.infrastructure.in_memory_tenant_repository import InMemoryTenantRepository
from shared_kernel.execution_context import (
    ExecutionContext,
    Principal,
    TenantExternalId,
    TenantIdentity,
)


@pytest.fixture
def tenant_a() -> TenantIdentity:
    """Provide a tenant identity."""
    return TenantIdentity(
        internal_id="01ARZ3NDEKTSV4RRFFQ69G5FAV",
        external_id=TenantExternalId(value=1234567),
        name="Acme",
    )


@pytest.fixture
def tenant_b() -> TenantIdentity:
    """Provide a second, distinct tenant identity."""
    return TenantIdentity(
        internal_id="01BX5ZZKBKACTAV9WEVGEMMVRY",
        external_id=TenantExternalId(value=7654321),
        name="Globex",
    )


@pytest.fixture
def context_a(tenant_a: TenantIdentity) -> ExecutionContext:
    """Provide a context bound to tenant A and a principal."""
    return (
        ExecutionContext.empty()
        .with_tenant(tenant_a)
        .with_principal(Principal(user_id="alice"))
    )


@pytest.fixture
def context_b(tenant_b: TenantIdentity) -> ExecutionContext:
    """Provide a context bound to tenant B and a principal."""
    return (
        ExecutionContext.empty()
        .with_tenant(tenant_b)
        .with_principal(Principal(user_id="bob"))
    )


@pytest.fixture
def tenant_repository() -> InMemoryTenantRepository:
    """Provide an empty in-memory tenant repository."""
    return InMemoryTenantRepository()


@pytest_asyncio.fixture
async def acme_tenant(tenant_repository: InMemoryTenantRepository) -> Tenant:
    """Store and provide the Acme tenant (external id 1234567)."""
    tenant = Tenant.create(name="Acme", external_id=TenantExternalId(value=1234567))
    await tenant_repository.save(tenant)
    return tenant
