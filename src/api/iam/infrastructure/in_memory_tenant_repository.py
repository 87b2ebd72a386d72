"""In-memory implementation of ITenantRepository.

Used for local development (``storage_backend=memory``) and tests. Stores
copies of aggregates so callers never share mutable state with the store.
"""

from __future__ import annotations

from dataclasses import replace

from iam.domain.aggregates import Tenant
from iam.domain.value_objects import TenantId
from iam.infrastructure.observability import (
    DefaultTenantRepositoryProbe,
    TenantRepositoryProbe,
)
from iam.ports.exceptions import (
    DuplicateTenantExternalIdError,
    DuplicateTenantNameError,
)
from iam.ports.repositories import ITenantRepository
from shared_kernel.execution_context.value_objects import (
    TenantExternalId,
    TenantIdentity,
)


class InMemoryTenantRepository(ITenantRepository):
    """Dictionary-backed tenant store."""

    def __init__(self, probe: TenantRepositoryProbe | None = None) -> None:
        self._tenants: dict[str, Tenant] = {}
        self._probe = probe or DefaultTenantRepositoryProbe()

    async def save(self, tenant: Tenant) -> None:
        """Insert or update a tenant.

        Raises:
            DuplicateTenantNameError: If tenant name already exists
            DuplicateTenantExternalIdError: If the external id is taken
        """
        for existing in self._tenants.values():
            if existing.id == tenant.id:
                continue
            if existing.external_id == tenant.external_id:
                self._probe.duplicate_external_id(str(tenant.external_id))
                raise DuplicateTenantExternalIdError(
                    f"Tenant external id {tenant.external_id} already exists"
                )
            if existing.name == tenant.name:
                self._probe.duplicate_tenant_name(tenant.name)
                raise DuplicateTenantNameError(f"Tenant '{tenant.name}' already exists")

        self._tenants[tenant.id.value] = replace(tenant)
        self._probe.tenant_saved(tenant.id.value, str(tenant.external_id))

    async def get_by_id(self, tenant_id: TenantId) -> Tenant | None:
        """Retrieve a tenant by its internal ID, archived or not."""
        tenant = self._tenants.get(tenant_id.value)
        return replace(tenant) if tenant is not None else None

    async def get_by_external_id(self, external_id: TenantExternalId) -> Tenant | None:
        """Retrieve a tenant by its external ID, archived or not."""
        for tenant in self._tenants.values():
            if tenant.external_id == external_id:
                return replace(tenant)
        return None

    async def get_by_name(self, name: str) -> Tenant | None:
        """Retrieve a tenant by name."""
        for tenant in self._tenants.values():
            if tenant.name == name:
                return replace(tenant)
        return None

    async def find_by_external_id(
        self, external_id: TenantExternalId
    ) -> TenantIdentity | None:
        """Resolve an external id to a live (not archived) tenant."""
        for tenant in self._tenants.values():
            if tenant.external_id == external_id and not tenant.is_archived:
                return tenant.to_identity()
        self._probe.tenant_lookup_missed(str(external_id))
        return None

    async def delete(self, tenant: Tenant) -> bool:
        """Delete a tenant; returns False if it was not stored."""
        if self._tenants.pop(tenant.id.value, None) is None:
            return False
        self._probe.tenant_deleted(tenant.id.value)
        return True
