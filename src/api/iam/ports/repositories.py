"""Repository protocols (ports) for IAM bounded context.

Repository protocols define the interface for persisting and retrieving
aggregates. The tenant repository doubles as the tenant lookup store used
by the request and worker pipelines.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from iam.domain.aggregates import Tenant
from iam.domain.value_objects import TenantId
from shared_kernel.execution_context.value_objects import (
    TenantExternalId,
    TenantIdentity,
)


@runtime_checkable
class ITenantRepository(Protocol):
    """Repository for Tenant aggregate persistence.

    Implementations also satisfy ``shared_kernel.deferred.ports.TenantLookup``
    through ``find_by_external_id``, which only ever returns live tenants.
    """

    async def save(self, tenant: Tenant) -> None:
        """Persist a tenant aggregate.

        Creates a new tenant or updates an existing one.

        Args:
            tenant: The Tenant aggregate to persist

        Raises:
            DuplicateTenantNameError: If tenant name already exists
            DuplicateTenantExternalIdError: If the external id is taken
        """
        ...

    async def get_by_id(self, tenant_id: TenantId) -> Tenant | None:
        """Retrieve a tenant by its internal ID, archived or not.

        Args:
            tenant_id: The unique identifier of the tenant

        Returns:
            The Tenant aggregate, or None if not found
        """
        ...

    async def get_by_external_id(self, external_id: TenantExternalId) -> Tenant | None:
        """Retrieve a tenant by its external ID, archived or not.

        Args:
            external_id: The public tenant identifier

        Returns:
            The Tenant aggregate, or None if not found
        """
        ...

    async def get_by_name(self, name: str) -> Tenant | None:
        """Retrieve a tenant by name.

        Args:
            name: The tenant name

        Returns:
            The Tenant aggregate, or None if not found
        """
        ...

    async def find_by_external_id(
        self, external_id: TenantExternalId
    ) -> TenantIdentity | None:
        """Resolve an external id to a live (not archived) tenant.

        Args:
            external_id: The public tenant identifier

        Returns:
            The tenant identity, or None if missing or archived
        """
        ...

    async def delete(self, tenant: Tenant) -> bool:
        """Delete a tenant.

        Args:
            tenant: The Tenant aggregate to delete

        Returns:
            True if deleted, False if not found
        """
        ...
