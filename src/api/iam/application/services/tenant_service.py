"""Tenant application service for IAM bounded context.

Handles tenant lifecycle operations (create, read, archive, delete). Archiving
or deleting a tenant makes it unresolvable for new requests and for deferred
work captured before the change.
"""

from __future__ import annotations

from iam.application.observability import DefaultTenantServiceProbe, TenantServiceProbe
from iam.domain.aggregates import Tenant
from iam.ports.exceptions import DuplicateTenantNameError, TenantNotFoundError
from iam.ports.repositories import ITenantRepository
from shared_kernel.execution_context.value_objects import TenantExternalId


class TenantService:
    """Application service for tenant management."""

    def __init__(
        self,
        tenant_repository: ITenantRepository,
        probe: TenantServiceProbe | None = None,
    ):
        """Initialize TenantService with dependencies.

        Args:
            tenant_repository: Repository for tenant persistence
            probe: Optional domain probe for observability
        """
        self._tenant_repository = tenant_repository
        self._probe = probe or DefaultTenantServiceProbe()

    async def create_tenant(
        self,
        name: str,
        external_id: TenantExternalId | None = None,
    ) -> Tenant:
        """Create a new tenant.

        Args:
            name: The name of the tenant
            external_id: Public identifier; generated when omitted

        Returns:
            The created Tenant aggregate

        Raises:
            DuplicateTenantNameError: If a tenant with this name already exists
            DuplicateTenantExternalIdError: If the external id is taken
        """
        tenant = Tenant.create(name=name, external_id=external_id)
        try:
            await self._tenant_repository.save(tenant)
        except DuplicateTenantNameError:
            self._probe.duplicate_tenant_name(name=tenant.name)
            raise

        self._probe.tenant_created(
            tenant_id=tenant.id.value,
            external_id=str(tenant.external_id),
            name=tenant.name,
        )
        return tenant

    async def get_tenant(self, external_id: TenantExternalId) -> Tenant:
        """Retrieve a tenant by external id, archived or not.

        Raises:
            TenantNotFoundError: If no tenant has this external id
        """
        tenant = await self._tenant_repository.get_by_external_id(external_id)
        if tenant is None:
            self._probe.tenant_not_found(external_id=str(external_id))
            raise TenantNotFoundError(f"Tenant {external_id} not found")
        return tenant

    async def archive_tenant(self, external_id: TenantExternalId) -> Tenant:
        """Archive a tenant so it no longer resolves.

        Raises:
            TenantNotFoundError: If no tenant has this external id
            TenantAlreadyArchivedError: If the tenant is already archived
        """
        tenant = await self.get_tenant(external_id)
        tenant.archive()
        await self._tenant_repository.save(tenant)

        self._probe.tenant_archived(
            tenant_id=tenant.id.value,
            external_id=str(tenant.external_id),
        )
        return tenant

    async def delete_tenant(self, external_id: TenantExternalId) -> None:
        """Delete a tenant permanently.

        Raises:
            TenantNotFoundError: If no tenant has this external id
        """
        tenant = await self.get_tenant(external_id)
        if not await self._tenant_repository.delete(tenant):
            raise TenantNotFoundError(f"Tenant {external_id} not found")

        self._probe.tenant_deleted(
            tenant_id=tenant.id.value,
            external_id=str(tenant.external_id),
        )
