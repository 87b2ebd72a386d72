"""Tenant bootstrap service for IAM bounded context.

Seeds the tenants listed in configuration at application startup, so a fresh
in-memory store (or an empty database) has tenants to route requests to.
"""

from __future__ import annotations

from collections.abc import Mapping

from iam.domain.aggregates import Tenant
from iam.ports.exceptions import (
    DuplicateTenantExternalIdError,
    DuplicateTenantNameError,
)
from iam.ports.repositories import ITenantRepository
from infrastructure.observability.startup_probe import (
    DefaultStartupProbe,
    StartupProbe,
)
from shared_kernel.execution_context.value_objects import TenantExternalId


class TenantBootstrapService:
    """Bootstrap service for configured seed tenants.

    Seeding is idempotent by external id and tolerates concurrent startup of
    several application instances against the same database.
    """

    def __init__(
        self,
        tenant_repository: ITenantRepository,
        probe: StartupProbe | None = None,
    ):
        """Initialize TenantBootstrapService with dependencies.

        Args:
            tenant_repository: Repository for tenant persistence
            probe: Optional startup probe for observability
        """
        self._tenant_repository = tenant_repository
        self._probe = probe or DefaultStartupProbe()

    async def ensure_tenants(self, seed: Mapping[int, str]) -> list[Tenant]:
        """Ensure every configured tenant exists.

        Args:
            seed: Mapping of external id to tenant name

        Returns:
            The seeded tenants, newly created or pre-existing, in seed order

        Raises:
            DuplicateTenantNameError: If a seed name belongs to a tenant with
                a different external id
        """
        tenants = []
        for raw_id, name in seed.items():
            external_id = TenantExternalId(value=raw_id)
            tenants.append(await self._ensure_tenant(external_id, name))
        return tenants

    async def _ensure_tenant(self, external_id: TenantExternalId, name: str) -> Tenant:
        existing = await self._tenant_repository.get_by_external_id(external_id)
        if existing is not None:
            self._probe.seed_tenant_already_exists(
                external_id=str(external_id),
                name=existing.name,
            )
            return existing

        try:
            tenant = Tenant.create(name=name, external_id=external_id)
            await self._tenant_repository.save(tenant)
        except (DuplicateTenantExternalIdError, DuplicateTenantNameError):
            # Another instance may have seeded it concurrently, re-query
            concurrent = await self._tenant_repository.get_by_external_id(external_id)
            if concurrent is None:
                raise
            self._probe.seed_tenant_already_exists(
                external_id=str(external_id),
                name=concurrent.name,
            )
            return concurrent

        self._probe.seed_tenant_created(external_id=str(external_id), name=tenant.name)
        return tenant
