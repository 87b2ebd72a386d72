"""PostgreSQL implementation of ITenantRepository.

This repository manages tenant metadata storage in PostgreSQL and serves as
the tenant lookup store for the request and worker pipelines. Each call
opens its own short session from the session factory, because lookups
happen in middleware and in the worker, outside any request-scoped session.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from iam.domain.aggregates import Tenant
from iam.domain.value_objects import TenantId
from iam.infrastructure.models import TenantModel
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

# external_id is a BIGINT column; larger values cannot be stored
_MAX_EXTERNAL_ID = 2**63 - 1


class TenantRepository(ITenantRepository):
    """Repository managing PostgreSQL storage for Tenant aggregates."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        probe: TenantRepositoryProbe | None = None,
    ) -> None:
        """Initialize repository with a session factory.

        Args:
            session_factory: Factory for creating database sessions
            probe: Optional domain probe for observability
        """
        self._session_factory = session_factory
        self._probe = probe or DefaultTenantRepositoryProbe()

    async def save(self, tenant: Tenant) -> None:
        """Persist tenant metadata to PostgreSQL.

        Args:
            tenant: The Tenant aggregate to persist

        Raises:
            DuplicateTenantNameError: If tenant name already exists
            DuplicateTenantExternalIdError: If the external id is taken
        """
        async with self._session_factory() as session, session.begin():
            await self._check_uniqueness(session, tenant)

            try:
                model = await session.get(TenantModel, tenant.id.value)
                if model:
                    model.name = tenant.name
                    model.archived_at = tenant.archived_at
                else:
                    model = TenantModel(
                        id=tenant.id.value,
                        external_id=tenant.external_id.value,
                        name=tenant.name,
                        archived_at=tenant.archived_at,
                    )
                    session.add(model)

                # Flush to surface integrity errors from concurrent writers
                await session.flush()
            except IntegrityError as e:
                if "external_id" in str(e):
                    self._probe.duplicate_external_id(str(tenant.external_id))
                    raise DuplicateTenantExternalIdError(
                        f"Tenant external id {tenant.external_id} already exists"
                    ) from e
                if "name" in str(e):
                    self._probe.duplicate_tenant_name(tenant.name)
                    raise DuplicateTenantNameError(
                        f"Tenant '{tenant.name}' already exists"
                    ) from e
                raise

        self._probe.tenant_saved(tenant.id.value, str(tenant.external_id))

    async def get_by_id(self, tenant_id: TenantId) -> Tenant | None:
        """Fetch a tenant by internal id.

        Args:
            tenant_id: The unique identifier of the tenant

        Returns:
            The Tenant aggregate, or None if not found
        """
        async with self._session_factory() as session:
            model = await session.get(TenantModel, tenant_id.value)
        return _to_aggregate(model) if model is not None else None

    async def get_by_external_id(self, external_id: TenantExternalId) -> Tenant | None:
        """Fetch a tenant by external id, archived or not.

        Args:
            external_id: The public tenant identifier

        Returns:
            The Tenant aggregate, or None if not found
        """
        if external_id.value > _MAX_EXTERNAL_ID:
            return None

        stmt = select(TenantModel).where(TenantModel.external_id == external_id.value)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
        return _to_aggregate(model) if model is not None else None

    async def get_by_name(self, name: str) -> Tenant | None:
        """Fetch a tenant by name.

        Args:
            name: The tenant name

        Returns:
            The Tenant aggregate, or None if not found
        """
        stmt = select(TenantModel).where(TenantModel.name == name)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
        return _to_aggregate(model) if model is not None else None

    async def find_by_external_id(
        self, external_id: TenantExternalId
    ) -> TenantIdentity | None:
        """Resolve an external id to a live tenant with an exact-match query.

        Args:
            external_id: The public tenant identifier

        Returns:
            The tenant identity, or None if missing or archived
        """
        if external_id.value > _MAX_EXTERNAL_ID:
            self._probe.tenant_lookup_missed(str(external_id))
            return None

        stmt = (
            select(TenantModel)
            .where(TenantModel.external_id == external_id.value)
            .where(TenantModel.archived_at.is_(None))
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()

        if model is None:
            self._probe.tenant_lookup_missed(str(external_id))
            return None

        return TenantIdentity(
            internal_id=model.id,
            external_id=TenantExternalId(value=model.external_id),
            name=model.name,
        )

    async def delete(self, tenant: Tenant) -> bool:
        """Delete tenant from PostgreSQL.

        Args:
            tenant: The Tenant aggregate to delete

        Returns:
            True if deleted, False if not found
        """
        async with self._session_factory() as session, session.begin():
            model = await session.get(TenantModel, tenant.id.value)
            if model is None:
                return False
            await session.delete(model)

        self._probe.tenant_deleted(tenant.id.value)
        return True

    async def _check_uniqueness(self, session: AsyncSession, tenant: Tenant) -> None:
        stmt = select(TenantModel).where(
            (TenantModel.name == tenant.name)
            | (TenantModel.external_id == tenant.external_id.value)
        )
        result = await session.execute(stmt)
        for existing in result.scalars().all():
            if existing.id == tenant.id.value:
                continue
            if existing.external_id == tenant.external_id.value:
                self._probe.duplicate_external_id(str(tenant.external_id))
                raise DuplicateTenantExternalIdError(
                    f"Tenant external id {tenant.external_id} already exists"
                )
            self._probe.duplicate_tenant_name(tenant.name)
            raise DuplicateTenantNameError(f"Tenant '{tenant.name}' already exists")


def _to_aggregate(model: TenantModel) -> Tenant:
    """Reconstitute a Tenant aggregate from its ORM model."""
    return Tenant(
        id=TenantId(value=model.id),
        external_id=TenantExternalId(value=model.external_id),
        name=model.name,
        archived_at=model.archived_at,
    )
