"""Tenant aggregate for IAM context."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime

from iam.domain.exceptions import TenantAlreadyArchivedError
from iam.domain.value_objects import TenantId
from shared_kernel.execution_context.value_objects import (
    TenantExternalId,
    TenantIdentity,
)

EXTERNAL_ID_DIGITS = 7


def generate_external_id(digits: int = EXTERNAL_ID_DIGITS) -> TenantExternalId:
    """Generate a random external id with exactly ``digits`` digits."""
    lower = 10 ** (digits - 1)
    return TenantExternalId(value=lower + secrets.randbelow(9 * lower))


@dataclass
class Tenant:
    """Tenant aggregate representing an organization in the system.

    Tenants are the top-level isolation boundary in the system.

    Business rules:
    - Tenant names and external ids are globally unique
    - The external id never changes for the tenant's lifetime
    - Archived tenants no longer resolve for requests or deferred work
    """

    id: TenantId
    external_id: TenantExternalId
    name: str
    archived_at: datetime | None = None

    @classmethod
    def create(
        cls,
        name: str,
        external_id: TenantExternalId | None = None,
    ) -> Tenant:
        """Factory method for creating a new tenant.

        Args:
            name: The name of the tenant
            external_id: Public identifier; generated when omitted

        Returns:
            A new Tenant aggregate

        Raises:
            ValueError: If name is empty
        """
        name = name.strip()
        if not name:
            raise ValueError("Tenant name must not be empty")

        return cls(
            id=TenantId.generate(),
            external_id=external_id or generate_external_id(),
            name=name,
        )

    @property
    def is_archived(self) -> bool:
        """Check if the tenant has been archived."""
        return self.archived_at is not None

    def archive(self) -> None:
        """Archive the tenant.

        Raises:
            TenantAlreadyArchivedError: If the tenant is already archived
        """
        if self.archived_at is not None:
            raise TenantAlreadyArchivedError(
                f"Tenant {self.external_id} is already archived"
            )
        self.archived_at = datetime.now(UTC)

    def to_identity(self) -> TenantIdentity:
        """Return the view of this tenant carried by execution contexts."""
        return TenantIdentity(
            internal_id=self.id.value,
            external_id=self.external_id,
            name=self.name,
        )
