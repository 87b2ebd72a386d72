"""Pydantic models for tenant API requests and responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from iam.domain.aggregates import Tenant


class CreateTenantRequest(BaseModel):
    """Request model for creating a tenant."""

    name: str = Field(..., description="Tenant name", min_length=1, max_length=255)
    external_id: int | None = Field(
        default=None,
        description="Public tenant id used in URLs; generated when omitted",
        gt=0,
    )


class TenantResponse(BaseModel):
    """Response model for tenant."""

    id: str = Field(..., description="Tenant ID (ULID format)")
    external_id: int = Field(..., description="Public tenant id used in URLs")
    name: str = Field(..., description="Tenant name")
    archived_at: datetime | None = Field(
        default=None, description="When the tenant was archived"
    )

    @classmethod
    def from_domain(cls, tenant: Tenant) -> TenantResponse:
        """Convert domain Tenant aggregate to API response.

        Args:
            tenant: Tenant domain aggregate

        Returns:
            TenantResponse
        """
        return cls(
            id=tenant.id.value,
            external_id=tenant.external_id.value,
            name=tenant.name,
            archived_at=tenant.archived_at,
        )
