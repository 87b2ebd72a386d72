"""HTTP routes for tenant management.

Tenants are addressed by their external id, the same number that prefixes
tenanted request paths.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, status

from iam.application.services import TenantService
from iam.dependencies import get_tenant_service
from iam.domain.exceptions import TenantAlreadyArchivedError
from iam.ports.exceptions import (
    DuplicateTenantExternalIdError,
    DuplicateTenantNameError,
    TenantNotFoundError,
)
from iam.presentation.tenants.models import CreateTenantRequest, TenantResponse
from shared_kernel.execution_context import TenantExternalId

router = APIRouter(
    prefix="/tenants",
    tags=["tenants"],
)

ExternalIdPath = Annotated[int, Path(gt=0, description="Public tenant id")]


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
)
async def create_tenant(
    request: CreateTenantRequest,
    service: Annotated[TenantService, Depends(get_tenant_service)],
) -> TenantResponse:
    """Create a new tenant.

    Raises:
        HTTPException: 409 if the name or external id is already taken
    """
    external_id = (
        TenantExternalId(value=request.external_id)
        if request.external_id is not None
        else None
    )
    try:
        tenant = await service.create_tenant(
            name=request.name, external_id=external_id
        )
    except DuplicateTenantNameError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A tenant with this name already exists",
        )
    except DuplicateTenantExternalIdError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A tenant with this external id already exists",
        )
    return TenantResponse.from_domain(tenant)


@router.get("/{external_id}")
async def get_tenant(
    external_id: ExternalIdPath,
    service: Annotated[TenantService, Depends(get_tenant_service)],
) -> TenantResponse:
    """Get a tenant by external id, archived or not.

    Raises:
        HTTPException: 404 if tenant not found
    """
    try:
        tenant = await service.get_tenant(TenantExternalId(value=external_id))
    except TenantNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tenant {external_id} not found",
        )
    return TenantResponse.from_domain(tenant)


@router.post("/{external_id}/archive")
async def archive_tenant(
    external_id: ExternalIdPath,
    service: Annotated[TenantService, Depends(get_tenant_service)],
) -> TenantResponse:
    """Archive a tenant. Its requests and pending deferred work stop resolving.

    Raises:
        HTTPException: 404 if tenant not found
        HTTPException: 409 if the tenant is already archived
    """
    try:
        tenant = await service.archive_tenant(TenantExternalId(value=external_id))
    except TenantNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tenant {external_id} not found",
        )
    except TenantAlreadyArchivedError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Tenant {external_id} is already archived",
        )
    return TenantResponse.from_domain(tenant)


@router.delete(
    "/{external_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_model=None,
    responses={
        204: {"description": "Tenant deleted successfully"},
        404: {"description": "Tenant not found"},
    },
)
async def delete_tenant(
    external_id: ExternalIdPath,
    service: Annotated[TenantService, Depends(get_tenant_service)],
) -> None:
    """Delete a tenant permanently.

    Raises:
        HTTPException: 404 if tenant not found
    """
    try:
        await service.delete_tenant(TenantExternalId(value=external_id))
    except TenantNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tenant {external_id} not found",
        )
