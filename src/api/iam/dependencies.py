"""FastAPI dependencies for the IAM bounded context."""

from __future__ import annotations

from fastapi import Request

from iam.application.services import TenantService


def get_tenant_service(request: Request) -> TenantService:
    """Get a TenantService over the tenant store composed at startup.

    Returns:
        TenantService backed by ``app.state.tenant_repository``
    """
    return TenantService(request.app.state.tenant_repository)
