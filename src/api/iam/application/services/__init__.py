"""Application services for IAM bounded context.

Application services orchestrate domain aggregates and repositories to
fulfill use cases. They are the "front door" to the IAM context.
"""

from iam.application.services.tenant_bootstrap_service import TenantBootstrapService
from iam.application.services.tenant_service import TenantService

__all__ = [
    "TenantBootstrapService",
    "TenantService",
]
