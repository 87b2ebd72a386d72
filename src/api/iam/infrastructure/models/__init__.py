"""SQLAlchemy ORM models for IAM bounded context.

These models map to database tables and are used by repository implementations.
"""

from iam.infrastructure.models.tenant import TenantModel

__all__ = [
    "TenantModel",
]
