"""Domain-Oriented Observability for IAM infrastructure.

Probes for repository operations following Domain-Oriented Observability patterns.
"""

from iam.infrastructure.observability.tenant_repository_probe import (
    DefaultTenantRepositoryProbe,
    TenantRepositoryProbe,
)

__all__ = [
    "DefaultTenantRepositoryProbe",
    "TenantRepositoryProbe",
]
