"""Domain aggregates for IAM context.

Aggregates are the core business objects containing state and business logic.
They enforce invariants and business rules without depending on infrastructure.
"""

from iam.domain.aggregates.tenant import Tenant, generate_external_id

__all__ = [
    "Tenant",
    "generate_external_id",
]
