"""Tenant Resolver: extracts the tenant segment from a request path.

Tenanted URLs carry the tenant's external id as their first path segment,
e.g. ``/1234567/boards/9``. The resolver splits such a path into the
candidate external id, the mount prefix (``/1234567``) and the path the
application routes on (``/boards/9``). Paths without a tenant segment are a
valid outcome, not an error.

The resolver does not look tenants up. Turning the candidate id into a
tenant record is the request pipeline's job.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from shared_kernel.execution_context.value_objects import TenantExternalId

DEFAULT_MIN_DIGITS = 7


class InvalidTenantPathConfigError(ValueError):
    """Raised when a tenant path pattern configuration is ambiguous or invalid."""

    pass


@dataclass(frozen=True)
class ResolvedTarget:
    """Outcome of resolving a request path.

    Attributes:
        tenant_external_id: Candidate tenant id, or None for untenanted paths
        mount_prefix: The matched segment including its leading slash,
            or "" when untenanted
        remaining_path: The path to route on; never empty
    """

    tenant_external_id: TenantExternalId | None
    mount_prefix: str
    remaining_path: str

    @property
    def is_tenanted(self) -> bool:
        """Check if a tenant segment was found."""
        return self.tenant_external_id is not None


class TenantPathResolver:
    """Resolves the leading tenant segment of request paths.

    A tenant segment is ``/`` followed by a run of at least ``min_digits``
    (and at most ``max_digits``, when set) ASCII decimal digits, followed by ``/``
    or the end of the path. Leading zeros are part of the segment; the
    external id is the numeric value of the run.

    The configuration is validated on construction so that a resolver always
    compiles to exactly one unambiguous pattern.
    """

    def __init__(
        self,
        min_digits: int = DEFAULT_MIN_DIGITS,
        max_digits: int | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            min_digits: Minimum length of the digit run
            max_digits: Optional maximum length of the digit run

        Raises:
            InvalidTenantPathConfigError: If min_digits < 1 or
                max_digits < min_digits
        """
        validate_tenant_path_config(min_digits, max_digits)
        self._min_digits = min_digits
        self._max_digits = max_digits
        upper = "" if max_digits is None else str(max_digits)
        self._pattern = re.compile(rf"^/([0-9]{{{min_digits},{upper}}})(?=/|\Z)")

    @property
    def min_digits(self) -> int:
        """Minimum length of the tenant digit run."""
        return self._min_digits

    @property
    def max_digits(self) -> int | None:
        """Maximum length of the tenant digit run, if bounded."""
        return self._max_digits

    def resolve(self, raw_path: str) -> ResolvedTarget:
        """Split ``raw_path`` into tenant id, mount prefix and routable path.

        Never raises for string input. A digit run whose value is zero is
        not a valid external id and resolves as untenanted.

        Args:
            raw_path: The request path, e.g. "/1234567/boards/9"

        Returns:
            ResolvedTarget for the path
        """
        match = self._pattern.match(raw_path)
        if match is None or int(match.group(1)) == 0:
            return ResolvedTarget(
                tenant_external_id=None,
                mount_prefix="",
                remaining_path=raw_path or "/",
            )

        digits = match.group(1)
        remaining = raw_path[match.end() :]
        return ResolvedTarget(
            tenant_external_id=TenantExternalId(value=int(digits)),
            mount_prefix=f"/{digits}",
            remaining_path=remaining or "/",
        )

    def format_prefix(self, external_id: TenantExternalId) -> str:
        """Build the mount prefix for a tenant, zero-padded to min_digits.

        The result always resolves back to ``external_id``.
        """
        return f"/{external_id.value:0{self._min_digits}d}"


def validate_tenant_path_config(min_digits: int, max_digits: int | None) -> None:
    """Reject tenant path configurations that are invalid or ambiguous.

    Raises:
        InvalidTenantPathConfigError: If the bounds cannot form one pattern
    """
    if min_digits < 1:
        raise InvalidTenantPathConfigError(
            f"min_digits must be at least 1, got {min_digits}"
        )
    if max_digits is not None and max_digits < min_digits:
        raise InvalidTenantPathConfigError(
            f"max_digits ({max_digits}) must be >= min_digits ({min_digits})"
        )
