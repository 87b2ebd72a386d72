"""Domain exceptions for IAM bounded context.

These exceptions represent domain-level errors that can occur during
repository operations. They should be caught and handled by the
application layer.
"""


class DuplicateTenantNameError(Exception):
    """Raised when attempting to create a tenant with a name that already exists.

    This exception indicates that the business rule of globally unique tenant
    names has been violated. The application layer should handle this and
    provide appropriate feedback to the user.
    """

    pass


class DuplicateTenantExternalIdError(Exception):
    """Raised when a tenant's external id is already used by another tenant.

    External ids appear in URLs and deferred work envelopes, so they must
    map to at most one tenant at any time.
    """

    pass


class TenantNotFoundError(Exception):
    """Raised when an operation targets a tenant that does not exist."""

    pass
