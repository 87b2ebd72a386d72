"""Domain exceptions for the IAM bounded context."""


class TenantAlreadyArchivedError(Exception):
    """Raised when archiving a tenant that is already archived."""

    pass
