"""Database-specific exceptions."""


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class SchemaInitializationError(DatabaseError):
    """Raised when tables cannot be created at startup."""

    pass
