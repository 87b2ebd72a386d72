"""Database infrastructure - shared engine and session primitives."""

from infrastructure.database.exceptions import (
    DatabaseError,
    SchemaInitializationError,
)

__all__ = [
    "DatabaseError",
    "SchemaInitializationError",
]
