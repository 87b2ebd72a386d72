"""Database engine and session factory lifecycle.

Tenant lookups run in middleware and deliveries run in the worker, both
outside any request-scoped session, so adapters receive a session factory
and open short sessions per call.
"""

from __future__ import annotations

import threading

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.engines import create_engine
from infrastructure.database.exceptions import SchemaInitializationError
from infrastructure.database.models import Base
from infrastructure.observability import DefaultConnectionProbe
from infrastructure.settings import get_database_settings

# Module-level probe for observability
_probe = DefaultConnectionProbe()

# Module-level engine and sessionmaker (created on first use)
_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None

# Thread lock for safe engine initialization
_engine_lock = threading.Lock()


def get_engine() -> AsyncEngine:
    """Get the database engine (singleton).

    Creates engine on first call and caches for subsequent calls.
    Uses double-check locking for thread-safe initialization.
    Also creates and caches the sessionmaker for efficient session creation.

    Returns:
        Configured async engine
    """
    global _engine, _sessionmaker
    if _engine is None:
        with _engine_lock:
            # Double-check after acquiring lock
            if _engine is None:
                settings = get_database_settings()
                _engine = create_engine(settings)
                _sessionmaker = async_sessionmaker(
                    _engine,
                    expire_on_commit=False,
                    class_=AsyncSession,
                )
                _probe.engine_created(
                    connection_string=settings.connection_string,
                    pool_size=settings.pool_max_connections,
                )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory bound to the shared engine."""
    get_engine()
    assert _sessionmaker is not None
    return _sessionmaker


async def initialize_schema(engine: AsyncEngine) -> None:
    """Create all tables registered on the declarative base.

    Raises:
        SchemaInitializationError: If table creation fails
    """
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        _probe.schema_creation_failed(e)
        raise SchemaInitializationError(f"Failed to create tables: {e}") from e


async def close_database_connections() -> None:
    """Close the engine's connections.

    Should be called on application shutdown to properly cleanup connections.
    Also resets the sessionmaker to allow reinitialization.
    """
    global _engine, _sessionmaker

    if _engine is not None:
        await _engine.dispose()
        _probe.pool_closed()
        _engine = None
        _sessionmaker = None
