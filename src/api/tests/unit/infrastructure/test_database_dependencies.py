"""Unit tests for the shared engine and session factory lifecycle."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from infrastructure.database.dependencies import (
    close_database_connections,
    get_engine,
    get_session_factory,
    initialize_schema,
)
from infrastructure.database.exceptions import SchemaInitializationError


@pytest.mark.asyncio
async def test_get_engine():
    """Test that get_engine returns an asyncpg AsyncEngine."""
    engine = get_engine()

    try:
        assert isinstance(engine, AsyncEngine)
        assert engine.url.drivername == "postgresql+asyncpg"
    finally:
        await close_database_connections()


@pytest.mark.asyncio
async def test_engine_is_singleton():
    """Test that the engine is cached and reused."""
    try:
        assert get_engine() is get_engine()
    finally:
        await close_database_connections()


@pytest.mark.asyncio
async def test_session_factory_is_bound_to_engine():
    engine = get_engine()

    try:
        session = get_session_factory()()
        assert isinstance(session, AsyncSession)
        assert session.bind is engine
        await session.close()
    finally:
        await close_database_connections()


@pytest.mark.asyncio
async def test_close_database_connections():
    """Test that close_database_connections disposes the engine."""
    engine = get_engine()

    await close_database_connections()

    new_engine = get_engine()
    assert new_engine is not engine

    await close_database_connections()


@pytest.mark.asyncio
async def test_initialize_schema_wraps_errors():
    engine = MagicMock()
    connection = AsyncMock()
    connection.run_sync.side_effect = OSError("connection refused")
    engine.begin.return_value.__aenter__.return_value = connection

    with pytest.raises(SchemaInitializationError, match="connection refused"):
        await initialize_schema(engine)
