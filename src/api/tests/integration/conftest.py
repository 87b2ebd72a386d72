"""Integration test fixtures for database tests.

These fixtures require a running PostgreSQL instance.
Use docker-compose for testing.
"""

from collections.abc import AsyncGenerator
import os

import pytest
import pytest_asyncio
from pydantic import SecretStr
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from iam.infrastructure.models import TenantModel
from iam.infrastructure.tenant_repository import TenantRepository
from infrastructure.database.dependencies import initialize_schema
from infrastructure.database.engines import create_engine
from infrastructure.deferred import SqlDeferredWorkQueue
from infrastructure.deferred.models import DeferredWorkModel
from infrastructure.settings import DatabaseSettings


@pytest.fixture(scope="session")
def integration_db_settings() -> DatabaseSettings:
    """Database settings for integration tests.

    Override with environment variables:
        TENANTSCOPE_DB_HOST, TENANTSCOPE_DB_PORT, etc.
    """
    return DatabaseSettings(
        host=os.getenv("TENANTSCOPE_DB_HOST", "localhost"),
        port=int(os.getenv("TENANTSCOPE_DB_PORT", "5432")),
        database=os.getenv("TENANTSCOPE_DB_DATABASE", "tenantscope"),
        username=os.getenv("TENANTSCOPE_DB_USERNAME", "tenantscope"),
        password=SecretStr(
            os.getenv("TENANTSCOPE_DB_PASSWORD", "tenantscope_dev_password")
        ),
    )


@pytest_asyncio.fixture
async def engine(
    integration_db_settings: DatabaseSettings,
) -> AsyncGenerator[AsyncEngine, None]:
    """Provide an engine against a database with all tables created."""
    engine = create_engine(integration_db_settings)
    await initialize_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(
    engine: AsyncEngine,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Provide a session factory over empty tables.

    Rows are deleted before and after each test.
    """
    factory = async_sessionmaker(engine, expire_on_commit=False)

    async def clean() -> None:
        async with factory() as session, session.begin():
            await session.execute(delete(DeferredWorkModel))
            await session.execute(delete(TenantModel))

    await clean()
    yield factory
    await clean()


@pytest.fixture
def tenant_repository(
    session_factory: async_sessionmaker[AsyncSession],
) -> TenantRepository:
    """Provide a PostgreSQL tenant repository."""
    return TenantRepository(session_factory)


@pytest.fixture
def sql_queue(
    session_factory: async_sessionmaker[AsyncSession],
) -> SqlDeferredWorkQueue:
    """Provide a PostgreSQL deferred work queue."""
    return SqlDeferredWorkQueue(session_factory)
