"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table, insert
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from rolegate.acl.repos import AccessRepository
from rolegate.acl.service import AccessControlService
from rolegate.core.database import Base, create_session_factory


# Shared in-memory database; every session sees the same connection
TEST_DATABASE_URL = "sqlite+aiosqlite://"

# The account table belongs to the host application, so it lives in
# its own metadata and is created by the fixtures, never by the library
host_metadata = MetaData()

users = Table(
    "users",
    host_metadata,
    Column("id", Integer, primary_key=True),
    Column("full_name", String(100)),
    Column("role_name", String(100), nullable=True),
)


AddAccount = Callable[..., Awaitable[int]]


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite engine with all tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.run_sync(host_metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Provide the session factory used by the repository."""
    return create_session_factory(engine)


@pytest.fixture
def repo(session_factory: async_sessionmaker[AsyncSession]) -> AccessRepository:
    """Provide a repository using the default table layout."""
    return AccessRepository(session_factory)


@pytest.fixture
def service(repo: AccessRepository) -> AccessControlService:
    """Provide an access control service backed by the repository."""
    return AccessControlService(repo)


@pytest.fixture
def add_account(session_factory: async_sessionmaker[AsyncSession]) -> AddAccount:
    """Insert rows into the host application's account table.

    Returns:
        Coroutine function taking (id, full_name, role_name=None)
    """

    async def _add(
        account_id: int, full_name: str, role_name: str | None = None
    ) -> int:
        async with session_factory() as session:
            await session.execute(
                insert(users).values(
                    id=account_id, full_name=full_name, role_name=role_name
                )
            )
            await session.commit()
        return account_id

    return _add
