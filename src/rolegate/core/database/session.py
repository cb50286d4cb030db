"""Async engine and session factory construction."""

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool


if TYPE_CHECKING:
    from rolegate.config import Settings


def create_engine(settings: "Settings") -> AsyncEngine:
    """Create the async engine described by the settings.

    SQLite engines skip the pool sizing options, which only apply to
    queue pools. In-memory SQLite databases share one connection so every
    session sees the same data.

    Args:
        settings: Library settings

    Returns:
        A configured AsyncEngine
    """
    if settings.is_sqlite:
        if ":memory:" in settings.database_url or settings.database_url.endswith("://"):
            return create_async_engine(
                settings.database_url,
                echo=settings.database_echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        return create_async_engine(settings.database_url, echo=settings.database_echo)

    return create_async_engine(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        echo=settings.database_echo,
        pool_pre_ping=True,  # Verify connections before use
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory used by the storage adapter."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
