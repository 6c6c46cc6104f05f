"""SQLAlchemy base configuration."""

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    AsyncAttrs,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

# JSONB on PostgreSQL, plain JSON on other dialects (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create async database engine.

    Args:
        database_url: Async SQLAlchemy connection string (asyncpg or aiosqlite)
        echo: Enable SQL logging
    """
    return create_async_engine(database_url, echo=echo)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create async session factory."""
    return async_sessionmaker(engine, expire_on_commit=False)
