"""Database configuration with SQLAlchemy 2.0 async support."""

from collections.abc import AsyncGenerator
from typing import Annotated, Any

from fastapi import Depends, Request
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from linkpulse.core.config import Settings

# Naming convention for constraints (helps with migrations)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    metadata = MetaData(naming_convention=convention)


class Database:
    """Owns the async engine and session factory for one process.

    Created at application startup, stored on ``app.state.db`` and
    disposed at shutdown.

    Usage:
        db = Database.from_settings(settings)
        async with db.session_factory() as session:
            ...
        await db.close()
    """

    def __init__(self, url: str, echo: bool = False, **engine_options: Any):
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_options)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build a pooled database handle from application settings."""
        return cls(
            settings.database_url,
            echo=settings.debug,  # Log SQL statements in debug mode
            pool_size=5,  # Number of connections to keep in the pool
            max_overflow=10,  # Additional connections beyond pool_size
            pool_timeout=30,  # Seconds to wait for a connection
            pool_recycle=1800,  # Recycle connections after 30 minutes
            pool_pre_ping=True,  # Verify connections before use
        )

    async def create_all(self) -> None:
        """Create all tables.

        Note: In production, use Alembic migrations instead.
        This is useful for testing or initial development.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides an async database session.

    The session commits when the request handler returns and rolls back
    if it raises.
    """
    db: Database = request.app.state.db
    async with db.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# Type alias for dependency injection
AsyncSessionDep = Annotated[AsyncSession, Depends(get_async_session)]
