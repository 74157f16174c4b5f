"""
Database connection and session management.
Handles async database operations with SQLAlchemy, connection pooling and
the transactional scope used by every write path.
"""

from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import text, DateTime, func
from sqlalchemy.dialects.postgresql import UUID as PostgresUUID
from property_portal.config import settings
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    PostgreSQL gets a sized connection pool; SQLite (tests, local runs) uses
    the driver defaults.
    """
    engine_kwargs: Dict[str, Any] = {"echo": echo}
    if database_url.startswith("postgresql"):
        engine_kwargs.update(
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,
            pool_recycle=3600,
            pool_timeout=30,
            connect_args={
                "server_settings": {
                    "application_name": "property_portal",
                }
            },
        )
    return create_async_engine(database_url, **engine_kwargs)


engine = build_engine(settings.database_url, echo=settings.debug)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all database models.
    Includes common fields: id, created_at, updated_at.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        PostgresUUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Dependency to get database session.
    Yields an async database session and ensures it's closed after use.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def transactional(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run a block of writes as one unit of work.

    Commits when the block exits cleanly. Any exception rolls back every
    statement issued inside the block and is re-raised unchanged.
    """
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise


async def check_database_connection() -> bool:
    """
    Test database connectivity.
    Returns True if connection is successful, False otherwise.
    """
    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            logger.info("Database connection successful")
            return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


async def create_tables(target_engine: AsyncEngine = engine) -> None:
    """Create all database tables."""
    async with target_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")


async def drop_tables(target_engine: AsyncEngine = engine) -> None:
    """
    Drop all database tables.
    This should only be used in testing or development.
    """
    if settings.is_production:
        raise RuntimeError("Cannot drop tables in production environment")

    async with target_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        logger.info("Database tables dropped successfully")


async def close_db_connection() -> None:
    """
    Close database connection.
    This should be called during application shutdown.
    """
    await engine.dispose()
    logger.info("Database connections closed")
