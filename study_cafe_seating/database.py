"""
Database connection management and session handling.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
    AsyncEngine,
)

from .config import get_settings
from .models.base import Base
from .cache import init_cache, close_cache

logger = logging.getLogger(__name__)

# Global engine and session factory
engine: AsyncEngine | None = None
async_session_factory: async_sessionmaker[AsyncSession] | None = None


def create_database_engine(database_url: str | None = None) -> AsyncEngine:
    """Create and configure the database engine with connection pooling."""
    settings = get_settings()
    url = database_url or settings.database_url

    if url.startswith("sqlite"):
        # Local development and tests; sqlite has no server-side pool settings
        return create_async_engine(
            url,
            echo=settings.debug,
            connect_args={"timeout": 30},
        )

    return create_async_engine(
        url,
        # Connection pool configuration for concurrent access
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,  # Validate connections before use
        pool_recycle=3600,   # Recycle connections every hour
        echo=settings.debug,
        connect_args={
            "server_settings": {
                "application_name": "study_cafe_seating",
            }
        }
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory for database sessions."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=True,
    )


async def create_tables(target: AsyncEngine) -> None:
    """Create all tables known to the model metadata."""
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_database() -> None:
    """Initialize database connection and create tables."""
    global engine, async_session_factory

    logger.info("Initializing database connection...")

    engine = create_database_engine()
    async_session_factory = create_session_factory(engine)

    await create_tables(engine)

    # Redis backs the per-seat distributed locks
    if get_settings().enable_distributed_locks:
        await init_cache()

    logger.info("Database and cache initialized successfully")


async def close_database() -> None:
    """Close database connections."""
    global engine

    if engine:
        logger.info("Closing database connections...")
        await engine.dispose()
        logger.info("Database connections closed")

    await close_cache()


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session with automatic cleanup.

    Services open their own transactions with ``session.begin()``; anything
    still pending when the block exits is committed, and rolled back on error.

    Usage:
        async with get_db_session() as session:
            service = ReservationService(session)
            await service.reserve(...)
    """
    if async_session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with async_session_factory() as session:
        try:
            yield session
            if session.in_transaction():
                await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for getting database sessions.

    Usage in FastAPI endpoints:
        @app.get("/endpoint")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            # Use db session here
    """
    async with get_db_session() as session:
        yield session


@asynccontextmanager
async def transactional(session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    Run a unit of work in a transaction owned by the outermost caller.

    Nested calls join the transaction already open on ``session``. Lost or
    locked database connections surface as ``ServiceUnavailableError`` so
    callers always get a typed failure.
    """
    from .utils.exceptions import ServiceUnavailableError

    try:
        if session.in_transaction():
            yield session
        else:
            async with session.begin():
                yield session
    except (OperationalError, InterfaceError, SQLAlchemyTimeoutError) as e:
        logger.error(f"Database unavailable: {e}")
        raise ServiceUnavailableError(
            "database",
            "The seat ledger is temporarily unavailable",
        ) from e
