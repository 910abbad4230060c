"""
Database session configuration.

Async engine and session factory for PostgreSQL (asyncpg). Request
handlers get a session through ``get_db``; background writers such as the
audit recorder open their own sessions from ``get_session_factory()``.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from budget_ledger.app.core.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
)

# expire_on_commit=False: committed rows are still read after the commit
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


def get_session_factory() -> async_sessionmaker:
    """Session factory for work that outlives a request's session."""
    return AsyncSessionLocal


async def get_db():
    """
    FastAPI dependency for database sessions.

    Rolls back anything left uncommitted when the request ends.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()
