"""
Database session configuration.

Async engine and session factory for the reconciliation store. Production
runs on PostgreSQL through asyncpg; local runs and the seed script may point
``DATABASE_URL`` at a SQLite file through aiosqlite.
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from freight_backend.app.core.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """Engine keyword arguments for ``database_url``; SQLite takes no pool sizing."""
    options: Dict[str, Any] = {"echo": settings.db_echo, "future": True}
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
        )
    return options


engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))

# Steps commit one by one and read ids back afterwards
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    """
    FastAPI dependency for database sessions.

    A request that fails mid-step leaves nothing pending on the session.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
