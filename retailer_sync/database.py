# retailer_sync/database.py

# type: ignore[misc]
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from retailer_sync.core.config import get_settings

Base = declarative_base()

# Built on first use; the activity log is optional and most runs never touch it
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def normalize_database_url(database_url: str) -> str:
    """Convert postgresql:// to postgresql+asyncpg:// for async support"""
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)
    if database_url.startswith('postgresql://'):
        database_url = database_url.replace('postgresql://', 'postgresql+asyncpg://', 1)
    return database_url


def is_configured() -> bool:
    return bool(get_settings().DATABASE_URL)


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        database_url = get_settings().DATABASE_URL
        if not database_url:
            raise ValueError("DATABASE_URL is not set in environment variables")
        _engine = create_async_engine(
            normalize_database_url(database_url),
            echo=False,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
    return _engine


def get_sessionmaker() -> async_sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    session = get_sessionmaker()()
    try:
        yield session
    finally:
        await session.close()


async def create_tables():
    """Create tables that don't exist yet."""
    # Register models on Base.metadata
    from retailer_sync.models import activity_log  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine():
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
