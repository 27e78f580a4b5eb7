"""
Async SQLAlchemy engine and session factories.

Requests get one session each through get_db; background tasks and
scheduler jobs open their own with get_db_context.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from ptstudio.config import settings

logger = logging.getLogger(__name__)


def _connect_args(database_url: str) -> dict:
    # PgBouncer in transaction mode cannot reuse prepared statements
    if database_url.startswith("postgresql+asyncpg"):
        return {"statement_cache_size": 0}
    return {}


engine = create_async_engine(
    settings.database_url,
    poolclass=NullPool,
    echo=not settings.is_production,
    connect_args=_connect_args(settings.database_url),
)

# expire_on_commit=False: the store hands committed rows back to services
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Session for work outside a request (rate propagation, scheduler jobs,
    startup). Store calls commit on their own; anything left pending when
    the block raises is rolled back.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            logger.warning("Rolling back background database session")
            await session.rollback()
            raise
