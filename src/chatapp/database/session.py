import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
)

from chatapp.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Build the AsyncEngine for the configured database.

    `pool_pre_ping` is only meaningful for server databases, but it is
    harmless for SQLite so it is always enabled.
    """
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.SQLALCHEMY_ECHO,   # Set to False in production
        pool_pre_ping=True,              # Enables connection health checks
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps returned entities readable after the service commits
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@lru_cache()
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """
    Process-wide session factory, created lazily so importing this module
    never opens a connection pool.
    """
    return create_sessionmaker(create_engine_from_settings(get_settings()))


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency. Yields a session and ensures it's closed after the request.

    Usage:
        async def endpoint(db: AsyncSession = Depends(get_async_session)):
            await db.execute(...)
    """
    async with get_sessionmaker()() as session:
        yield session


@asynccontextmanager
async def unit_of_work(session: AsyncSession):
    """
    Commit everything flushed inside the block as one transaction.

    Repositories only flush; the service decides when work is final:

        async with unit_of_work(self.db):
            conversation = await self.conversations.create(...)
            await self.members.add_members(...)

    Any exception rolls the whole block back and is re-raised unchanged.
    """
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        logger.debug("unit_of_work.rolled_back")
        raise
