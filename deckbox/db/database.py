"""
Database engine and session management.

Provides the async engine, the session factory, and the unit-of-work scope
shared by the API, the lifespan handler and the import job.
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from deckbox.config import settings
from deckbox.db.operations import ensure_built_in_group_types
from deckbox.models.db import Base

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """
    One unit of work: commits when the block exits cleanly.

    A SQLAlchemy failure, including one raised while flushing a half-applied
    merge, rolls back everything the block flushed. Other exceptions leave
    without a commit; callers keeping partial work commit it before raising.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides one unit of work per request."""
    async with session_scope() as session:
        yield session


async def init_db() -> None:
    """
    Create the tables and seed the built-in group types.

    Safe to run on every startup: existing tables and group types are kept.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_scope() as session:
        await ensure_built_in_group_types(session)
