"""
Async SQLAlchemy database session configuration.

Request handlers own their transaction: the conversion webhook commits
explicitly once every write succeeded, and anything still pending when
the request ends is committed here. Any exception rolls the whole
session back, so a failed conversion leaves no partial writes.
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

from affiliatehub.config import settings

logger = logging.getLogger(__name__)

# NullPool: the pooler in front of PostgreSQL owns connection reuse
engine = create_async_engine(
    settings.database_url,
    poolclass=NullPool,
    echo=False,
    connect_args={
        "statement_cache_size": 0,  # Required for transaction-mode poolers
    },
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Session scope that commits on success and rolls back on error.

    Used directly by scripts:
        async with get_db_context() as db:
            db.add(partner)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.debug("Rolling back session after error")
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency wrapping get_db_context."""
    async with get_db_context() as session:
        yield session
