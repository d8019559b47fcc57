"""
Database configuration for dental-directory.

PostgreSQL through SQLAlchemy 2.0 AsyncSession.
"""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings
from app.core.retry import async_retry_with_backoff

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


engine = create_async_engine(str(settings.SQLALCHEMY_DATABASE_URI), echo=False)

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session."""
    async with async_session_maker() as session:
        yield session


@async_retry_with_backoff(max_attempts=5, exceptions=(OperationalError, OSError))
async def create_db_and_tables():
    """Create all tables, waiting for PostgreSQL to accept connections."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
