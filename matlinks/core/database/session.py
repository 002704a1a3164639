"""
Global database session and engine management.

This module manages the global AsyncEngine and async_sessionmaker instances
that are used throughout the application for database access.
"""

from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from matlinks.core.logging_config import get_logger
from matlinks.server.core.config import settings

from .utils import create_engine, create_sessionmaker

logger = get_logger(__name__)

engine = create_engine(settings.database_url)
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: An asynchronous SQLAlchemy session.
    """
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """
    Verify the database is reachable at startup.

    The schema itself is owned by Alembic migrations (``alembic/versions``);
    this only opens a connection so a bad ``DATABASE_URL`` fails loudly.
    """
    async with engine.connect() as conn:
        await conn.exec_driver_sql("SELECT 1")
    logger.debug("Database connection verified")
