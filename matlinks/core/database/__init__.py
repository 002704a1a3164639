"""
Centralized database layer for MatLinks.

Structure:
- entities/: SQLModel table definitions, one module per business area
- repositories/: data access helpers for the tables the billing services query most
- session.py: Global engine and session factory management
- utils.py: Database utility functions (engine, session factory, create_all)
"""

from .base import Base, UTCDateTime, as_utc, from_unix, utc_now
from .session import (
    async_session_maker,
    engine,
    get_session,
    init_db,
)
from .utils import (
    create_all,
    create_engine,
    create_sessionmaker,
)

__all__ = [
    "Base",
    "UTCDateTime",
    "as_utc",
    "async_session_maker",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "engine",
    "from_unix",
    "get_session",
    "init_db",
    "utc_now",
]
