"""
Unit tests for FastAPI application lifespan management.

Startup verifies the database connection; a failure is logged and the
application still starts.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI

from matlinks.server.main import lifespan

pytestmark = pytest.mark.asyncio


class TestLifespan:
    async def test_startup_verifies_database(self):
        with patch("matlinks.server.main.init_db", new_callable=AsyncMock) as mock_init_db:
            async with lifespan(FastAPI()):
                mock_init_db.assert_awaited_once()

    async def test_database_failure_does_not_abort_startup(self):
        with (
            patch("matlinks.server.main.init_db", new_callable=AsyncMock, side_effect=ConnectionError("refused")),
            patch("matlinks.server.main.logger") as mock_logger,
        ):
            async with lifespan(FastAPI()):
                pass

        assert "Database initialization failed" in mock_logger.error.call_args[0][0]
        assert mock_logger.info.call_args[0][0] == "Shutting down MatLinks Server..."


async def test_init_db_runs_against_sqlite():
    from matlinks.core.database import init_db

    await init_db()
