from typing import AsyncGenerator, Callable
from unittest.mock import MagicMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from matlinks.auth.client import SupabaseAuthClient
from matlinks.billing.stripe_client import StripeGateway
from matlinks.core.database import get_session
from matlinks.core.database.entities.profiles import Profile
from matlinks.server.core.config import EmailConfig
from matlinks.server.services.email import EmailService
from matlinks.server.services.providers import get_auth_client, get_email_service, get_stripe_gateway
from matlinks.server.services.security import get_current_user


@pytest.fixture
def stripe_gateway() -> MagicMock:
    """A Stripe gateway double; async methods become AsyncMocks."""
    return MagicMock(spec=StripeGateway)


@pytest.fixture
def auth_client() -> MagicMock:
    return MagicMock(spec=SupabaseAuthClient)


@pytest.fixture
def email_service() -> EmailService:
    return EmailService(EmailConfig(transport="log"))


@pytest_asyncio.fixture(name="client")
async def client_fixture(
    session: AsyncSession,
    stripe_gateway: MagicMock,
    auth_client: MagicMock,
    email_service: EmailService,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from matlinks.server.main import app

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_stripe_gateway] = lambda: stripe_gateway
    app.dependency_overrides[get_auth_client] = lambda: auth_client
    app.dependency_overrides[get_email_service] = lambda: email_service

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("matlinks.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_as() -> Callable[[Profile], None]:
    """Authenticate every following request as the given profile."""
    from matlinks.server.main import app

    def _auth_as(profile: Profile) -> None:
        async def current_user_override() -> Profile:
            return profile

        app.dependency_overrides[get_current_user] = current_user_override

    return _auth_as
