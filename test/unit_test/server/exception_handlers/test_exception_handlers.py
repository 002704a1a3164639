"""
Unit tests for server exception handlers.

Each handler is exercised directly and through a small application that
raises from its routes.
"""

import json
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from matlinks.auth.errors import AuthProviderError
from matlinks.billing.errors import PaymentErrorKind, PaymentProviderError
from matlinks.server.exception_handlers import setup_exception_handlers
from matlinks.server.exception_handlers.global_handler import (
    global_exception_handler,
    payment_provider_error_handler,
)
from matlinks.server.services.errors import ConflictError, NotFoundError, PermissionDeniedError, ServiceError

pytestmark = pytest.mark.asyncio

MODULE = "matlinks.server.exception_handlers.global_handler"


@pytest.fixture
def mock_request():
    request = Mock(spec=Request)
    request.method = "POST"
    request.url.path = "/api/v1/payments/charge"
    request.query_params = {}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    return request


class TestGlobalExceptionHandler:
    async def test_returns_500_with_error_id(self, mock_request):
        exc = ValueError("boom")

        with patch(f"{MODULE}.logger") as mock_logger:
            response = await global_exception_handler(mock_request, exc)

        body = json.loads(response.body)
        assert response.status_code == 500
        assert body == {"detail": "Internal server error", "error_id": id(exc), "error_type": "ValueError"}
        assert mock_logger.error.call_args.kwargs["extra"]["error_type"] == "ValueError"

    async def test_missing_client_is_reported_as_unknown(self, mock_request):
        mock_request.client = None

        with patch(f"{MODULE}.logger") as mock_logger:
            await global_exception_handler(mock_request, RuntimeError("x"))

        assert mock_logger.error.call_args.kwargs["extra"]["client"] == "unknown"


class TestPaymentProviderErrorHandler:
    async def test_card_error_keeps_message(self, mock_request):
        exc = PaymentProviderError("Your card was declined.", kind=PaymentErrorKind.CARD, code="card_declined")

        with patch(f"{MODULE}.log_error") as mock_log_error:
            response = await payment_provider_error_handler(mock_request, exc)

        assert response.status_code == 402
        assert json.loads(response.body) == {"detail": "Card error: Your card was declined.", "error_type": "card"}
        mock_log_error.assert_called_once()

    async def test_other_errors_hide_details(self, mock_request):
        exc = PaymentProviderError("Invalid API Key provided: sk_live_****", kind=PaymentErrorKind.AUTHENTICATION)

        with patch(f"{MODULE}.log_error"):
            response = await payment_provider_error_handler(mock_request, exc)

        body = json.loads(response.body)
        assert response.status_code == 502
        assert "sk_live" not in body["detail"]


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/not-found")
    async def not_found():
        raise NotFoundError("Gym 7 not found")

    @app.get("/forbidden")
    async def forbidden():
        raise PermissionDeniedError("Not your subscription")

    @app.get("/conflict")
    async def conflict():
        raise ConflictError("Location is in use")

    @app.get("/bad")
    async def bad():
        raise ServiceError("Promotion has expired")

    @app.get("/stripe-down")
    async def stripe_down():
        raise PaymentProviderError("connection reset", kind=PaymentErrorKind.CONNECTION)

    @app.get("/auth")
    async def auth():
        raise AuthProviderError("Invalid login credentials", status_code=401)

    @app.get("/crash")
    async def crash():
        raise RuntimeError("unexpected")

    return app


@pytest.mark.parametrize(
    "path,status_code,detail",
    [
        ("/not-found", 404, "Gym 7 not found"),
        ("/forbidden", 403, "Not your subscription"),
        ("/conflict", 409, "Location is in use"),
        ("/bad", 400, "Promotion has expired"),
        ("/stripe-down", 503, "Payment service temporarily unavailable"),
        ("/auth", 401, "Invalid login credentials"),
    ],
)
async def test_handlers_registered(app, path, status_code, detail):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        response = await client.get(path)

    assert response.status_code == status_code
    assert response.json()["detail"] == detail


async def test_unhandled_exception_becomes_500(app):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://localhost") as client:
        response = await client.get("/crash")

    assert response.status_code == 500
    assert response.json()["error_type"] == "RuntimeError"
