"""Unit tests for off-session charges."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from matlinks.billing.errors import PaymentErrorKind, PaymentProviderError
from matlinks.billing.stripe_client import StripeGateway
from matlinks.server.services.payment_processor import process_payment


@pytest.fixture
def gateway() -> MagicMock:
    return MagicMock(spec=StripeGateway)


async def test_successful_charge(gateway):
    gateway.create_payment_intent.return_value = SimpleNamespace(id="pi_1", status="succeeded")

    result = await process_payment(
        gateway, 2500, "cus_1", "pm_1", description="Private lesson", metadata={"user_id": "u1"}
    )

    assert result.success is True
    assert result.payment_intent_id == "pi_1"
    assert result.status == "succeeded"
    gateway.create_payment_intent.assert_awaited_once_with(
        amount=2500,
        currency="usd",
        customer="cus_1",
        payment_method="pm_1",
        off_session=True,
        confirm=True,
        metadata={"user_id": "u1"},
        description="Private lesson",
    )


async def test_requires_action_is_not_success(gateway):
    gateway.create_payment_intent.return_value = SimpleNamespace(id="pi_1", status="requires_action")

    result = await process_payment(gateway, 2500, "cus_1", "pm_1")

    assert result.success is False
    assert result.error == "Payment requires additional authentication"
    assert result.payment_intent_id == "pi_1"


async def test_card_error_returns_public_message(gateway):
    gateway.create_payment_intent.side_effect = PaymentProviderError(
        "Your card was declined.", kind=PaymentErrorKind.CARD
    )

    result = await process_payment(gateway, 2500, "cus_1", "pm_1")

    assert result.success is False
    assert result.error == "Card error: Your card was declined."
    assert result.payment_intent_id is None


async def test_provider_outage_hides_details(gateway):
    gateway.create_payment_intent.side_effect = PaymentProviderError(
        "Invalid API key sk_live_xxx", kind=PaymentErrorKind.AUTHENTICATION
    )

    result = await process_payment(gateway, 2500, "cus_1", "pm_1", currency="eur")

    assert result.error == "Payment service temporarily unavailable"
