"""
Unit tests for StripeGateway.

SDK resources are patched, so no request ever leaves the process. Webhook
signatures are computed the same way Stripe signs them.
"""

import hashlib
import hmac
import json
import time
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import stripe

from matlinks.billing.errors import PaymentErrorKind, PaymentProviderError, WebhookError
from matlinks.billing.stripe_client import StripeGateway

WEBHOOK_SECRET = "whsec_test_secret"


@pytest.fixture
def gateway() -> StripeGateway:
    return StripeGateway("sk_test_123", webhook_secret=WEBHOOK_SECRET, api_version="2024-06-20")


def _sign(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


class TestCalls:
    async def test_request_options_are_passed_per_call(self, gateway):
        with patch("stripe.Customer.create", return_value=SimpleNamespace(id="cus_1")) as create:
            customer = await gateway.create_customer("a@example.com", name="Ana", metadata={"user_id": "u1"})

        assert customer.id == "cus_1"
        create.assert_called_once_with(
            email="a@example.com",
            metadata={"user_id": "u1"},
            name="Ana",
            api_key="sk_test_123",
            stripe_version="2024-06-20",
        )

    async def test_missing_api_key_is_configuration_error(self):
        gateway = StripeGateway(None)

        with pytest.raises(PaymentProviderError) as exc_info:
            await gateway.retrieve_invoice("in_1")

        assert exc_info.value.kind == PaymentErrorKind.CONFIGURATION
        assert exc_info.value.status_code == 503

    async def test_stripe_errors_are_wrapped(self, gateway):
        error = stripe.CardError("Your card was declined.", None, "card_declined")

        with patch("stripe.Invoice.pay", side_effect=error):
            with pytest.raises(PaymentProviderError) as exc_info:
                await gateway.pay_invoice("in_1")

        assert exc_info.value.kind == PaymentErrorKind.CARD
        assert exc_info.value.code == "card_declined"
        assert exc_info.value.original_error is error

    async def test_list_payment_methods_returns_cards(self, gateway):
        listing = SimpleNamespace(data=[SimpleNamespace(id="pm_1"), SimpleNamespace(id="pm_2")])

        with patch("stripe.PaymentMethod.list", return_value=listing) as list_methods:
            methods = await gateway.list_payment_methods("cus_1")

        assert [m.id for m in methods] == ["pm_1", "pm_2"]
        assert list_methods.call_args.kwargs["type"] == "card"

    async def test_set_default_payment_method(self, gateway):
        with patch("stripe.Customer.modify") as modify:
            await gateway.set_default_payment_method("cus_1", "pm_1")

        assert modify.call_args.args == ("cus_1",)
        assert modify.call_args.kwargs["invoice_settings"] == {"default_payment_method": "pm_1"}

    async def test_recurring_price(self, gateway):
        with patch("stripe.Price.create", return_value=MagicMock(id="price_1")) as create:
            await gateway.create_price("prod_1", 15000, "usd", interval="month")

        assert create.call_args.kwargs["recurring"] == {"interval": "month"}

    async def test_cancel_subscription_invoices_now(self, gateway):
        with patch("stripe.Subscription.cancel") as cancel:
            await gateway.cancel_subscription("sub_1")

        assert cancel.call_args.kwargs["invoice_now"] is True
        assert cancel.call_args.kwargs["prorate"] is True


class TestWebhookEvents:
    def test_valid_signature(self, gateway):
        payload = json.dumps({"id": "evt_1", "object": "event", "type": "invoice.paid", "data": {"object": {}}}).encode()

        event = gateway.construct_webhook_event(payload, _sign(payload))

        assert event["id"] == "evt_1"
        assert event["type"] == "invoice.paid"

    def test_bad_signature(self, gateway):
        payload = b'{"id": "evt_1", "object": "event"}'

        with pytest.raises(WebhookError, match="Invalid signature"):
            gateway.construct_webhook_event(payload, _sign(payload, secret="whsec_other"))

    def test_invalid_payload(self, gateway):
        payload = b"not json"

        with pytest.raises(WebhookError, match="Invalid payload"):
            gateway.construct_webhook_event(payload, _sign(payload))

    def test_missing_secret(self):
        with pytest.raises(WebhookError, match="not configured"):
            StripeGateway("sk_test_123").construct_webhook_event(b"{}", "t=1,v1=abc")


class TestPaymentProviderError:
    @pytest.mark.parametrize(
        "error,kind,status_code",
        [
            (stripe.CardError("declined", None, "card_declined"), PaymentErrorKind.CARD, 402),
            (stripe.InvalidRequestError("No such customer", "customer"), PaymentErrorKind.INVALID_REQUEST, 400),
            (stripe.AuthenticationError("bad key"), PaymentErrorKind.AUTHENTICATION, 502),
            (stripe.RateLimitError("slow down"), PaymentErrorKind.RATE_LIMIT, 503),
            (stripe.APIConnectionError("reset"), PaymentErrorKind.CONNECTION, 503),
            (stripe.APIError("oops"), PaymentErrorKind.API, 503),
            (stripe.StripeError("other"), PaymentErrorKind.UNKNOWN, 502),
        ],
    )
    def test_from_stripe(self, error, kind, status_code):
        wrapped = PaymentProviderError.from_stripe(error)

        assert wrapped.kind == kind
        assert wrapped.status_code == status_code

    def test_public_message(self):
        assert PaymentProviderError("declined", kind=PaymentErrorKind.CARD).public_message == "Card error: declined"
        assert PaymentProviderError("x", kind=PaymentErrorKind.INVALID_REQUEST).public_message == (
            "Invalid payment request"
        )
        assert PaymentProviderError("sk_live_x leaked").public_message == "Payment service temporarily unavailable"
