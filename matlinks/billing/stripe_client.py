"""
Stripe gateway.

``StripeGateway`` is the single seam between MatLinks and the Stripe SDK.
The SDK is blocking, so every call runs in a worker thread; the API key is
passed per request instead of being set on the ``stripe`` module, which keeps
tests and multiple gateways independent of global state.

Every ``stripe.StripeError`` is logged and re-raised as
:class:`~matlinks.billing.errors.PaymentProviderError`.
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import Any, Callable, Dict, List, Optional

import stripe

from matlinks.core.logging_config import get_logger

from .errors import PaymentErrorKind, PaymentProviderError, WebhookError

logger = get_logger(__name__)


class StripeGateway:
    """Async facade over the Stripe resources MatLinks uses."""

    def __init__(
        self,
        api_key: Optional[str],
        webhook_secret: Optional[str] = None,
        api_version: Optional[str] = None,
    ) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.api_version = api_version

    async def _call(self, operation: str, func: Callable[..., Any], *args: Any, **params: Any) -> Any:
        if not self.api_key:
            raise PaymentProviderError("Stripe is not configured", kind=PaymentErrorKind.CONFIGURATION)
        request_options: Dict[str, Any] = {"api_key": self.api_key}
        if self.api_version:
            request_options["stripe_version"] = self.api_version
        try:
            return await asyncio.to_thread(partial(func, *args, **params, **request_options))
        except stripe.StripeError as e:
            logger.error(f"Stripe {operation} failed: {type(e).__name__}: {e}")
            raise PaymentProviderError.from_stripe(e) from e

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    async def create_customer(self, email: str, name: Optional[str] = None, metadata: Optional[dict] = None) -> Any:
        params: Dict[str, Any] = {"email": email, "metadata": metadata or {}}
        if name:
            params["name"] = name
        customer = await self._call("customer.create", stripe.Customer.create, **params)
        logger.info(f"Created Stripe customer {customer.id} for {email}")
        return customer

    async def retrieve_customer(self, customer_id: str) -> Any:
        return await self._call("customer.retrieve", stripe.Customer.retrieve, customer_id)

    async def set_default_payment_method(self, customer_id: str, payment_method_id: str) -> Any:
        return await self._call(
            "customer.modify",
            stripe.Customer.modify,
            customer_id,
            invoice_settings={"default_payment_method": payment_method_id},
        )

    # ------------------------------------------------------------------
    # Checkout, products and prices
    # ------------------------------------------------------------------

    async def create_checkout_session(self, **params: Any) -> Any:
        return await self._call("checkout.session.create", stripe.checkout.Session.create, **params)

    async def create_coupon(self, **params: Any) -> Any:
        return await self._call("coupon.create", stripe.Coupon.create, **params)

    async def create_product(self, name: str, description: Optional[str] = None, metadata: Optional[dict] = None) -> Any:
        params: Dict[str, Any] = {"name": name, "metadata": metadata or {}}
        if description:
            params["description"] = description
        return await self._call("product.create", stripe.Product.create, **params)

    async def create_price(
        self, product_id: str, unit_amount: int, currency: str, interval: Optional[str] = None
    ) -> Any:
        params: Dict[str, Any] = {"product": product_id, "unit_amount": unit_amount, "currency": currency}
        if interval:
            params["recurring"] = {"interval": interval}
        return await self._call("price.create", stripe.Price.create, **params)

    # ------------------------------------------------------------------
    # Payment intents and payment methods
    # ------------------------------------------------------------------

    async def create_payment_intent(self, **params: Any) -> Any:
        return await self._call("payment_intent.create", stripe.PaymentIntent.create, **params)

    async def retrieve_payment_intent(self, payment_intent_id: str) -> Any:
        return await self._call("payment_intent.retrieve", stripe.PaymentIntent.retrieve, payment_intent_id)

    async def confirm_payment_intent(self, payment_intent_id: str, **params: Any) -> Any:
        return await self._call("payment_intent.confirm", stripe.PaymentIntent.confirm, payment_intent_id, **params)

    async def list_payment_methods(self, customer_id: str) -> List[Any]:
        result = await self._call(
            "payment_method.list", stripe.PaymentMethod.list, customer=customer_id, type="card"
        )
        return list(result.data)

    async def retrieve_payment_method(self, payment_method_id: str) -> Any:
        return await self._call("payment_method.retrieve", stripe.PaymentMethod.retrieve, payment_method_id)

    async def attach_payment_method(self, payment_method_id: str, customer_id: str) -> Any:
        return await self._call(
            "payment_method.attach", stripe.PaymentMethod.attach, payment_method_id, customer=customer_id
        )

    async def detach_payment_method(self, payment_method_id: str) -> Any:
        return await self._call("payment_method.detach", stripe.PaymentMethod.detach, payment_method_id)

    # ------------------------------------------------------------------
    # Subscriptions and invoices
    # ------------------------------------------------------------------

    async def create_subscription(self, **params: Any) -> Any:
        return await self._call("subscription.create", stripe.Subscription.create, **params)

    async def retrieve_subscription(self, subscription_id: str) -> Any:
        return await self._call("subscription.retrieve", stripe.Subscription.retrieve, subscription_id)

    async def modify_subscription(self, subscription_id: str, **params: Any) -> Any:
        return await self._call("subscription.modify", stripe.Subscription.modify, subscription_id, **params)

    async def cancel_subscription(self, subscription_id: str, invoice_now: bool = True, prorate: bool = True) -> Any:
        return await self._call(
            "subscription.cancel",
            stripe.Subscription.cancel,
            subscription_id,
            invoice_now=invoice_now,
            prorate=prorate,
        )

    async def retrieve_invoice(self, invoice_id: str) -> Any:
        return await self._call("invoice.retrieve", stripe.Invoice.retrieve, invoice_id)

    async def pay_invoice(self, invoice_id: str) -> Any:
        return await self._call("invoice.pay", stripe.Invoice.pay, invoice_id)

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    def construct_webhook_event(self, payload: bytes, signature: str) -> Any:
        """Verify a webhook signature and parse the event.

        Raises:
            WebhookError: when the secret is missing, the payload is not JSON
                or the signature does not match.
        """
        if not self.webhook_secret:
            raise WebhookError("Webhook secret is not configured")
        try:
            return stripe.Webhook.construct_event(payload=payload, sig_header=signature, secret=self.webhook_secret)
        except ValueError as e:
            raise WebhookError(f"Invalid payload: {e}") from e
        except stripe.SignatureVerificationError as e:
            raise WebhookError(f"Invalid signature: {e}") from e
