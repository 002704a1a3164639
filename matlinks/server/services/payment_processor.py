"""
One-off charges against a saved payment method.
"""

from __future__ import annotations

from typing import Dict, Optional

from matlinks.billing.errors import PaymentProviderError
from matlinks.billing.stripe_client import StripeGateway
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.billing import PaymentResult
from matlinks.core.monitoring import log_payment_event

logger = get_logger(__name__)


async def process_payment(
    gateway: StripeGateway,
    amount: int,
    customer_id: str,
    payment_method_id: str,
    description: Optional[str] = None,
    metadata: Optional[Dict[str, str]] = None,
    currency: str = "usd",
) -> PaymentResult:
    """
    Charge a customer off-session and report the outcome.

    Stripe failures are returned as an unsuccessful result rather than
    raised, with a message that is safe to show to the member.

    Args:
        gateway: Stripe gateway
        amount: Amount in cents
        customer_id: Stripe customer id
        payment_method_id: Stripe payment method id to charge
        description: Statement description
        metadata: Extra key/values stored on the payment intent
        currency: ISO currency code

    Returns:
        PaymentResult with the payment intent id and status on success
    """
    params = {
        "amount": amount,
        "currency": currency,
        "customer": customer_id,
        "payment_method": payment_method_id,
        "off_session": True,
        "confirm": True,
        "metadata": metadata or {},
    }
    if description:
        params["description"] = description

    try:
        intent = await gateway.create_payment_intent(**params)
    except PaymentProviderError as e:
        log_payment_event("charge_failed", amount, customer_id=customer_id, error_kind=e.kind.value)
        return PaymentResult(success=False, error=e.public_message)

    if intent.status == "requires_action":
        return PaymentResult(
            success=False,
            payment_intent_id=intent.id,
            status=intent.status,
            error="Payment requires additional authentication",
        )

    log_payment_event("charge_succeeded", amount, customer_id=customer_id, payment_intent_id=intent.id)
    logger.info(f"Charged {amount} {currency} to {customer_id} ({intent.id}, {intent.status})")
    return PaymentResult(success=True, payment_intent_id=intent.id, status=intent.status)
