"""
Saved card endpoints.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, status

from matlinks.billing.stripe_client import StripeGateway
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.billing import PaymentMethodAttach, PaymentMethodRead
from matlinks.server.services.deps import CurrentUserDep, SessionDep, StripeDep
from matlinks.server.services.subscriptions import get_or_create_customer

logger = get_logger(__name__)

router = APIRouter(tags=["payment-methods"])


def _to_read(method: Any, default_id: Optional[str]) -> PaymentMethodRead:
    card = getattr(method, "card", None)
    return PaymentMethodRead(
        id=method.id,
        brand=getattr(card, "brand", None),
        last4=getattr(card, "last4", None),
        exp_month=getattr(card, "exp_month", None),
        exp_year=getattr(card, "exp_year", None),
        is_default=method.id == default_id,
    )


async def _default_method_id(gateway: StripeGateway, customer_id: str) -> Optional[str]:
    customer = await gateway.retrieve_customer(customer_id)
    invoice_settings = getattr(customer, "invoice_settings", None)
    default = getattr(invoice_settings, "default_payment_method", None)
    return getattr(default, "id", default)


@router.get(
    "",
    response_model=list[PaymentMethodRead],
    summary="List Payment Methods",
    description="The caller's saved cards. Empty until the caller has a Stripe customer.",
)
async def list_payment_methods(user: CurrentUserDep, gateway: StripeDep) -> list[PaymentMethodRead]:
    if not user.stripe_customer_id:
        return []
    methods = await gateway.list_payment_methods(user.stripe_customer_id)
    default_id = await _default_method_id(gateway, user.stripe_customer_id)
    return [_to_read(method, default_id) for method in methods]


@router.post(
    "",
    response_model=PaymentMethodRead,
    status_code=status.HTTP_201_CREATED,
    summary="Attach Payment Method",
    description="Attach a payment method created in the browser to the caller's Stripe customer.",
)
async def attach_payment_method(
    payload: PaymentMethodAttach,
    user: CurrentUserDep,
    session: SessionDep,
    gateway: StripeDep,
) -> PaymentMethodRead:
    """
    Attach a payment method.

    - **payment_method_id**: The Stripe payment method id.
    - **set_default**: Make it the default for invoices (default true).
    """
    customer_id = await get_or_create_customer(session, gateway, user)
    await session.commit()

    method = await gateway.attach_payment_method(payload.payment_method_id, customer_id)
    if payload.set_default:
        await gateway.set_default_payment_method(customer_id, method.id)
    logger.info(f"Attached payment method {method.id} to {customer_id} (default={payload.set_default})")
    return _to_read(method, method.id if payload.set_default else None)


@router.delete(
    "/{payment_method_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Detach Payment Method",
    responses={404: {"description": "Payment method not found"}},
)
async def detach_payment_method(payment_method_id: str, user: CurrentUserDep, gateway: StripeDep) -> None:
    if not user.stripe_customer_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment method not found")
    method = await gateway.retrieve_payment_method(payment_method_id)
    if getattr(method, "customer", None) != user.stripe_customer_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment method not found")
    await gateway.detach_payment_method(payment_method_id)
    logger.info(f"Detached payment method {payment_method_id} from {user.stripe_customer_id}")
