"""
One-off payment endpoints.

``create-intent`` hands the front end a client secret to confirm a card
payment in the browser. ``charge`` confirms off-session against a saved
payment method. Both leave a ``payments`` row behind, so a failed charge
can later be retried from the admin finance page.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from sqlmodel import select

from matlinks.core.database.entities.payments import Payment, PaymentHistory, PaymentStatus
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.billing import (
    PaymentIntentRequest,
    PaymentHistoryRead,
    PaymentIntentResponse,
    PaymentRead,
    PaymentResult,
)
from matlinks.server.services.deps import CurrentUserDep, SessionDep, StripeDep
from matlinks.server.services.payment_processor import process_payment
from matlinks.server.services.subscriptions import get_or_create_customer

logger = get_logger(__name__)

router = APIRouter(tags=["payments"])


@router.post(
    "/create-intent",
    response_model=PaymentIntentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Payment Intent",
    description="Create a Stripe payment intent for the caller and return its client secret.",
    responses={
        201: {"description": "Payment intent created"},
        422: {"description": "Amount not positive"},
    },
)
async def create_intent(
    payload: PaymentIntentRequest,
    user: CurrentUserDep,
    session: SessionDep,
    gateway: StripeDep,
) -> PaymentIntentResponse:
    """
    Create a payment intent.

    - **amount**: Amount in cents, greater than zero.
    - **currency**: ISO currency code, defaults to 'usd'.
    - **description**: Optional statement description.
    - **payment_method_id**: Optional saved payment method to pre-fill.
    - **metadata**: Extra key/values stored on the intent.
    """
    customer_id = await get_or_create_customer(session, gateway, user)
    payment = Payment(
        profile_id=user.id,
        amount=payload.amount,
        currency=payload.currency.lower(),
        description=payload.description,
        stripe_customer_id=customer_id,
        payment_method_id=payload.payment_method_id,
    )
    session.add(payment)
    await session.flush()

    params = {
        "amount": payment.amount,
        "currency": payment.currency,
        "customer": customer_id,
        "automatic_payment_methods": {"enabled": True},
        "metadata": {**payload.metadata, "payment_id": str(payment.id), "user_id": user.id},
    }
    if payload.description:
        params["description"] = payload.description
    if payload.payment_method_id:
        params["payment_method"] = payload.payment_method_id
    intent = await gateway.create_payment_intent(**params)

    payment.payment_intent_id = intent.id
    session.add(payment)
    await session.commit()
    logger.info(f"Payment {payment.id}: intent {intent.id} for {payment.amount} {payment.currency}")
    return PaymentIntentResponse(
        payment_id=payment.id,
        payment_intent_id=intent.id,
        client_secret=intent.client_secret,
        status=intent.status,
    )


@router.post(
    "/charge",
    response_model=PaymentResult,
    summary="Charge Saved Payment Method",
    description="Charge one of the caller's saved payment methods off-session.",
    responses={400: {"description": "Payment method missing"}},
)
async def charge(
    payload: PaymentIntentRequest,
    user: CurrentUserDep,
    session: SessionDep,
    gateway: StripeDep,
) -> PaymentResult:
    """
    Charge a saved card.

    A declined or unauthenticated charge is not an HTTP error: the result has
    ``success`` false and a message safe to show to the member.

    - **amount**: Amount in cents, greater than zero.
    - **payment_method_id**: The saved payment method to charge.
    """
    if not payload.payment_method_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment method is required")

    customer_id = await get_or_create_customer(session, gateway, user)
    result = await process_payment(
        gateway,
        payload.amount,
        customer_id,
        payload.payment_method_id,
        description=payload.description,
        metadata={**payload.metadata, "user_id": user.id},
        currency=payload.currency.lower(),
    )

    session.add(
        Payment(
            profile_id=user.id,
            amount=payload.amount,
            currency=payload.currency.lower(),
            description=payload.description,
            stripe_customer_id=customer_id,
            payment_method_id=payload.payment_method_id,
            payment_intent_id=result.payment_intent_id,
            status=PaymentStatus.SUCCEEDED.value if result.success else PaymentStatus.FAILED.value,
            failure_reason=result.error,
        )
    )
    await session.commit()
    return result


@router.get(
    "/history",
    response_model=list[PaymentHistoryRead],
    summary="Payment History",
    description="The caller's paid invoices and manual payments, newest first.",
)
async def payment_history(
    user: CurrentUserDep,
    session: SessionDep,
    limit: int = 10,
    offset: int = 0,
) -> list[PaymentHistoryRead]:
    statement = (
        select(PaymentHistory)
        .where(PaymentHistory.user_id == user.id)
        .order_by(PaymentHistory.created_at.desc(), PaymentHistory.id.desc())
        .limit(limit)
        .offset(offset)
    )
    result = await session.execute(statement)
    return [PaymentHistoryRead.model_validate(row) for row in result.scalars().all()]


@router.get(
    "/one-off",
    response_model=list[PaymentRead],
    summary="One-off Payments",
    description="The caller's one-off card payments with their status, newest first.",
)
async def one_off_payments(
    user: CurrentUserDep,
    session: SessionDep,
    limit: int = 20,
    offset: int = 0,
) -> list[PaymentRead]:
    statement = (
        select(Payment)
        .where(Payment.profile_id == user.id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .limit(limit)
        .offset(offset)
    )
    result = await session.execute(statement)
    return [PaymentRead.model_validate(payment) for payment in result.scalars().all()]
