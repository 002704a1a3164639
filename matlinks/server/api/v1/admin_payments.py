"""
API endpoints for the admin finance pages.

Covers manual (cash, cheque, bank transfer) payments, the payment and
failed-payment ledgers, and retrying a failed payment by hand.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import select

from matlinks.billing.pricing import dollars_to_cents
from matlinks.core.database.base import utc_now
from matlinks.core.database.entities.payments import FailedPayment, Payment, PaymentHistory
from matlinks.core.database.entities.profiles import Profile
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.billing import (
    FailedPaymentRead,
    ManualPaymentCreate,
    PaymentHistoryRead,
    PaymentRead,
    PaymentRetryResult,
)
from matlinks.core.monitoring import log_payment_event
from matlinks.server.core.constant import ADMIN_ROLES
from matlinks.server.services.deps import PaymentFailuresDep, SessionDep
from matlinks.server.services.security import require_roles

logger = get_logger(__name__)

router = APIRouter(tags=["admin-finance"], dependencies=[Depends(require_roles(*ADMIN_ROLES))])

MANUAL_PAYMENT_PERIOD_DAYS = 30


@router.post(
    "/manual",
    response_model=PaymentHistoryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record Manual Payment",
    description="Record a payment taken outside Stripe. It covers the next 30 days.",
    responses={
        201: {"description": "Payment recorded"},
        404: {"description": "Member not found"},
        422: {"description": "Amount not positive or payment method missing"},
    },
)
async def record_manual_payment(payload: ManualPaymentCreate, session: SessionDep) -> PaymentHistoryRead:
    """
    Record a manual payment.

    - **member_id**: The member who paid.
    - **amount**: Amount in dollars, e.g. 120.50.
    - **payment_method**: How the member paid, e.g. 'cash'.
    - **description**: Optional note shown in the member's history.
    - **receipt_number**: Optional receipt reference.
    """
    member = await session.get(Profile, payload.member_id)
    if member is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Member {payload.member_id} not found")

    now = utc_now()
    record = PaymentHistory(
        user_id=member.id,
        stripe_customer_id=member.stripe_customer_id,
        amount_paid=dollars_to_cents(payload.amount),
        period_start=now,
        period_end=now + timedelta(days=MANUAL_PAYMENT_PERIOD_DAYS),
        status="paid",
        payment_method=payload.payment_method,
        description=payload.description or "Manual payment",
        receipt_number=payload.receipt_number,
        is_manual=True,
    )
    session.add(record)
    await session.commit()
    await session.refresh(record)

    log_payment_event("manual_payment", record.amount_paid, member_id=member.id, method=record.payment_method)
    logger.info(f"Recorded manual payment {record.id} of {record.amount_paid} cents for {member.id}")
    return PaymentHistoryRead.model_validate(record)


@router.get(
    "",
    response_model=list[PaymentRead],
    summary="List Payments",
    description="Retrieve one-off payments, newest first, optionally filtered by status or member.",
)
async def list_payments(
    session: SessionDep,
    status_filter: Optional[str] = None,
    member_id: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
) -> list[PaymentRead]:
    statement = select(Payment).order_by(Payment.created_at.desc())
    if status_filter:
        statement = statement.where(Payment.status == status_filter)
    if member_id:
        statement = statement.where(Payment.profile_id == member_id)
    result = await session.execute(statement.limit(limit).offset(offset))
    return [PaymentRead.model_validate(payment) for payment in result.scalars().all()]


@router.get(
    "/history",
    response_model=list[PaymentHistoryRead],
    summary="List Payment History",
    description="Retrieve paid invoices and manual payments for all members, newest first.",
)
async def list_payment_history(
    session: SessionDep,
    member_id: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
) -> list[PaymentHistoryRead]:
    statement = select(PaymentHistory).order_by(PaymentHistory.created_at.desc())
    if member_id:
        statement = statement.where(PaymentHistory.user_id == member_id)
    result = await session.execute(statement.limit(limit).offset(offset))
    return [PaymentHistoryRead.model_validate(row) for row in result.scalars().all()]


@router.get(
    "/failed",
    response_model=list[FailedPaymentRead],
    summary="List Failed Payments",
    description="Retrieve failed subscription invoices together with their retry attempts.",
)
async def list_failed_payments(
    session: SessionDep,
    unresolved_only: bool = False,
    customer_id: Optional[str] = None,
) -> list[FailedPaymentRead]:
    """
    List failed payments, newest first.

    - **unresolved_only**: Only failures whose retries are still running.
    - **customer_id**: Only failures of this Stripe customer.
    """
    statement = select(FailedPayment).order_by(FailedPayment.created_at.desc())
    if unresolved_only:
        statement = statement.where(FailedPayment.final_status == None)  # noqa: E711
    if customer_id:
        statement = statement.where(FailedPayment.customer_id == customer_id)
    result = await session.execute(statement)
    return [FailedPaymentRead.model_validate(row) for row in result.scalars().all()]


@router.post(
    "/{payment_id}/retry",
    response_model=PaymentRetryResult,
    summary="Retry Failed Payment",
    description="Retry a failed one-off payment through Stripe.",
    responses={
        400: {"description": "Payment is not failed, member has no Stripe customer, or Stripe refused"},
        404: {"description": "Payment not found"},
    },
)
async def retry_payment(payment_id: int, failures: PaymentFailuresDep) -> PaymentRetryResult:
    """
    Retry a failed payment.

    The existing payment intent is confirmed again when Stripe still allows
    it; otherwise a new intent is created for the same amount. The payment
    moves to 'processing' either way.

    - **payment_id**: The failed payment to retry.
    """
    return await failures.manually_retry_payment(payment_id)
