"""
Billing I/O models: checkout, payment intents, payment methods,
subscriptions, payment history and admin finance views.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CheckoutSessionRequest(BaseModel):
    membership_plan_id: int
    promotion_code: Optional[str] = None


class CheckoutSessionResponse(BaseModel):
    session_id: str
    url: Optional[str] = None


class PaymentIntentRequest(BaseModel):
    amount: int = Field(gt=0, description="Amount in cents")
    currency: str = Field(default="usd", min_length=3, max_length=3)
    description: Optional[str] = None
    payment_method_id: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)


class PaymentIntentResponse(BaseModel):
    payment_id: int
    payment_intent_id: str
    client_secret: Optional[str] = None
    status: str


class PaymentResult(BaseModel):
    """Outcome of charging a saved payment method."""

    success: bool
    payment_intent_id: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None


class PaymentMethodRead(BaseModel):
    id: str
    brand: Optional[str] = None
    last4: Optional[str] = None
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None
    is_default: bool = False


class PaymentMethodAttach(BaseModel):
    payment_method_id: str
    set_default: bool = True


class SubscriptionCreate(BaseModel):
    membership_plan_id: int
    payment_method_id: Optional[str] = None
    member_id: Optional[str] = Field(default=None, description="Admins may subscribe another member")


class SubscriptionCancelRequest(BaseModel):
    immediate: bool = False
    reason: Optional[str] = None


class SubscriptionChangePlan(BaseModel):
    membership_plan_id: int


class SubscriptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    profile_id: str
    membership_plan_id: Optional[int] = None
    stripe_subscription_id: str
    status: str
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool
    canceled_at: Optional[datetime] = None


class SubscriptionCreated(BaseModel):
    subscription_id: str
    status: str
    client_secret: Optional[str] = None


class PaymentHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[str] = None
    stripe_invoice_id: Optional[str] = None
    amount_paid: int
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    status: str
    payment_method: Optional[str] = None
    description: Optional[str] = None
    receipt_number: Optional[str] = None
    is_manual: bool
    created_at: datetime


class PaymentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    profile_id: Optional[str] = None
    amount: int
    currency: str
    status: str
    description: Optional[str] = None
    payment_intent_id: Optional[str] = None
    failure_reason: Optional[str] = None
    last_retry_at: Optional[datetime] = None
    created_at: datetime


class FailedPaymentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_id: str
    subscription_id: Optional[str] = None
    invoice_id: str
    amount: int
    currency: str
    failure_type: str
    failure_message: Optional[str] = None
    retry_attempts: List[Dict[str, Any]]
    final_status: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime


class ManualPaymentCreate(BaseModel):
    """A payment taken outside Stripe (cash, cheque, bank transfer)."""

    member_id: str
    amount: float = Field(gt=0, description="Amount in dollars")
    payment_method: str = Field(min_length=1)
    description: Optional[str] = None
    receipt_number: Optional[str] = None


class CronRunResult(BaseModel):
    """Summary returned by the payment retry cron job."""

    success: bool = True
    processed: int
    succeeded: int
    failed: int
    message: Optional[str] = None
    elapsedMs: int
    timestamp: datetime


class NotificationCounts(BaseModel):
    processed: int
    sent: int
    failed: int
    skipped: int = Field(default=0, description="Notices dropped because the payment was recovered")


class CancellationCounts(BaseModel):
    processed: int


class DunningCronResult(BaseModel):
    """Summary returned by the dunning cron job."""

    success: bool = True
    notifications: NotificationCounts
    cancellations: CancellationCounts
    elapsedMs: int
    timestamp: datetime


class PaymentRetryResult(BaseModel):
    """Outcome of an admin-triggered payment retry."""

    success: bool
    message: str
    payment_intent_id: Optional[str] = None
