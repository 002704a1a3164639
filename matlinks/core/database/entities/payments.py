"""
Payment entities.

- ``payment_history``: one row per paid invoice (or manual payment); what
  members see on their dashboard.
- ``payments``: one-off charges created through payment intents; the
  admin manual-retry action works on these.
- ``failed_payments``: failed subscription invoices together with their
  scheduled retry attempts.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from ..base import Base, UTCDateTime, utc_now


class PaymentStatus(str, Enum):
    """Status of a one-off payment."""

    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PaymentFailureType(str, Enum):
    """Why a charge failed, normalised from Stripe decline data."""

    INSUFFICIENT_FUNDS = "insufficient_funds"
    CARD_DECLINED = "card_declined"
    EXPIRED_CARD = "expired_card"
    INVALID_CVC = "invalid_cvc"
    PROCESSING_ERROR = "processing_error"
    UNKNOWN = "unknown"


class RetryStatus(str, Enum):
    """Status of a single scheduled retry attempt."""

    SCHEDULED = "scheduled"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentHistory(Base, table=True):
    """A paid invoice or a manually recorded payment.

    Table: payment_history
    """

    __tablename__ = "payment_history"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[str] = Field(default=None, foreign_key="profiles.id", index=True)
    stripe_customer_id: Optional[str] = Field(default=None, index=True)
    stripe_invoice_id: Optional[str] = Field(default=None, index=True)
    amount_paid: int = Field(description="Amount in cents")
    period_start: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    period_end: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    status: str = Field(default="paid")
    payment_method: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    receipt_number: Optional[str] = Field(default=None)
    is_manual: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utc_now, index=True, sa_type=UTCDateTime)


class Payment(Base, table=True):
    """A one-off charge backed by a Stripe payment intent.

    Table: payments
    """

    __tablename__ = "payments"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    profile_id: Optional[str] = Field(default=None, foreign_key="profiles.id", index=True)
    amount: int = Field(description="Amount in cents")
    currency: str = Field(default="usd")
    status: str = Field(default=PaymentStatus.PENDING.value)
    description: Optional[str] = Field(default=None)
    payment_intent_id: Optional[str] = Field(default=None, index=True)
    stripe_customer_id: Optional[str] = Field(default=None)
    subscription_id: Optional[str] = Field(default=None)
    payment_method_id: Optional[str] = Field(default=None, description="Stripe payment method id")
    failure_reason: Optional[str] = Field(default=None)
    transaction_id: Optional[str] = Field(default=None)
    last_retry_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=UTCDateTime, sa_column_kwargs={"onupdate": utc_now}
    )

    def __repr__(self) -> str:
        return f"Payment(id={self.id}, amount={self.amount}, status={self.status})"


class FailedPayment(Base, table=True):
    """A failed subscription invoice and its retry plan.

    ``retry_attempts`` is a JSON list of
    ``{"id", "attempt_number", "scheduled_for", "status", "attempted_at", "error_message"}``
    dicts with ISO timestamps. Reassign the list to persist changes.

    Table: failed_payments
    """

    __tablename__ = "failed_payments"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(primary_key=True, description="'{invoice_id}_failure'")
    customer_id: str = Field(index=True, description="Stripe customer id")
    subscription_id: Optional[str] = Field(default=None, index=True)
    invoice_id: str = Field(index=True)
    payment_intent_id: Optional[str] = Field(default=None)
    amount: int = Field(description="Amount due in cents")
    currency: str = Field(default="usd")
    failure_type: str = Field(default=PaymentFailureType.UNKNOWN.value)
    failure_message: Optional[str] = Field(default=None)
    retry_attempts: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    final_status: Optional[str] = Field(default=None, description="succeeded or failed once retries end")
    resolved_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=UTCDateTime, sa_column_kwargs={"onupdate": utc_now}
    )

    def __repr__(self) -> str:
        return f"FailedPayment(id={self.id}, invoice={self.invoice_id}, type={self.failure_type})"
