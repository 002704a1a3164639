"""
Subscription entities.

``subscriptions`` mirrors the Stripe subscription of a member.
``subscription_cancellations`` keeps an audit row per cancellation and
``pending_subscription_cancellations`` holds cancellations scheduled by
the dunning workflow.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, UTCDateTime, utc_now


class Subscription(Base, table=True):
    """Local copy of a Stripe subscription.

    Table: subscriptions
    """

    __tablename__ = "subscriptions"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    profile_id: str = Field(foreign_key="profiles.id", index=True)
    membership_plan_id: Optional[int] = Field(default=None, foreign_key="membership_plans.id")
    stripe_subscription_id: str = Field(index=True, sa_column_kwargs={"unique": True})
    stripe_customer_id: Optional[str] = Field(default=None, index=True)
    status: str = Field(default="incomplete")
    current_period_start: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    current_period_end: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    cancel_at_period_end: bool = Field(default=False)
    canceled_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=UTCDateTime, sa_column_kwargs={"onupdate": utc_now}
    )

    def __repr__(self) -> str:
        return f"Subscription(id={self.id}, stripe_id={self.stripe_subscription_id}, status={self.status})"


class SubscriptionCancellation(Base, table=True):
    """Audit row written whenever a member cancels.

    Table: subscription_cancellations
    """

    __tablename__ = "subscription_cancellations"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    profile_id: str = Field(foreign_key="profiles.id", index=True)
    subscription_id: str = Field(index=True, description="Stripe subscription id")
    reason: Optional[str] = Field(default=None)
    immediate: bool = Field(default=False)
    canceled_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)


class PendingSubscriptionCancellation(Base, table=True):
    """Cancellation scheduled after a failed dunning sequence.

    Table: pending_subscription_cancellations
    """

    __tablename__ = "pending_subscription_cancellations"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    subscription_id: str = Field(index=True, description="Stripe subscription id")
    profile_id: Optional[str] = Field(default=None, foreign_key="profiles.id", index=True)
    failed_payment_id: Optional[str] = Field(default=None, foreign_key="failed_payments.id")
    scheduled_for: datetime = Field(sa_type=UTCDateTime)
    reason: str = Field(default="payment_failure")
    status: str = Field(default="pending")

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
