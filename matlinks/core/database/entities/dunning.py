"""
Dunning notification entity.

Each row is one reminder email in the sequence started by a failed
payment. Rows are created up front with their ``scheduled_for`` time and
sent by the dunning cron job.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field

from ..base import Base, UTCDateTime, utc_now


class DunningStage(str, Enum):
    INITIAL_FAILURE = "initial_failure"
    FIRST_REMINDER = "first_reminder"
    SECOND_REMINDER = "second_reminder"
    FINAL_NOTICE = "final_notice"
    SUBSCRIPTION_CANCELED = "subscription_canceled"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"


class DunningNotification(Base, table=True):
    """One scheduled dunning email.

    Table: dunning_notifications
    """

    __tablename__ = "dunning_notifications"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    failed_payment_id: str = Field(foreign_key="failed_payments.id", index=True)
    customer_id: str = Field(index=True, description="Stripe customer id")
    subscription_id: Optional[str] = Field(default=None)
    stage: str
    status: str = Field(default=NotificationStatus.PENDING.value, index=True)
    scheduled_for: datetime = Field(index=True, sa_type=UTCDateTime)
    sent_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    email_subject: Optional[str] = Field(default=None)
    email_content: Optional[str] = Field(default=None)
    error_message: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=UTCDateTime, sa_column_kwargs={"onupdate": utc_now}
    )

    def __repr__(self) -> str:
        return f"DunningNotification(id={self.id}, stage={self.stage}, status={self.status})"
