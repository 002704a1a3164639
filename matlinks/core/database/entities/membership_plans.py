"""
Membership plan entity.

Prices are stored in cents. ``stripe_product_id``/``stripe_price_id`` are
filled once the plan has been synced to Stripe; a plan without a price id
cannot be sold through checkout.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field

from ..base import Base, UTCDateTime, utc_now


class PlanInterval(str, Enum):
    """Billing interval of a plan."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ONE_TIME = "one_time"


class MembershipPlanBase(Base):
    """Base fields for a membership plan."""

    name: str = Field(description="Plan name")
    description: Optional[str] = Field(default=None)
    price: int = Field(default=0, description="Price in cents")
    interval: Optional[str] = Field(default=None, description="day, week, month, year or one_time")
    is_active: bool = Field(default=True)
    stripe_price_id: Optional[str] = Field(default=None)


class MembershipPlan(MembershipPlanBase, table=True):
    """Persistent membership plan.

    Table: membership_plans
    """

    __tablename__ = "membership_plans"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    stripe_product_id: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=UTCDateTime, sa_column_kwargs={"onupdate": utc_now}
    )

    @property
    def is_purchasable(self) -> bool:
        return self.is_active and bool(self.stripe_price_id)

    def __repr__(self) -> str:
        return f"MembershipPlan(id={self.id}, name={self.name}, price={self.price})"
