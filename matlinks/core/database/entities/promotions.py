"""
Promotion code entities.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field

from ..base import Base, UTCDateTime, utc_now


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PromotionBase(Base):
    """Base fields for a promotion code."""

    code: str = Field(index=True, sa_column_kwargs={"unique": True}, description="Upper-case code")
    description: Optional[str] = Field(default=None)
    discount_type: str = Field(description="percentage or fixed")
    discount_value: int = Field(description="Percent (0-100) or amount in cents")
    start_date: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    end_date: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    max_uses: Optional[int] = Field(default=None, description="None means unlimited")
    is_active: bool = Field(default=True)


class Promotion(PromotionBase, table=True):
    """Persistent promotion code.

    Table: promotions
    """

    __tablename__ = "promotions"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    current_uses: int = Field(default=0)

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=UTCDateTime, sa_column_kwargs={"onupdate": utc_now}
    )

    def __repr__(self) -> str:
        return f"Promotion(id={self.id}, code={self.code}, uses={self.current_uses}/{self.max_uses})"


class PromotionRedemption(Base, table=True):
    """A member's use of a promotion.

    Table: promotion_redemptions
    """

    __tablename__ = "promotion_redemptions"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    promotion_id: int = Field(foreign_key="promotions.id", index=True)
    profile_id: str = Field(foreign_key="profiles.id", index=True)
    membership_plan_id: Optional[int] = Field(default=None, foreign_key="membership_plans.id")
    discount_amount: int = Field(default=0, description="Discount granted in cents")
    redeemed_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
