"""
Membership plan I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from matlinks.core.database.entities.membership_plans import PlanInterval


class MembershipPlanRead(BaseModel):
    """Schema for reading a membership plan."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    price: int = Field(description="Price in cents")
    interval: Optional[PlanInterval] = None
    is_active: bool
    stripe_product_id: Optional[str] = None
    stripe_price_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class MembershipPlanCreate(BaseModel):
    """Schema for creating a membership plan."""

    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: int = Field(default=0, ge=0, description="Price in cents")
    interval: Optional[PlanInterval] = Field(default=None, description="Required for paid plans")
    is_active: bool = Field(default=True)
    stripe_price_id: Optional[str] = Field(default=None, description="Existing Stripe price to bind")

    @model_validator(mode="after")
    def _paid_plans_need_interval(self) -> "MembershipPlanCreate":
        if self.price > 0 and self.interval is None:
            raise ValueError("Billing interval is required for paid plans")
        return self


class MembershipPlanUpdate(BaseModel):
    """Schema for updating a membership plan."""

    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[int] = Field(default=None, ge=0)
    interval: Optional[PlanInterval] = None
    is_active: Optional[bool] = None
    stripe_price_id: Optional[str] = None
