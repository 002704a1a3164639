"""
Promotion I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator

from matlinks.core.database.base import as_utc
from matlinks.core.database.entities.promotions import DiscountType


# Naive input is read as UTC
UTCTimestamp = Annotated[datetime, AfterValidator(as_utc)]


class PromotionRead(BaseModel):
    """Schema for reading a promotion."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: int
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_uses: Optional[int] = None
    current_uses: int
    is_active: bool
    created_at: datetime


class PromotionCreate(BaseModel):
    """Schema for creating a promotion."""

    model_config = ConfigDict(use_enum_values=True)

    code: str = Field(min_length=1, max_length=50)
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: int = Field(gt=0, description="Percent for percentage codes, cents for fixed codes")
    start_date: Optional[UTCTimestamp] = None
    end_date: Optional[UTCTimestamp] = None
    max_uses: Optional[int] = Field(default=None, gt=0)
    is_active: bool = Field(default=True)

    @field_validator("code")
    @classmethod
    def _normalise_code(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def _check_discount(self) -> "PromotionCreate":
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class PromotionUpdate(BaseModel):
    """Schema for updating a promotion."""

    model_config = ConfigDict(use_enum_values=True)

    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[int] = Field(default=None, gt=0)
    start_date: Optional[UTCTimestamp] = None
    end_date: Optional[UTCTimestamp] = None
    max_uses: Optional[int] = Field(default=None, gt=0)
    is_active: Optional[bool] = None


class PromotionValidateRequest(BaseModel):
    """Body of the promotion validation endpoint."""

    code: str = Field(min_length=1)
    membership_plan_id: Optional[int] = Field(default=None, description="Plan to preview the discount against")


class PromotionValidation(BaseModel):
    """Result of validating a promotion code for a member."""

    valid: bool
    message: str
    promotion_id: Optional[int] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[int] = None
    original_price: Optional[int] = None
    discounted_price: Optional[int] = None
    discount_amount: Optional[int] = None
