"""
Profile and member I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from matlinks.core.database.entities.profiles import UserRole


class ProfileRead(BaseModel):
    """Schema for reading a profile."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    primary_location_id: Optional[int] = None
    current_gym_id: Optional[int] = None
    current_location_id: Optional[int] = None
    current_plan_id: Optional[int] = None
    subscription_status: Optional[str] = None
    created_at: datetime


class ProfileUpdate(BaseModel):
    """Fields a member may change on their own profile."""

    full_name: Optional[str] = None
    phone: Optional[str] = None


class MemberUpdate(BaseModel):
    """Fields an admin may change on a member profile."""

    model_config = ConfigDict(use_enum_values=True)

    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[UserRole] = None
    primary_location_id: Optional[int] = None
    current_gym_id: Optional[int] = None
    current_location_id: Optional[int] = None
    current_plan_id: Optional[int] = None


class MemberInvite(BaseModel):
    """Add a member to a location by email."""

    email: EmailStr
    full_name: Optional[str] = None
    location_id: int = Field(description="Primary location of the member")
