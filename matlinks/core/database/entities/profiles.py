"""
Member profile entity.

A profile row exists for every Supabase auth user. Its primary key is the
auth user's UUID, so identity lives in Supabase while role, home location
and billing state live here.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field

from ..base import Base, UTCDateTime, utc_now


class UserRole(str, Enum):
    """Role stored on the profile and checked by every protected route."""

    ADMIN = "admin"
    OWNER = "owner"
    INSTRUCTOR = "instructor"
    STUDENT = "student"


class SubscriptionStatus(str, Enum):
    """Membership billing state mirrored from Stripe."""

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    UNPAID = "unpaid"
    INCOMPLETE = "incomplete"
    CANCELING = "canceling"
    CANCELED = "canceled"


class ProfileBase(Base):
    """Editable profile fields."""

    email: str = Field(index=True, sa_column_kwargs={"unique": True}, description="Login email")
    full_name: Optional[str] = Field(default=None, description="Display name")
    phone: Optional[str] = Field(default=None, description="Contact phone number")
    role: str = Field(default=UserRole.STUDENT.value, description="admin, owner, instructor or student")
    primary_location_id: Optional[int] = Field(default=None, foreign_key="locations.id")
    current_gym_id: Optional[int] = Field(default=None, foreign_key="gyms.id")
    current_location_id: Optional[int] = Field(default=None, foreign_key="locations.id")
    current_plan_id: Optional[int] = Field(default=None, foreign_key="membership_plans.id")


class Profile(ProfileBase, table=True):
    """Persistent member profile.

    Table: profiles
    """

    __tablename__ = "profiles"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(primary_key=True, description="Supabase auth user id")

    # Billing state, written by checkout and the Stripe webhook
    stripe_customer_id: Optional[str] = Field(default=None, index=True)
    stripe_subscription_id: Optional[str] = Field(default=None, index=True)
    subscription_status: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=UTCDateTime, sa_column_kwargs={"onupdate": utc_now}
    )

    @property
    def has_admin_access(self) -> bool:
        return self.role in (UserRole.ADMIN.value, UserRole.OWNER.value)

    def __repr__(self) -> str:
        return f"Profile(id={self.id}, email={self.email}, role={self.role})"
