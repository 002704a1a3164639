"""
Check-in entity.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field

from ..base import Base, UTCDateTime, utc_now


class CheckInMethod(str, Enum):
    KIOSK = "KIOSK"
    MOBILE = "MOBILE"
    INSTRUCTOR = "INSTRUCTOR"
    ADMIN = "ADMIN"


class CheckIn(Base, table=True):
    """A member arriving at a location.

    Table: check_ins
    """

    __tablename__ = "check_ins"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    profile_id: str = Field(foreign_key="profiles.id", index=True)
    location_id: int = Field(foreign_key="locations.id", index=True)
    class_schedule_id: Optional[int] = Field(default=None, foreign_key="class_schedules.id")
    method: str = Field(default=CheckInMethod.MOBILE.value)
    checked_in_by: Optional[str] = Field(default=None, description="Staff profile id for assisted check-ins")
    checked_in_at: datetime = Field(default_factory=utc_now, index=True, sa_type=UTCDateTime)
