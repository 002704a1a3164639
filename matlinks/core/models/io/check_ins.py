"""
Check-in I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from matlinks.core.database.entities.check_ins import CheckInMethod


class CheckInCreate(BaseModel):
    location_id: int
    class_schedule_id: Optional[int] = None
    method: CheckInMethod = CheckInMethod.MOBILE
    profile_id: Optional[str] = None


class CheckInRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    profile_id: str
    location_id: int
    class_schedule_id: Optional[int] = None
    method: CheckInMethod
    checked_in_by: Optional[str] = None
    checked_in_at: datetime
