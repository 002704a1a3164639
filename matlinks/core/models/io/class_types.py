"""
Class type and class schedule I/O models.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class ClassTypeRead(BaseModel):
    """Schema for reading a class type from API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    difficulty_level: Optional[str] = None
    duration_minutes: Optional[int] = None
    default_capacity: Optional[int] = None
    color: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ClassTypeCreate(BaseModel):
    """Schema for creating a class type via API."""

    name: str = Field(min_length=1, description="Class type name")
    description: Optional[str] = None
    difficulty_level: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0, description="Default class length in minutes")
    default_capacity: Optional[int] = Field(default=None, gt=0, description="Default number of spots")
    color: Optional[str] = None
    is_active: bool = Field(default=True)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Class type name is required")
        return value


class ClassTypeUpdate(BaseModel):
    """Schema for updating a class type via API."""

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    difficulty_level: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    default_capacity: Optional[int] = Field(default=None, gt=0)
    color: Optional[str] = None
    is_active: Optional[bool] = None


def _check_time(value: str) -> str:
    if not _TIME_PATTERN.match(value):
        raise ValueError("Invalid time format (use HH:MM)")
    return value


ClockTime = Annotated[str, AfterValidator(_check_time)]


class ClassScheduleRead(BaseModel):
    """Schema for reading a class schedule slot."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    class_type_id: int
    location_id: int
    instructor_id: Optional[str] = None
    day_of_week: int
    start_time: str
    end_time: str
    is_active: bool


class ClassScheduleCreate(BaseModel):
    """Schema for creating a class schedule slot."""

    class_type_id: int
    location_id: int
    instructor_id: Optional[str] = None
    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: ClockTime = Field(description="HH:MM, 24h")
    end_time: ClockTime = Field(description="HH:MM, 24h")
    is_active: bool = Field(default=True)

    @model_validator(mode="after")
    def _end_after_start(self) -> "ClassScheduleCreate":
        # Zero-padded HH:MM strings compare chronologically
        if self.end_time <= self.start_time:
            raise ValueError("End Time must be after Start Time")
        return self


class ClassScheduleUpdate(BaseModel):
    """Schema for updating a class schedule slot."""

    class_type_id: Optional[int] = None
    location_id: Optional[int] = None
    instructor_id: Optional[str] = None
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    start_time: Optional[ClockTime] = None
    end_time: Optional[ClockTime] = None
    is_active: Optional[bool] = None
