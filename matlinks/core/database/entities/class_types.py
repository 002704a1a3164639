"""
Class type and weekly class schedule entities.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, UTCDateTime, utc_now


class ClassTypeBase(Base):
    """Base fields for a class type (e.g. 'Fundamentals', 'No-Gi')."""

    name: str = Field(description="Class type name")
    description: Optional[str] = Field(default=None)
    difficulty_level: Optional[str] = Field(default=None, description="Beginner, Intermediate, Advanced...")
    duration_minutes: Optional[int] = Field(default=None, description="Default class length")
    default_capacity: Optional[int] = Field(default=None, description="Default number of spots")
    color: Optional[str] = Field(default=None, description="Calendar colour, e.g. #1e40af")
    is_active: bool = Field(default=True)


class ClassType(ClassTypeBase, table=True):
    """Persistent class type.

    Table: class_types
    """

    __tablename__ = "class_types"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=UTCDateTime, sa_column_kwargs={"onupdate": utc_now}
    )

    def __repr__(self) -> str:
        return f"ClassType(id={self.id}, name={self.name})"


class ClassScheduleBase(Base):
    """Base fields for a recurring weekly class slot."""

    class_type_id: int = Field(foreign_key="class_types.id", index=True)
    location_id: int = Field(foreign_key="locations.id", index=True)
    instructor_id: Optional[str] = Field(default=None, foreign_key="profiles.id")
    day_of_week: int = Field(description="0 = Sunday ... 6 = Saturday")
    start_time: str = Field(description="HH:MM, 24h")
    end_time: str = Field(description="HH:MM, 24h")
    is_active: bool = Field(default=True)


class ClassSchedule(ClassScheduleBase, table=True):
    """Persistent class schedule slot.

    Table: class_schedules
    """

    __tablename__ = "class_schedules"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=UTCDateTime, sa_column_kwargs={"onupdate": utc_now}
    )

    def __repr__(self) -> str:
        return f"ClassSchedule(id={self.id}, class_type_id={self.class_type_id}, day={self.day_of_week})"
