"""
Gym and location entities.

A gym is the business; a location is one of its physical sites. Members,
schedules and check-ins all hang off a location.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, UTCDateTime, utc_now


class GymBase(Base):
    """Base fields for a gym."""

    name: str = Field(description="Gym name")
    description: Optional[str] = Field(default=None, description="Free-text description")
    logo_url: Optional[str] = Field(default=None, description="Public URL of the gym logo")
    is_active: bool = Field(default=True)


class Gym(GymBase, table=True):
    """Persistent gym.

    Table: gyms
    """

    __tablename__ = "gyms"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=UTCDateTime, sa_column_kwargs={"onupdate": utc_now}
    )

    def __repr__(self) -> str:
        return f"Gym(id={self.id}, name={self.name})"


class LocationBase(Base):
    """Base fields for a gym location."""

    gym_id: Optional[int] = Field(default=None, foreign_key="gyms.id", index=True)
    name: str = Field(description="Location name")
    address: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None)
    state: Optional[str] = Field(default=None)
    postal_code: Optional[str] = Field(default=None)
    phone: Optional[str] = Field(default=None)
    latitude: Optional[float] = Field(default=None)
    longitude: Optional[float] = Field(default=None)
    is_active: bool = Field(default=True)


class Location(LocationBase, table=True):
    """Persistent gym location.

    Table: locations
    """

    __tablename__ = "locations"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=UTCDateTime, sa_column_kwargs={"onupdate": utc_now}
    )

    def __repr__(self) -> str:
        return f"Location(id={self.id}, name={self.name}, gym_id={self.gym_id})"
