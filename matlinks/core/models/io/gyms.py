"""
Gym and location I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GymRead(BaseModel):
    """Schema for reading a gym from API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class GymCreate(BaseModel):
    """Schema for creating a gym via API."""

    name: str = Field(min_length=1, description="Gym name")
    description: Optional[str] = Field(default=None, description="Free-text description")
    logo_url: Optional[str] = Field(default=None, description="Public URL of the gym logo")
    is_active: bool = Field(default=True)


class GymUpdate(BaseModel):
    """Schema for updating a gym via API."""

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    logo_url: Optional[str] = None
    is_active: Optional[bool] = None


class LocationRead(BaseModel):
    """Schema for reading a location from API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    gym_id: Optional[int] = None
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    phone: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class LocationCreate(BaseModel):
    """Schema for creating a location via API."""

    gym_id: int = Field(description="Owning gym")
    name: str = Field(min_length=1, description="Location name")
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    phone: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    is_active: bool = Field(default=True)


class LocationUpdate(BaseModel):
    """Schema for updating a location via API."""

    gym_id: Optional[int] = None
    name: Optional[str] = Field(default=None, min_length=1)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    phone: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    is_active: Optional[bool] = None
