"""
API endpoints for managing gym locations.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from matlinks.core.database import get_session
from matlinks.core.database.entities.class_types import ClassSchedule
from matlinks.core.database.entities.gyms import Gym, Location
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.gyms import LocationCreate, LocationRead, LocationUpdate
from matlinks.server.core.constant import ADMIN_ROLES
from matlinks.server.services.security import require_roles

logger = get_logger(__name__)

router = APIRouter(tags=["admin-locations"], dependencies=[Depends(require_roles(*ADMIN_ROLES))])


async def _get_location_or_404(session: AsyncSession, location_id: int) -> Location:
    location = await session.get(Location, location_id)
    if not location:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Location {location_id} not found")
    return location


async def _ensure_gym_exists(session: AsyncSession, gym_id: int) -> None:
    if await session.get(Gym, gym_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Gym {gym_id} not found")


@router.get(
    "",
    response_model=list[LocationRead],
    summary="List Locations",
    description="Retrieve locations, optionally filtered by gym and active status.",
    responses={200: {"description": "List of locations retrieved successfully"}},
)
async def list_locations(
    gym_id: Optional[int] = None,
    active_only: bool = False,
    session: AsyncSession = Depends(get_session),
) -> list[LocationRead]:
    """
    List locations ordered by name.

    - **gym_id**: Only return the locations of this gym.
    - **active_only**: If True, inactive locations are left out.
    """
    statement = select(Location).order_by(Location.name)
    if gym_id is not None:
        statement = statement.where(Location.gym_id == gym_id)
    if active_only:
        statement = statement.where(Location.is_active == True)  # noqa: E712
    result = await session.execute(statement)
    locations = result.scalars().all()
    logger.debug(f"Retrieved {len(locations)} locations (gym_id={gym_id}, active_only={active_only})")
    return [LocationRead.model_validate(location) for location in locations]


@router.get(
    "/{location_id}",
    response_model=LocationRead,
    summary="Get Location",
    responses={404: {"description": "Location not found"}},
)
async def get_location(location_id: int, session: AsyncSession = Depends(get_session)) -> LocationRead:
    return LocationRead.model_validate(await _get_location_or_404(session, location_id))


@router.post(
    "",
    response_model=LocationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Location",
    description="Create a location for an existing gym.",
    responses={
        201: {"description": "Location created successfully"},
        404: {"description": "Gym not found"},
    },
)
async def create_location(payload: LocationCreate, session: AsyncSession = Depends(get_session)) -> LocationRead:
    """
    Create a location.

    - **gym_id**: The gym the location belongs to. Must exist.
    - **name**: Display name of the location.
    - **address**, **city**, **state**, **postal_code**, **phone**: Contact details.
    - **latitude** / **longitude**: Coordinates used for check-in verification.
    """
    await _ensure_gym_exists(session, payload.gym_id)
    location = Location.model_validate(payload)
    session.add(location)
    await session.commit()
    await session.refresh(location)
    logger.info(f"Created location {location.id} ({location.name}) for gym {location.gym_id}")
    return LocationRead.model_validate(location)


@router.patch(
    "/{location_id}",
    response_model=LocationRead,
    summary="Update Location",
    description="Partially update a location. Only provided fields are updated.",
    responses={404: {"description": "Location or gym not found"}},
)
async def update_location(
    location_id: int,
    payload: LocationUpdate,
    session: AsyncSession = Depends(get_session),
) -> LocationRead:
    location = await _get_location_or_404(session, location_id)
    update_data = payload.model_dump(exclude_unset=True)
    if update_data.get("gym_id") is not None:
        await _ensure_gym_exists(session, update_data["gym_id"])
    for key, value in update_data.items():
        setattr(location, key, value)
    session.add(location)
    await session.commit()
    await session.refresh(location)
    return LocationRead.model_validate(location)


@router.delete(
    "/{location_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Location",
    responses={
        204: {"description": "Location deleted successfully"},
        404: {"description": "Location not found"},
        409: {"description": "Location is used by class schedules"},
    },
)
async def delete_location(location_id: int, session: AsyncSession = Depends(get_session)) -> None:
    location = await _get_location_or_404(session, location_id)
    result = await session.execute(
        select(func.count()).select_from(ClassSchedule).where(ClassSchedule.location_id == location_id)
    )
    if result.scalar_one():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Cannot delete location: it is used by existing schedules"
        )
    await session.delete(location)
    await session.commit()
    logger.info(f"Deleted location {location_id}")
