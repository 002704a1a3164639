"""
API endpoints for managing weekly class schedules.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from matlinks.core.database import get_session
from matlinks.core.database.entities.class_types import ClassSchedule, ClassType
from matlinks.core.database.entities.gyms import Location
from matlinks.core.database.entities.profiles import Profile
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.class_types import ClassScheduleCreate, ClassScheduleRead, ClassScheduleUpdate
from matlinks.server.core.constant import ADMIN_ROLES
from matlinks.server.services.security import require_roles

logger = get_logger(__name__)

router = APIRouter(tags=["admin-schedules"], dependencies=[Depends(require_roles(*ADMIN_ROLES))])


async def _check_references(
    session: AsyncSession,
    class_type_id: Optional[int] = None,
    location_id: Optional[int] = None,
    instructor_id: Optional[str] = None,
) -> None:
    if class_type_id is not None and await session.get(ClassType, class_type_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Class type {class_type_id} not found")
    if location_id is not None and await session.get(Location, location_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Location {location_id} not found")
    if instructor_id is not None and await session.get(Profile, instructor_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Instructor {instructor_id} not found")


@router.get(
    "",
    response_model=list[ClassScheduleRead],
    summary="List Class Schedules",
    description="Retrieve the weekly schedule, optionally filtered by location, class type or day.",
)
async def list_schedules(
    location_id: Optional[int] = None,
    class_type_id: Optional[int] = None,
    day_of_week: Optional[int] = None,
    session: AsyncSession = Depends(get_session),
) -> list[ClassScheduleRead]:
    """
    List class schedule slots ordered by day and start time.

    - **location_id**: Only slots at this location.
    - **class_type_id**: Only slots of this class type.
    - **day_of_week**: Only slots on this day (0 = Sunday).
    """
    statement = select(ClassSchedule).order_by(ClassSchedule.day_of_week, ClassSchedule.start_time)
    if location_id is not None:
        statement = statement.where(ClassSchedule.location_id == location_id)
    if class_type_id is not None:
        statement = statement.where(ClassSchedule.class_type_id == class_type_id)
    if day_of_week is not None:
        statement = statement.where(ClassSchedule.day_of_week == day_of_week)
    result = await session.execute(statement)
    return [ClassScheduleRead.model_validate(schedule) for schedule in result.scalars().all()]


@router.post(
    "",
    response_model=ClassScheduleRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Class Schedule",
    description="Add a weekly slot for a class type at a location.",
    responses={
        201: {"description": "Schedule created successfully"},
        404: {"description": "Class type, location or instructor not found"},
        422: {"description": "Invalid day or times"},
    },
)
async def create_schedule(
    payload: ClassScheduleCreate,
    session: AsyncSession = Depends(get_session),
) -> ClassScheduleRead:
    """
    Create a class schedule slot.

    - **class_type_id**: The class type taught in this slot.
    - **location_id**: Where the class takes place.
    - **instructor_id**: Optional instructor profile id.
    - **day_of_week**: 0 (Sunday) to 6 (Saturday).
    - **start_time** / **end_time**: HH:MM, end after start.
    """
    await _check_references(session, payload.class_type_id, payload.location_id, payload.instructor_id)
    schedule = ClassSchedule.model_validate(payload)
    session.add(schedule)
    await session.commit()
    await session.refresh(schedule)
    logger.info(f"Created schedule {schedule.id} for class type {schedule.class_type_id}")
    return ClassScheduleRead.model_validate(schedule)


@router.patch(
    "/{schedule_id}",
    response_model=ClassScheduleRead,
    summary="Update Class Schedule",
    responses={
        400: {"description": "End time is not after start time"},
        404: {"description": "Schedule or referenced row not found"},
    },
)
async def update_schedule(
    schedule_id: int,
    payload: ClassScheduleUpdate,
    session: AsyncSession = Depends(get_session),
) -> ClassScheduleRead:
    schedule = await session.get(ClassSchedule, schedule_id)
    if not schedule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Schedule {schedule_id} not found")

    update_data = payload.model_dump(exclude_unset=True)
    await _check_references(
        session, update_data.get("class_type_id"), update_data.get("location_id"), update_data.get("instructor_id")
    )
    start_time = update_data.get("start_time", schedule.start_time)
    end_time = update_data.get("end_time", schedule.end_time)
    if end_time <= start_time:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="End Time must be after Start Time")

    for key, value in update_data.items():
        setattr(schedule, key, value)
    session.add(schedule)
    await session.commit()
    await session.refresh(schedule)
    return ClassScheduleRead.model_validate(schedule)


@router.delete(
    "/{schedule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Class Schedule",
    responses={404: {"description": "Schedule not found"}},
)
async def delete_schedule(schedule_id: int, session: AsyncSession = Depends(get_session)) -> None:
    schedule = await session.get(ClassSchedule, schedule_id)
    if not schedule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Schedule {schedule_id} not found")
    await session.delete(schedule)
    await session.commit()
