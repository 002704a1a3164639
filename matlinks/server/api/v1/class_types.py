"""
API endpoints for managing class types.

A class type (e.g. "Fundamentals", "No-Gi") carries the defaults that
class schedules are created from.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from matlinks.core.database import get_session
from matlinks.core.database.entities.class_types import ClassSchedule, ClassType
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.class_types import ClassTypeCreate, ClassTypeRead, ClassTypeUpdate
from matlinks.server.core.constant import ADMIN_ROLES
from matlinks.server.services.security import require_roles

logger = get_logger(__name__)

router = APIRouter(tags=["admin-class-types"], dependencies=[Depends(require_roles(*ADMIN_ROLES))])


async def _get_class_type_or_404(session: AsyncSession, class_type_id: int) -> ClassType:
    class_type = await session.get(ClassType, class_type_id)
    if not class_type:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Class type {class_type_id} not found")
    return class_type


@router.get(
    "",
    response_model=list[ClassTypeRead],
    summary="List Class Types",
    description="Retrieve all class types ordered by name.",
    responses={200: {"description": "List of class types retrieved successfully"}},
)
async def list_class_types(
    active_only: bool = False,
    session: AsyncSession = Depends(get_session),
) -> list[ClassTypeRead]:
    """
    List class types.

    - **active_only**: If True, inactive class types are left out.
    """
    statement = select(ClassType).order_by(ClassType.name)
    if active_only:
        statement = statement.where(ClassType.is_active == True)  # noqa: E712
    result = await session.execute(statement)
    return [ClassTypeRead.model_validate(class_type) for class_type in result.scalars().all()]


@router.get(
    "/{class_type_id}",
    response_model=ClassTypeRead,
    summary="Get Class Type",
    responses={404: {"description": "Class type not found"}},
)
async def get_class_type(class_type_id: int, session: AsyncSession = Depends(get_session)) -> ClassTypeRead:
    return ClassTypeRead.model_validate(await _get_class_type_or_404(session, class_type_id))


@router.post(
    "",
    response_model=ClassTypeRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Class Type",
    description="Create a class type. The name is required; duration and capacity must be positive.",
    responses={
        201: {"description": "Class type created successfully"},
        422: {"description": "Invalid class type data"},
    },
)
async def create_class_type(
    payload: ClassTypeCreate,
    session: AsyncSession = Depends(get_session),
) -> ClassTypeRead:
    """
    Create a class type.

    - **name**: Name shown on the schedule.
    - **description**: Optional description.
    - **difficulty_level**: Free-form level, e.g. 'beginner'.
    - **duration_minutes**: Default class length.
    - **default_capacity**: Default number of spots.
    - **color**: Calendar colour.
    """
    class_type = ClassType.model_validate(payload)
    session.add(class_type)
    await session.commit()
    await session.refresh(class_type)
    logger.info(f"Created class type {class_type.id} ({class_type.name})")
    return ClassTypeRead.model_validate(class_type)


@router.patch(
    "/{class_type_id}",
    response_model=ClassTypeRead,
    summary="Update Class Type",
    description="Partially update a class type. Only provided fields are updated.",
    responses={404: {"description": "Class type not found"}},
)
async def update_class_type(
    class_type_id: int,
    payload: ClassTypeUpdate,
    session: AsyncSession = Depends(get_session),
) -> ClassTypeRead:
    class_type = await _get_class_type_or_404(session, class_type_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(class_type, key, value)
    session.add(class_type)
    await session.commit()
    await session.refresh(class_type)
    return ClassTypeRead.model_validate(class_type)


@router.delete(
    "/{class_type_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Class Type",
    description="Delete a class type that no schedule uses.",
    responses={
        204: {"description": "Class type deleted successfully"},
        404: {"description": "Class type not found"},
        409: {"description": "Class type is used by schedules"},
    },
)
async def delete_class_type(class_type_id: int, session: AsyncSession = Depends(get_session)) -> None:
    class_type = await _get_class_type_or_404(session, class_type_id)
    result = await session.execute(
        select(func.count()).select_from(ClassSchedule).where(ClassSchedule.class_type_id == class_type_id)
    )
    if result.scalar_one():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete class type: it is used by existing schedules",
        )
    await session.delete(class_type)
    await session.commit()
    logger.info(f"Deleted class type {class_type_id}")
