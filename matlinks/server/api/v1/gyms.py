"""
API endpoints for managing gyms.

Admin-only CRUD for the gyms (academies) that own locations.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from matlinks.core.database import get_session
from matlinks.core.database.entities.gyms import Gym, Location
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.gyms import GymCreate, GymRead, GymUpdate
from matlinks.server.core.constant import ADMIN_ROLES
from matlinks.server.services.security import require_roles

logger = get_logger(__name__)

router = APIRouter(tags=["admin-gyms"], dependencies=[Depends(require_roles(*ADMIN_ROLES))])


async def _get_gym_or_404(session: AsyncSession, gym_id: int) -> Gym:
    gym = await session.get(Gym, gym_id)
    if not gym:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Gym {gym_id} not found")
    return gym


@router.get(
    "",
    response_model=list[GymRead],
    summary="List Gyms",
    description="Retrieve all gyms, optionally only the active ones.",
    responses={200: {"description": "List of gyms retrieved successfully"}},
)
async def list_gyms(
    active_only: bool = False,
    session: AsyncSession = Depends(get_session),
) -> list[GymRead]:
    """
    List gyms ordered by name.

    - **active_only**: If True, inactive gyms are left out.
    """
    statement = select(Gym).order_by(Gym.name)
    if active_only:
        statement = statement.where(Gym.is_active == True)  # noqa: E712
    result = await session.execute(statement)
    return [GymRead.model_validate(gym) for gym in result.scalars().all()]


@router.get(
    "/{gym_id}",
    response_model=GymRead,
    summary="Get Gym",
    responses={404: {"description": "Gym not found"}},
)
async def get_gym(gym_id: int, session: AsyncSession = Depends(get_session)) -> GymRead:
    return GymRead.model_validate(await _get_gym_or_404(session, gym_id))


@router.post(
    "",
    response_model=GymRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Gym",
    description="Create a new gym. The name is required.",
    responses={
        201: {"description": "Gym created successfully"},
        422: {"description": "Invalid gym data"},
    },
)
async def create_gym(payload: GymCreate, session: AsyncSession = Depends(get_session)) -> GymRead:
    """
    Create a gym.

    - **name**: Display name of the gym.
    - **description**: Optional free-text description.
    - **logo_url**: Optional public URL of the logo.
    - **is_active**: Whether the gym is shown to members.
    """
    gym = Gym.model_validate(payload)
    session.add(gym)
    await session.commit()
    await session.refresh(gym)
    logger.info(f"Created gym {gym.id} ({gym.name})")
    return GymRead.model_validate(gym)


@router.patch(
    "/{gym_id}",
    response_model=GymRead,
    summary="Update Gym",
    description="Partially update a gym. Only provided fields are updated.",
    responses={404: {"description": "Gym not found"}},
)
async def update_gym(
    gym_id: int,
    payload: GymUpdate,
    session: AsyncSession = Depends(get_session),
) -> GymRead:
    gym = await _get_gym_or_404(session, gym_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(gym, key, value)
    session.add(gym)
    await session.commit()
    await session.refresh(gym)
    return GymRead.model_validate(gym)


@router.delete(
    "/{gym_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Gym",
    description="Delete a gym that has no locations.",
    responses={
        204: {"description": "Gym deleted successfully"},
        404: {"description": "Gym not found"},
        409: {"description": "Gym still has locations"},
    },
)
async def delete_gym(gym_id: int, session: AsyncSession = Depends(get_session)) -> None:
    gym = await _get_gym_or_404(session, gym_id)
    result = await session.execute(select(func.count()).select_from(Location).where(Location.gym_id == gym_id))
    if result.scalar_one():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Cannot delete gym: it has existing locations"
        )
    await session.delete(gym)
    await session.commit()
    logger.info(f"Deleted gym {gym_id}")