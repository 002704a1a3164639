"""
API endpoints for managing members (admin).
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from matlinks.auth.client import SupabaseAuthClient
from matlinks.core.database import get_session
from matlinks.core.database.entities.gyms import Location
from matlinks.core.database.entities.membership_plans import MembershipPlan
from matlinks.core.database.entities.profiles import Profile, UserRole
from matlinks.core.database.repositories.profiles import ProfileRepository
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.profiles import MemberInvite, MemberUpdate, ProfileRead
from matlinks.server.core.config import settings
from matlinks.server.core.constant import ADMIN_ROLES
from matlinks.server.services.providers import get_auth_client
from matlinks.server.services.security import require_roles

logger = get_logger(__name__)

router = APIRouter(tags=["admin-members"], dependencies=[Depends(require_roles(*ADMIN_ROLES))])


async def _get_member_or_404(session: AsyncSession, member_id: str) -> Profile:
    member = await session.get(Profile, member_id)
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Member {member_id} not found")
    return member


@router.get(
    "",
    response_model=list[ProfileRead],
    summary="List Members",
    description="Retrieve member profiles, optionally filtered by role and location.",
)
async def list_members(
    role: Optional[UserRole] = None,
    location_id: Optional[int] = None,
    limit: int = 100,
    offset: int = 0,
    session: AsyncSession = Depends(get_session),
) -> list[ProfileRead]:
    """
    List members ordered by name.

    - **role**: Only members with this role.
    - **location_id**: Only members whose primary location is this one.
    - **limit** / **offset**: Pagination.
    """
    statement = select(Profile).order_by(Profile.full_name, Profile.email)
    if role is not None:
        statement = statement.where(Profile.role == role.value)
    if location_id is not None:
        statement = statement.where(Profile.primary_location_id == location_id)
    result = await session.execute(statement.limit(limit).offset(offset))
    return [ProfileRead.model_validate(member) for member in result.scalars().all()]


@router.get(
    "/{member_id}",
    response_model=ProfileRead,
    summary="Get Member",
    responses={404: {"description": "Member not found"}},
)
async def get_member(member_id: str, session: AsyncSession = Depends(get_session)) -> ProfileRead:
    return ProfileRead.model_validate(await _get_member_or_404(session, member_id))


@router.patch(
    "/{member_id}",
    response_model=ProfileRead,
    summary="Update Member",
    description="Change a member's role, locations, plan or contact details.",
    responses={404: {"description": "Member, location or plan not found"}},
)
async def update_member(
    member_id: str,
    payload: MemberUpdate,
    session: AsyncSession = Depends(get_session),
) -> ProfileRead:
    member = await _get_member_or_404(session, member_id)
    update_data = payload.model_dump(exclude_unset=True)

    for field in ("primary_location_id", "current_location_id"):
        if update_data.get(field) is not None and await session.get(Location, update_data[field]) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Location {update_data[field]} not found")
    plan_id = update_data.get("current_plan_id")
    if plan_id is not None and await session.get(MembershipPlan, plan_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Membership plan {plan_id} not found")

    for key, value in update_data.items():
        setattr(member, key, value)
    session.add(member)
    await session.commit()
    await session.refresh(member)
    logger.info(f"Updated member {member_id}: {sorted(update_data)}")
    return ProfileRead.model_validate(member)


@router.post(
    "",
    response_model=ProfileRead,
    summary="Add Member",
    description=(
        "Add a member by email. An existing profile is moved to the location; "
        "otherwise the person is invited through Supabase and a student profile is created."
    ),
    responses={
        404: {"description": "Location not found"},
        400: {"description": "Supabase rejected the invitation"},
    },
)
async def add_member(
    payload: MemberInvite,
    session: AsyncSession = Depends(get_session),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
) -> ProfileRead:
    """
    Add a member to a location.

    - **email**: The member's email address.
    - **full_name**: Optional display name for new members.
    - **location_id**: The member's primary location.
    """
    location = await session.get(Location, payload.location_id)
    if location is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Location {payload.location_id} not found")

    email = payload.email.lower()
    member = await ProfileRepository(session).get_by_email(email)
    if member is None:
        user = await auth_client.invite_user(email, redirect_to=f"{settings.app_url.rstrip('/')}/auth/confirm")
        member = await session.get(Profile, user.id) or Profile(id=user.id, email=email)
        member.role = member.role or UserRole.STUDENT.value
        logger.info(f"Invited new member {email} ({user.id})")

    if payload.full_name and not member.full_name:
        member.full_name = payload.full_name
    member.primary_location_id = location.id
    member.current_location_id = location.id
    member.current_gym_id = location.gym_id
    session.add(member)
    await session.commit()
    await session.refresh(member)
    return ProfileRead.model_validate(member)
