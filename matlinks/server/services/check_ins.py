"""
Member check-ins.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from matlinks.core.database.entities.check_ins import CheckIn, CheckInMethod
from matlinks.core.database.entities.class_types import ClassSchedule
from matlinks.core.database.entities.gyms import Location
from matlinks.core.database.entities.membership_plans import MembershipPlan
from matlinks.core.database.entities.profiles import Profile, SubscriptionStatus
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.check_ins import CheckInCreate
from matlinks.server.core.constant import STAFF_ROLES

from .errors import NotFoundError, PermissionDeniedError

logger = get_logger(__name__)

STAFF_METHODS = (CheckInMethod.INSTRUCTOR, CheckInMethod.ADMIN)


async def verify_membership(session: AsyncSession, profile: Profile) -> bool:
    """A member may check in with an active plan and an active subscription."""
    if profile.current_plan_id is None:
        return False
    if profile.subscription_status != SubscriptionStatus.ACTIVE.value:
        return False
    plan = await session.get(MembershipPlan, profile.current_plan_id)
    return plan is not None and plan.is_active


async def check_in(session: AsyncSession, caller: Profile, request: CheckInCreate) -> CheckIn:
    """Record a check-in for the caller, or for another member when the caller is staff. Commits."""
    assisted = request.profile_id is not None and request.profile_id != caller.id
    if (assisted or request.method in STAFF_METHODS) and caller.role not in STAFF_ROLES:
        raise PermissionDeniedError("Insufficient permissions")

    member = caller
    if assisted:
        member = await session.get(Profile, request.profile_id)
        if member is None:
            raise NotFoundError("Member not found")

    if await session.get(Location, request.location_id) is None:
        raise NotFoundError("Location not found")
    if request.class_schedule_id is not None and await session.get(ClassSchedule, request.class_schedule_id) is None:
        raise NotFoundError("Class schedule not found")

    if not await verify_membership(session, member):
        raise PermissionDeniedError("No active membership")

    record = CheckIn(
        profile_id=member.id,
        location_id=request.location_id,
        class_schedule_id=request.class_schedule_id,
        method=request.method.value,
        checked_in_by=caller.id if assisted else None,
    )
    session.add(record)
    await session.commit()
    await session.refresh(record)
    logger.info(f"Check-in {record.id}: {member.id} at location {request.location_id} ({record.method})")
    return record
