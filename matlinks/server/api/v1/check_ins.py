"""
Check-in endpoints.
"""

from fastapi import APIRouter, status

from matlinks.core.models.io.check_ins import CheckInCreate, CheckInRead
from matlinks.server.services import check_ins as check_in_service
from matlinks.server.services.deps import CurrentUserDep, SessionDep

router = APIRouter(tags=["check-ins"])


@router.post(
    "",
    response_model=CheckInRead,
    status_code=status.HTTP_201_CREATED,
    summary="Check In",
    description="Record a member arriving at a location.",
    responses={
        201: {"description": "Check-in recorded"},
        403: {"description": "No active membership, or staff-only check-in method"},
        404: {"description": "Member, location or class schedule not found"},
    },
)
async def create_check_in(payload: CheckInCreate, user: CurrentUserDep, session: SessionDep) -> CheckInRead:
    """
    Check in.

    - **location_id**: Where the member is.
    - **class_schedule_id**: Optional class being attended.
    - **method**: KIOSK or MOBILE (default). Staff may use INSTRUCTOR or ADMIN.
    - **profile_id**: Staff only; the member being checked in.
    """
    record = await check_in_service.check_in(session, user, payload)
    return CheckInRead.model_validate(record)


@router.get(
    "/membership-status",
    summary="Membership Status",
    description="Whether the caller currently holds a membership that allows checking in.",
)
async def membership_status(user: CurrentUserDep, session: SessionDep) -> dict:
    return {"active": await check_in_service.verify_membership(session, user)}
