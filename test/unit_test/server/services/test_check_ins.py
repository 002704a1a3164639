"""Unit tests for member check-ins."""

import pytest

from matlinks.core.database.entities.check_ins import CheckInMethod
from matlinks.core.database.entities.profiles import UserRole
from matlinks.core.models.io.check_ins import CheckInCreate
from matlinks.server.services.check_ins import check_in, verify_membership
from matlinks.server.services.errors import NotFoundError, PermissionDeniedError


class TestVerifyMembership:
    async def test_active_member(self, session, member):
        assert await verify_membership(session, member) is True

    async def test_no_plan(self, session, make_profile):
        assert await verify_membership(session, await make_profile(subscription_status="active")) is False

    async def test_past_due(self, session, member):
        member.subscription_status = "past_due"

        assert await verify_membership(session, member) is False

    async def test_inactive_plan(self, session, member, plan):
        plan.is_active = False
        await session.commit()

        assert await verify_membership(session, member) is False


class TestCheckIn:
    async def test_self_check_in(self, session, member, location):
        record = await check_in(session, member, CheckInCreate(location_id=location.id))

        assert record.id is not None
        assert record.profile_id == member.id
        assert record.method == "MOBILE"
        assert record.checked_in_by is None

    async def test_staff_checks_in_member(self, session, member, location, make_profile):
        instructor = await make_profile(role=UserRole.INSTRUCTOR.value)

        record = await check_in(
            session,
            instructor,
            CheckInCreate(location_id=location.id, profile_id=member.id, method=CheckInMethod.INSTRUCTOR),
        )

        assert record.profile_id == member.id
        assert record.checked_in_by == instructor.id

    async def test_student_cannot_check_in_others(self, session, member, location, make_profile):
        other = await make_profile()

        with pytest.raises(PermissionDeniedError):
            await check_in(session, other, CheckInCreate(location_id=location.id, profile_id=member.id))

    async def test_student_cannot_use_staff_method(self, session, member, location):
        with pytest.raises(PermissionDeniedError):
            await check_in(session, member, CheckInCreate(location_id=location.id, method=CheckInMethod.ADMIN))

    async def test_unknown_location(self, session, member):
        with pytest.raises(NotFoundError, match="Location not found"):
            await check_in(session, member, CheckInCreate(location_id=999))

    async def test_unknown_schedule(self, session, member, location):
        with pytest.raises(NotFoundError, match="Class schedule not found"):
            await check_in(session, member, CheckInCreate(location_id=location.id, class_schedule_id=999))

    async def test_requires_active_membership(self, session, location, make_profile):
        with pytest.raises(PermissionDeniedError, match="No active membership"):
            await check_in(session, await make_profile(), CheckInCreate(location_id=location.id))
