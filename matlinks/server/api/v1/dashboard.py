"""
Member dashboard endpoints.

Everything here is scoped to the signed-in member.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from fastapi import APIRouter
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from matlinks.core.database.base import utc_now
from matlinks.core.database.entities.check_ins import CheckIn
from matlinks.core.database.entities.membership_plans import MembershipPlan
from matlinks.core.database.entities.payments import PaymentHistory
from matlinks.core.database.entities.profiles import Profile, SubscriptionStatus
from matlinks.core.database.entities.subscriptions import Subscription
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.billing import PaymentHistoryRead, SubscriptionRead
from matlinks.core.models.io.check_ins import CheckInRead
from matlinks.core.models.io.dashboard import DashboardSummary, MembershipSummary
from matlinks.core.models.io.membership_plans import MembershipPlanRead
from matlinks.core.models.io.profiles import ProfileRead, ProfileUpdate
from matlinks.server.services.deps import CurrentUserDep, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["dashboard"])

RECENT_CHECK_IN_DAYS = 30
ACTIVE_STATUSES = (SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value)


async def _membership(session: AsyncSession, user: Profile) -> MembershipSummary:
    plan: Optional[MembershipPlan] = None
    if user.current_plan_id is not None:
        plan = await session.get(MembershipPlan, user.current_plan_id)

    statement = (
        select(Subscription)
        .where(Subscription.profile_id == user.id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
    )
    subscription = (await session.execute(statement)).scalars().first()

    return MembershipSummary(
        plan=MembershipPlanRead.model_validate(plan) if plan else None,
        subscription=SubscriptionRead.model_validate(subscription) if subscription else None,
        subscription_status=user.subscription_status,
        is_active=plan is not None and user.subscription_status in ACTIVE_STATUSES,
    )


@router.get(
    "/summary",
    response_model=DashboardSummary,
    summary="Dashboard Summary",
    description="Profile, membership, latest payment and check-ins over the last 30 days.",
)
async def get_summary(user: CurrentUserDep, session: SessionDep) -> DashboardSummary:
    latest = await session.execute(
        select(PaymentHistory)
        .where(PaymentHistory.user_id == user.id)
        .order_by(PaymentHistory.created_at.desc(), PaymentHistory.id.desc())
        .limit(1)
    )
    latest_payment = latest.scalars().first()

    since = utc_now() - timedelta(days=RECENT_CHECK_IN_DAYS)
    check_ins = await session.execute(
        select(func.count())
        .select_from(CheckIn)
        .where(CheckIn.profile_id == user.id, CheckIn.checked_in_at >= since)
    )

    return DashboardSummary(
        profile=ProfileRead.model_validate(user),
        membership=await _membership(session, user),
        latest_payment=PaymentHistoryRead.model_validate(latest_payment) if latest_payment else None,
        check_ins_last_30_days=check_ins.scalar_one(),
    )


@router.get("/profile", response_model=ProfileRead, summary="Get Profile")
async def get_profile(user: CurrentUserDep) -> ProfileRead:
    return ProfileRead.model_validate(user)


@router.patch(
    "/profile",
    response_model=ProfileRead,
    summary="Update Profile",
    description="Update the caller's name and phone number.",
)
async def update_profile(payload: ProfileUpdate, user: CurrentUserDep, session: SessionDep) -> ProfileRead:
    """
    Update the caller's profile.

    - **full_name**: Display name.
    - **phone**: Contact phone number.
    """
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return ProfileRead.model_validate(user)


@router.get("/membership", response_model=MembershipSummary, summary="Get Membership")
async def get_membership(user: CurrentUserDep, session: SessionDep) -> MembershipSummary:
    return await _membership(session, user)


@router.get(
    "/payment-history",
    response_model=list[PaymentHistoryRead],
    summary="Payment History",
    description="The caller's paid invoices and manual payments, newest first.",
)
async def get_payment_history(
    user: CurrentUserDep,
    session: SessionDep,
    limit: int = 20,
    offset: int = 0,
) -> list[PaymentHistoryRead]:
    statement = (
        select(PaymentHistory)
        .where(PaymentHistory.user_id == user.id)
        .order_by(PaymentHistory.created_at.desc(), PaymentHistory.id.desc())
        .limit(limit)
        .offset(offset)
    )
    result = await session.execute(statement)
    return [PaymentHistoryRead.model_validate(row) for row in result.scalars().all()]


@router.get(
    "/check-ins",
    response_model=list[CheckInRead],
    summary="Check-in History",
    description="The caller's check-ins, newest first.",
)
async def get_check_ins(
    user: CurrentUserDep,
    session: SessionDep,
    limit: int = 50,
    offset: int = 0,
) -> list[CheckInRead]:
    statement = (
        select(CheckIn)
        .where(CheckIn.profile_id == user.id)
        .order_by(CheckIn.checked_in_at.desc())
        .limit(limit)
        .offset(offset)
    )
    result = await session.execute(statement)
    return [CheckInRead.model_validate(row) for row in result.scalars().all()]
