"""
API endpoints for managing membership plans.

Prices are integer cents. A plan becomes purchasable online once it is
bound to a Stripe price, either by passing an existing ``stripe_price_id``
or by syncing it to Stripe.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from matlinks.billing.stripe_client import StripeGateway
from matlinks.core.database import get_session
from matlinks.core.database.entities.membership_plans import MembershipPlan
from matlinks.core.database.entities.profiles import Profile
from matlinks.core.database.entities.subscriptions import Subscription
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.membership_plans import MembershipPlanCreate, MembershipPlanRead, MembershipPlanUpdate
from matlinks.server.core.config import settings
from matlinks.server.core.constant import ADMIN_ROLES
from matlinks.server.services.providers import get_stripe_gateway
from matlinks.server.services.security import require_roles
from matlinks.server.services.subscriptions import sync_plan_to_stripe

logger = get_logger(__name__)

router = APIRouter(tags=["admin-membership-plans"], dependencies=[Depends(require_roles(*ADMIN_ROLES))])


async def _get_plan_or_404(session: AsyncSession, plan_id: int) -> MembershipPlan:
    plan = await session.get(MembershipPlan, plan_id)
    if not plan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Membership plan {plan_id} not found")
    return plan


@router.get(
    "",
    response_model=list[MembershipPlanRead],
    summary="List Membership Plans",
    description="Retrieve all membership plans, including inactive ones.",
)
async def list_plans(
    active_only: bool = False,
    session: AsyncSession = Depends(get_session),
) -> list[MembershipPlanRead]:
    statement = select(MembershipPlan).order_by(MembershipPlan.price)
    if active_only:
        statement = statement.where(MembershipPlan.is_active == True)  # noqa: E712
    result = await session.execute(statement)
    return [MembershipPlanRead.model_validate(plan) for plan in result.scalars().all()]


@router.get(
    "/{plan_id}",
    response_model=MembershipPlanRead,
    summary="Get Membership Plan",
    responses={404: {"description": "Plan not found"}},
)
async def get_plan(plan_id: int, session: AsyncSession = Depends(get_session)) -> MembershipPlanRead:
    return MembershipPlanRead.model_validate(await _get_plan_or_404(session, plan_id))


@router.post(
    "",
    response_model=MembershipPlanRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Membership Plan",
    description="Create a membership plan. Paid plans need a billing interval.",
    responses={
        201: {"description": "Plan created successfully"},
        422: {"description": "Invalid plan data"},
    },
)
async def create_plan(
    payload: MembershipPlanCreate,
    session: AsyncSession = Depends(get_session),
) -> MembershipPlanRead:
    """
    Create a membership plan.

    - **name**: Plan name.
    - **price**: Price in cents, zero or more.
    - **interval**: day, week, month, year or one_time. Required when the price is not zero.
    - **stripe_price_id**: Optional existing Stripe price to bind the plan to.
    """
    plan = MembershipPlan.model_validate(payload)
    session.add(plan)
    await session.commit()
    await session.refresh(plan)
    logger.info(f"Created membership plan {plan.id} ({plan.name}, {plan.price} cents/{plan.interval})")
    return MembershipPlanRead.model_validate(plan)


@router.patch(
    "/{plan_id}",
    response_model=MembershipPlanRead,
    summary="Update Membership Plan",
    responses={
        400: {"description": "Paid plan without interval"},
        404: {"description": "Plan not found"},
    },
)
async def update_plan(
    plan_id: int,
    payload: MembershipPlanUpdate,
    session: AsyncSession = Depends(get_session),
) -> MembershipPlanRead:
    plan = await _get_plan_or_404(session, plan_id)
    update_data = payload.model_dump(exclude_unset=True)
    price = update_data.get("price", plan.price)
    interval = update_data.get("interval", plan.interval)
    if price > 0 and interval is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Billing interval is required for paid plans"
        )

    for key, value in update_data.items():
        setattr(plan, key, value)
    session.add(plan)
    await session.commit()
    await session.refresh(plan)
    return MembershipPlanRead.model_validate(plan)


@router.delete(
    "/{plan_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Membership Plan",
    description="Delete a plan no member or subscription refers to. Deactivate it otherwise.",
    responses={
        404: {"description": "Plan not found"},
        409: {"description": "Plan is in use"},
    },
)
async def delete_plan(plan_id: int, session: AsyncSession = Depends(get_session)) -> None:
    plan = await _get_plan_or_404(session, plan_id)
    members = await session.execute(
        select(func.count()).select_from(Profile).where(Profile.current_plan_id == plan_id)
    )
    subscriptions = await session.execute(
        select(func.count()).select_from(Subscription).where(Subscription.membership_plan_id == plan_id)
    )
    if members.scalar_one() or subscriptions.scalar_one():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete membership plan: it is used by members. Deactivate it instead.",
        )
    await session.delete(plan)
    await session.commit()


@router.post(
    "/{plan_id}/sync-stripe",
    response_model=MembershipPlanRead,
    summary="Sync Plan to Stripe",
    description="Create the Stripe product (first time) and a price for the plan's current amount.",
    responses={
        404: {"description": "Plan not found"},
        502: {"description": "Stripe rejected the request"},
    },
)
async def sync_plan(
    plan_id: int,
    session: AsyncSession = Depends(get_session),
    gateway: StripeGateway = Depends(get_stripe_gateway),
) -> MembershipPlanRead:
    """
    Sync a plan to Stripe.

    Recurring plans get a recurring price with the plan's interval; one-time
    plans get a one-off price. The new ids are stored on the plan.

    - **plan_id**: The plan to sync.
    """
    plan = await _get_plan_or_404(session, plan_id)
    plan = await sync_plan_to_stripe(session, gateway, plan, currency=settings.stripe.currency)
    return MembershipPlanRead.model_validate(plan)
