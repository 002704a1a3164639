"""
Public membership plan listing.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from matlinks.core.database import get_session
from matlinks.core.database.entities.membership_plans import MembershipPlan
from matlinks.core.models.io.membership_plans import MembershipPlanRead

router = APIRouter(tags=["plans"])


@router.get(
    "",
    response_model=list[MembershipPlanRead],
    summary="List Available Plans",
    description="Retrieve the active membership plans members can choose from, cheapest first.",
)
async def list_active_plans(session: AsyncSession = Depends(get_session)) -> list[MembershipPlanRead]:
    statement = (
        select(MembershipPlan).where(MembershipPlan.is_active == True).order_by(MembershipPlan.price)  # noqa: E712
    )
    result = await session.execute(statement)
    return [MembershipPlanRead.model_validate(plan) for plan in result.scalars().all()]
