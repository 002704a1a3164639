"""
API endpoints for promotion codes.

``router`` holds the admin CRUD; ``public_router`` lets a signed-in member
check a code before checkout.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from matlinks.core.database import get_session
from matlinks.core.database.base import as_utc
from matlinks.core.database.entities.membership_plans import MembershipPlan
from matlinks.core.database.entities.profiles import Profile
from matlinks.core.database.entities.promotions import Promotion
from matlinks.core.database.repositories.promotions import PromotionRepository
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.promotions import (
    PromotionCreate,
    PromotionRead,
    PromotionUpdate,
    PromotionValidateRequest,
    PromotionValidation,
)
from matlinks.server.core.constant import ADMIN_ROLES
from matlinks.server.services.promotions import validate_promotion
from matlinks.server.services.security import get_current_user, require_roles

logger = get_logger(__name__)

router = APIRouter(tags=["admin-promotions"], dependencies=[Depends(require_roles(*ADMIN_ROLES))])
public_router = APIRouter(tags=["promotions"])


async def _get_promotion_or_404(session: AsyncSession, promotion_id: int) -> Promotion:
    promotion = await session.get(Promotion, promotion_id)
    if not promotion:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Promotion {promotion_id} not found")
    return promotion


async def _ensure_code_is_free(session: AsyncSession, code: str, promotion_id: int | None = None) -> None:
    existing = await PromotionRepository(session).get_by_code(code)
    if existing is not None and existing.id != promotion_id:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Promotion code '{code}' already exists")


@router.get(
    "",
    response_model=list[PromotionRead],
    summary="List Promotions",
    description="Retrieve all promotions, newest first.",
)
async def list_promotions(
    active_only: bool = False,
    session: AsyncSession = Depends(get_session),
) -> list[PromotionRead]:
    statement = select(Promotion).order_by(Promotion.created_at.desc())
    if active_only:
        statement = statement.where(Promotion.is_active == True)  # noqa: E712
    result = await session.execute(statement)
    return [PromotionRead.model_validate(promotion) for promotion in result.scalars().all()]


@router.get(
    "/{promotion_id}",
    response_model=PromotionRead,
    summary="Get Promotion",
    responses={404: {"description": "Promotion not found"}},
)
async def get_promotion(promotion_id: int, session: AsyncSession = Depends(get_session)) -> PromotionRead:
    return PromotionRead.model_validate(await _get_promotion_or_404(session, promotion_id))


@router.post(
    "",
    response_model=PromotionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Promotion",
    description="Create a promotion code. Codes are stored upper-case and must be unique.",
    responses={
        201: {"description": "Promotion created successfully"},
        409: {"description": "Code already exists"},
        422: {"description": "Invalid discount or dates"},
    },
)
async def create_promotion(
    payload: PromotionCreate,
    session: AsyncSession = Depends(get_session),
) -> PromotionRead:
    """
    Create a promotion.

    - **code**: The code members type in; normalised to upper-case.
    - **discount_type**: 'percentage' or 'fixed'.
    - **discount_value**: Percent (at most 100) or amount in cents.
    - **start_date** / **end_date**: Optional validity window.
    - **max_uses**: Optional cap on total redemptions.
    """
    await _ensure_code_is_free(session, payload.code)
    promotion = Promotion.model_validate(payload)
    session.add(promotion)
    await session.commit()
    await session.refresh(promotion)
    logger.info(f"Created promotion {promotion.code}")
    return PromotionRead.model_validate(promotion)


@router.patch(
    "/{promotion_id}",
    response_model=PromotionRead,
    summary="Update Promotion",
    responses={
        400: {"description": "Invalid discount or dates"},
        404: {"description": "Promotion not found"},
    },
)
async def update_promotion(
    promotion_id: int,
    payload: PromotionUpdate,
    session: AsyncSession = Depends(get_session),
) -> PromotionRead:
    promotion = await _get_promotion_or_404(session, promotion_id)
    update_data = payload.model_dump(exclude_unset=True)

    discount_type = update_data.get("discount_type", promotion.discount_type)
    discount_value = update_data.get("discount_value", promotion.discount_value)
    if discount_type == "percentage" and discount_value > 100:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Percentage discount cannot exceed 100")
    start_date = as_utc(update_data.get("start_date", promotion.start_date))
    end_date = as_utc(update_data.get("end_date", promotion.end_date))
    if start_date and end_date and end_date <= start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="End date must be after start date")

    for key, value in update_data.items():
        setattr(promotion, key, value)
    session.add(promotion)
    await session.commit()
    await session.refresh(promotion)
    return PromotionRead.model_validate(promotion)


@router.post(
    "/{promotion_id}/toggle",
    response_model=PromotionRead,
    summary="Toggle Promotion",
    description="Flip a promotion between active and inactive.",
    responses={404: {"description": "Promotion not found"}},
)
async def toggle_promotion(promotion_id: int, session: AsyncSession = Depends(get_session)) -> PromotionRead:
    promotion = await _get_promotion_or_404(session, promotion_id)
    promotion.is_active = not promotion.is_active
    session.add(promotion)
    await session.commit()
    await session.refresh(promotion)
    logger.info(f"Promotion {promotion.code} is now {'active' if promotion.is_active else 'inactive'}")
    return PromotionRead.model_validate(promotion)


@router.delete(
    "/{promotion_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Promotion",
    responses={
        404: {"description": "Promotion not found"},
        409: {"description": "Promotion has been redeemed"},
    },
)
async def delete_promotion(promotion_id: int, session: AsyncSession = Depends(get_session)) -> None:
    promotion = await _get_promotion_or_404(session, promotion_id)
    if promotion.current_uses:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete a promotion that has been redeemed. Deactivate it instead.",
        )
    await session.delete(promotion)
    await session.commit()


@public_router.post(
    "/validate",
    response_model=PromotionValidation,
    summary="Validate Promotion Code",
    description="Check whether the caller can use a promotion code, with a price preview for a plan.",
    responses={404: {"description": "Plan not found"}},
)
async def validate_code(
    payload: PromotionValidateRequest,
    session: AsyncSession = Depends(get_session),
    user: Profile = Depends(get_current_user),
) -> PromotionValidation:
    """
    Validate a promotion code.

    An invalid code is not an error: the response has ``valid`` set to false
    and a message explaining why.

    - **code**: The code to check, case-insensitive.
    - **membership_plan_id**: Optional plan to compute the discounted price for.
    """
    plan = None
    if payload.membership_plan_id is not None:
        plan = await session.get(MembershipPlan, payload.membership_plan_id)
        if plan is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Membership plan not found")
    return await validate_promotion(session, payload.code, user.id, plan=plan)
