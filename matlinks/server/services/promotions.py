"""
Promotion code validation and redemption.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from matlinks.billing.pricing import apply_discount
from matlinks.core.database.base import as_utc, utc_now
from matlinks.core.database.entities.membership_plans import MembershipPlan
from matlinks.core.database.entities.promotions import Promotion, PromotionRedemption
from matlinks.core.database.repositories.promotions import PromotionRepository
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.promotions import PromotionValidation

logger = get_logger(__name__)


def check_promotion(
    promotion: Optional[Promotion], already_redeemed: bool, now: datetime
) -> tuple[bool, str]:
    """Apply the validity rules in order and return ``(valid, message)``."""
    if promotion is None or not promotion.is_active:
        return False, "Invalid promotion code"
    now = as_utc(now)
    if promotion.end_date is not None and as_utc(promotion.end_date) < now:
        return False, "Promotion has expired"
    if promotion.start_date is not None and as_utc(promotion.start_date) > now:
        return False, "Promotion has not started yet"
    if promotion.max_uses is not None and promotion.current_uses >= promotion.max_uses:
        return False, "Promotion has reached maximum usage limit"
    if already_redeemed:
        return False, "You have already used this promotion"
    return True, "Promotion is valid"


async def validate_promotion(
    session: AsyncSession,
    code: str,
    profile_id: str,
    plan: Optional[MembershipPlan] = None,
    now: Optional[datetime] = None,
) -> PromotionValidation:
    """Check a code for a member, with a price preview when a plan is given."""
    repository = PromotionRepository(session)
    promotion = await repository.get_by_code(code)
    already_redeemed = promotion is not None and await repository.has_redeemed(promotion.id, profile_id)

    valid, message = check_promotion(promotion, already_redeemed, now or utc_now())
    if not valid:
        logger.debug(f"Promotion code {code!r} rejected for {profile_id}: {message}")
        return PromotionValidation(valid=False, message=message)

    validation = PromotionValidation(
        valid=True,
        message=message,
        promotion_id=promotion.id,
        discount_type=promotion.discount_type,
        discount_value=promotion.discount_value,
    )
    if plan is not None:
        discounted = apply_discount(plan.price, promotion.discount_type, promotion.discount_value)
        validation.original_price = plan.price
        validation.discounted_price = discounted
        validation.discount_amount = plan.price - discounted
    return validation


async def redeem_promotion(
    session: AsyncSession, promotion_id: int, profile_id: str, plan: Optional[MembershipPlan] = None
) -> Optional[PromotionRedemption]:
    """Record a redemption once per member. Flushes, does not commit."""
    repository = PromotionRepository(session)
    promotion = await repository.get_by_id(promotion_id)
    if promotion is None:
        logger.warning(f"Cannot redeem unknown promotion {promotion_id}")
        return None
    if await repository.has_redeemed(promotion_id, profile_id):
        return None

    discount_amount = 0
    if plan is not None:
        discount_amount = plan.price - apply_discount(plan.price, promotion.discount_type, promotion.discount_value)

    redemption = await repository.record_redemption(
        PromotionRedemption(
            promotion_id=promotion_id,
            profile_id=profile_id,
            membership_plan_id=plan.id if plan is not None else None,
            discount_amount=discount_amount,
        )
    )
    logger.info(f"Promotion {promotion.code} redeemed by {profile_id}")
    return redemption
