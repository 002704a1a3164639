"""
Promotion repository.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.promotions import Promotion, PromotionRedemption
from .base import AsyncBaseRepository


class PromotionRepository(AsyncBaseRepository[Promotion]):
    """Repository for promotion codes and their redemptions."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Promotion)

    async def get_by_code(self, code: str) -> Optional[Promotion]:
        """Find a promotion by code, case-insensitively."""
        result = await self.session.execute(select(Promotion).where(Promotion.code == code.strip().upper()))
        return result.scalars().first()

    async def has_redeemed(self, promotion_id: int, profile_id: str) -> bool:
        stmt = select(func.count()).select_from(PromotionRedemption).where(
            (PromotionRedemption.promotion_id == promotion_id) & (PromotionRedemption.profile_id == profile_id)
        )
        result = await self.session.execute(stmt)
        return (result.scalar_one() or 0) > 0

    async def record_redemption(self, redemption: PromotionRedemption) -> PromotionRedemption:
        """Store a redemption and bump the promotion's use counter."""
        promotion = await self.get_by_id(redemption.promotion_id)
        if promotion is not None:
            promotion.current_uses = (promotion.current_uses or 0) + 1
            self.session.add(promotion)
        self.session.add(redemption)
        await self.session.flush()
        return redemption
