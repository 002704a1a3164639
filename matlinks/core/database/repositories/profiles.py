"""
Profile repository.

Lookups used by auth (by id / email) and by the Stripe webhook, which only
knows the Stripe customer id.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.profiles import Profile
from .base import AsyncBaseRepository


class ProfileRepository(AsyncBaseRepository[Profile]):
    """Repository for member profiles."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Profile)

    async def get_by_email(self, email: str) -> Optional[Profile]:
        result = await self.session.execute(select(Profile).where(Profile.email == email.lower()))
        return result.scalars().first()

    async def get_by_stripe_customer(self, customer_id: str) -> Optional[Profile]:
        result = await self.session.execute(select(Profile).where(Profile.stripe_customer_id == customer_id))
        return result.scalars().first()
