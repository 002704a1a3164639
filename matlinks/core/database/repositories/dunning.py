"""
Dunning notification repository.
"""

from __future__ import annotations

from datetime import datetime
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.dunning import DunningNotification, NotificationStatus
from .base import AsyncBaseRepository


class DunningNotificationRepository(AsyncBaseRepository[DunningNotification]):
    """Repository for scheduled dunning emails."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, DunningNotification)

    async def list_due(self, now: datetime) -> List[DunningNotification]:
        """Pending notifications whose send time has passed, oldest first."""
        stmt = (
            select(DunningNotification)
            .where(DunningNotification.status == NotificationStatus.PENDING.value)
            .where(DunningNotification.scheduled_for <= now)
            .order_by(DunningNotification.scheduled_for)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_pending_for(self, failed_payment_id: str) -> List[DunningNotification]:
        stmt = select(DunningNotification).where(
            (DunningNotification.failed_payment_id == failed_payment_id)
            & (DunningNotification.status == NotificationStatus.PENDING.value)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
