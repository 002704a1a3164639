"""
Failed payment repository.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.payments import FailedPayment
from .base import AsyncBaseRepository


class FailedPaymentRepository(AsyncBaseRepository[FailedPayment]):
    """Repository for failed invoices awaiting retry."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, FailedPayment)

    async def get_unrecovered_for_invoice(self, invoice_id: str) -> Optional[FailedPayment]:
        """Failure for an invoice that has not been paid, whether retries are in flight or exhausted."""
        stmt = select(FailedPayment).where(
            (FailedPayment.invoice_id == invoice_id)
            & ((FailedPayment.final_status == None) | (FailedPayment.final_status == "failed"))  # noqa: E711
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_unresolved(self) -> List[FailedPayment]:
        """Failed payments that still have retries in flight."""
        stmt = select(FailedPayment).where(FailedPayment.final_status == None)  # noqa: E711
        result = await self.session.execute(stmt.order_by(FailedPayment.created_at))
        return list(result.scalars().all())

    async def list_for_customer(self, customer_id: str) -> List[FailedPayment]:
        stmt = select(FailedPayment).where(FailedPayment.customer_id == customer_id)
        result = await self.session.execute(stmt.order_by(FailedPayment.created_at.desc()))
        return list(result.scalars().all())
