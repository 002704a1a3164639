"""
Member dashboard I/O models.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from .billing import PaymentHistoryRead, SubscriptionRead
from .membership_plans import MembershipPlanRead
from .profiles import ProfileRead


class MembershipSummary(BaseModel):
    plan: Optional[MembershipPlanRead] = None
    subscription: Optional[SubscriptionRead] = None
    subscription_status: Optional[str] = None
    is_active: bool


class DashboardSummary(BaseModel):
    profile: ProfileRead
    membership: MembershipSummary
    latest_payment: Optional[PaymentHistoryRead] = None
    check_ins_last_30_days: int
