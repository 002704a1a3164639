"""
Repositories for the tables the billing and auth services query by
something other than the primary key. Plain CRUD routes use the session
directly.
"""

from .base import AsyncBaseRepository, QueryBuilder
from .dunning import DunningNotificationRepository
from .failed_payments import FailedPaymentRepository
from .profiles import ProfileRepository
from .promotions import PromotionRepository

__all__ = [
    "AsyncBaseRepository",
    "DunningNotificationRepository",
    "FailedPaymentRepository",
    "ProfileRepository",
    "PromotionRepository",
    "QueryBuilder",
]
