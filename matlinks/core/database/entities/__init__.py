"""
Database entity models.

Each module holds the tables of one business area:

- profiles: member profiles and roles
- gyms: gyms and their locations
- class_types: class types and weekly schedules
- membership_plans: sellable plans
- subscriptions: Stripe subscription mirror and cancellations
- payments: payment history, one-off payments, failed payments
- dunning: payment reminder notifications
- promotions: promotion codes and redemptions
- check_ins: location check-ins
"""

from . import (
    check_ins,
    class_types,
    dunning,
    gyms,
    membership_plans,
    payments,
    profiles,
    promotions,
    subscriptions,
)
from .check_ins import CheckIn, CheckInMethod
from .class_types import ClassSchedule, ClassType
from .dunning import DunningNotification, DunningStage, NotificationStatus
from .gyms import Gym, Location
from .membership_plans import MembershipPlan, PlanInterval
from .payments import (
    FailedPayment,
    Payment,
    PaymentFailureType,
    PaymentHistory,
    PaymentStatus,
    RetryStatus,
)
from .profiles import Profile, SubscriptionStatus, UserRole
from .promotions import DiscountType, Promotion, PromotionRedemption
from .subscriptions import (
    PendingSubscriptionCancellation,
    Subscription,
    SubscriptionCancellation,
)

__all__ = [
    "CheckIn",
    "CheckInMethod",
    "ClassSchedule",
    "ClassType",
    "DiscountType",
    "DunningNotification",
    "DunningStage",
    "FailedPayment",
    "Gym",
    "Location",
    "MembershipPlan",
    "NotificationStatus",
    "Payment",
    "PaymentFailureType",
    "PaymentHistory",
    "PaymentStatus",
    "PendingSubscriptionCancellation",
    "PlanInterval",
    "Profile",
    "Promotion",
    "PromotionRedemption",
    "RetryStatus",
    "Subscription",
    "SubscriptionCancellation",
    "SubscriptionStatus",
    "UserRole",
    "check_ins",
    "class_types",
    "dunning",
    "gyms",
    "membership_plans",
    "payments",
    "profiles",
    "promotions",
    "subscriptions",
]
