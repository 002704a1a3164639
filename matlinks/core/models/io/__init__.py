"""
I/O models for API requests and responses.

These models are separate from database entities to allow independent
evolution of API contracts.

Modules:
- auth: signup/login/password flows
- gyms: gyms and locations
- class_types: class types and schedules
- membership_plans: membership plans
- promotions: promotion codes and validation results
- profiles: member profiles
- billing: checkout, payments, subscriptions, finance
- check_ins: check-ins
- dashboard: member dashboard summary
"""

from .auth import (
    AuthSession,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    SignupResult,
)
from .billing import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    CancellationCounts,
    CronRunResult,
    DunningCronResult,
    FailedPaymentRead,
    ManualPaymentCreate,
    NotificationCounts,
    PaymentHistoryRead,
    PaymentIntentRequest,
    PaymentIntentResponse,
    PaymentMethodAttach,
    PaymentMethodRead,
    PaymentRead,
    PaymentResult,
    PaymentRetryResult,
    SubscriptionCancelRequest,
    SubscriptionChangePlan,
    SubscriptionCreate,
    SubscriptionCreated,
    SubscriptionRead,
)
from .check_ins import CheckInCreate, CheckInRead
from .class_types import (
    ClassScheduleCreate,
    ClassScheduleRead,
    ClassScheduleUpdate,
    ClassTypeCreate,
    ClassTypeRead,
    ClassTypeUpdate,
)
from .dashboard import DashboardSummary, MembershipSummary
from .gyms import GymCreate, GymRead, GymUpdate, LocationCreate, LocationRead, LocationUpdate
from .membership_plans import MembershipPlanCreate, MembershipPlanRead, MembershipPlanUpdate
from .profiles import MemberInvite, MemberUpdate, ProfileRead, ProfileUpdate
from .promotions import (
    PromotionCreate,
    PromotionRead,
    PromotionUpdate,
    PromotionValidateRequest,
    PromotionValidation,
)

__all__ = [
    "AuthSession",
    "CheckInCreate",
    "CheckInRead",
    "CheckoutSessionRequest",
    "CheckoutSessionResponse",
    "ClassScheduleCreate",
    "ClassScheduleRead",
    "ClassScheduleUpdate",
    "ClassTypeCreate",
    "ClassTypeRead",
    "ClassTypeUpdate",
    "CancellationCounts",
    "CronRunResult",
    "DashboardSummary",
    "DunningCronResult",
    "FailedPaymentRead",
    "ForgotPasswordRequest",
    "GymCreate",
    "GymRead",
    "GymUpdate",
    "LocationCreate",
    "LocationRead",
    "LocationUpdate",
    "LoginRequest",
    "ManualPaymentCreate",
    "MemberInvite",
    "MemberUpdate",
    "MembershipPlanCreate",
    "MembershipPlanRead",
    "MembershipPlanUpdate",
    "MembershipSummary",
    "MessageResponse",
    "NotificationCounts",
    "PaymentHistoryRead",
    "PaymentIntentRequest",
    "PaymentIntentResponse",
    "PaymentMethodAttach",
    "PaymentMethodRead",
    "PaymentRead",
    "PaymentResult",
    "PaymentRetryResult",
    "ProfileRead",
    "ProfileUpdate",
    "PromotionCreate",
    "PromotionRead",
    "PromotionUpdate",
    "PromotionValidateRequest",
    "PromotionValidation",
    "ResetPasswordRequest",
    "SignupRequest",
    "SignupResult",
    "SubscriptionCancelRequest",
    "SubscriptionChangePlan",
    "SubscriptionCreate",
    "SubscriptionCreated",
    "SubscriptionRead",
]
