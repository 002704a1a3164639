"""
Service Dependencies.

Builds the request-scoped billing services and exposes the ``Annotated``
dependency aliases used by the API endpoints.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from matlinks.auth.client import SupabaseAuthClient
from matlinks.billing.stripe_client import StripeGateway
from matlinks.core.database import get_session
from matlinks.core.database.entities.profiles import Profile
from matlinks.server.core.config import settings
from matlinks.server.core.constant import ADMIN_ROLES, STAFF_ROLES

from .dunning import DunningService
from .email import EmailService
from .payment_failures import PaymentFailureService
from .providers import get_auth_client, get_email_service, get_stripe_gateway
from .security import get_current_user, require_roles
from .subscriptions import SubscriptionService


def get_dunning_service(
    session: AsyncSession = Depends(get_session),
    email_service: EmailService = Depends(get_email_service),
    gateway: StripeGateway = Depends(get_stripe_gateway),
) -> DunningService:
    return DunningService(session, email_service, settings.app_url, gateway=gateway)


def get_payment_failure_service(
    session: AsyncSession = Depends(get_session),
    gateway: StripeGateway = Depends(get_stripe_gateway),
    dunning: DunningService = Depends(get_dunning_service),
) -> PaymentFailureService:
    return PaymentFailureService(session, gateway, dunning)


def get_subscription_service(
    session: AsyncSession = Depends(get_session),
    gateway: StripeGateway = Depends(get_stripe_gateway),
) -> SubscriptionService:
    return SubscriptionService(session, gateway)


SessionDep = Annotated[AsyncSession, Depends(get_session)]
StripeDep = Annotated[StripeGateway, Depends(get_stripe_gateway)]
AuthClientDep = Annotated[SupabaseAuthClient, Depends(get_auth_client)]
EmailDep = Annotated[EmailService, Depends(get_email_service)]

DunningDep = Annotated[DunningService, Depends(get_dunning_service)]
PaymentFailuresDep = Annotated[PaymentFailureService, Depends(get_payment_failure_service)]
SubscriptionsDep = Annotated[SubscriptionService, Depends(get_subscription_service)]

CurrentUserDep = Annotated[Profile, Depends(get_current_user)]
AdminDep = Annotated[Profile, Depends(require_roles(*ADMIN_ROLES))]
StaffDep = Annotated[Profile, Depends(require_roles(*STAFF_ROLES))]
