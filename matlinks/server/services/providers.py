"""
Provider clients.

The Stripe gateway, the Supabase Auth client and the email service are
built once from settings and shared by every request.
"""

from typing import Optional

from matlinks.auth.client import SupabaseAuthClient
from matlinks.billing.stripe_client import StripeGateway
from matlinks.server.core.config import settings

from .email import EmailService

# Global singletons
_stripe_gateway: Optional[StripeGateway] = None
_auth_client: Optional[SupabaseAuthClient] = None
_email_service: Optional[EmailService] = None


def get_stripe_gateway() -> StripeGateway:
    global _stripe_gateway
    if _stripe_gateway is None:
        stripe_config = settings.stripe
        _stripe_gateway = StripeGateway(
            stripe_config.secret_key,
            webhook_secret=stripe_config.webhook_secret,
            api_version=stripe_config.api_version,
        )
    return _stripe_gateway


def get_auth_client() -> SupabaseAuthClient:
    global _auth_client
    if _auth_client is None:
        supabase_config = settings.supabase
        _auth_client = SupabaseAuthClient(
            supabase_config.url, supabase_config.anon_key, supabase_config.service_role_key
        )
    return _auth_client


def get_email_service() -> EmailService:
    global _email_service
    if _email_service is None:
        _email_service = EmailService(settings.email)
    return _email_service
