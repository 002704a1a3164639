"""
Billing primitives.

- ``stripe_client``: ``StripeGateway``, the only module that talks to the
  Stripe SDK.
- ``errors``: provider and webhook exceptions.
- ``retries``: the failed-payment retry schedule.
- ``pricing``: cent arithmetic, discounts and currency formatting.
"""

from .errors import PaymentErrorKind, PaymentProviderError, WebhookError
from .stripe_client import StripeGateway

__all__ = [
    "PaymentErrorKind",
    "PaymentProviderError",
    "StripeGateway",
    "WebhookError",
]
