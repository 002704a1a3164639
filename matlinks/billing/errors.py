"""
Billing exceptions.

``PaymentProviderError`` is raised by ``StripeGateway`` for every failed SDK
call so that callers never have to import ``stripe`` to handle errors.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import stripe


class PaymentErrorKind(str, Enum):
    """Classification of a Stripe failure."""

    CARD = "card"
    INVALID_REQUEST = "invalid_request"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    CONNECTION = "connection"
    API = "api"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


_HTTP_STATUS = {
    PaymentErrorKind.CARD: 402,
    PaymentErrorKind.INVALID_REQUEST: 400,
    PaymentErrorKind.AUTHENTICATION: 502,
    PaymentErrorKind.RATE_LIMIT: 503,
    PaymentErrorKind.CONNECTION: 503,
    PaymentErrorKind.API: 503,
    PaymentErrorKind.CONFIGURATION: 503,
    PaymentErrorKind.UNKNOWN: 502,
}


class PaymentProviderError(Exception):
    """A Stripe call failed."""

    def __init__(
        self,
        message: str,
        kind: PaymentErrorKind = PaymentErrorKind.UNKNOWN,
        code: Optional[str] = None,
        decline_code: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.code = code
        self.decline_code = decline_code
        self.original_error = original_error

    @property
    def status_code(self) -> int:
        """HTTP status the API should answer with."""
        return _HTTP_STATUS[self.kind]

    @property
    def public_message(self) -> str:
        """Message that is safe to show to a member."""
        if self.kind == PaymentErrorKind.CARD:
            return f"Card error: {self.message}"
        if self.kind == PaymentErrorKind.INVALID_REQUEST:
            return "Invalid payment request"
        return "Payment service temporarily unavailable"

    @classmethod
    def from_stripe(cls, error: stripe.StripeError) -> "PaymentProviderError":
        """Wrap an SDK exception, keeping its code and decline code."""
        if isinstance(error, stripe.CardError):
            kind = PaymentErrorKind.CARD
        elif isinstance(error, stripe.InvalidRequestError):
            kind = PaymentErrorKind.INVALID_REQUEST
        elif isinstance(error, stripe.AuthenticationError):
            kind = PaymentErrorKind.AUTHENTICATION
        elif isinstance(error, stripe.RateLimitError):
            kind = PaymentErrorKind.RATE_LIMIT
        elif isinstance(error, stripe.APIConnectionError):
            kind = PaymentErrorKind.CONNECTION
        elif isinstance(error, stripe.APIError):
            kind = PaymentErrorKind.API
        else:
            kind = PaymentErrorKind.UNKNOWN
        message = getattr(error, "user_message", None) or str(error) or type(error).__name__
        return cls(
            message,
            kind=kind,
            code=getattr(error, "code", None),
            decline_code=getattr(error, "decline_code", None),
            original_error=error,
        )


class WebhookError(Exception):
    """A webhook payload could not be verified or processed."""
