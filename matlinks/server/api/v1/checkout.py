"""
Stripe Checkout endpoint.
"""

from fastapi import APIRouter

from matlinks.core.models.io.billing import CheckoutSessionRequest, CheckoutSessionResponse
from matlinks.server.core.config import settings
from matlinks.server.services.checkout import create_checkout_session
from matlinks.server.services.deps import CurrentUserDep, SessionDep, StripeDep

router = APIRouter(tags=["checkout"])


@router.post(
    "/session",
    response_model=CheckoutSessionResponse,
    summary="Create Checkout Session",
    description="Start a Stripe-hosted checkout for a membership plan, optionally with a promotion code.",
    responses={
        400: {"description": "Plan missing, inactive or without a price, or promotion code not valid"},
    },
)
async def create_session(
    payload: CheckoutSessionRequest,
    user: CurrentUserDep,
    session: SessionDep,
    gateway: StripeDep,
) -> CheckoutSessionResponse:
    """
    Create a checkout session.

    - **membership_plan_id**: The plan to buy.
    - **promotion_code**: Optional promotion code applied once.

    Redirect the member to the returned ``url``.
    """
    return await create_checkout_session(
        session,
        gateway,
        user,
        payload.membership_plan_id,
        settings.app_url,
        promotion_code=payload.promotion_code,
        currency=settings.stripe.currency,
    )
