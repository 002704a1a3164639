"""
Stripe Checkout sessions for membership plans.
"""

from __future__ import annotations

from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from matlinks.billing.stripe_client import StripeGateway
from matlinks.core.database.entities.membership_plans import MembershipPlan, PlanInterval
from matlinks.core.database.entities.profiles import Profile
from matlinks.core.database.entities.promotions import DiscountType
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.billing import CheckoutSessionResponse

from .errors import ServiceError
from .promotions import validate_promotion
from .subscriptions import get_or_create_customer

logger = get_logger(__name__)


async def create_checkout_session(
    session: AsyncSession,
    gateway: StripeGateway,
    profile: Profile,
    plan_id: int,
    app_url: str,
    promotion_code: Optional[str] = None,
    currency: str = "usd",
) -> CheckoutSessionResponse:
    """
    Start a hosted checkout for a membership plan.

    A valid promotion code becomes a single-use Stripe coupon on the session.
    The redemption itself is recorded by the webhook once checkout completes,
    from the ``promotion_id`` carried in the session metadata.
    """
    plan = await session.get(MembershipPlan, plan_id)
    if plan is None or not plan.is_active:
        raise ServiceError("Membership plan not found or is inactive")
    if not plan.stripe_price_id:
        raise ServiceError("This plan does not have a price configured")

    metadata: Dict[str, str] = {"user_id": profile.id, "membership_plan_id": str(plan.id)}
    params: Dict[str, object] = {}

    if promotion_code:
        validation = await validate_promotion(session, promotion_code, profile.id, plan=plan)
        if not validation.valid:
            raise ServiceError(validation.message)

        if validation.discount_type == DiscountType.PERCENTAGE:
            coupon_terms = {"percent_off": min(validation.discount_value, 100)}
        else:
            coupon_terms = {"amount_off": validation.discount_value, "currency": currency}
        coupon = await gateway.create_coupon(
            duration="once",
            max_redemptions=1,
            name=promotion_code.strip().upper(),
            **coupon_terms,
        )
        params["discounts"] = [{"coupon": coupon.id}]
        metadata.update(
            promotion_id=str(validation.promotion_id),
            promo_code=promotion_code.strip().upper(),
            original_price=str(validation.original_price),
            discounted_price=str(validation.discounted_price),
        )

    customer_id = await get_or_create_customer(session, gateway, profile)
    await session.commit()

    recurring = plan.interval not in (None, PlanInterval.ONE_TIME.value)
    base_url = app_url.rstrip("/")
    checkout = await gateway.create_checkout_session(
        customer=customer_id,
        payment_method_types=["card"],
        line_items=[{"price": plan.stripe_price_id, "quantity": 1}],
        mode="subscription" if recurring else "payment",
        success_url=f"{base_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{base_url}/checkout/cancel",
        metadata=metadata,
        **params,
    )
    logger.info(f"Checkout session {checkout.id} created for {profile.id} on plan {plan.id}")
    return CheckoutSessionResponse(session_id=checkout.id, url=checkout.url)
