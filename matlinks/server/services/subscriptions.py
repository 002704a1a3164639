"""
Subscription management.

Stripe owns the subscription lifecycle; this service starts, cancels and
re-prices subscriptions through the gateway and mirrors the result in the
``subscriptions`` table and on the member's profile.
"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from matlinks.billing.stripe_client import StripeGateway
from matlinks.core.database.base import from_unix, utc_now
from matlinks.core.database.entities.membership_plans import MembershipPlan, PlanInterval
from matlinks.core.database.entities.profiles import Profile, SubscriptionStatus
from matlinks.core.database.entities.subscriptions import Subscription, SubscriptionCancellation
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.billing import SubscriptionCreated

from .errors import NotFoundError, ServiceError

logger = get_logger(__name__)

USER_CANCEL_REASON = "Canceled by user"
IMMEDIATE_CANCEL_REASON = "Canceled immediately"


async def get_or_create_customer(session: AsyncSession, gateway: StripeGateway, profile: Profile) -> str:
    """Return the member's Stripe customer id, creating the customer on first use. Flushes."""
    if profile.stripe_customer_id:
        return profile.stripe_customer_id

    customer = await gateway.create_customer(profile.email, profile.full_name, metadata={"user_id": profile.id})
    profile.stripe_customer_id = customer.id
    session.add(profile)
    await session.flush()
    return customer.id


async def load_purchasable_plan(session: AsyncSession, plan_id: int) -> MembershipPlan:
    """Load a plan that can be bought online, or raise."""
    plan = await session.get(MembershipPlan, plan_id)
    if plan is None:
        raise NotFoundError("Plan not found or error fetching plan")
    if not plan.is_active:
        raise ServiceError("This plan is not currently available")
    if not plan.stripe_price_id:
        raise ServiceError("This plan is not configured for online payments")
    return plan


async def sync_plan_to_stripe(
    session: AsyncSession, gateway: StripeGateway, plan: MembershipPlan, currency: str = "usd"
) -> MembershipPlan:
    """Create the Stripe product (once) and a price for the plan's current amount. Commits."""
    if plan.stripe_product_id is None:
        product = await gateway.create_product(plan.name, plan.description, metadata={"plan_id": str(plan.id)})
        plan.stripe_product_id = product.id

    interval = None if plan.interval in (None, PlanInterval.ONE_TIME.value) else plan.interval
    price = await gateway.create_price(plan.stripe_product_id, plan.price, currency, interval=interval)
    plan.stripe_price_id = price.id

    session.add(plan)
    await session.commit()
    await session.refresh(plan)
    logger.info(f"Synced plan {plan.id} to Stripe (product={plan.stripe_product_id}, price={plan.stripe_price_id})")
    return plan


def _client_secret(subscription: Any) -> Optional[str]:
    invoice = getattr(subscription, "latest_invoice", None)
    payment_intent = getattr(invoice, "payment_intent", None)
    return getattr(payment_intent, "client_secret", None)


class SubscriptionService:
    """Start, cancel and change member subscriptions."""

    def __init__(self, session: AsyncSession, gateway: StripeGateway) -> None:
        self.session = session
        self.gateway = gateway

    async def create(
        self, member: Profile, plan_id: int, payment_method_id: Optional[str] = None
    ) -> SubscriptionCreated:
        plan = await load_purchasable_plan(self.session, plan_id)
        if not member.stripe_customer_id:
            raise ServiceError("Member does not have a Stripe customer ID")

        if payment_method_id:
            await self.gateway.attach_payment_method(payment_method_id, member.stripe_customer_id)
            await self.gateway.set_default_payment_method(member.stripe_customer_id, payment_method_id)

        stripe_subscription = await self.gateway.create_subscription(
            customer=member.stripe_customer_id,
            items=[{"price": plan.stripe_price_id}],
            metadata={"user_id": member.id, "membership_plan_id": str(plan.id)},
            expand=["latest_invoice.payment_intent"],
        )

        self.session.add(
            Subscription(
                profile_id=member.id,
                membership_plan_id=plan.id,
                stripe_subscription_id=stripe_subscription.id,
                stripe_customer_id=member.stripe_customer_id,
                status=stripe_subscription.status,
                current_period_start=from_unix(getattr(stripe_subscription, "current_period_start", None)),
                current_period_end=from_unix(getattr(stripe_subscription, "current_period_end", None)),
            )
        )
        member.stripe_subscription_id = stripe_subscription.id
        member.subscription_status = stripe_subscription.status
        member.current_plan_id = plan.id
        self.session.add(member)
        await self.session.commit()

        logger.info(f"Created subscription {stripe_subscription.id} for {member.id} on plan {plan.id}")
        return SubscriptionCreated(
            subscription_id=stripe_subscription.id,
            status=stripe_subscription.status,
            client_secret=_client_secret(stripe_subscription),
        )

    async def get_owned(self, caller: Profile, stripe_subscription_id: str) -> Subscription:
        """Load a subscription the caller owns; admins may load any."""
        result = await self.session.execute(
            select(Subscription).where(Subscription.stripe_subscription_id == stripe_subscription_id)
        )
        subscription = result.scalars().first()
        if subscription is None or (subscription.profile_id != caller.id and not caller.has_admin_access):
            raise NotFoundError("Subscription not found")
        return subscription

    async def cancel(
        self, caller: Profile, stripe_subscription_id: str, immediate: bool = False, reason: Optional[str] = None
    ) -> Subscription:
        subscription = await self.get_owned(caller, stripe_subscription_id)
        now = utc_now()

        if immediate:
            reason = reason or IMMEDIATE_CANCEL_REASON
            await self.gateway.cancel_subscription(stripe_subscription_id, invoice_now=True, prorate=True)
            status = SubscriptionStatus.CANCELED.value
            subscription.canceled_at = now
        else:
            reason = reason or USER_CANCEL_REASON
            await self.gateway.modify_subscription(
                stripe_subscription_id,
                cancel_at_period_end=True,
                cancellation_details={"comment": reason},
            )
            status = SubscriptionStatus.CANCELING.value
            subscription.cancel_at_period_end = True

        subscription.status = status
        self.session.add(subscription)

        member = await self.session.get(Profile, subscription.profile_id)
        if member is not None:
            member.subscription_status = status
            self.session.add(member)

        self.session.add(
            SubscriptionCancellation(
                profile_id=subscription.profile_id,
                subscription_id=stripe_subscription_id,
                reason=reason,
                immediate=immediate,
                canceled_at=now,
            )
        )
        await self.session.commit()
        await self.session.refresh(subscription)
        logger.info(f"Subscription {stripe_subscription_id} canceled (immediate={immediate}): {reason}")
        return subscription

    async def change_plan(self, caller: Profile, stripe_subscription_id: str, plan_id: int) -> Subscription:
        subscription = await self.get_owned(caller, stripe_subscription_id)
        plan = await load_purchasable_plan(self.session, plan_id)

        current = await self.gateway.retrieve_subscription(stripe_subscription_id)
        items = current["items"]["data"]
        if not items:
            raise ServiceError("Subscription has no items to update")

        updated = await self.gateway.modify_subscription(
            stripe_subscription_id,
            items=[{"id": items[0]["id"], "price": plan.stripe_price_id}],
            proration_behavior="create_prorations",
            metadata={"membership_plan_id": str(plan.id)},
        )

        subscription.membership_plan_id = plan.id
        subscription.status = updated.status
        self.session.add(subscription)

        member = await self.session.get(Profile, subscription.profile_id)
        if member is not None:
            member.current_plan_id = plan.id
            self.session.add(member)

        await self.session.commit()
        await self.session.refresh(subscription)
        logger.info(f"Subscription {stripe_subscription_id} moved to plan {plan.id}")
        return subscription
