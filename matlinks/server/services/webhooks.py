"""
Stripe webhook event handling.

``StripeWebhookHandler.handle`` dispatches a verified event to the handler
for its type. Events are accessed as mappings, which both ``stripe.Event``
objects and plain dicts satisfy. Unknown event types are acknowledged and
ignored.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from matlinks.core.database.base import from_unix, utc_now
from matlinks.core.database.entities.membership_plans import MembershipPlan
from matlinks.core.database.entities.payments import PaymentHistory
from matlinks.core.database.entities.profiles import Profile, SubscriptionStatus
from matlinks.core.database.entities.subscriptions import Subscription
from matlinks.core.database.repositories.profiles import ProfileRepository
from matlinks.core.logging_config import get_logger
from matlinks.core.monitoring import log_webhook_event

from .payment_failures import PaymentFailureService
from .promotions import redeem_promotion

logger = get_logger(__name__)

Event = Mapping[str, Any]


def _id_of(value: Any) -> Optional[str]:
    """Stripe references are ids, or expanded objects carrying an id."""
    if value is None or isinstance(value, str):
        return value
    return value.get("id")


class StripeWebhookHandler:
    """Apply Stripe events to the local database."""

    def __init__(self, session: AsyncSession, failures: PaymentFailureService) -> None:
        self.session = session
        self.failures = failures
        self.profiles = ProfileRepository(session)
        self._handlers: Dict[str, Callable[[Mapping[str, Any]], Awaitable[None]]] = {
            "checkout.session.completed": self._checkout_completed,
            "invoice.payment_succeeded": self._invoice_paid,
            "invoice.payment_failed": self._invoice_failed,
            "customer.subscription.updated": self._subscription_updated,
            "customer.subscription.deleted": self._subscription_deleted,
        }

    async def handle(self, event: Event) -> bool:
        """Process one event and commit. Returns whether the type has a handler."""
        event_type = event["type"]
        handler = self._handlers.get(event_type)
        log_webhook_event(event_type, event.get("id"), handled=handler is not None)

        if handler is None:
            logger.info(f"Ignoring Stripe event {event_type}")
            return False

        logger.info(f"Processing Stripe event {event_type} ({event.get('id')})")
        await handler(event["data"]["object"])
        await self.session.commit()
        return True

    async def _subscription_row(self, stripe_subscription_id: Optional[str]) -> Optional[Subscription]:
        if not stripe_subscription_id:
            return None
        result = await self.session.execute(
            select(Subscription).where(Subscription.stripe_subscription_id == stripe_subscription_id)
        )
        return result.scalars().first()

    async def _checkout_completed(self, checkout: Mapping[str, Any]) -> None:
        metadata = checkout.get("metadata") or {}
        user_id = metadata.get("user_id")
        plan_id = metadata.get("membership_plan_id")
        if not user_id or not plan_id:
            logger.warning(f"Checkout session {checkout.get('id')} has no user or plan metadata")
            return

        profile = await self.session.get(Profile, user_id)
        if profile is None:
            logger.warning(f"Checkout session {checkout.get('id')} references unknown profile {user_id}")
            return

        customer_id = _id_of(checkout.get("customer"))
        subscription_id = _id_of(checkout.get("subscription"))
        profile.current_plan_id = int(plan_id)
        profile.stripe_customer_id = customer_id or profile.stripe_customer_id
        profile.stripe_subscription_id = subscription_id
        profile.subscription_status = SubscriptionStatus.ACTIVE.value
        self.session.add(profile)

        if subscription_id and await self._subscription_row(subscription_id) is None:
            self.session.add(
                Subscription(
                    profile_id=profile.id,
                    membership_plan_id=int(plan_id),
                    stripe_subscription_id=subscription_id,
                    stripe_customer_id=customer_id,
                    status=SubscriptionStatus.ACTIVE.value,
                )
            )

        promotion_id = metadata.get("promotion_id")
        if promotion_id:
            plan = await self.session.get(MembershipPlan, int(plan_id))
            await redeem_promotion(self.session, int(promotion_id), profile.id, plan=plan)

        logger.info(f"Membership activated for {profile.id} on plan {plan_id}")

    async def _invoice_paid(self, invoice: Mapping[str, Any]) -> None:
        invoice_id = invoice["id"]
        existing = await self.session.execute(
            select(PaymentHistory).where(PaymentHistory.stripe_invoice_id == invoice_id)
        )
        customer_id = _id_of(invoice.get("customer"))

        if existing.scalars().first() is None:
            profile = await self.profiles.get_by_stripe_customer(customer_id) if customer_id else None
            self.session.add(
                PaymentHistory(
                    user_id=profile.id if profile is not None else None,
                    stripe_customer_id=customer_id,
                    stripe_invoice_id=invoice_id,
                    amount_paid=invoice.get("amount_paid") or 0,
                    period_start=from_unix(invoice.get("period_start")),
                    period_end=from_unix(invoice.get("period_end")),
                    status=invoice.get("status") or "paid",
                    payment_method="card",
                    description=invoice.get("description") or "Membership payment",
                    receipt_number=invoice.get("number"),
                )
            )
        else:
            logger.debug(f"Invoice {invoice_id} already recorded")

        await self.failures.resolve_invoice(invoice_id)

    async def _invoice_failed(self, invoice: Mapping[str, Any]) -> None:
        customer_id = _id_of(invoice.get("customer"))
        if not customer_id:
            logger.error(f"Invalid customer ID for invoice {invoice.get('id')}")
            return

        error = invoice.get("last_payment_error") or {}
        await self.failures.record_failed_payment(
            invoice_id=invoice["id"],
            customer_id=customer_id,
            amount=invoice.get("amount_due") or 0,
            currency=invoice.get("currency") or "usd",
            subscription_id=_id_of(invoice.get("subscription")),
            payment_intent_id=_id_of(invoice.get("payment_intent")),
            failure_code=error.get("code") or error.get("type"),
            decline_code=error.get("decline_code"),
            failure_message=error.get("message"),
        )

    async def _subscription_updated(self, subscription: Mapping[str, Any]) -> None:
        status = subscription.get("status")
        customer_id = _id_of(subscription.get("customer"))
        profile = await self.profiles.get_by_stripe_customer(customer_id) if customer_id else None
        if profile is not None:
            profile.subscription_status = status
            self.session.add(profile)

        row = await self._subscription_row(subscription.get("id"))
        if row is not None:
            row.status = status
            row.cancel_at_period_end = bool(subscription.get("cancel_at_period_end"))
            row.current_period_start = from_unix(subscription.get("current_period_start")) or row.current_period_start
            row.current_period_end = from_unix(subscription.get("current_period_end")) or row.current_period_end
            self.session.add(row)
        logger.info(f"Subscription {subscription.get('id')} status is now {status}")

    async def _subscription_deleted(self, subscription: Mapping[str, Any]) -> None:
        canceled = SubscriptionStatus.CANCELED.value
        customer_id = _id_of(subscription.get("customer"))
        profile = await self.profiles.get_by_stripe_customer(customer_id) if customer_id else None
        if profile is not None:
            profile.subscription_status = canceled
            self.session.add(profile)

        row = await self._subscription_row(subscription.get("id"))
        if row is not None:
            row.status = canceled
            row.canceled_at = row.canceled_at or utc_now()
            self.session.add(row)
        logger.info(f"Subscription {subscription.get('id')} deleted")
