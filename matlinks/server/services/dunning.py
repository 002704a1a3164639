"""
Dunning workflow.

When a subscription invoice fails, a sequence of reminder emails is
scheduled up front:

=================  ==========================
stage              sent (days after failure)
=================  ==========================
initial_failure    0
first_reminder     3
second_reminder    7
final_notice       14
=================  ==========================

Once the final notice goes out, a ``subscription_canceled`` email and a
pending subscription cancellation are scheduled seven days later. The
dunning cron job sends due emails and carries out due cancellations; a
recovered payment cancels whatever is still pending, and a cancellation
whose payment has since been recovered is skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from matlinks.billing.errors import PaymentProviderError
from matlinks.billing.pricing import format_amount
from matlinks.billing.retries import FAILURE_TYPE_MESSAGES
from matlinks.billing.stripe_client import StripeGateway
from matlinks.core.database.base import utc_now
from matlinks.core.database.entities.dunning import DunningNotification, DunningStage, NotificationStatus
from matlinks.core.database.entities.payments import FailedPayment, PaymentFailureType
from matlinks.core.database.entities.profiles import SubscriptionStatus
from matlinks.core.database.entities.subscriptions import (
    PendingSubscriptionCancellation,
    Subscription,
    SubscriptionCancellation,
)
from matlinks.core.database.repositories.dunning import DunningNotificationRepository
from matlinks.core.database.repositories.profiles import ProfileRepository
from matlinks.core.logging_config import get_logger

from .email import EmailService

logger = get_logger(__name__)

DUNNING_SCHEDULE = (
    (DunningStage.INITIAL_FAILURE, 0),
    (DunningStage.FIRST_REMINDER, 3),
    (DunningStage.SECOND_REMINDER, 7),
    (DunningStage.FINAL_NOTICE, 14),
)
CANCELLATION_GRACE_DAYS = 7
PAYMENT_FAILURE_CANCEL_REASON = "Canceled due to payment failure"


@dataclass
class EmailContent:
    subject: str
    html: str
    text: str


@dataclass
class DunningRunSummary:
    processed: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0


def _failure_reason(failure_type: str) -> str:
    try:
        return FAILURE_TYPE_MESSAGES[PaymentFailureType(failure_type)]
    except ValueError:
        return FAILURE_TYPE_MESSAGES[PaymentFailureType.UNKNOWN]


def prepare_email_content(
    stage: str,
    customer_name: str,
    amount: int,
    currency: str,
    failure_type: str,
    app_url: str,
) -> EmailContent:
    """Render the email for one dunning stage. ``amount`` is in cents."""
    formatted_amount = format_amount(amount, currency)
    billing_url = f"{app_url.rstrip('/')}/student/billing"
    update_link = f'<p><a href="{billing_url}">Update Payment Method</a></p>'

    if stage == DunningStage.INITIAL_FAILURE.value:
        subject = "Payment Failed: Action Required"
        heading = "Payment Failed"
        lines = [
            f"We were unable to process your payment of {formatted_amount} for your membership.",
            f"Reason: {_failure_reason(failure_type)}",
            "Please update your payment method in your account settings to prevent any interruption "
            "to your membership.",
        ]
    elif stage == DunningStage.FIRST_REMINDER.value:
        subject = "Payment Reminder: Update Your Payment Method"
        heading = "Payment Reminder"
        lines = [
            f"This is a reminder that we were unable to process your payment of {formatted_amount} "
            "for your membership.",
            "Please update your payment method as soon as possible to maintain uninterrupted access to classes.",
        ]
    elif stage == DunningStage.SECOND_REMINDER.value:
        subject = "Urgent: Payment Update Required"
        heading = "Urgent Payment Reminder"
        lines = [
            f"We still have not been able to process your payment of {formatted_amount} for your membership.",
            "Your membership benefits may be affected if the payment issue is not resolved soon.",
            "Please update your payment method immediately to avoid any interruptions.",
        ]
    elif stage == DunningStage.FINAL_NOTICE.value:
        subject = "Final Notice: Membership At Risk"
        heading = "Final Payment Notice"
        lines = [
            f"This is a final notice regarding your failed payment of {formatted_amount}.",
            f"If your payment method is not updated within {CANCELLATION_GRACE_DAYS} days, "
            "your membership will be automatically canceled.",
            "To maintain your membership and access to classes, please update your payment information immediately.",
        ]
    elif stage == DunningStage.SUBSCRIPTION_CANCELED.value:
        subject = "Your Membership Has Been Canceled"
        heading = "Membership Canceled"
        lines = [
            "Due to continued payment failures, your membership has been canceled.",
            "If you would like to reinstate your membership, please contact our staff or visit the gym.",
            "We value you as a member and hope to see you back soon.",
        ]
        update_link = ""
        billing_url = ""
    else:
        subject = "Important Information About Your Membership"
        heading = "Membership Update"
        lines = [
            "There's an important update regarding your membership.",
            "Please log in to your account to view the details.",
        ]
        billing_url = f"{app_url.rstrip('/')}/student/dashboard"
        update_link = f'<p><a href="{billing_url}">View Account</a></p>'

    greeting = f"Hello {customer_name},"
    html = "\n".join(
        [f"<h2>{heading}</h2>", f"<p>{greeting}</p>", *[f"<p>{line}</p>" for line in lines], update_link]
    ).strip()
    text = "\n".join(part for part in [heading, greeting, *lines, billing_url] if part)
    return EmailContent(subject=subject, html=html, text=text)


class DunningService:
    """Schedule, send and cancel dunning notifications."""

    def __init__(
        self,
        session: AsyncSession,
        email_service: EmailService,
        app_url: str,
        gateway: Optional[StripeGateway] = None,
    ) -> None:
        self.session = session
        self.email_service = email_service
        self.app_url = app_url
        self.gateway = gateway
        self.notifications = DunningNotificationRepository(session)
        self.profiles = ProfileRepository(session)

    async def create_workflow(
        self, failed_payment: FailedPayment, now: Optional[datetime] = None
    ) -> List[DunningNotification]:
        """Schedule every stage of the sequence for a failed payment. Flushes, does not commit."""
        now = now or utc_now()
        created = []
        for stage, days in DUNNING_SCHEDULE:
            notification = DunningNotification(
                failed_payment_id=failed_payment.id,
                customer_id=failed_payment.customer_id,
                subscription_id=failed_payment.subscription_id,
                stage=stage.value,
                scheduled_for=now + timedelta(days=days),
            )
            self.session.add(notification)
            created.append(notification)
        await self.session.flush()
        logger.info(f"Dunning workflow created for {failed_payment.id} ({len(created)} notifications)")
        return created

    async def cancel_workflow(self, failed_payment_id: str) -> int:
        """Cancel notices still pending for a failed payment. Flushes, does not commit."""
        pending = await self.notifications.list_pending_for(failed_payment_id)
        for notification in pending:
            notification.status = NotificationStatus.CANCELLED.value
            self.session.add(notification)

        match = PendingSubscriptionCancellation.failed_payment_id == failed_payment_id
        failed_payment = await self.session.get(FailedPayment, failed_payment_id)
        if failed_payment is not None and failed_payment.subscription_id:
            match = match | (PendingSubscriptionCancellation.subscription_id == failed_payment.subscription_id)
        stmt = (
            select(PendingSubscriptionCancellation)
            .where(PendingSubscriptionCancellation.status == "pending")
            .where(match)
        )
        result = await self.session.execute(stmt)
        for cancellation in result.scalars().all():
            cancellation.status = "cancelled"
            self.session.add(cancellation)

        await self.session.flush()
        if pending:
            logger.info(f"Cancelled {len(pending)} pending dunning notifications for {failed_payment_id}")
        return len(pending)

    async def process_pending_notifications(self, now: Optional[datetime] = None) -> DunningRunSummary:
        """Send every notification that is due and commit the outcome."""
        now = now or utc_now()
        summary = DunningRunSummary()

        for notification in await self.notifications.list_due(now):
            summary.processed += 1
            outcome = await self._send(notification, now)
            if outcome == NotificationStatus.SENT:
                summary.sent += 1
            elif outcome == NotificationStatus.CANCELLED:
                summary.skipped += 1
            else:
                summary.failed += 1

        await self.session.commit()
        logger.info(
            f"Dunning notifications processed={summary.processed} sent={summary.sent} "
            f"failed={summary.failed} skipped={summary.skipped}"
        )
        return summary

    async def _send(self, notification: DunningNotification, now: datetime) -> NotificationStatus:
        failed_payment = await self.session.get(FailedPayment, notification.failed_payment_id)
        if failed_payment is None:
            return self._mark_failed(notification, "Failed payment not found")
        if failed_payment.final_status == "succeeded":
            notification.status = NotificationStatus.CANCELLED.value
            self.session.add(notification)
            return NotificationStatus.CANCELLED

        profile = await self.profiles.get_by_stripe_customer(notification.customer_id)
        if profile is None or not profile.email:
            return self._mark_failed(notification, "Member not found")

        content = prepare_email_content(
            notification.stage,
            customer_name=profile.full_name or "Member",
            amount=failed_payment.amount,
            currency=failed_payment.currency,
            failure_type=failed_payment.failure_type,
            app_url=self.app_url,
        )
        notification.email_subject = content.subject
        notification.email_content = content.html

        if not await self.email_service.send_email(profile.email, content.subject, content.html, content.text):
            return self._mark_failed(notification, "Email delivery failed")

        notification.status = NotificationStatus.SENT.value
        notification.sent_at = now
        self.session.add(notification)

        if notification.stage == DunningStage.FINAL_NOTICE.value:
            self._schedule_cancellation(notification, profile.id, now)
        return NotificationStatus.SENT

    def _mark_failed(self, notification: DunningNotification, reason: str) -> NotificationStatus:
        logger.warning(f"Dunning notification {notification.id} failed: {reason}")
        notification.status = NotificationStatus.FAILED.value
        notification.error_message = reason
        self.session.add(notification)
        return NotificationStatus.FAILED

    def _schedule_cancellation(self, notification: DunningNotification, profile_id: str, now: datetime) -> None:
        cancel_at = now + timedelta(days=CANCELLATION_GRACE_DAYS)
        self.session.add(
            DunningNotification(
                failed_payment_id=notification.failed_payment_id,
                customer_id=notification.customer_id,
                subscription_id=notification.subscription_id,
                stage=DunningStage.SUBSCRIPTION_CANCELED.value,
                scheduled_for=cancel_at,
            )
        )
        if notification.subscription_id:
            self.session.add(
                PendingSubscriptionCancellation(
                    subscription_id=notification.subscription_id,
                    profile_id=profile_id,
                    failed_payment_id=notification.failed_payment_id,
                    scheduled_for=cancel_at,
                )
            )
        logger.info(f"Subscription {notification.subscription_id} scheduled for cancellation on {cancel_at:%Y-%m-%d}")

    async def process_pending_cancellations(self, now: Optional[datetime] = None) -> int:
        """Cancel subscriptions whose grace period after the final notice has ended."""
        now = now or utc_now()
        stmt = (
            select(PendingSubscriptionCancellation)
            .where(PendingSubscriptionCancellation.status == "pending")
            .where(PendingSubscriptionCancellation.scheduled_for <= now)
        )
        result = await self.session.execute(stmt)
        processed = 0

        for cancellation in result.scalars().all():
            if await self._payment_recovered(cancellation):
                cancellation.status = "cancelled"
                self.session.add(cancellation)
                logger.info(f"Skipping cancellation of {cancellation.subscription_id}: payment recovered")
                continue
            if self.gateway is None:
                logger.error("No Stripe gateway configured; cannot process pending cancellations")
                break
            try:
                await self.gateway.cancel_subscription(cancellation.subscription_id)
            except PaymentProviderError as e:
                logger.error(f"Failed to cancel subscription {cancellation.subscription_id}: {e.message}")
                continue

            await self._mark_canceled(cancellation, now)
            processed += 1

        await self.session.commit()
        return processed

    async def _payment_recovered(self, cancellation: PendingSubscriptionCancellation) -> bool:
        if cancellation.failed_payment_id is None:
            return False
        failed_payment = await self.session.get(FailedPayment, cancellation.failed_payment_id)
        return failed_payment is not None and failed_payment.final_status == "succeeded"

    async def _mark_canceled(self, cancellation: PendingSubscriptionCancellation, now: datetime) -> None:
        cancellation.status = "processed"
        self.session.add(cancellation)

        profile = await self.profiles.get_by_id(cancellation.profile_id) if cancellation.profile_id else None
        if profile is not None:
            profile.subscription_status = SubscriptionStatus.CANCELED.value
            self.session.add(profile)
            self.session.add(
                SubscriptionCancellation(
                    profile_id=profile.id,
                    subscription_id=cancellation.subscription_id,
                    reason=PAYMENT_FAILURE_CANCEL_REASON,
                    immediate=True,
                    canceled_at=now,
                )
            )

        result = await self.session.execute(
            select(Subscription).where(Subscription.stripe_subscription_id == cancellation.subscription_id)
        )
        subscription = result.scalars().first()
        if subscription is not None:
            subscription.status = SubscriptionStatus.CANCELED.value
            subscription.canceled_at = now
            self.session.add(subscription)
        logger.info(f"Subscription {cancellation.subscription_id} canceled after dunning")
