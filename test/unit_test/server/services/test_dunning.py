"""Unit tests for the dunning workflow."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlmodel import select

from matlinks.billing.errors import PaymentProviderError
from matlinks.billing.stripe_client import StripeGateway
from matlinks.core.database.entities.dunning import DunningNotification, DunningStage, NotificationStatus
from matlinks.core.database.entities.payments import FailedPayment
from matlinks.core.database.entities.subscriptions import (
    PendingSubscriptionCancellation,
    Subscription,
    SubscriptionCancellation,
)
from matlinks.server.services.dunning import (
    DUNNING_SCHEDULE,
    DunningService,
    prepare_email_content,
)
from matlinks.server.services.email import EmailService

FAILED_AT = datetime(2024, 5, 1, 9, 0, 0, tzinfo=timezone.utc)
APP_URL = "http://localhost:3000"


@pytest.fixture
def email_service() -> MagicMock:
    service = MagicMock(spec=EmailService)
    service.send_email.return_value = True
    return service


@pytest.fixture
def gateway() -> MagicMock:
    return MagicMock(spec=StripeGateway)


@pytest.fixture
def dunning(session, email_service, gateway) -> DunningService:
    return DunningService(session, email_service, APP_URL, gateway=gateway)


@pytest.fixture
async def failed_payment(session, member) -> FailedPayment:
    failed = FailedPayment(
        id="in_1_failure",
        customer_id=member.stripe_customer_id,
        subscription_id=member.stripe_subscription_id,
        invoice_id="in_1",
        amount=15000,
        failure_type="insufficient_funds",
    )
    session.add(failed)
    await session.commit()
    return failed


async def _notifications(session, status=None):
    stmt = select(DunningNotification)
    if status:
        stmt = stmt.where(DunningNotification.status == status)
    result = await session.execute(stmt)
    return list(result.scalars().all())


class TestPrepareEmailContent:
    def test_initial_failure_mentions_amount_and_reason(self):
        content = prepare_email_content("initial_failure", "Sam", 15000, "usd", "insufficient_funds", APP_URL)

        assert content.subject == "Payment Failed: Action Required"
        assert "$150.00" in content.html
        assert "Insufficient funds in the account" in content.text
        assert f"{APP_URL}/student/billing" in content.html

    def test_final_notice_warns_about_cancellation(self):
        content = prepare_email_content("final_notice", "Sam", 15000, "usd", "card_declined", APP_URL)

        assert content.subject == "Final Notice: Membership At Risk"
        assert "within 7 days" in content.text

    def test_canceled_has_no_billing_link(self):
        content = prepare_email_content("subscription_canceled", "Sam", 15000, "usd", "unknown", APP_URL)

        assert content.subject == "Your Membership Has Been Canceled"
        assert "student/billing" not in content.html

    def test_unknown_stage_and_failure_type(self):
        content = prepare_email_content("mystery", "Sam", 100, "usd", "not-a-type", APP_URL)

        assert content.subject == "Important Information About Your Membership"
        assert "student/dashboard" in content.html


class TestWorkflow:
    async def test_create_schedules_every_stage(self, session, dunning, failed_payment):
        created = await dunning.create_workflow(failed_payment, now=FAILED_AT)
        await session.commit()

        assert [n.stage for n in created] == [stage.value for stage, _ in DUNNING_SCHEDULE]
        assert [n.scheduled_for for n in created] == [FAILED_AT + timedelta(days=d) for _, d in DUNNING_SCHEDULE]
        assert all(n.status == NotificationStatus.PENDING.value for n in created)

    async def test_cancel_workflow_cancels_pending_and_scheduled_cancellation(
        self, session, dunning, failed_payment
    ):
        await dunning.create_workflow(failed_payment, now=FAILED_AT)
        session.add(PendingSubscriptionCancellation(subscription_id="sub_member", scheduled_for=FAILED_AT))
        await session.commit()

        cancelled = await dunning.cancel_workflow(failed_payment.id)
        await session.commit()

        assert cancelled == len(DUNNING_SCHEDULE)
        assert await _notifications(session, NotificationStatus.PENDING.value) == []
        pending = (await session.execute(select(PendingSubscriptionCancellation))).scalars().one()
        assert pending.status == "cancelled"


class TestProcessPendingNotifications:
    async def test_sends_only_due(self, session, dunning, email_service, failed_payment, member):
        await dunning.create_workflow(failed_payment, now=FAILED_AT)
        await session.commit()

        summary = await dunning.process_pending_notifications(now=FAILED_AT + timedelta(days=4))

        assert (summary.processed, summary.sent, summary.failed) == (2, 2, 0)
        assert email_service.send_email.await_count == 2
        assert email_service.send_email.await_args_list[0].args[0] == member.email
        sent = await _notifications(session, NotificationStatus.SENT.value)
        assert {n.stage for n in sent} == {"initial_failure", "first_reminder"}
        assert all(n.email_subject for n in sent)

    async def test_final_notice_schedules_cancellation(self, session, dunning, failed_payment, member):
        await dunning.create_workflow(failed_payment, now=FAILED_AT)
        await session.commit()
        run_at = FAILED_AT + timedelta(days=14)

        await dunning.process_pending_notifications(now=run_at)

        pending = (await session.execute(select(PendingSubscriptionCancellation))).scalars().one()
        assert pending.subscription_id == "sub_member"
        assert pending.profile_id == member.id
        assert pending.failed_payment_id == failed_payment.id
        assert pending.scheduled_for == run_at + timedelta(days=7)
        canceled_notice = [
            n for n in await _notifications(session) if n.stage == DunningStage.SUBSCRIPTION_CANCELED.value
        ]
        assert len(canceled_notice) == 1
        assert canceled_notice[0].status == NotificationStatus.PENDING.value

    async def test_email_failure_marks_failed(self, session, dunning, email_service, failed_payment):
        email_service.send_email.return_value = False
        await dunning.create_workflow(failed_payment, now=FAILED_AT)
        await session.commit()

        summary = await dunning.process_pending_notifications(now=FAILED_AT)

        assert (summary.processed, summary.sent, summary.failed) == (1, 0, 1)
        failed = await _notifications(session, NotificationStatus.FAILED.value)
        assert failed[0].error_message == "Email delivery failed"

    async def test_resolved_payment_cancels_notice(self, session, dunning, email_service, failed_payment):
        await dunning.create_workflow(failed_payment, now=FAILED_AT)
        failed_payment.final_status = "succeeded"
        session.add(failed_payment)
        await session.commit()

        summary = await dunning.process_pending_notifications(now=FAILED_AT)

        assert (summary.processed, summary.sent, summary.failed, summary.skipped) == (1, 0, 0, 1)
        email_service.send_email.assert_not_awaited()
        assert len(await _notifications(session, NotificationStatus.CANCELLED.value)) == 1

    async def test_unknown_customer_marks_failed(self, session, dunning, failed_payment):
        failed_payment.customer_id = "cus_unknown"
        session.add(failed_payment)
        await session.commit()
        await dunning.create_workflow(failed_payment, now=FAILED_AT)
        await session.commit()

        summary = await dunning.process_pending_notifications(now=FAILED_AT)

        assert summary.failed == 1
        assert (await _notifications(session, NotificationStatus.FAILED.value))[0].error_message == "Member not found"


class TestProcessPendingCancellations:
    async def test_cancels_due_subscriptions(self, session, dunning, gateway, member):
        session.add(
            Subscription(profile_id=member.id, stripe_subscription_id="sub_member", status="past_due")
        )
        session.add(
            PendingSubscriptionCancellation(
                subscription_id="sub_member", profile_id=member.id, scheduled_for=FAILED_AT
            )
        )
        session.add(
            PendingSubscriptionCancellation(
                subscription_id="sub_later", profile_id=member.id, scheduled_for=FAILED_AT + timedelta(days=30)
            )
        )
        await session.commit()

        processed = await dunning.process_pending_cancellations(now=FAILED_AT + timedelta(days=1))

        assert processed == 1
        gateway.cancel_subscription.assert_awaited_once_with("sub_member")
        await session.refresh(member)
        assert member.subscription_status == "canceled"
        audit = (await session.execute(select(SubscriptionCancellation))).scalars().one()
        assert audit.reason == "Canceled due to payment failure"
        subscription = (await session.execute(select(Subscription))).scalars().one()
        assert subscription.status == "canceled"

    async def test_stripe_failure_leaves_cancellation_pending(self, session, dunning, gateway, member):
        gateway.cancel_subscription.side_effect = PaymentProviderError("Stripe down")
        session.add(
            PendingSubscriptionCancellation(
                subscription_id="sub_member", profile_id=member.id, scheduled_for=FAILED_AT
            )
        )
        await session.commit()

        processed = await dunning.process_pending_cancellations(now=FAILED_AT)

        assert processed == 0
        pending = (await session.execute(select(PendingSubscriptionCancellation))).scalars().one()
        assert pending.status == "pending"

    async def test_recovered_payment_is_not_canceled(self, session, dunning, gateway, member, failed_payment):
        failed_payment.final_status = "succeeded"
        session.add(failed_payment)
        session.add(
            PendingSubscriptionCancellation(
                subscription_id="sub_member",
                profile_id=member.id,
                failed_payment_id=failed_payment.id,
                scheduled_for=FAILED_AT,
            )
        )
        await session.commit()

        processed = await dunning.process_pending_cancellations(now=FAILED_AT + timedelta(days=1))

        assert processed == 0
        gateway.cancel_subscription.assert_not_awaited()
        await session.refresh(member)
        assert member.subscription_status == "active"
        pending = (await session.execute(select(PendingSubscriptionCancellation))).scalars().one()
        assert pending.status == "cancelled"
