"""
Failed payment recovery.

A failed subscription invoice is stored once as ``{invoice_id}_failure``
with retry attempts scheduled 1, 3 and 7 days out. The payment-retries cron
job pays the invoice through Stripe when an attempt falls due; the first
success resolves the failure and stops the dunning emails.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from matlinks.billing.errors import PaymentProviderError
from matlinks.billing.retries import (
    build_retry_attempts,
    cancel_remaining,
    classify_failure,
    has_exhausted_retries,
    is_due,
    next_retry_attempt,
    update_attempt_status,
)
from matlinks.billing.stripe_client import StripeGateway
from matlinks.core.database.base import utc_now
from matlinks.core.database.entities.payments import FailedPayment, Payment, PaymentStatus, RetryStatus
from matlinks.core.database.repositories.failed_payments import FailedPaymentRepository
from matlinks.core.database.repositories.profiles import ProfileRepository
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.billing import PaymentRetryResult
from matlinks.core.monitoring import log_payment_event

from .dunning import DunningService
from .errors import NotFoundError, ServiceError

logger = get_logger(__name__)

PAYABLE_INVOICE_STATUSES = ("open", "uncollectible")
RETRYABLE_INTENT_STATUSES = ("requires_payment_method", "requires_confirmation")


@dataclass
class RetryRunSummary:
    processed: int = 0
    succeeded: int = 0
    failed: int = 0


class PaymentFailureService:
    """Record failed invoices and drive their retries."""

    def __init__(self, session: AsyncSession, gateway: StripeGateway, dunning: DunningService) -> None:
        self.session = session
        self.gateway = gateway
        self.dunning = dunning
        self.failed_payments = FailedPaymentRepository(session)

    async def record_failed_payment(
        self,
        invoice_id: str,
        customer_id: str,
        amount: int,
        currency: str = "usd",
        subscription_id: Optional[str] = None,
        payment_intent_id: Optional[str] = None,
        failure_code: Optional[str] = None,
        decline_code: Optional[str] = None,
        failure_message: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> FailedPayment:
        """Store a failed invoice, schedule its retries and start dunning.

        A failure reported again for the same invoice (for instance after one
        of our own retries) only refreshes the failure details; the retry
        schedule and the dunning sequence are created once.
        """
        now = now or utc_now()
        failure_type = classify_failure(decline_code, failure_code).value
        failed_payment_id = f"{invoice_id}_failure"

        existing = await self.failed_payments.get_by_id(failed_payment_id)
        if existing is not None:
            existing.failure_type = failure_type
            existing.failure_message = failure_message
            if payment_intent_id:
                existing.payment_intent_id = payment_intent_id
            await self.failed_payments.update(existing)
            logger.info(f"Updated failure details for invoice {invoice_id}")
            return existing

        failed_payment = FailedPayment(
            id=failed_payment_id,
            customer_id=customer_id,
            subscription_id=subscription_id,
            invoice_id=invoice_id,
            payment_intent_id=payment_intent_id,
            amount=amount,
            currency=currency,
            failure_type=failure_type,
            failure_message=failure_message,
            retry_attempts=build_retry_attempts(failed_payment_id, now),
        )
        await self.failed_payments.create(failed_payment)
        await self.dunning.create_workflow(failed_payment, now=now)

        log_payment_event("payment_failed", amount, invoice_id=invoice_id, failure_type=failure_type)
        logger.warning(f"Payment failed for invoice {invoice_id} ({failure_type}); retries scheduled")
        return failed_payment

    async def process_scheduled_retries(self, now: Optional[datetime] = None) -> RetryRunSummary:
        """Run every retry attempt that is due. Commits after each failed payment."""
        now = now or utc_now()
        summary = RetryRunSummary()

        for failed_payment in await self.failed_payments.list_unresolved():
            attempt = next_retry_attempt(failed_payment.retry_attempts)
            if attempt is None:
                if has_exhausted_retries(failed_payment.retry_attempts):
                    self._close(failed_payment, "failed", now)
                    await self.session.commit()
                continue
            if not is_due(attempt, now):
                continue

            summary.processed += 1
            failed_payment.retry_attempts = update_attempt_status(
                failed_payment.retry_attempts, attempt["id"], RetryStatus.PROCESSING, now
            )
            await self.failed_payments.update(failed_payment)

            error_message = await self._pay_invoice(failed_payment.invoice_id)
            if error_message is None:
                summary.succeeded += 1
                failed_payment.retry_attempts = update_attempt_status(
                    failed_payment.retry_attempts, attempt["id"], RetryStatus.SUCCEEDED, now
                )
                await self._resolve(failed_payment, now)
                log_payment_event("retry_succeeded", failed_payment.amount, invoice_id=failed_payment.invoice_id)
                logger.info(f"Retry {attempt['id']} succeeded")
            else:
                summary.failed += 1
                failed_payment.retry_attempts = update_attempt_status(
                    failed_payment.retry_attempts, attempt["id"], RetryStatus.FAILED, now, error_message
                )
                if has_exhausted_retries(failed_payment.retry_attempts):
                    self._close(failed_payment, "failed", now)
                log_payment_event("retry_failed", failed_payment.amount, invoice_id=failed_payment.invoice_id)
                logger.warning(f"Retry {attempt['id']} failed: {error_message}")

            self.session.add(failed_payment)
            await self.session.commit()

        logger.info(
            f"Payment retries processed={summary.processed} succeeded={summary.succeeded} failed={summary.failed}"
        )
        return summary

    async def _pay_invoice(self, invoice_id: str) -> Optional[str]:
        """Try to collect an invoice. Returns None on success, else the error message."""
        try:
            invoice = await self.gateway.retrieve_invoice(invoice_id)
            if invoice.status == "paid":
                return None
            if invoice.status not in PAYABLE_INVOICE_STATUSES:
                return f"Invoice cannot be paid in status: {invoice.status}"
            paid = await self.gateway.pay_invoice(invoice_id)
        except PaymentProviderError as e:
            return e.message
        if paid.status != "paid":
            return f"Invoice status after payment: {paid.status}"
        return None

    def _close(self, failed_payment: FailedPayment, final_status: str, now: datetime) -> None:
        failed_payment.final_status = final_status
        failed_payment.resolved_at = now
        self.session.add(failed_payment)

    async def _resolve(self, failed_payment: FailedPayment, now: datetime) -> None:
        failed_payment.retry_attempts = cancel_remaining(failed_payment.retry_attempts)
        self._close(failed_payment, "succeeded", now)
        await self.session.flush()
        await self.dunning.cancel_workflow(failed_payment.id)

    async def resolve_invoice(self, invoice_id: str, now: Optional[datetime] = None) -> bool:
        """Mark the failure for a paid invoice as recovered. Flushes, does not commit.

        Failures already closed as ``failed`` after the last retry are recovered
        too, which stops any dunning notices and cancellation still pending.

        Returns:
            True when an unrecovered failure existed for the invoice.
        """
        failed_payment = await self.failed_payments.get_unrecovered_for_invoice(invoice_id)
        if failed_payment is None:
            return False
        await self._resolve(failed_payment, now or utc_now())
        logger.info(f"Failed payment {failed_payment.id} resolved by successful invoice payment")
        return True

    async def manually_retry_payment(self, payment_id: int) -> PaymentRetryResult:
        """Retry a failed one-off payment on behalf of an admin."""
        payment = await self.session.get(Payment, payment_id)
        if payment is None:
            raise NotFoundError("Payment not found")
        if payment.status != PaymentStatus.FAILED.value:
            raise ServiceError(
                f"Cannot retry payment with status: {payment.status}. Only failed payments can be retried."
            )

        try:
            if payment.payment_intent_id:
                intent = await self.gateway.retrieve_payment_intent(payment.payment_intent_id)
                if intent.status in RETRYABLE_INTENT_STATUSES:
                    params = {"payment_method": payment.payment_method_id} if payment.payment_method_id else {}
                    intent = await self.gateway.confirm_payment_intent(intent.id, **params)
                    message = "Payment retry initiated successfully"
                else:
                    customer_id = intent.customer or payment.stripe_customer_id or await self._customer_for(payment)
                    intent = await self._new_intent(payment, customer_id)
                    message = "Created new payment attempt successfully"
            else:
                customer_id = payment.stripe_customer_id or await self._customer_for(payment)
                intent = await self._new_intent(payment, customer_id)
                message = "Created new payment attempt successfully"
        except PaymentProviderError as e:
            raise ServiceError(f"Stripe error: {e.message}") from e

        payment.payment_intent_id = intent.id
        payment.status = PaymentStatus.PROCESSING.value
        payment.last_retry_at = utc_now()
        self.session.add(payment)
        await self.session.commit()

        log_payment_event("manual_retry", payment.amount, payment_id=payment.id, payment_intent_id=intent.id)
        logger.info(f"Manual retry of payment {payment.id}: {message}")
        return PaymentRetryResult(success=True, message=message, payment_intent_id=intent.id)

    async def _customer_for(self, payment: Payment) -> str:
        profile = await ProfileRepository(self.session).get_by_id(payment.profile_id) if payment.profile_id else None
        if profile is None or not profile.stripe_customer_id:
            raise ServiceError("No Stripe customer ID found for this member")
        return profile.stripe_customer_id

    async def _new_intent(self, payment: Payment, customer_id: Optional[str]):
        params = {
            "amount": payment.amount,
            "currency": payment.currency,
            "customer": customer_id,
            "confirm": True,
            "metadata": {"payment_id": str(payment.id), "retry": "manual"},
        }
        if payment.payment_method_id:
            params["payment_method"] = payment.payment_method_id
            params["off_session"] = True
        if payment.description:
            params["description"] = payment.description
        return await self.gateway.create_payment_intent(**params)
