"""
Failed-payment retry schedule.

A failed invoice gets one retry attempt per entry of the schedule, each a
number of days after the failure. Attempts are plain dicts so they can be
stored in the ``failed_payments.retry_attempts`` JSON column::

    {
        "id": "in_123_failure_retry_1",
        "attempt_number": 1,
        "scheduled_for": "2024-05-02T09:00:00+00:00",
        "status": "scheduled",
        "attempted_at": None,
        "error_message": None,
    }
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from matlinks.core.database.base import as_utc
from matlinks.core.database.entities.payments import PaymentFailureType, RetryStatus

DEFAULT_RETRY_SCHEDULE: tuple[int, ...] = (1, 3, 7)

FAILURE_TYPE_MESSAGES = {
    PaymentFailureType.INSUFFICIENT_FUNDS: "Insufficient funds in the account",
    PaymentFailureType.CARD_DECLINED: "Card was declined by the issuer",
    PaymentFailureType.EXPIRED_CARD: "Card has expired",
    PaymentFailureType.INVALID_CVC: "Invalid CVC code provided",
    PaymentFailureType.PROCESSING_ERROR: "Payment processor encountered an error",
    PaymentFailureType.UNKNOWN: "Unknown payment failure",
}

RetryAttempt = Dict[str, Any]


def classify_failure(*codes: Optional[str]) -> PaymentFailureType:
    """Map the first recognised Stripe code (decline code, error code, type) to a failure type."""
    for code in codes:
        if not code:
            continue
        if code == "incorrect_cvc":
            return PaymentFailureType.INVALID_CVC
        try:
            return PaymentFailureType(code)
        except ValueError:
            continue
    return PaymentFailureType.UNKNOWN


def generate_retry_dates(base_date: datetime, schedule: Sequence[int] = DEFAULT_RETRY_SCHEDULE) -> List[datetime]:
    return [base_date + timedelta(days=days) for days in schedule]


def build_retry_attempts(
    failed_payment_id: str,
    failure_date: datetime,
    schedule: Sequence[int] = DEFAULT_RETRY_SCHEDULE,
    max_retries: Optional[int] = None,
) -> List[RetryAttempt]:
    """Create the scheduled attempts for a new failure.

    Args:
        failed_payment_id: Id of the failed payment, used as attempt id prefix
        failure_date: When the charge failed
        schedule: Days after the failure for each attempt
        max_retries: Truncate the schedule to this many attempts
    """
    if max_retries is not None:
        schedule = list(schedule)[:max_retries]
    return [
        {
            "id": f"{failed_payment_id}_retry_{number}",
            "attempt_number": number,
            "scheduled_for": scheduled_for.isoformat(),
            "status": RetryStatus.SCHEDULED.value,
            "attempted_at": None,
            "error_message": None,
        }
        for number, scheduled_for in enumerate(generate_retry_dates(failure_date, schedule), start=1)
    ]


def next_retry_attempt(attempts: Sequence[RetryAttempt]) -> Optional[RetryAttempt]:
    """First attempt still scheduled, or None."""
    for attempt in attempts:
        if attempt["status"] == RetryStatus.SCHEDULED.value:
            return attempt
    return None


def is_due(attempt: RetryAttempt, now: datetime) -> bool:
    return as_utc(datetime.fromisoformat(attempt["scheduled_for"])) <= as_utc(now)


def has_exhausted_retries(attempts: Sequence[RetryAttempt]) -> bool:
    """True when no attempt is scheduled or in flight."""
    return not any(
        attempt["status"] in (RetryStatus.SCHEDULED.value, RetryStatus.PROCESSING.value) for attempt in attempts
    )


def update_attempt_status(
    attempts: Sequence[RetryAttempt],
    attempt_id: str,
    status: RetryStatus,
    now: datetime,
    error_message: Optional[str] = None,
) -> List[RetryAttempt]:
    """Return a new attempt list with one attempt moved to ``status``.

    A new list is returned so that assigning it back to the entity marks the
    JSON column dirty.
    """
    updated = []
    for attempt in attempts:
        if attempt["id"] == attempt_id:
            attempt = {**attempt, "status": status.value, "error_message": error_message}
            if status != RetryStatus.SCHEDULED:
                attempt["attempted_at"] = now.isoformat()
        updated.append(attempt)
    return updated


def cancel_remaining(attempts: Sequence[RetryAttempt]) -> List[RetryAttempt]:
    """Cancel every attempt that has not run yet."""
    return [
        {**attempt, "status": RetryStatus.CANCELLED.value}
        if attempt["status"] == RetryStatus.SCHEDULED.value
        else dict(attempt)
        for attempt in attempts
    ]


def describe_attempt(attempt: RetryAttempt) -> str:
    """Human-readable one-liner for admin views."""
    status = attempt["status"]
    text = f"Attempt #{attempt['attempt_number']} - {status.capitalize()}"
    if status == RetryStatus.SCHEDULED.value:
        scheduled_for = datetime.fromisoformat(attempt["scheduled_for"])
        return f"{text} for {scheduled_for:%b} {scheduled_for.day}, {scheduled_for.year}"
    if attempt.get("attempted_at"):
        attempted_at = datetime.fromisoformat(attempt["attempted_at"])
        text = f"{text} on {attempted_at:%b} {attempted_at.day}, {attempted_at.year}"
        if attempt.get("error_message"):
            text = f"{text} - {attempt['error_message']}"
    return text
