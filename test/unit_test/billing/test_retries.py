"""Unit tests for the failed-payment retry schedule."""

from datetime import datetime, timezone

import pytest

from matlinks.billing.retries import (
    build_retry_attempts,
    cancel_remaining,
    classify_failure,
    describe_attempt,
    generate_retry_dates,
    has_exhausted_retries,
    is_due,
    next_retry_attempt,
    update_attempt_status,
)
from matlinks.core.database.entities.payments import PaymentFailureType, RetryStatus

FAILED_AT = datetime(2024, 5, 1, 9, 0, 0, tzinfo=timezone.utc)


class TestClassifyFailure:
    @pytest.mark.parametrize(
        "codes,expected",
        [
            (("insufficient_funds",), PaymentFailureType.INSUFFICIENT_FUNDS),
            (("incorrect_cvc",), PaymentFailureType.INVALID_CVC),
            ((None, "expired_card"), PaymentFailureType.EXPIRED_CARD),
            (("do_not_honor", "card_declined"), PaymentFailureType.CARD_DECLINED),
            (("generic_decline", None), PaymentFailureType.UNKNOWN),
            ((), PaymentFailureType.UNKNOWN),
        ],
    )
    def test_first_recognised_code_wins(self, codes, expected):
        assert classify_failure(*codes) == expected


class TestSchedule:
    def test_default_schedule_is_one_three_seven_days(self):
        dates = generate_retry_dates(FAILED_AT)

        assert [d.day for d in dates] == [2, 4, 8]

    def test_build_attempts(self):
        attempts = build_retry_attempts("in_1_failure", FAILED_AT)

        assert [a["id"] for a in attempts] == [
            "in_1_failure_retry_1",
            "in_1_failure_retry_2",
            "in_1_failure_retry_3",
        ]
        assert attempts[0]["scheduled_for"] == "2024-05-02T09:00:00+00:00"
        assert all(a["status"] == RetryStatus.SCHEDULED.value for a in attempts)

    def test_max_retries_truncates(self):
        attempts = build_retry_attempts("in_1_failure", FAILED_AT, schedule=(2, 4, 6), max_retries=2)

        assert [a["attempt_number"] for a in attempts] == [1, 2]
        assert attempts[1]["scheduled_for"] == "2024-05-05T09:00:00+00:00"


class TestAttemptState:
    def test_next_and_due(self):
        attempts = build_retry_attempts("in_1_failure", FAILED_AT)
        attempts = update_attempt_status(attempts, "in_1_failure_retry_1", RetryStatus.FAILED, FAILED_AT)

        upcoming = next_retry_attempt(attempts)

        assert upcoming["attempt_number"] == 2
        assert is_due(upcoming, datetime(2024, 5, 3, 9, 0, tzinfo=timezone.utc)) is False
        assert is_due(upcoming, datetime(2024, 5, 4, 9, 0, tzinfo=timezone.utc)) is True

    def test_update_returns_new_list(self):
        attempts = build_retry_attempts("in_1_failure", FAILED_AT)
        now = datetime(2024, 5, 2, 9, 5, tzinfo=timezone.utc)

        updated = update_attempt_status(attempts, "in_1_failure_retry_1", RetryStatus.FAILED, now, "declined")

        assert updated is not attempts
        assert attempts[0]["status"] == RetryStatus.SCHEDULED.value
        assert updated[0]["status"] == RetryStatus.FAILED.value
        assert updated[0]["attempted_at"] == now.isoformat()
        assert updated[0]["error_message"] == "declined"

    def test_exhausted_after_all_attempts_ran(self):
        attempts = build_retry_attempts("in_1_failure", FAILED_AT, schedule=(1,))
        assert has_exhausted_retries(attempts) is False

        attempts = update_attempt_status(attempts, "in_1_failure_retry_1", RetryStatus.PROCESSING, FAILED_AT)
        assert has_exhausted_retries(attempts) is False

        attempts = update_attempt_status(attempts, "in_1_failure_retry_1", RetryStatus.FAILED, FAILED_AT)
        assert has_exhausted_retries(attempts) is True
        assert next_retry_attempt(attempts) is None

    def test_cancel_remaining_keeps_history(self):
        attempts = build_retry_attempts("in_1_failure", FAILED_AT)
        attempts = update_attempt_status(attempts, "in_1_failure_retry_1", RetryStatus.FAILED, FAILED_AT)

        cancelled = cancel_remaining(attempts)

        assert [a["status"] for a in cancelled] == ["failed", "cancelled", "cancelled"]
        assert has_exhausted_retries(cancelled) is True


class TestDescribeAttempt:
    def test_scheduled(self):
        attempt = build_retry_attempts("in_1_failure", FAILED_AT)[0]

        assert describe_attempt(attempt) == "Attempt #1 - Scheduled for May 2, 2024"

    def test_failed_with_error(self):
        attempts = build_retry_attempts("in_1_failure", FAILED_AT)
        failed_at = datetime(2024, 5, 2, 10, tzinfo=timezone.utc)
        attempts = update_attempt_status(attempts, "in_1_failure_retry_1", RetryStatus.FAILED, failed_at, "Card declined")

        assert describe_attempt(attempts[0]) == "Attempt #1 - Failed on May 2, 2024 - Card declined"
