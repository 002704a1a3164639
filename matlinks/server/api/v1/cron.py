"""
Scheduled job endpoints.

Called by the platform scheduler with ``Authorization: Bearer <CRON_SECRET>``.
Both GET and POST are accepted since schedulers differ in which they send.
"""

import secrets
import time
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from matlinks.core.database.base import utc_now
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.billing import (
    CancellationCounts,
    CronRunResult,
    DunningCronResult,
    NotificationCounts,
)
from matlinks.server.core.config import settings
from matlinks.server.services.deps import DunningDep, PaymentFailuresDep

logger = get_logger(__name__)


async def verify_cron_secret(authorization: Optional[str] = Header(default=None)) -> None:
    """Reject the call unless it carries the configured cron secret."""
    if not settings.cron_secret:
        logger.error("CRON_SECRET is not configured; refusing cron call")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    expected = f"Bearer {settings.cron_secret}"
    if authorization is None or not secrets.compare_digest(authorization, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


router = APIRouter(tags=["cron"], dependencies=[Depends(verify_cron_secret)])


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


@router.api_route(
    "/process-payment-retries",
    methods=["GET", "POST"],
    response_model=CronRunResult,
    summary="Process Payment Retries",
    description="Retry every failed subscription invoice whose next attempt is due.",
    responses={401: {"description": "Missing or wrong cron secret"}},
)
async def process_payment_retries(failures: PaymentFailuresDep) -> CronRunResult:
    started = time.perf_counter()
    logger.info("Cron: processing scheduled payment retries")
    summary = await failures.process_scheduled_retries()
    return CronRunResult(
        processed=summary.processed,
        succeeded=summary.succeeded,
        failed=summary.failed,
        message=f"Processed {summary.processed} payment retries",
        elapsedMs=_elapsed_ms(started),
        timestamp=utc_now(),
    )


@router.api_route(
    "/process-dunning",
    methods=["GET", "POST"],
    response_model=DunningCronResult,
    summary="Process Dunning",
    description="Send due dunning emails, then cancel subscriptions whose grace period has ended.",
    responses={401: {"description": "Missing or wrong cron secret"}},
)
async def process_dunning(dunning: DunningDep) -> DunningCronResult:
    started = time.perf_counter()
    logger.info("Cron: processing dunning notifications")
    notifications = await dunning.process_pending_notifications()
    cancellations = await dunning.process_pending_cancellations()
    return DunningCronResult(
        notifications=NotificationCounts(
            processed=notifications.processed,
            sent=notifications.sent,
            failed=notifications.failed,
            skipped=notifications.skipped,
        ),
        cancellations=CancellationCounts(processed=cancellations),
        elapsedMs=_elapsed_ms(started),
        timestamp=utc_now(),
    )
