"""
Stripe webhook endpoint.
"""

from fastapi import APIRouter, Header, HTTPException, Request, status

from matlinks.billing.errors import WebhookError
from matlinks.core.logging_config import get_logger
from matlinks.server.services.deps import PaymentFailuresDep, SessionDep, StripeDep
from matlinks.server.services.webhooks import StripeWebhookHandler

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post(
    "/stripe",
    summary="Stripe Webhook",
    description="Receive signed events from Stripe.",
    responses={400: {"description": "Missing or invalid signature, or the event could not be processed"}},
)
async def stripe_webhook(
    request: Request,
    session: SessionDep,
    gateway: StripeDep,
    failures: PaymentFailuresDep,
    stripe_signature: str | None = Header(default=None, alias="stripe-signature"),
) -> dict:
    if not stripe_signature:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing stripe-signature header")

    payload = await request.body()
    try:
        event = gateway.construct_webhook_event(payload, stripe_signature)
    except WebhookError as e:
        logger.warning(f"Rejected Stripe webhook: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Webhook error") from e

    try:
        await StripeWebhookHandler(session, failures).handle(event)
    except Exception as e:
        await session.rollback()
        logger.error(f"Stripe webhook {event.get('type')} ({event.get('id')}) failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Webhook error") from e

    return {"received": True}
