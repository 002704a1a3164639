"""
Membership subscription endpoints.
"""

from fastapi import APIRouter, HTTPException, status

from matlinks.core.database.entities.profiles import Profile
from matlinks.core.models.io.billing import (
    SubscriptionCancelRequest,
    SubscriptionChangePlan,
    SubscriptionCreate,
    SubscriptionCreated,
    SubscriptionRead,
)
from matlinks.server.services.deps import CurrentUserDep, SessionDep, SubscriptionsDep

router = APIRouter(tags=["subscriptions"])


@router.post(
    "",
    response_model=SubscriptionCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create Subscription",
    description="Subscribe a member to a plan that has a Stripe price.",
    responses={
        400: {"description": "Plan unavailable or member has no Stripe customer"},
        403: {"description": "Only admins may subscribe another member"},
        404: {"description": "Plan or member not found"},
    },
)
async def create_subscription(
    payload: SubscriptionCreate,
    user: CurrentUserDep,
    session: SessionDep,
    subscriptions: SubscriptionsDep,
) -> SubscriptionCreated:
    """
    Create a subscription.

    - **membership_plan_id**: The plan to subscribe to.
    - **payment_method_id**: Optional card to attach and make the default.
    - **member_id**: Admins only; the member to subscribe instead of the caller.

    When the first invoice needs confirming, ``client_secret`` is returned.
    """
    member = user
    if payload.member_id and payload.member_id != user.id:
        if not user.has_admin_access:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        member = await session.get(Profile, payload.member_id)
        if member is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")

    return await subscriptions.create(member, payload.membership_plan_id, payload.payment_method_id)


@router.get(
    "/{subscription_id}",
    response_model=SubscriptionRead,
    summary="Get Subscription",
    responses={404: {"description": "Subscription not found"}},
)
async def get_subscription(
    subscription_id: str, user: CurrentUserDep, subscriptions: SubscriptionsDep
) -> SubscriptionRead:
    return SubscriptionRead.model_validate(await subscriptions.get_owned(user, subscription_id))


@router.post(
    "/{subscription_id}/cancel",
    response_model=SubscriptionRead,
    summary="Cancel Subscription",
    description="Cancel at the end of the period, or immediately with a prorated final invoice.",
    responses={404: {"description": "Subscription not found"}},
)
async def cancel_subscription(
    subscription_id: str,
    payload: SubscriptionCancelRequest,
    user: CurrentUserDep,
    subscriptions: SubscriptionsDep,
) -> SubscriptionRead:
    """
    Cancel a subscription.

    - **immediate**: End now instead of at the period end.
    - **reason**: Optional reason kept in the cancellation record.
    """
    subscription = await subscriptions.cancel(user, subscription_id, payload.immediate, payload.reason)
    return SubscriptionRead.model_validate(subscription)


@router.post(
    "/{subscription_id}/change-plan",
    response_model=SubscriptionRead,
    summary="Change Plan",
    description="Move a subscription to another plan, prorating the difference.",
    responses={
        400: {"description": "Target plan unavailable"},
        404: {"description": "Subscription or plan not found"},
    },
)
async def change_plan(
    subscription_id: str,
    payload: SubscriptionChangePlan,
    user: CurrentUserDep,
    subscriptions: SubscriptionsDep,
) -> SubscriptionRead:
    subscription = await subscriptions.change_plan(user, subscription_id, payload.membership_plan_id)
    return SubscriptionRead.model_validate(subscription)
