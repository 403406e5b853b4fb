"""Subscription API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from billsync.core.database import get_db
from billsync.models.subscription import Subscription
from billsync.schemas.subscription import (
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionUpdate,
)
from billsync.services.billing_gateway import BillingGateway, get_billing_gateway
from billsync.services.subscription_service import SubscriptionService

router = APIRouter()


@router.post(
    "/",
    response_model=SubscriptionResponse,
    status_code=201,
    summary="Create subscription",
    responses={422: {"description": "Validation error"}},
)
async def create_subscription(
    data: SubscriptionCreate,
    db: Session = Depends(get_db),
) -> Subscription:
    """Record a subscription. Returns the stored record if it already exists."""
    return SubscriptionService(db).create(data)


@router.get(
    "/user/{user_id}",
    response_model=SubscriptionResponse,
    summary="Get subscription for user",
    responses={404: {"description": "Subscription not found"}},
)
async def get_user_subscription(
    user_id: str,
    db: Session = Depends(get_db),
) -> Subscription:
    """Get the most recent subscription of a user."""
    return SubscriptionService(db).get_by_user_id(user_id)


@router.patch(
    "/{provider_subscription_id}",
    response_model=SubscriptionResponse,
    summary="Update subscription",
    responses={
        404: {"description": "Subscription not found"},
        422: {"description": "Validation error"},
    },
)
async def update_subscription(
    provider_subscription_id: str,
    data: SubscriptionUpdate,
    db: Session = Depends(get_db),
) -> Subscription:
    """Apply a partial update; omitted fields keep their stored values."""
    return SubscriptionService(db).update_by_provider_id(provider_subscription_id, data)


@router.post(
    "/{provider_subscription_id}/cancel",
    response_model=SubscriptionResponse,
    summary="Cancel subscription",
    responses={
        404: {"description": "Subscription not found"},
        500: {"description": "Billing provider unavailable"},
    },
)
def cancel_subscription(
    provider_subscription_id: str,
    at_provider: bool = Query(default=False),
    db: Session = Depends(get_db),
    gateway: BillingGateway = Depends(get_billing_gateway),
) -> Subscription:
    """Mark a subscription canceled.

    With ``at_provider`` the subscription is canceled at Stripe first.
    """
    service = SubscriptionService(db, gateway)
    if at_provider:
        return service.cancel_at_provider(provider_subscription_id)
    return service.cancel(provider_subscription_id)
