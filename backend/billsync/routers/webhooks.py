"""Inbound billing provider webhooks."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from billsync.core.database import get_db
from billsync.services.billing_gateway import BillingGateway, get_billing_gateway
from billsync.services.webhook_dispatcher import WebhookDispatcher

logger = logging.getLogger(__name__)

router = APIRouter()


async def raw_body(request: Request) -> bytes:
    """The request body exactly as received."""
    return await request.body()


@router.post(
    "/stripe",
    summary="Receive Stripe webhook",
    responses={400: {"description": "Invalid signature or event could not be handled"}},
)
def handle_stripe_webhook(
    payload: bytes = Depends(raw_body),
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
    gateway: BillingGateway = Depends(get_billing_gateway),
) -> dict[str, Any]:
    """Verify and process one Stripe event.

    The body is read untouched; the signature covers the exact bytes sent.
    Any failure answers 400 so Stripe redelivers the event. Runs on the
    threadpool since dispatch makes blocking Stripe and database calls.
    """
    result = WebhookDispatcher(db, gateway).dispatch(payload, stripe_signature)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return {"received": True}
