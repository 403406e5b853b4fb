"""Checkout session API endpoints."""

from fastapi import APIRouter, Depends

from billsync.schemas.checkout import CheckoutSessionCreate, CheckoutSessionResponse
from billsync.services.billing_gateway import BillingGateway, get_billing_gateway
from billsync.services.checkout_service import CheckoutService

router = APIRouter()


@router.post(
    "/sessions",
    response_model=CheckoutSessionResponse,
    status_code=201,
    summary="Create checkout session",
    responses={
        422: {"description": "Validation error"},
        500: {"description": "Billing provider unavailable"},
    },
)
def create_checkout_session(
    data: CheckoutSessionCreate,
    gateway: BillingGateway = Depends(get_billing_gateway),
) -> CheckoutSessionResponse:
    """Open a subscription checkout for one price on behalf of a user."""
    session = CheckoutService(gateway).create_session(data)
    return CheckoutSessionResponse(session_id=session.session_id, url=session.url)
