"""Refund API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from billsync.core.database import get_db
from billsync.models.refund import Refund
from billsync.schemas.refund import RefundCreate, RefundResponse
from billsync.services.billing_gateway import BillingGateway, get_billing_gateway
from billsync.services.refund_service import RefundService

router = APIRouter()


@router.post(
    "/",
    response_model=RefundResponse,
    status_code=201,
    summary="Create refund",
    responses={
        409: {"description": "A refund already exists for this payment"},
        422: {"description": "Validation error"},
        500: {"description": "Billing provider unavailable"},
    },
)
def create_refund(
    data: RefundCreate,
    user_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    gateway: BillingGateway = Depends(get_billing_gateway),
) -> Refund:
    """Refund a payment intent at Stripe and record the confirmed refund."""
    return RefundService(db, gateway).create(data, user_id)


@router.get(
    "/",
    response_model=list[RefundResponse],
    summary="List refunds",
)
async def list_refunds(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[Refund]:
    return RefundService(db).list_refunds(skip=skip, limit=limit)


@router.get(
    "/{refund_id}",
    response_model=RefundResponse,
    summary="Get refund",
    responses={404: {"description": "Refund not found"}},
)
async def get_refund(
    refund_id: UUID,
    db: Session = Depends(get_db),
) -> Refund:
    return RefundService(db).get(refund_id)


@router.delete(
    "/{refund_id}",
    status_code=204,
    summary="Delete refund",
    responses={404: {"description": "Refund not found"}},
)
async def delete_refund(
    refund_id: UUID,
    db: Session = Depends(get_db),
) -> None:
    """Soft delete a refund record. The provider refund is not reversed."""
    RefundService(db).soft_delete(refund_id)
