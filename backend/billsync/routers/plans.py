"""Plan catalog API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from billsync.core.database import get_db
from billsync.models.plan import Plan
from billsync.schemas.plan import PlanResponse, PlanSyncResponse
from billsync.services.billing_gateway import BillingGateway, get_billing_gateway
from billsync.services.plan_sync import PlanSyncService
from billsync.tasks import enqueue_plan_sync

router = APIRouter()


@router.post(
    "/sync",
    response_model=PlanSyncResponse,
    summary="Sync plans from Stripe",
    responses={500: {"description": "Billing provider unavailable"}},
)
def sync_plans(
    db: Session = Depends(get_db),
    gateway: BillingGateway = Depends(get_billing_gateway),
) -> PlanSyncResponse:
    """Pull active recurring prices from Stripe and upsert local plans."""
    plans = PlanSyncService(db, gateway).run()
    return PlanSyncResponse(
        count=len(plans),
        plans=[PlanResponse.model_validate(plan) for plan in plans],
    )


@router.post(
    "/sync/enqueue",
    status_code=202,
    summary="Schedule a plan sync",
)
async def enqueue_sync_plans() -> dict[str, str]:
    """Queue a catalog sync on the background worker."""
    job = await enqueue_plan_sync()
    return {"job_id": job.job_id}


@router.get(
    "/",
    response_model=list[PlanResponse],
    summary="List plans",
)
async def list_plans(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[Plan]:
    return PlanSyncService(db).list_plans(skip=skip, limit=limit)


@router.get(
    "/{plan_id}",
    response_model=PlanResponse,
    summary="Get plan",
    responses={404: {"description": "Plan not found"}},
)
async def get_plan(
    plan_id: UUID,
    db: Session = Depends(get_db),
) -> Plan:
    return PlanSyncService(db).get(plan_id)
