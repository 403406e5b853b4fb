from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from billsync.models.plan import PlanInterval


class PlanUpsert(BaseModel):
    """Catalog entry derived from one provider price and its product."""

    provider_product_id: str = Field(..., min_length=1, max_length=255)
    provider_price_id: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    amount: int = Field(..., gt=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    interval: PlanInterval
    description: str | None = None


class PlanResponse(BaseModel):
    id: UUID
    provider_product_id: str
    provider_price_id: str
    name: str
    amount: int
    currency: str
    interval: PlanInterval
    description: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PlanSyncResponse(BaseModel):
    count: int
    plans: list[PlanResponse]
