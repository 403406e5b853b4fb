from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from billsync.models.subscription import SubscriptionStatus


class SubscriptionCreate(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=255)
    provider_customer_id: str = Field(..., min_length=1, max_length=255)
    provider_subscription_id: str = Field(..., min_length=1, max_length=255)
    price_id: str = Field(..., min_length=1, max_length=255)
    status: SubscriptionStatus
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at: datetime | None = None
    canceled_at: datetime | None = None
    cancel_at_period_end: bool = False


class SubscriptionUpdate(BaseModel):
    """Partial update. Only fields that were explicitly set are applied."""

    status: SubscriptionStatus | None = None
    price_id: str | None = Field(default=None, min_length=1, max_length=255)
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at: datetime | None = None
    canceled_at: datetime | None = None
    cancel_at_period_end: bool | None = None


class SubscriptionResponse(BaseModel):
    id: UUID
    user_id: str
    provider_customer_id: str
    provider_subscription_id: str
    price_id: str
    status: SubscriptionStatus
    current_period_start: datetime | None
    current_period_end: datetime | None
    cancel_at: datetime | None
    canceled_at: datetime | None
    cancel_at_period_end: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
