"""Refund schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from billsync.models.refund import RefundReason


class RefundCreate(BaseModel):
    """Schema for requesting a refund of one payment intent."""

    payment_intent_id: str = Field(..., min_length=1, max_length=255)
    reason: RefundReason | None = None
    amount: int | None = Field(
        default=None,
        gt=0,
        description="Amount in minor units. Omit to refund the full charge.",
    )


class RefundResponse(BaseModel):
    """Schema for refund response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    provider_refund_id: str
    provider_payment_intent_id: str
    reason: str | None = None
    amount: int
    status: str
    user_id: str
    created_at: datetime
    updated_at: datetime
