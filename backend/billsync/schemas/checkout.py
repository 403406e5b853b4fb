"""Checkout schemas."""

from pydantic import BaseModel, EmailStr, Field


class CheckoutSessionCreate(BaseModel):
    """Schema for opening a subscription checkout session."""

    email: EmailStr
    price_id: str = Field(..., min_length=1, max_length=255)
    user_id: str = Field(..., min_length=1, max_length=255)
    success_url: str = Field(..., description="URL to redirect after successful checkout")
    cancel_url: str = Field(..., description="URL to redirect if checkout is canceled")


class CheckoutSessionResponse(BaseModel):
    """Schema for checkout session response."""

    session_id: str
    url: str
