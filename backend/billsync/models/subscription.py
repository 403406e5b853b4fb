from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, String, func

from billsync.core.database import Base
from billsync.models.shared import UUIDType, generate_uuid


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    INCOMPLETE = "incomplete"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    UNPAID = "unpaid"
    CANCELED = "canceled"
    INCOMPLETE_EXPIRED = "incomplete_expired"


class Subscription(Base):
    """Local mirror of a provider subscription, keyed by the provider id."""

    __tablename__ = "subscriptions"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(String(255), nullable=False, index=True)
    provider_customer_id = Column(String(255), nullable=False)
    provider_subscription_id = Column(String(255), unique=True, index=True, nullable=False)
    price_id = Column(String(255), nullable=False)
    status = Column(String(30), nullable=False, default=SubscriptionStatus.ACTIVE.value)
    current_period_start = Column(DateTime(timezone=True), nullable=True)
    current_period_end = Column(DateTime(timezone=True), nullable=True)
    cancel_at = Column(DateTime(timezone=True), nullable=True)
    canceled_at = Column(DateTime(timezone=True), nullable=True)
    cancel_at_period_end = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
