"""Refund model - one provider-confirmed refund per payment intent."""

from enum import Enum

from sqlalchemy import Column, DateTime, Index, Integer, String, func, text

from billsync.core.database import Base
from billsync.models.shared import UUIDType, generate_uuid


class RefundReason(str, Enum):
    """Refund reasons accepted by the provider."""

    DUPLICATE = "duplicate"
    FRAUDULENT = "fraudulent"
    REQUESTED_BY_CUSTOMER = "requested_by_customer"


class Refund(Base):
    """Refund model.

    ``status`` mirrors the provider's refund status verbatim (pending,
    succeeded, failed, canceled, requires_action, ...).
    """

    __tablename__ = "refunds"
    __table_args__ = (
        # Soft-deleted rows do not count against the one-refund-per-intent rule
        Index(
            "uq_refunds_live_payment_intent",
            "provider_payment_intent_id",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    provider_refund_id = Column(String(255), nullable=False, index=True)
    provider_payment_intent_id = Column(String(255), nullable=False, index=True)
    reason = Column(String(50), nullable=True)
    amount = Column(Integer, nullable=False)
    status = Column(String(30), nullable=False)
    user_id = Column(String(255), nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)
