from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint, func

from billsync.core.database import Base
from billsync.models.shared import UUIDType, generate_uuid


class PlanInterval(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class Plan(Base):
    __tablename__ = "plans"
    __table_args__ = (
        UniqueConstraint(
            "provider_product_id", "provider_price_id", name="uq_plans_product_price"
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    provider_product_id = Column(String(255), nullable=False, index=True)
    provider_price_id = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    interval = Column(String(10), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
