from billsync.schemas.checkout import CheckoutSessionCreate, CheckoutSessionResponse
from billsync.schemas.plan import PlanResponse, PlanSyncResponse, PlanUpsert
from billsync.schemas.refund import RefundCreate, RefundResponse
from billsync.schemas.subscription import (
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionUpdate,
)

__all__ = [
    "CheckoutSessionCreate",
    "CheckoutSessionResponse",
    "PlanResponse",
    "PlanSyncResponse",
    "PlanUpsert",
    "RefundCreate",
    "RefundResponse",
    "SubscriptionCreate",
    "SubscriptionResponse",
    "SubscriptionUpdate",
]
