from billsync.repositories.plan_repository import PlanRepository
from billsync.repositories.refund_repository import RefundRepository
from billsync.repositories.subscription_repository import SubscriptionRepository

__all__ = [
    "PlanRepository",
    "RefundRepository",
    "SubscriptionRepository",
]
