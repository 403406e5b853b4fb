from billsync.models.plan import Plan, PlanInterval
from billsync.models.refund import Refund, RefundReason
from billsync.models.subscription import Subscription, SubscriptionStatus

__all__ = [
    "Plan",
    "PlanInterval",
    "Refund",
    "RefundReason",
    "Subscription",
    "SubscriptionStatus",
]
