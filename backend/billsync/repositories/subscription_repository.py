from sqlalchemy.orm import Session

from billsync.models.subscription import Subscription
from billsync.schemas.subscription import SubscriptionCreate, SubscriptionUpdate


class SubscriptionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_provider_id(self, provider_subscription_id: str) -> Subscription | None:
        return (
            self.db.query(Subscription)
            .filter(Subscription.provider_subscription_id == provider_subscription_id)
            .first()
        )

    def get_latest_by_user_id(self, user_id: str) -> Subscription | None:
        return (
            self.db.query(Subscription)
            .filter(Subscription.user_id == user_id)
            .order_by(Subscription.created_at.desc())
            .first()
        )

    def create(self, data: SubscriptionCreate) -> Subscription:
        subscription = Subscription(
            user_id=data.user_id,
            provider_customer_id=data.provider_customer_id,
            provider_subscription_id=data.provider_subscription_id,
            price_id=data.price_id,
            status=data.status.value,
            current_period_start=data.current_period_start,
            current_period_end=data.current_period_end,
            cancel_at=data.cancel_at,
            canceled_at=data.canceled_at,
            cancel_at_period_end=data.cancel_at_period_end,
        )
        self.db.add(subscription)
        self.db.commit()
        self.db.refresh(subscription)
        return subscription

    def update(self, subscription: Subscription, data: SubscriptionUpdate) -> Subscription:
        """Apply only the fields explicitly set on ``data``."""
        update_data = data.model_dump(exclude_unset=True)
        # Non-nullable columns are never cleared by a partial update
        for key in ("status", "price_id", "cancel_at_period_end"):
            if key in update_data and update_data[key] is None:
                del update_data[key]
        if "status" in update_data:
            update_data["status"] = update_data["status"].value
        for key, value in update_data.items():
            setattr(subscription, key, value)
        self.db.commit()
        self.db.refresh(subscription)
        return subscription
