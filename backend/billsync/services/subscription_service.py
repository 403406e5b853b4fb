"""Subscription reconciliation against provider state."""

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from billsync.core.exceptions import NotFoundError
from billsync.models.subscription import Subscription, SubscriptionStatus
from billsync.repositories.subscription_repository import SubscriptionRepository
from billsync.schemas.subscription import SubscriptionCreate, SubscriptionUpdate
from billsync.services.billing_gateway import BillingGateway

logger = logging.getLogger(__name__)


class SubscriptionService:
    """Creates, merges and cancels local subscription records.

    Records are addressed by the provider subscription id. Concurrent updates
    for the same id are not serialized; the last commit wins.
    """

    def __init__(
        self,
        db: Session,
        gateway: BillingGateway | None = None,
        log: logging.Logger | None = None,
    ):
        self.db = db
        self.gateway = gateway
        self.logger = log or logger
        self.subscription_repo = SubscriptionRepository(db)

    def create(self, data: SubscriptionCreate) -> Subscription:
        """Insert a subscription, or return the stored one unchanged if it exists."""
        existing = self.subscription_repo.get_by_provider_id(data.provider_subscription_id)
        if existing:
            self.logger.warning(
                "Subscription %s already exists, skipping create",
                data.provider_subscription_id,
            )
            return existing

        subscription = self.subscription_repo.create(data)
        self.logger.info(
            "Subscription %s saved as %s", data.provider_subscription_id, subscription.id
        )
        return subscription

    def get_by_user_id(self, user_id: str) -> Subscription:
        subscription = self.subscription_repo.get_latest_by_user_id(user_id)
        if not subscription:
            raise NotFoundError("Subscription not found")
        return subscription

    def _get_by_provider_id(self, provider_subscription_id: str) -> Subscription:
        subscription = self.subscription_repo.get_by_provider_id(provider_subscription_id)
        if not subscription:
            self.logger.warning("Subscription %s not found", provider_subscription_id)
            raise NotFoundError("Subscription not found")
        return subscription

    def update_by_provider_id(
        self, provider_subscription_id: str, data: SubscriptionUpdate
    ) -> Subscription:
        """Merge the fields set on ``data`` into the stored subscription.

        Raises:
            NotFoundError: No subscription has this provider id, e.g. an update
                event delivered before the creating checkout event.
        """
        subscription = self._get_by_provider_id(provider_subscription_id)
        self.logger.info(
            "Updating subscription %s fields %s",
            provider_subscription_id,
            sorted(data.model_fields_set),
        )
        return self.subscription_repo.update(subscription, data)

    def cancel(self, provider_subscription_id: str) -> Subscription:
        """Mark the subscription canceled as of now (processing time)."""
        subscription = self._get_by_provider_id(provider_subscription_id)
        updated = self.subscription_repo.update(
            subscription,
            SubscriptionUpdate(
                status=SubscriptionStatus.CANCELED,
                canceled_at=datetime.now(UTC),
            ),
        )
        self.logger.info("Subscription %s canceled", provider_subscription_id)
        return updated

    def cancel_at_provider(self, provider_subscription_id: str) -> Subscription:
        """Cancel at the provider first, then mirror the cancellation locally."""
        if self.gateway is None:
            raise RuntimeError("A billing gateway is required to cancel at the provider")
        self._get_by_provider_id(provider_subscription_id)
        self.gateway.cancel_subscription(provider_subscription_id)
        return self.cancel(provider_subscription_id)
