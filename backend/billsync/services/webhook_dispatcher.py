"""Routing of verified provider events to the sync handlers."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from billsync.core.exceptions import AuthenticationError, EventPayloadError
from billsync.models.subscription import SubscriptionStatus
from billsync.schemas.event import (
    CatalogChangedEvent,
    CheckoutSessionCompletedEvent,
    ProviderEvent,
    RefundUpdatedEvent,
    SubscriptionDeletedEvent,
    SubscriptionUpdatedEvent,
)
from billsync.schemas.subscription import SubscriptionCreate
from billsync.services.billing_gateway import BillingGateway
from billsync.services.plan_sync import PlanSyncService
from billsync.services.refund_service import RefundService
from billsync.services.subscription_service import SubscriptionService
from billsync.services.webhook_verifier import WebhookVerifier

logger = logging.getLogger(__name__)


class DispatchState(str, Enum):
    """Lifecycle of one inbound event.

    received -> verified -> classified -> handled | unhandled | failed,
    or received -> rejected when verification fails.
    """

    RECEIVED = "received"
    VERIFIED = "verified"
    CLASSIFIED = "classified"
    HANDLED = "handled"
    UNHANDLED = "unhandled"
    FAILED = "failed"
    REJECTED = "rejected"


@dataclass
class DispatchResult:
    success: bool
    message: str
    state: DispatchState
    event_type: str | None = None
    event_id: str | None = None


class WebhookDispatcher:
    """Verifies, classifies and routes one webhook delivery.

    Handler errors become failure results; nothing is retried here. A failure
    result is answered with a rejecting response so the provider redelivers.
    Event types without a handler are acknowledged as successful so the
    provider stops redelivering them.
    """

    def __init__(
        self,
        db: Session,
        gateway: BillingGateway,
        verifier: WebhookVerifier | None = None,
        subscription_service: SubscriptionService | None = None,
        refund_service: RefundService | None = None,
        plan_sync: PlanSyncService | None = None,
        log: logging.Logger | None = None,
    ):
        self.db = db
        self.gateway = gateway
        self.logger = log or logger
        self.verifier = verifier or WebhookVerifier(gateway, log=self.logger)
        self.subscription_service = subscription_service or SubscriptionService(
            db, gateway, log=self.logger
        )
        self.refund_service = refund_service or RefundService(db, gateway, log=self.logger)
        self.plan_sync = plan_sync or PlanSyncService(db, gateway, log=self.logger)
        self._handlers: dict[type[ProviderEvent], Callable[[Any], None]] = {
            CheckoutSessionCompletedEvent: self._handle_checkout_completed,
            SubscriptionUpdatedEvent: self._handle_subscription_updated,
            SubscriptionDeletedEvent: self._handle_subscription_deleted,
            RefundUpdatedEvent: self._handle_refund_updated,
            CatalogChangedEvent: self._handle_catalog_changed,
        }

    def dispatch(self, payload: bytes, signature: str | None) -> DispatchResult:
        """Process one raw webhook delivery and report the outcome."""
        try:
            event = self.verifier.verify(payload, signature)
        except AuthenticationError as e:
            self.logger.error("Webhook signature verification failed: %s", e.message)
            return DispatchResult(False, e.message, DispatchState.REJECTED)
        except EventPayloadError as e:
            self.logger.error("Webhook payload rejected: %s", e.message)
            return DispatchResult(False, e.message, DispatchState.FAILED)

        self.logger.info("Webhook event %s received: %s", event.id, event.type)
        handler = self._handlers.get(type(event))
        if handler is None:
            self.logger.warning("Unhandled event type %s", event.type)
            return DispatchResult(
                True,
                "Event type not handled",
                DispatchState.UNHANDLED,
                event_type=event.type,
                event_id=event.id,
            )

        try:
            handler(event)
        except Exception:
            self.db.rollback()
            self.logger.exception("Error handling %s event %s", event.type, event.id)
            return DispatchResult(
                False,
                f"Error handling {event.type}",
                DispatchState.FAILED,
                event_type=event.type,
                event_id=event.id,
            )

        return DispatchResult(
            True,
            "Webhook processed successfully",
            DispatchState.HANDLED,
            event_type=event.type,
            event_id=event.id,
        )

    def _handle_checkout_completed(self, event: CheckoutSessionCompletedEvent) -> None:
        """Record the subscription created by a completed checkout.

        Billing fields are re-read from the provider rather than taken from
        the checkout payload.
        """
        session = event.object
        if not session.client_reference_id:
            raise EventPayloadError(f"Checkout session {session.id} has no client_reference_id")
        if not session.subscription:
            raise EventPayloadError(f"Checkout session {session.id} has no subscription")

        snapshot = self.gateway.retrieve_subscription(session.subscription)
        self.subscription_service.create(
            SubscriptionCreate(
                user_id=session.client_reference_id,
                provider_customer_id=snapshot.provider_customer_id or session.customer or "",
                provider_subscription_id=snapshot.provider_subscription_id,
                price_id=snapshot.price_id,
                status=SubscriptionStatus(snapshot.status),
                current_period_start=snapshot.current_period_start,
                current_period_end=snapshot.current_period_end,
                cancel_at=snapshot.cancel_at,
                canceled_at=snapshot.canceled_at,
                cancel_at_period_end=snapshot.cancel_at_period_end,
            )
        )
        self.logger.info(
            "Subscription %s saved on checkout completion", snapshot.provider_subscription_id
        )

    def _handle_subscription_updated(self, event: SubscriptionUpdatedEvent) -> None:
        subscription = event.object
        self.subscription_service.update_by_provider_id(subscription.id, subscription.to_update())

    def _handle_subscription_deleted(self, event: SubscriptionDeletedEvent) -> None:
        self.subscription_service.cancel(event.object.id)

    def _handle_refund_updated(self, event: RefundUpdatedEvent) -> None:
        refund = event.object
        if not refund.status:
            self.logger.warning("Refund event for %s carries no status", refund.id)
            return
        self.refund_service.update_status(refund.id, refund.status)

    def _handle_catalog_changed(self, event: CatalogChangedEvent) -> None:
        plans = self.plan_sync.run()
        self.logger.info("Catalog change %s synced %d plans", event.type, len(plans))
