"""Refund service for executing refunds through the billing provider."""

import logging
import time
from collections.abc import Callable
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from billsync.core.config import settings
from billsync.core.exceptions import ConflictError, NotFoundError, TransientProviderError
from billsync.models.refund import Refund
from billsync.repositories.refund_repository import RefundRepository
from billsync.schemas.refund import RefundCreate
from billsync.services.billing_gateway import BillingGateway
from billsync.services.retry import linear_backoff, retry_call

logger = logging.getLogger(__name__)


class RefundService:
    """Service for creating refunds and tracking their provider status."""

    def __init__(
        self,
        db: Session,
        gateway: BillingGateway | None = None,
        log: logging.Logger | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.db = db
        self.gateway = gateway
        self.logger = log or logger
        self.sleep = sleep
        self.refund_repo = RefundRepository(db)

    def create(self, data: RefundCreate, user_id: str) -> Refund:
        """Create a refund at the provider and persist the confirmed result.

        At most one live refund exists per payment intent. The stored id,
        amount and status come from the provider response, not the request.

        Raises:
            ConflictError: A refund for this payment intent already exists.
            TransientProviderError: Every attempt at the provider failed.
        """
        if self.gateway is None:
            raise RuntimeError("A billing gateway is required to create refunds")

        if self.refund_repo.get_by_payment_intent_id(data.payment_intent_id):
            self.logger.warning(
                "Refund already exists for payment intent %s", data.payment_intent_id
            )
            raise ConflictError("Refund already exists for this payment")

        reason = data.reason.value if data.reason else None
        gateway = self.gateway
        outcome = retry_call(
            lambda: gateway.create_refund(data.payment_intent_id, reason, data.amount),
            max_attempts=settings.refund_max_attempts,
            backoff=linear_backoff(settings.refund_backoff_seconds),
            sleep=self.sleep,
            log=self.logger,
        )
        if not outcome.succeeded or outcome.value is None:
            self.logger.error(
                "Failed to create refund for %s after %d attempts: %s",
                data.payment_intent_id,
                outcome.attempts,
                outcome.error,
            )
            raise TransientProviderError()

        confirmed = outcome.value
        self.logger.info(
            "Provider refund %s created for %s",
            confirmed.provider_refund_id,
            confirmed.payment_intent_id,
        )
        try:
            refund = self.refund_repo.create(
                provider_refund_id=confirmed.provider_refund_id,
                provider_payment_intent_id=confirmed.payment_intent_id,
                amount=confirmed.amount,
                status=confirmed.status,
                user_id=user_id,
                reason=reason,
            )
        except IntegrityError:
            self.db.rollback()
            self.logger.error(
                "Provider refund %s not saved: a live refund for %s was stored concurrently",
                confirmed.provider_refund_id,
                confirmed.payment_intent_id,
            )
            raise ConflictError("Refund already exists for this payment") from None
        self.logger.info("Refund %s saved", refund.id)
        return refund

    def update_status(self, provider_refund_id: str, status: str) -> Refund | None:
        """Mirror a provider status change.

        An unknown refund is logged and ignored: the status event may have
        raced ahead of the local record.
        """
        refund = self.refund_repo.get_by_provider_refund_id(provider_refund_id)
        if not refund:
            self.logger.warning("Refund %s not found for status update", provider_refund_id)
            return None

        updated = self.refund_repo.update_status(refund, status)
        self.logger.info("Refund %s status set to %s", refund.id, status)
        return updated

    def list_refunds(self, skip: int = 0, limit: int = 100) -> list[Refund]:
        return self.refund_repo.get_all(skip=skip, limit=limit)

    def get(self, refund_id: UUID) -> Refund:
        refund = self.refund_repo.get_by_id(refund_id)
        if not refund:
            raise NotFoundError("Refund not found")
        return refund

    def soft_delete(self, refund_id: UUID) -> None:
        if not self.refund_repo.soft_delete(refund_id):
            self.logger.warning("No refund %s to delete", refund_id)
            raise NotFoundError("Refund not found")
        self.logger.info("Refund %s soft deleted", refund_id)
