"""Refund repository for data access."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.orm import Query, Session

from billsync.models.refund import Refund


class RefundRepository:
    """Repository for Refund model.

    Soft-deleted refunds are excluded from every lookup.
    """

    def __init__(self, db: Session):
        self.db = db

    def _active(self) -> Query[Refund]:
        return self.db.query(Refund).filter(Refund.deleted_at.is_(None))

    def get_all(self, skip: int = 0, limit: int = 100) -> list[Refund]:
        """Get refunds, newest first."""
        return self._active().order_by(Refund.created_at.desc()).offset(skip).limit(limit).all()

    def get_by_id(self, refund_id: UUID) -> Refund | None:
        return self._active().filter(Refund.id == refund_id).first()

    def get_by_payment_intent_id(self, payment_intent_id: str) -> Refund | None:
        return (
            self._active()
            .filter(Refund.provider_payment_intent_id == payment_intent_id)
            .first()
        )

    def get_by_provider_refund_id(self, provider_refund_id: str) -> Refund | None:
        return self._active().filter(Refund.provider_refund_id == provider_refund_id).first()

    def create(
        self,
        provider_refund_id: str,
        provider_payment_intent_id: str,
        amount: int,
        status: str,
        user_id: str,
        reason: str | None = None,
    ) -> Refund:
        """Create a new refund."""
        refund = Refund(
            provider_refund_id=provider_refund_id,
            provider_payment_intent_id=provider_payment_intent_id,
            amount=amount,
            status=status,
            user_id=user_id,
            reason=reason,
        )
        self.db.add(refund)
        self.db.commit()
        self.db.refresh(refund)
        return refund

    def update_status(self, refund: Refund, status: str) -> Refund:
        refund.status = status  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(refund)
        return refund

    def soft_delete(self, refund_id: UUID) -> bool:
        """Mark a refund as deleted. The row is kept."""
        refund = self.get_by_id(refund_id)
        if not refund:
            return False
        refund.deleted_at = datetime.now(UTC)  # type: ignore[assignment]
        self.db.commit()
        return True
