"""Plan catalog synchronization from the billing provider."""

import logging
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.orm import Session

from billsync.core.config import settings
from billsync.core.exceptions import NotFoundError
from billsync.models.plan import Plan, PlanInterval
from billsync.repositories.plan_repository import PlanRepository
from billsync.schemas.plan import PlanUpsert
from billsync.services.billing_gateway import BillingGateway, PriceSnapshot

logger = logging.getLogger(__name__)


def skip_reason(price: PriceSnapshot) -> str | None:
    """Why ``price`` cannot become a plan, or ``None`` if it qualifies."""
    if price.type != "recurring":
        return "not a recurring price"
    if not price.unit_amount or price.unit_amount <= 0:
        return "no positive unit amount"
    if price.product is None:
        return "product not expanded"
    if price.product.deleted:
        return "product deleted"
    if not price.product.name:
        return "product has no name"
    if price.interval not in {i.value for i in PlanInterval}:
        return "missing recurring interval"
    return None


class PlanSyncService:
    """Pulls the active recurring catalog and upserts local plans."""

    def __init__(
        self,
        db: Session,
        gateway: BillingGateway | None = None,
        log: logging.Logger | None = None,
    ):
        self.db = db
        self.gateway = gateway
        self.logger = log or logger
        self.plan_repo = PlanRepository(db)

    def run(self) -> list[Plan]:
        """Run one sync pass and return the plans inserted or refreshed.

        Only the first page of prices is read; catalogs larger than
        ``plan_sync_page_size`` are synced partially.
        """
        if self.gateway is None:
            raise RuntimeError("A billing gateway is required to sync plans")

        self.logger.info("Syncing plans from provider")
        prices = self.gateway.list_active_recurring_prices(settings.plan_sync_page_size)

        synced: list[Plan] = []
        for price in prices:
            reason = skip_reason(price)
            if reason is not None:
                self.logger.warning("Skipped price %s: %s", price.provider_price_id, reason)
                continue

            product = price.product
            try:
                data = PlanUpsert(
                    provider_product_id=product.provider_product_id,  # type: ignore[union-attr]
                    provider_price_id=price.provider_price_id,
                    name=product.name,  # type: ignore[union-attr]
                    amount=price.unit_amount,
                    currency=(price.currency or "usd").upper(),
                    interval=PlanInterval(price.interval),
                    description=product.description or None,  # type: ignore[union-attr]
                )
            except ValidationError as e:
                self.logger.warning(
                    "Skipped price %s: invalid plan data (%d error(s))",
                    price.provider_price_id,
                    e.error_count(),
                )
                continue

            plan = self.plan_repo.upsert(data)
            synced.append(plan)
            self.logger.debug("Plan synced for price %s", price.provider_price_id)

        self.logger.info("Total plans synced: %d", len(synced))
        return synced

    def list_plans(self, skip: int = 0, limit: int = 100) -> list[Plan]:
        return self.plan_repo.get_all(skip=skip, limit=limit)

    def get(self, plan_id: UUID) -> Plan:
        plan = self.plan_repo.get_by_id(plan_id)
        if not plan:
            raise NotFoundError("Plan not found")
        return plan
