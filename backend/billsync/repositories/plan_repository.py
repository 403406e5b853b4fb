from uuid import UUID

from sqlalchemy.orm import Session

from billsync.models.plan import Plan
from billsync.schemas.plan import PlanUpsert


class PlanRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self, skip: int = 0, limit: int = 100) -> list[Plan]:
        return (
            self.db.query(Plan)
            .order_by(Plan.amount.asc(), Plan.name.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_by_id(self, plan_id: UUID) -> Plan | None:
        return self.db.query(Plan).filter(Plan.id == plan_id).first()

    def get_by_keys(self, provider_product_id: str, provider_price_id: str) -> Plan | None:
        return (
            self.db.query(Plan)
            .filter(
                Plan.provider_product_id == provider_product_id,
                Plan.provider_price_id == provider_price_id,
            )
            .first()
        )

    def upsert(self, data: PlanUpsert) -> Plan:
        """Insert a plan or refresh the mutable fields of the existing one.

        Rows are matched on the product/price pair, which is never rewritten
        once stored.
        """
        plan = self.get_by_keys(data.provider_product_id, data.provider_price_id)
        if plan is None:
            plan = Plan(
                provider_product_id=data.provider_product_id,
                provider_price_id=data.provider_price_id,
            )
            self.db.add(plan)

        plan.name = data.name  # type: ignore[assignment]
        plan.amount = data.amount  # type: ignore[assignment]
        plan.currency = data.currency  # type: ignore[assignment]
        plan.interval = data.interval.value  # type: ignore[assignment]
        plan.description = data.description  # type: ignore[assignment]

        self.db.commit()
        self.db.refresh(plan)
        return plan
