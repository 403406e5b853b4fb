import logging
from typing import Any

from arq import cron

from billsync.core.config import settings
from billsync.core.database import SessionLocal
from billsync.core.logging_config import configure_logging
from billsync.services.billing_gateway import StripeGateway
from billsync.services.plan_sync import PlanSyncService
from billsync.tasks import redis_settings

logger = logging.getLogger(__name__)


async def sync_plans_task(ctx: dict[str, Any]) -> int:
    """Background task: pull the provider catalog and upsert local plans.

    Runs on the minutes configured by ``plan_sync_cron_minutes``.
    """
    db = SessionLocal()
    try:
        service = PlanSyncService(db, StripeGateway(), log=logger)
        plans = service.run()
        logger.info("Scheduled plan sync finished with %d plans", len(plans))
        return len(plans)
    finally:
        db.close()


async def startup(ctx: dict[str, Any]) -> None:
    configure_logging()


class WorkerSettings:
    functions = [sync_plans_task]
    cron_jobs = [
        cron(sync_plans_task, minute=settings.plan_sync_minutes),
    ]
    on_startup = startup
    redis_settings = redis_settings
