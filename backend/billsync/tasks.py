from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from billsync.core.config import settings

redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    """Open a new arq Redis pool. The caller closes it."""
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job:
    """Queue ``task_name`` for the billsync worker on a short-lived pool.

    Extra arguments are passed through to the worker function. Returns the
    arq job handle, which callers can poll for the result.
    """
    pool = await get_redis_pool()
    try:
        job = await pool.enqueue_job(task_name, *args, **kwargs)
        return job  # type: ignore[return-value]
    finally:
        await pool.close()


async def enqueue_plan_sync() -> Job:
    """Enqueue an out-of-schedule plan catalog sync."""
    return await enqueue_task("sync_plans_task")
