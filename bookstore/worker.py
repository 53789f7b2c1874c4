import logging
from typing import Any

from arq import cron

from bookstore.core import database
from bookstore.core.config import settings
from bookstore.services.coupon_service import CouponService
from bookstore.tasks import redis_settings

logger = logging.getLogger(__name__)


async def refresh_coupon_statuses_task(ctx: dict[str, Any]) -> dict[str, list[int]]:
    """Background task: move coupon statuses in line with their validity windows.

    Runs on the ``COUPON_REFRESH_MINUTES`` schedule and on demand via
    ``enqueue_coupon_refresh``.
    """
    db = database.SessionLocal()
    try:
        result = CouponService(db).refresh_statuses()
        logger.info(
            "Scheduled coupon sweep at %s: activated=%s ended=%s",
            result.executed_at.isoformat(),
            result.activated_ids,
            result.ended_ids,
        )
        return {"activated_ids": result.activated_ids, "ended_ids": result.ended_ids}
    finally:
        db.close()


class WorkerSettings:
    functions = [refresh_coupon_statuses_task]
    cron_jobs = [
        cron(refresh_coupon_statuses_task, minute=settings.COUPON_REFRESH_MINUTES),
    ]
    redis_settings = redis_settings
