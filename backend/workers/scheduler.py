"""Periodic whole-seller sweeps run by Celery beat.

Each task holds a non-blocking Redis lock for its whole run so at most one
instance is in flight across workers. Sellers are processed one at a time,
each in its own session.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import redis
import structlog
from redis.exceptions import LockError
from sqlalchemy.exc import SQLAlchemyError

from alerts import engine as alert_engine
from db.session import task_sessions
from inventory.locks import tenant_lock
from inventory.repository import InventoryRepository, StoreFailure
from workers.celery_app import celery_app

logger = structlog.get_logger()

SKIPPED_ALREADY_RUNNING = {"status": "skipped", "reason": "already_running"}


def _sweep_lock(name: str):
    from core.config import get_settings

    settings = get_settings()
    client = redis.Redis.from_url(settings.redis_url)
    return client.lock(
        f"flowstock:sweep:{name}",
        timeout=settings.sweep_lock_timeout_seconds,
        blocking=False,
    )


async def _run_for_sellers(job_name: str, job, run_id: str) -> dict:
    from core.config import get_settings

    async with task_sessions(get_settings().database_url) as async_session:
        async with async_session() as db:
            sellers = await InventoryRepository(db).list_sellers()
            seller_ids = [seller.seller_id for seller in sellers]

        results: dict[str, dict] = {}
        failed = 0
        for seller_id in seller_ids:
            async with async_session() as db, tenant_lock(seller_id):
                try:
                    results[str(seller_id)] = await job(InventoryRepository(db), seller_id)
                except (StoreFailure, SQLAlchemyError) as exc:
                    failed += 1
                    logger.error(f"scheduler.{job_name}_seller_failed", seller_id=str(seller_id), error=str(exc))
                    results[str(seller_id)] = {"status": "failed", "error": str(exc)}

    summary = {
        "status": "success" if not failed else "partial",
        "job": job_name,
        "seller_count": len(seller_ids),
        "failed_count": failed,
        "notifications_sent": sum(r.get("notifications_sent", 0) for r in results.values()),
        "results": results,
        "triggered_at": datetime.now(timezone.utc).isoformat(),
        "run_id": run_id,
    }
    logger.info(
        f"scheduler.{job_name}_complete",
        seller_count=summary["seller_count"],
        failed_count=failed,
        notifications_sent=summary["notifications_sent"],
        run_id=run_id,
    )
    return summary


def _run_locked(task, job_name: str, job) -> dict:
    run_id = task.request.id or "manual"
    lock = _sweep_lock(job_name)
    if not lock.acquire(blocking=False):
        logger.info(f"scheduler.{job_name}_skipped", reason="already_running", run_id=run_id)
        return dict(SKIPPED_ALREADY_RUNNING)

    try:
        return asyncio.run(_run_for_sellers(job_name, job, run_id))
    finally:
        try:
            lock.release()
        except LockError as exc:
            # Lock outlived its timeout; another run may already hold it
            logger.warning(f"scheduler.{job_name}_lock_release_failed", error=str(exc))


@celery_app.task(name="workers.scheduler.run_auto_check", bind=True, acks_late=True)
def run_auto_check(self):
    """
    Re-alert suppliers about every low-stock product.

    Sellers with email notifications disabled are skipped without touching
    stock numbers; everyone else is swept first.
    """
    return _run_locked(self, "auto_check", alert_engine.run_auto_check)


@celery_app.task(name="workers.scheduler.run_auto_reconcile", bind=True, acks_late=True)
def run_auto_reconcile(self):
    """Sweep every seller with auto-reconcile on and alert on new low-stock transitions."""
    return _run_locked(self, "auto_reconcile", alert_engine.run_auto_reconcile)
