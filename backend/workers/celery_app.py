"""
Celery Application Configuration
"""

from datetime import timedelta

from celery import Celery
from celery.schedules import crontab

from core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "flowstock",
    broker=settings.redis_url,
    backend=settings.redis_url,
)


def _every(minutes: int, offset: int = 0):
    """Beat schedule firing every ``minutes``, shifted by ``offset`` minutes."""
    if minutes >= 60 or 60 % minutes:
        return timedelta(minutes=minutes)
    if offset:
        return crontab(minute=f"{offset % minutes}-59/{minutes}")
    return crontab(minute=f"*/{minutes}")


_interval = max(settings.auto_check_interval_minutes, 1)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    worker_prefetch_multiplier=1,
    task_routes={
        "workers.scheduler.*": {"queue": "sweeps"},
    },
    # ── Celery Beat Schedule ─────────────────────────────────────────
    beat_schedule={
        # ── Low-stock re-alerts ─────────────────────────────────────
        "auto-check-low-stock": {
            "task": "workers.scheduler.run_auto_check",
            "schedule": _every(_interval),
            "options": {"queue": "sweeps"},
        },
        # ── Reconciliation ─────────────────────────────────────────
        "auto-reconcile": {
            "task": "workers.scheduler.run_auto_reconcile",
            "schedule": _every(_interval, offset=_interval // 2),  # Offset from auto-check
            "options": {"queue": "sweeps"},
        },
    },
)

# Auto-discover tasks
celery_app.autodiscover_tasks(["workers"], related_name="scheduler")
