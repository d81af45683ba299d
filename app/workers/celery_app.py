from __future__ import annotations

from celery import Celery
from celery.schedules import crontab

from app.core.config import settings


def _create_celery() -> Celery:
    celery = Celery(
        "spabooker",
        broker=settings.REDIS_URL,
        backend=settings.REDIS_URL,
        include=["app.workers.tasks"],
    )
    celery.conf.update(
        task_default_queue="default",
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],
        timezone="Asia/Dubai",
        enable_utc=True,
        task_always_eager=settings.ENV.lower() in {"test"},
    )
    # Beat schedule (only active outside test env)
    if settings.ENV.lower() not in {"test"}:
        celery.conf.beat_schedule = {
            "daily-vat-threshold-scan": {
                "task": "vat.scan_thresholds",
                "schedule": crontab(minute=0, hour=6),  # 06:00 Gulf time
            }
        }
    return celery


celery_app = _create_celery()
