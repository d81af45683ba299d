"""
VAT Tasks.

Periodic scan that raises the yearly VAT registration threshold alert for
every spa whose current-year revenue has crossed AED 375,000.
"""
from __future__ import annotations

import logging

from celery import Task
from sqlalchemy import select

from app.db.session import session_scope
from app.models.models import Spa
from app.services.revenue_service import VATThresholdService
from app.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    name="vat.scan_thresholds",
    autoretry_for=(Exception,),
    retry_backoff=60,
    retry_jitter=True,
    retry_kwargs={"max_retries": 3},
)
def scan_vat_thresholds(self: Task) -> dict[str, int]:
    """Check every spa; one spa failing does not stop the scan."""
    scanned = 0
    notified = 0
    failures = 0

    with session_scope() as db:
        service = VATThresholdService(db)
        spa_ids = list(db.scalars(select(Spa.id).order_by(Spa.id)))
        for spa_id in spa_ids:
            scanned += 1
            try:
                _, sent = service.notify_if_due(spa_id)
            except Exception:  # noqa: BLE001
                failures += 1
                db.rollback()
                logger.exception("[vat.scan_thresholds] failed for spa %s", spa_id)
                continue
            if sent:
                notified += 1

    logger.info(
        "[vat.scan_thresholds] scanned=%s notified=%s failures=%s", scanned, notified, failures
    )
    return {"scanned": scanned, "notified": notified, "failures": failures}
