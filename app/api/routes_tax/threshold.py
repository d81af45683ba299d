"""
VAT registration threshold routes.
"""

import logging

from fastapi import APIRouter, Query, Request

from app.api.dependencies import DbDep
from app.api.rate_limit import RATE_LIMITS, limiter
from app.services.revenue_service import VATThresholdService

from .schemas import VATThresholdOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/vat/threshold", response_model=VATThresholdOut)
def get_vat_threshold(db: DbDep, spa_id: int = Query(..., alias="spaId")):
    """Current-year revenue against the AED 375,000 registration threshold."""
    status = VATThresholdService(db).check_spa(spa_id)
    return VATThresholdOut.from_status(spa_id, status)


@router.post("/vat/threshold/notify", response_model=VATThresholdOut)
@limiter.limit(RATE_LIMITS["vat_threshold_notify"])
def notify_vat_threshold(request: Request, db: DbDep, spa_id: int = Query(..., alias="spaId")):
    """Raise the yearly threshold alert if it is due; repeated calls in the same year are no-ops."""
    status, sent = VATThresholdService(db).notify_if_due(spa_id)
    return VATThresholdOut.from_status(spa_id, status, notification_sent=sent)
