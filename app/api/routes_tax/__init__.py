"""
Tax API Routes Module.

All routes are prefixed with /tax.

Sub-modules:
- vat: VAT return report, VAT calculation, net VAT payable
- threshold: VAT registration threshold status and notifications
"""
from __future__ import annotations

from fastapi import APIRouter

from .threshold import router as threshold_router
from .vat import router as vat_router

# Main router with /tax prefix
router = APIRouter(prefix="/tax", tags=["tax"])

router.include_router(vat_router)
router.include_router(threshold_router)

__all__ = ["router"]
