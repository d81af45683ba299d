"""
VAT Routes.

Handles the VAT return report and ad-hoc VAT calculations.
"""

import logging
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Query, Request

from app import metrics
from app.api.dependencies import DbDep
from app.api.rate_limit import RATE_LIMITS, limiter
from app.core.config import settings
from app.services.tax_calculator import (
    VATCalculator,
    calculate_net_vat,
    calculate_tax_inclusive,
    format_currency,
    resolve_tax_code,
)
from app.services.vat_report_service import VATReportFilters, VATReportService

from .schemas import NetVATOut, TaxBreakdownOut, VATReportOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/vat/report", response_model=VATReportOut)
@limiter.limit(RATE_LIMITS["vat_report"])
def get_vat_report(
    request: Request,
    db: DbDep,
    start_date: date | None = Query(None, alias="startDate", description="Period start (inclusive)"),
    end_date: date | None = Query(None, alias="endDate", description="Period end (inclusive)"),
    spa_id: int | None = Query(None, alias="spaId", description="Restrict to one spa"),
    tax_code: str | None = Query(None, alias="taxCode", description="SR, ZR, ES or OP"),
):
    """
    VAT return report across service bookings, product sales and loyalty cards.

    Without ``taxCode`` the response includes a per-tax-code breakdown.
    """
    filters = VATReportFilters(
        start_date=start_date,
        end_date=end_date,
        spa_id=spa_id,
        tax_code=resolve_tax_code(tax_code) if tax_code else None,
    )
    result = VATReportService(db).generate(filters)
    return VATReportOut.from_result(result)


@router.get("/vat/calculate", response_model=TaxBreakdownOut)
def calculate_vat(
    amount: Decimal = Query(..., description="Tax-inclusive amount in AED"),
    tax_code: str | None = Query(None, alias="taxCode", description="SR, ZR, ES or OP"),
    tax_rate: Decimal | None = Query(None, alias="taxRate", ge=0, description="Explicit rate in percent"),
):
    """
    Split a tax-inclusive amount into net and VAT.

    An explicit ``taxRate`` wins over ``taxCode``; with neither, the standard
    rate applies.
    """
    metrics.vat_calculation_record()
    if tax_rate is not None:
        breakdown = calculate_tax_inclusive(amount, tax_rate)
        return TaxBreakdownOut.from_breakdown(
            breakdown, format_currency(breakdown.total_amount, settings.DEFAULT_CURRENCY)
        )

    code = resolve_tax_code(tax_code or "SR")
    calc = VATCalculator.calculate_vat(amount, code)
    return TaxBreakdownOut.from_calculation(
        calc,
        tax_rate=float(code.rate),
        tax_code=code.value,
        formatted_total=format_currency(calc.total, settings.DEFAULT_CURRENCY),
    )


@router.get("/vat/net", response_model=NetVATOut)
def net_vat_payable(
    vat_collected: Decimal = Query(..., alias="vatCollected"),
    vat_paid: Decimal = Query(Decimal("0"), alias="vatPaid"),
):
    """Net VAT payable; negative means a refundable credit."""
    metrics.vat_calculation_record()
    return NetVATOut.from_net(calculate_net_vat(vat_collected, vat_paid))
