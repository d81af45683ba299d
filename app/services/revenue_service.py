"""
Revenue tracking against the UAE VAT registration threshold.

Spas must register for VAT once taxable supplies exceed AED 375,000 in a
calendar year. This module sums issued invoices per year and decides when
the one-per-year threshold notification is due.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from app import metrics
from app.core.config import settings
from app.core.exceptions import SpaNotFoundError
from app.models.alert_models import AlertEvent
from app.models.models import Spa
from app.models.tax_models import Invoice
from app.services.tax_calculator import Number, format_currency, to_decimal

logger = logging.getLogger(__name__)

THRESHOLD_ALERT_CATEGORY = "vat_threshold"


@dataclass(frozen=True)
class VATThresholdStatus:
    current_year: int
    annual_revenue: Decimal
    threshold_amount: Decimal
    threshold_reached: bool
    percentage_of_threshold: Decimal  # Not capped at 100
    remaining_to_threshold: Decimal


def _as_of_year(as_of: dt.date | dt.datetime | None) -> int:
    return (as_of or dt.datetime.now()).year


def _invoice_field(invoice: Any, name: str) -> Any:
    if isinstance(invoice, Mapping):
        return invoice[name]
    return getattr(invoice, name)


def _wall_clock(value: dt.date | dt.datetime | str) -> dt.datetime:
    """Naive wall-clock datetime; stored offsets are dropped, not converted."""
    if isinstance(value, str):
        value = dt.datetime.fromisoformat(value)
    if isinstance(value, dt.datetime):
        return value.replace(tzinfo=None)
    return dt.datetime.combine(value, dt.time.min)


def calculate_annual_revenue(invoices: Iterable[Any], year: int) -> Decimal:
    """
    Sum ``total_amount`` of invoices issued within a calendar year.

    Window is Jan 1 00:00:00 through Dec 31 23:59:59, both inclusive.
    Accepts ORM invoices or mappings with ``issue_date`` / ``total_amount``.
    """
    year_start = dt.datetime(year, 1, 1)
    year_end = dt.datetime(year, 12, 31, 23, 59, 59)

    total = Decimal("0")
    for invoice in invoices:
        issued = _wall_clock(_invoice_field(invoice, "issue_date"))
        if year_start <= issued <= year_end:
            total += to_decimal(_invoice_field(invoice, "total_amount"), "total_amount")
    return total


def check_vat_threshold(
    invoices: Iterable[Any],
    threshold_amount: Number = settings.VAT_REGISTRATION_THRESHOLD,
    as_of: dt.date | dt.datetime | None = None,
) -> VATThresholdStatus:
    """
    Compare current-year revenue with the registration threshold.

    Args:
        invoices: Invoices to analyse
        threshold_amount: Threshold in AED (default 375,000)
        as_of: Reference moment; the wall clock when omitted
    """
    current_year = _as_of_year(as_of)
    threshold = to_decimal(threshold_amount, "threshold_amount")
    annual_revenue = calculate_annual_revenue(invoices, current_year)

    return VATThresholdStatus(
        current_year=current_year,
        annual_revenue=annual_revenue,
        threshold_amount=threshold,
        threshold_reached=annual_revenue >= threshold,
        percentage_of_threshold=annual_revenue / threshold * 100,
        remaining_to_threshold=max(Decimal("0"), threshold - annual_revenue),
    )


def should_send_threshold_notification(
    threshold_reached: bool,
    last_notification_year: int | None,
    as_of: dt.date | dt.datetime | None = None,
) -> bool:
    """At most one notification per calendar year, and only once the threshold is reached."""
    if not threshold_reached:
        return False
    return last_notification_year is None or last_notification_year < _as_of_year(as_of)


class VATThresholdService:
    """Threshold checks for persisted spas; owns the notification bookkeeping."""

    def __init__(self, db: Session):
        self.db = db

    def _get_spa(self, spa_id: int) -> Spa:
        spa = self.db.get(Spa, spa_id)
        if spa is None:
            raise SpaNotFoundError(spa_id)
        return spa

    def _load_invoices(self, spa_id: int, year: int) -> list[Invoice]:
        stmt = select(Invoice).where(
            Invoice.spa_id == spa_id,
            Invoice.status != "cancelled",
            Invoice.issue_date >= dt.datetime(year, 1, 1),
            Invoice.issue_date < dt.datetime(year + 1, 1, 1),
        )
        return list(self.db.scalars(stmt))

    def _check(self, spa: Spa, as_of: dt.date | dt.datetime | None) -> VATThresholdStatus:
        invoices = self._load_invoices(spa.id, _as_of_year(as_of))
        status = check_vat_threshold(invoices, settings.VAT_REGISTRATION_THRESHOLD, as_of=as_of)
        metrics.vat_threshold_check_record()
        return status

    def check_spa(self, spa_id: int, as_of: dt.date | dt.datetime | None = None) -> VATThresholdStatus:
        return self._check(self._get_spa(spa_id), as_of)

    def notify_if_due(
        self, spa_id: int, as_of: dt.date | dt.datetime | None = None
    ) -> tuple[VATThresholdStatus, bool]:
        """
        Raise the yearly threshold alert for a spa if it is due.

        Returns:
            (status, notified) where notified is True when an alert was stored
        """
        spa = self._get_spa(spa_id)
        status = self._check(spa, as_of)
        if not should_send_threshold_notification(
            status.threshold_reached, spa.last_vat_notification_year, as_of=as_of
        ):
            return status, False

        message = (
            f"{spa.name} has reached {format_currency(status.annual_revenue, spa.currency)} in "
            f"{status.current_year} revenue, above the VAT registration threshold of "
            f"{format_currency(status.threshold_amount, spa.currency)}. Register with the FTA."
        )
        self.db.add(AlertEvent(spa_id=spa.id, category=THRESHOLD_ALERT_CATEGORY, severity="warning", message=message))
        spa.last_vat_notification_year = status.current_year
        self.db.commit()

        metrics.vat_threshold_notification_record()
        logger.info(
            "VAT threshold notification raised for spa %s (year=%s revenue=%s)",
            spa.id, status.current_year, status.annual_revenue,
        )
        return status, True
