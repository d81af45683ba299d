"""
VAT Return Report Aggregator.

Aggregates VAT from every revenue stream:
- Service bookings (booking items)
- Retail product sales
- Loyalty card purchases

Each stream is read with a single query grouped by tax code; the overall
totals and the per-tax-code breakdown are both assembled from those rows.
Used for the UAE FTA VAT return.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from app import metrics
from app.models.models import Booking, BookingItem, LoyaltyCard, ProductSale, Service, Staff
from app.models.tax_models import TaxCode
from app.services.tax_calculator import resolve_tax_code

logger = logging.getLogger(__name__)

ALL_TIME = "All time"
ZERO = Decimal("0")


@dataclass
class VATReportFilters:
    start_date: dt.date | dt.datetime | None = None
    end_date: dt.date | dt.datetime | None = None
    spa_id: int | None = None
    tax_code: TaxCode | str | None = None


@dataclass
class StreamTotals:
    count: int = 0
    net_amount: Decimal = ZERO
    vat_amount: Decimal = ZERO
    gross_amount: Decimal = ZERO

    def __add__(self, other: StreamTotals) -> StreamTotals:
        return StreamTotals(
            count=self.count + other.count,
            net_amount=self.net_amount + other.net_amount,
            vat_amount=self.vat_amount + other.vat_amount,
            gross_amount=self.gross_amount + other.gross_amount,
        )


@dataclass
class OverallTotals:
    total_count: int
    total_net: Decimal
    total_vat: Decimal
    total_gross: Decimal


@dataclass
class TaxCodeBreakdown:
    tax_code: str
    count: int
    net_amount: Decimal
    vat_amount: Decimal
    gross_amount: Decimal


@dataclass
class VATReportResult:
    period_from: str
    period_to: str
    services: StreamTotals
    products: StreamTotals
    loyalty: StreamTotals
    overall: OverallTotals
    by_tax_code: list[TaxCodeBreakdown] = field(default_factory=list)


def _to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _lower_bound(value: dt.date | dt.datetime) -> dt.datetime:
    if isinstance(value, dt.datetime):
        return value
    return dt.datetime.combine(value, dt.time.min)


def _upper_bound(value: dt.date | dt.datetime) -> dt.datetime:
    # A bare date includes the whole day
    if isinstance(value, dt.datetime):
        return value
    return dt.datetime.combine(value, dt.time.max)


def _period_label(value: dt.date | dt.datetime | None) -> str:
    if value is None:
        return ALL_TIME
    if isinstance(value, dt.datetime):
        value = value.date()
    return value.isoformat()


def _sum_column(column):
    return func.coalesce(func.sum(func.coalesce(column, 0)), 0)


class VATReportService:
    """Builds consolidated VAT return reports (read-only)."""

    TAX_CODES: tuple[TaxCode, ...] = (TaxCode.SR, TaxCode.ZR, TaxCode.ES, TaxCode.OP)

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _grouped(tax_code_col, net_col, vat_col, gross_col) -> Select:
        return select(
            tax_code_col.label("tax_code"),
            func.count().label("line_count"),
            _sum_column(net_col).label("net_amount"),
            _sum_column(vat_col).label("vat_amount"),
            _sum_column(gross_col).label("gross_amount"),
        ).group_by(tax_code_col)

    @staticmethod
    def _date_conditions(date_col, filters: VATReportFilters) -> list:
        conditions = []
        if filters.start_date is not None:
            conditions.append(date_col >= _lower_bound(filters.start_date))
        if filters.end_date is not None:
            conditions.append(date_col <= _upper_bound(filters.end_date))
        return conditions

    def _services_query(self, filters: VATReportFilters, tax_code: TaxCode | None) -> Select:
        conditions = self._date_conditions(Booking.booking_date, filters)
        if filters.spa_id is not None:
            conditions.append(Booking.spa_id == filters.spa_id)
        if tax_code is not None:
            conditions.append(BookingItem.tax_code == tax_code.value)
        return (
            self._grouped(BookingItem.tax_code, BookingItem.net_amount, BookingItem.vat_amount, BookingItem.price)
            .select_from(BookingItem)
            .join(Booking, BookingItem.booking_id == Booking.id)
            .where(*conditions)
        )

    def _products_query(self, filters: VATReportFilters, tax_code: TaxCode | None) -> Select:
        stmt = self._grouped(
            ProductSale.tax_code, ProductSale.net_amount, ProductSale.vat_amount, ProductSale.total_price
        ).select_from(ProductSale)
        conditions = self._date_conditions(ProductSale.sale_date, filters)
        if filters.spa_id is not None:
            # Product sales are tenant-scoped through the selling staff member
            stmt = stmt.join(Staff, ProductSale.sold_by == Staff.id)
            conditions.append(Staff.spa_id == filters.spa_id)
        if tax_code is not None:
            conditions.append(ProductSale.tax_code == tax_code.value)
        return stmt.where(*conditions)

    def _loyalty_query(self, filters: VATReportFilters, tax_code: TaxCode | None) -> Select:
        stmt = self._grouped(
            LoyaltyCard.tax_code, LoyaltyCard.net_amount, LoyaltyCard.vat_amount, LoyaltyCard.purchase_price
        ).select_from(LoyaltyCard)
        conditions = self._date_conditions(LoyaltyCard.purchase_date, filters)
        if filters.spa_id is not None:
            # Loyalty cards are tenant-scoped through the service they cover
            stmt = stmt.join(Service, LoyaltyCard.service_id == Service.id)
            conditions.append(Service.spa_id == filters.spa_id)
        if tax_code is not None:
            conditions.append(LoyaltyCard.tax_code == tax_code.value)
        return stmt.where(*conditions)

    def _aggregate(self, stmt: Select) -> dict[str | None, StreamTotals]:
        by_code: dict[str | None, StreamTotals] = {}
        for row in self.db.execute(stmt):
            by_code[row.tax_code] = StreamTotals(
                count=int(row.line_count or 0),
                net_amount=_to_decimal(row.net_amount),
                vat_amount=_to_decimal(row.vat_amount),
                gross_amount=_to_decimal(row.gross_amount),
            )
        return by_code

    @staticmethod
    def _total(groups: dict[str | None, StreamTotals]) -> StreamTotals:
        total = StreamTotals()
        for totals in groups.values():
            total = total + totals
        return total

    def generate(self, filters: VATReportFilters) -> VATReportResult:
        """
        Generate a VAT return report.

        Without a tax code filter the result carries one breakdown row per
        tax code (SR, ZR, ES, OP); with one, the breakdown is empty.
        A start after the end matches nothing and yields zero totals.
        Query errors propagate to the caller.
        """
        tax_code = resolve_tax_code(filters.tax_code) if filters.tax_code else None
        timer = metrics.ReportTimer(spa_scoped=filters.spa_id is not None)

        streams = {
            "services": self._aggregate(self._services_query(filters, tax_code)),
            "products": self._aggregate(self._products_query(filters, tax_code)),
            "loyalty": self._aggregate(self._loyalty_query(filters, tax_code)),
        }
        services = self._total(streams["services"])
        products = self._total(streams["products"])
        loyalty = self._total(streams["loyalty"])
        combined = services + products + loyalty

        by_tax_code: list[TaxCodeBreakdown] = []
        if tax_code is None:
            for code in self.TAX_CODES:
                row = StreamTotals()
                for groups in streams.values():
                    row = row + groups.get(code.value, StreamTotals())
                by_tax_code.append(
                    TaxCodeBreakdown(
                        tax_code=code.value,
                        count=row.count,
                        net_amount=row.net_amount,
                        vat_amount=row.vat_amount,
                        gross_amount=row.gross_amount,
                    )
                )

        duration = timer.stop()
        logger.info(
            "VAT report generated spa=%s tax_code=%s rows=%s vat=%s in %.3fs",
            filters.spa_id, tax_code.value if tax_code else "all", combined.count, combined.vat_amount, duration,
        )

        return VATReportResult(
            period_from=_period_label(filters.start_date),
            period_to=_period_label(filters.end_date),
            services=services,
            products=products,
            loyalty=loyalty,
            overall=OverallTotals(
                total_count=combined.count,
                total_net=combined.net_amount,
                total_vat=combined.vat_amount,
                total_gross=combined.gross_amount,
            ),
            by_tax_code=by_tax_code,
        )


def get_vat_return_report(db: Session, filters: VATReportFilters | None = None) -> VATReportResult:
    return VATReportService(db).generate(filters or VATReportFilters())
