"""
Shared Pydantic schemas for tax-related routes.

JSON keys are camelCase to match the admin dashboard client.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.services.revenue_service import VATThresholdStatus
from app.services.tax_calculator import NetVAT, TaxBreakdown, VATCalculation
from app.services.vat_report_service import StreamTotals, VATReportResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PeriodOut(CamelModel):
    from_: str = Field(alias="from")
    to: str


class StreamTotalsOut(CamelModel):
    count: int
    net_amount: float
    vat_amount: float
    gross_amount: float

    @classmethod
    def from_totals(cls, totals: StreamTotals) -> StreamTotalsOut:
        return cls(
            count=totals.count,
            net_amount=float(totals.net_amount),
            vat_amount=float(totals.vat_amount),
            gross_amount=float(totals.gross_amount),
        )


class OverallTotalsOut(CamelModel):
    total_count: int
    total_net: float
    total_vat: float = Field(alias="totalVAT")
    total_gross: float


class ReportTotalsOut(CamelModel):
    services: StreamTotalsOut
    products: StreamTotalsOut
    loyalty: StreamTotalsOut
    overall: OverallTotalsOut


class TaxCodeBreakdownOut(CamelModel):
    tax_code: str
    count: int
    net_amount: float
    vat_amount: float
    gross_amount: float


class VATReportOut(CamelModel):
    """VAT return report for a period."""

    period: PeriodOut
    totals: ReportTotalsOut
    by_tax_code: list[TaxCodeBreakdownOut]

    @classmethod
    def from_result(cls, result: VATReportResult) -> VATReportOut:
        return cls(
            period=PeriodOut(from_=result.period_from, to=result.period_to),
            totals=ReportTotalsOut(
                services=StreamTotalsOut.from_totals(result.services),
                products=StreamTotalsOut.from_totals(result.products),
                loyalty=StreamTotalsOut.from_totals(result.loyalty),
                overall=OverallTotalsOut(
                    total_count=result.overall.total_count,
                    total_net=float(result.overall.total_net),
                    total_vat=float(result.overall.total_vat),
                    total_gross=float(result.overall.total_gross),
                ),
            ),
            by_tax_code=[
                TaxCodeBreakdownOut(
                    tax_code=row.tax_code,
                    count=row.count,
                    net_amount=float(row.net_amount),
                    vat_amount=float(row.vat_amount),
                    gross_amount=float(row.gross_amount),
                )
                for row in result.by_tax_code
            ],
        )


class TaxBreakdownOut(CamelModel):
    total_amount: float
    net_amount: float
    tax_amount: float
    tax_rate: float
    tax_code: str | None = None
    formatted_total: str

    @classmethod
    def from_breakdown(cls, breakdown: TaxBreakdown, formatted_total: str, tax_code: str | None = None) -> TaxBreakdownOut:
        return cls(
            total_amount=float(breakdown.total_amount),
            net_amount=float(breakdown.net_amount),
            tax_amount=float(breakdown.tax_amount),
            tax_rate=float(breakdown.tax_rate),
            tax_code=tax_code,
            formatted_total=formatted_total,
        )

    @classmethod
    def from_calculation(cls, calc: VATCalculation, tax_rate: float, tax_code: str, formatted_total: str) -> TaxBreakdownOut:
        return cls(
            total_amount=float(calc.total),
            net_amount=float(calc.net_amount),
            tax_amount=float(calc.vat_amount),
            tax_rate=tax_rate,
            tax_code=tax_code,
            formatted_total=formatted_total,
        )


class NetVATOut(CamelModel):
    vat_collected: float
    vat_paid: float
    net_vat_payable: float = Field(alias="netVATPayable")

    @classmethod
    def from_net(cls, net: NetVAT) -> NetVATOut:
        return cls(
            vat_collected=float(net.vat_collected),
            vat_paid=float(net.vat_paid),
            net_vat_payable=float(net.net_vat_payable),
        )


class VATThresholdOut(CamelModel):
    spa_id: int
    current_year: int
    annual_revenue: float
    threshold_amount: float
    threshold_reached: bool
    percentage_of_threshold: float
    remaining_to_threshold: float
    notification_sent: bool | None = None

    @classmethod
    def from_status(cls, spa_id: int, status: VATThresholdStatus, notification_sent: bool | None = None) -> VATThresholdOut:
        return cls(
            spa_id=spa_id,
            current_year=status.current_year,
            annual_revenue=float(status.annual_revenue),
            threshold_amount=float(status.threshold_amount),
            threshold_reached=status.threshold_reached,
            percentage_of_threshold=round(float(status.percentage_of_threshold), 2),
            remaining_to_threshold=float(status.remaining_to_threshold),
            notification_sent=notification_sent,
        )
