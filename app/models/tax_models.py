"""
Tax and invoicing models (UAE VAT).

Models for:
- The closed set of UAE tax codes
- FTA invoice types
- Issued invoices, the source for annual revenue / registration threshold tracking
"""
from __future__ import annotations

import datetime as dt
import enum
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base


class TaxCode(str, enum.Enum):
    """UAE FTA tax codes"""
    SR = "SR"  # Standard rate 5%
    ZR = "ZR"  # Zero-rated 0%
    ES = "ES"  # Exempt
    OP = "OP"  # Out of scope

    @property
    def label(self) -> str:
        labels = {
            TaxCode.SR: "Standard Rate (5%)",
            TaxCode.ZR: "Zero-Rated (0%)",
            TaxCode.ES: "Exempt",
            TaxCode.OP: "Out of Scope",
        }
        return labels[self]

    @property
    def rate(self) -> Decimal:
        """Rate as a percentage, e.g. 5 for 5%."""
        return Decimal("5") if self is TaxCode.SR else Decimal("0")


class InvoiceType(str, enum.Enum):
    FULL = "full"              # Tax invoice, total >= AED 10,000
    SIMPLIFIED = "simplified"  # Simplified tax invoice
    STANDARD = "standard"      # Spa not VAT registered


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    spa_id: Mapped[int] = mapped_column(ForeignKey("spas.id"), index=True)
    invoice_number: Mapped[str] = mapped_column(String(40), unique=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"))
    booking_id: Mapped[int | None] = mapped_column(ForeignKey("bookings.id"), nullable=True)
    issue_date: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.now)
    due_date: Mapped[dt.datetime | None] = mapped_column(DateTime, nullable=True)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending, paid, overdue, cancelled
    payment_method: Mapped[str | None] = mapped_column(String(20), nullable=True)  # cash, card, online
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # FTA compliance
    invoice_type: Mapped[str] = mapped_column(String(20), default=InvoiceType.STANDARD.value)
    supplier_trn: Mapped[str | None] = mapped_column(String(15), nullable=True)
    customer_trn: Mapped[str | None] = mapped_column(String(15), nullable=True)
    retention_date: Mapped[dt.datetime | None] = mapped_column(DateTime, nullable=True)
