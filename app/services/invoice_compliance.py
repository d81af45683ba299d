"""
UAE FTA-compliant invoice utilities.

Handles:
- Tax invoice type selection (full / simplified / standard)
- Supplier and customer TRN population
- 5-year record retention
"""
from __future__ import annotations

import datetime as dt
import logging
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    CustomerNotFoundError,
    InvoiceNotFoundError,
    InvoiceRetentionError,
    SpaNotFoundError,
)
from app.models.models import Customer, Spa
from app.models.tax_models import Invoice, InvoiceType
from app.services.tax_calculator import Number, q2, to_decimal

logger = logging.getLogger(__name__)

_TRN_PATTERN = re.compile(r"^\d{15}$")


@dataclass(frozen=True)
class RetentionCheck:
    can_delete: bool
    reason: str | None = None


@dataclass(frozen=True)
class TRNValidation:
    valid: bool
    error: str | None = None


def _add_years(moment: dt.datetime, years: int) -> dt.datetime:
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        # Feb 29 rolls forward to Mar 1
        return moment.replace(year=moment.year + years, month=3, day=1)


def prepare_fta_invoice(
    spa: Spa,
    customer: Customer,
    subtotal: Number,
    tax_amount: Number,
    total_amount: Number,
    invoice_number: str,
    booking_id: int | None = None,
    payment_method: str | None = None,
    notes: str | None = None,
    issue_date: dt.datetime | None = None,
) -> dict[str, Any]:
    """
    Build invoice column values according to the spa's VAT status.

    VAT-registered spas (enabled + TRN) issue tax invoices: ``full`` at or
    above AED 10,000, ``simplified`` below, carrying TRNs and a retention
    date. Other spas issue a ``standard`` invoice.
    """
    issued = issue_date or dt.datetime.now()
    total = to_decimal(total_amount, "total_amount")

    invoice_data: dict[str, Any] = {
        "spa_id": spa.id,
        "invoice_number": invoice_number,
        "customer_id": customer.id,
        "booking_id": booking_id,
        "issue_date": issued,
        "subtotal": q2(to_decimal(subtotal, "subtotal")),
        "tax_amount": q2(to_decimal(tax_amount, "tax_amount")),
        "total_amount": q2(total),
        "paid_amount": Decimal("0.00"),
        "status": "pending",
        "payment_method": payment_method,
        "notes": notes,
    }

    if spa.vat_enabled and spa.tax_registration_number:
        invoice_type = InvoiceType.FULL if total >= settings.FULL_TAX_INVOICE_THRESHOLD else InvoiceType.SIMPLIFIED
        invoice_data.update(
            invoice_type=invoice_type.value,
            supplier_trn=spa.tax_registration_number,
            customer_trn=customer.tax_registration_number or None,
            retention_date=_add_years(issued, settings.INVOICE_RETENTION_YEARS),
        )
    else:
        invoice_data.update(
            invoice_type=InvoiceType.STANDARD.value,
            supplier_trn=None,
            customer_trn=None,
            retention_date=None,
        )
    return invoice_data


def can_delete_invoice(invoice: Invoice, as_of: dt.datetime | None = None) -> RetentionCheck:
    """FTA requires tax invoices to be kept for 5 years; standard invoices have no retention date."""
    if invoice.retention_date is None:
        return RetentionCheck(can_delete=True)

    now = as_of or dt.datetime.now()
    if now < invoice.retention_date:
        years_remaining = math.ceil((invoice.retention_date - now).days / 365)
        return RetentionCheck(
            can_delete=False,
            reason=(
                f"UAE FTA requires this invoice to be retained for {years_remaining} more year(s). "
                f"Retention expires on {invoice.retention_date.date().isoformat()}."
            ),
        )
    return RetentionCheck(can_delete=True)


def get_invoice_designation(invoice_type: str | None) -> str:
    if invoice_type == InvoiceType.FULL.value:
        return "TAX INVOICE"
    if invoice_type == InvoiceType.SIMPLIFIED.value:
        return "SIMPLIFIED TAX INVOICE"
    return "INVOICE"


def validate_trn(trn: str | None) -> TRNValidation:
    """UAE TRN is exactly 15 digits; spaces and dashes are ignored."""
    if not trn:
        return TRNValidation(valid=False, error="TRN is required")
    clean = re.sub(r"[\s-]", "", trn)
    if not _TRN_PATTERN.match(clean):
        return TRNValidation(valid=False, error="UAE TRN must be exactly 15 digits")
    return TRNValidation(valid=True)


class InvoiceService:
    """Invoice persistence with FTA rules applied."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _next_invoice_number(spa: Spa) -> str:
        # Per-spa counter; numbers are never reused, even after a deletion
        spa.invoice_sequence = (spa.invoice_sequence or 0) + 1
        return f"INV-{spa.id:04d}-{spa.invoice_sequence:06d}"

    def create_invoice(
        self,
        spa_id: int,
        customer_id: int,
        subtotal: Number,
        tax_amount: Number,
        total_amount: Number,
        booking_id: int | None = None,
        payment_method: str | None = None,
        notes: str | None = None,
        issue_date: dt.datetime | None = None,
    ) -> Invoice:
        spa = self.db.get(Spa, spa_id)
        if spa is None:
            raise SpaNotFoundError(spa_id)
        customer = self.db.get(Customer, customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)

        data = prepare_fta_invoice(
            spa,
            customer,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total_amount=total_amount,
            invoice_number=self._next_invoice_number(spa),
            booking_id=booking_id,
            payment_method=payment_method,
            notes=notes,
            issue_date=issue_date,
        )
        invoice = Invoice(**data)
        self.db.add(invoice)
        self.db.commit()
        self.db.refresh(invoice)
        logger.info("Created %s invoice %s for spa %s", invoice.invoice_type, invoice.invoice_number, spa_id)
        return invoice

    def delete_invoice(self, invoice_id: int, spa_id: int | None = None, as_of: dt.datetime | None = None) -> None:
        invoice = self.db.get(Invoice, invoice_id)
        if invoice is None or (spa_id is not None and invoice.spa_id != spa_id):
            raise InvoiceNotFoundError(invoice_id)

        check = can_delete_invoice(invoice, as_of=as_of)
        if not check.can_delete:
            logger.warning("Refused to delete invoice %s inside retention window", invoice_id)
            raise InvoiceRetentionError(invoice_id, check.reason or "Invoice is under retention")

        self.db.delete(invoice)
        self.db.commit()
        logger.info("Deleted invoice %s", invoice_id)
