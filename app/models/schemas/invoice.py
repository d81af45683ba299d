"""Invoice-related schemas."""
from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator


class InvoiceCreate(BaseModel):
    spa_id: int
    customer_id: int
    booking_id: int | None = None
    subtotal: Decimal = Field(..., description="Net amount before VAT")
    tax_amount: Decimal = Field(Decimal("0"), ge=0)
    total_amount: Decimal = Field(..., description="Total including VAT")
    payment_method: str | None = Field(None, max_length=20)
    notes: str | None = None
    issue_date: dt.datetime | None = None

    @model_validator(mode="after")
    def _check_totals(self) -> InvoiceCreate:
        # Tax-inclusive totals must split exactly into net + VAT
        if abs(self.subtotal + self.tax_amount - self.total_amount) > Decimal("0.01"):
            raise ValueError("subtotal + tax_amount must equal total_amount")
        return self


class InvoiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    spa_id: int
    invoice_number: str
    customer_id: int
    booking_id: int | None = None
    issue_date: dt.datetime
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    status: str
    invoice_type: str
    designation: str
    supplier_trn: str | None = None
    customer_trn: str | None = None
    retention_date: dt.datetime | None = None

    @field_serializer("subtotal", "tax_amount", "total_amount")
    def _serialize_money(self, value: Decimal) -> float:
        return float(value)


class TRNValidationIn(BaseModel):
    trn: str | None = None


class TRNValidationOut(BaseModel):
    valid: bool
    error: str | None = None
