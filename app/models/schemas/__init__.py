"""Pydantic schemas for API requests and responses.

Sub-modules:
- invoice: Invoice and TRN schemas
"""
from .invoice import (
    InvoiceCreate,
    InvoiceOut,
    TRNValidationIn,
    TRNValidationOut,
)

__all__ = [
    "InvoiceCreate",
    "InvoiceOut",
    "TRNValidationIn",
    "TRNValidationOut",
]
