"""Custom exception hierarchy for SpaBooker.

All domain errors inherit from ``SpaBookerException`` so the API layer can
translate them into JSON responses in one place.

Error codes follow pattern: [CATEGORY][NUMBER]
- INV: Invoice errors (001-099)
- SPA: Spa/tenant errors (100-199)
- TAX: Tax/VAT errors (300-399)
"""

from __future__ import annotations

from typing import Any


class SpaBookerException(Exception):
    """Base exception for all SpaBooker application errors."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception with user-facing message and metadata.

        Args:
            message: User-facing error message
            code: Unique error code (e.g., "TAX300")
            status_code: HTTP status code (default: 400 Bad Request)
            details: Optional additional context
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        return {
            "error": {
                "message": self.message,
                "code": self.code,
                "details": self.details,
            }
        }


# ============================================================================
# INVOICE ERRORS (INV001-099)
# ============================================================================

class InvoiceError(SpaBookerException):
    """Base class for invoice-related errors."""
    pass


class InvoiceNotFoundError(InvoiceError):
    """Invoice does not exist or belongs to another spa."""

    def __init__(self, invoice_id: int | None = None):
        message = "Invoice not found" if invoice_id is None else f"Invoice {invoice_id} not found"
        super().__init__(
            message=message,
            code="INV001",
            status_code=404,
            details={"invoice_id": invoice_id} if invoice_id is not None else {},
        )


class InvoiceRetentionError(InvoiceError):
    """Invoice is still inside the FTA record-retention window."""

    def __init__(self, invoice_id: int, reason: str):
        super().__init__(
            message=reason,
            code="INV002",
            status_code=409,
            details={"invoice_id": invoice_id},
        )


# ============================================================================
# SPA ERRORS (SPA100-199)
# ============================================================================

class SpaError(SpaBookerException):
    """Base class for tenant errors."""
    pass


class SpaNotFoundError(SpaError):
    def __init__(self, spa_id: int):
        super().__init__(
            message=f"Spa {spa_id} not found",
            code="SPA100",
            status_code=404,
            details={"spa_id": spa_id},
        )


class CustomerNotFoundError(SpaError):
    def __init__(self, customer_id: int):
        super().__init__(
            message=f"Customer {customer_id} not found",
            code="SPA101",
            status_code=404,
            details={"customer_id": customer_id},
        )


# ============================================================================
# TAX/VAT ERRORS (TAX300-399)
# ============================================================================

class TaxError(SpaBookerException):
    """Base class for tax/VAT errors."""
    pass


class InvalidTaxCodeError(TaxError):
    """Tax code is outside the closed SR/ZR/ES/OP set."""

    def __init__(self, tax_code: str):
        super().__init__(
            message=f"Invalid tax code: {tax_code}. Expected one of SR, ZR, ES, OP",
            code="TAX300",
            status_code=400,
            details={"tax_code": tax_code},
        )


class InvalidAmountError(TaxError):
    """A monetary value could not be parsed as a decimal."""

    def __init__(self, value: object, field: str | None = None):
        message = f"Invalid monetary amount: {value!r}"
        if field:
            message = f"{message} ({field})"
        super().__init__(
            message=message,
            code="TAX301",
            status_code=422,
            details={"value": str(value), "field": field},
        )

