"""
UAE VAT calculation utilities.

In the UAE, VAT is tax-inclusive:
- Service and retail prices INCLUDE tax (it is not added on top)
- Bills/expenses INCLUDE tax (deductible from tax collected)
- Net VAT = (tax collected from customers) - (tax paid on expenses)

All arithmetic is done in Decimal and rounded half-up to 2 places.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Union

from app.core.exceptions import InvalidAmountError, InvalidTaxCodeError
from app.models.tax_models import TaxCode

Number = Union[Decimal, int, float, str]

TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal("100")

TAX_CODES: dict[str, dict[str, Any]] = {
    code.value: {"code": code.value, "name": code.label, "rate": code.rate}
    for code in TaxCode
}


def to_decimal(value: Number, field: str | None = None) -> Decimal:
    """Coerce a monetary value to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidAmountError(value, field) from exc


def q2(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TaxBreakdown:
    total_amount: Decimal
    net_amount: Decimal
    tax_amount: Decimal
    tax_rate: Decimal


@dataclass(frozen=True)
class NetVAT:
    vat_collected: Decimal
    vat_paid: Decimal
    net_vat_payable: Decimal  # positive = owed to the FTA, negative = credit


@dataclass(frozen=True)
class VATCalculation:
    net_amount: Decimal
    vat_amount: Decimal
    total: Decimal


def calculate_tax_inclusive(total_price: Number, tax_rate: Number) -> TaxBreakdown:
    """
    Split a tax-inclusive price into net and tax.

    Formula: tax = total * rate / (100 + rate)

    Args:
        total_price: Price INCLUDING tax (may be zero or negative for refunds)
        tax_rate: Rate as a percentage (e.g. 5 for 5%)
    """
    total = to_decimal(total_price, "total_price")
    rate = to_decimal(tax_rate, "tax_rate")
    tax_amount = total * rate / (HUNDRED + rate)
    net_amount = total - tax_amount
    # Each field rounds from its own raw value
    return TaxBreakdown(
        total_amount=q2(total),
        net_amount=q2(net_amount),
        tax_amount=q2(tax_amount),
        tax_rate=rate,
    )


def calculate_total_from_net(net_amount: Number, tax_rate: Number) -> Decimal:
    """Total = net * (1 + rate / 100), rounded."""
    net = to_decimal(net_amount, "net_amount")
    rate = to_decimal(tax_rate, "tax_rate")
    return q2(net * (1 + rate / HUNDRED))


def calculate_net_vat(vat_collected: Number, vat_paid: Number) -> NetVAT:
    """
    Net VAT payable = VAT collected from customers - VAT paid on expenses.

    The payable figure is rounded from the raw difference, not derived from
    the rounded inputs, so it can differ from them by 0.01.
    """
    collected = to_decimal(vat_collected, "vat_collected")
    paid = to_decimal(vat_paid, "vat_paid")
    return NetVAT(
        vat_collected=q2(collected),
        vat_paid=q2(paid),
        net_vat_payable=q2(collected - paid),
    )


def _item_field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def calculate_items_tax(items: Iterable[Any], tax_rate: Number) -> TaxBreakdown:
    """Tax breakdown for the sum of ``price * quantity`` over items (missing quantity counts as 1)."""
    total = Decimal("0")
    for item in items:
        price = to_decimal(_item_field(item, "price"), "price")
        quantity = _item_field(item, "quantity")
        if quantity is None:
            quantity = 1
        total += price * to_decimal(quantity, "quantity")
    return calculate_tax_inclusive(total, tax_rate)


def format_currency(amount: Number, currency: str = "AED") -> str:
    """Format as e.g. ``AED 105.00``."""
    return f"{currency} {q2(to_decimal(amount, 'amount'))}"


def resolve_tax_code(tax_code: str | TaxCode) -> TaxCode:
    if isinstance(tax_code, TaxCode):
        return tax_code
    try:
        return TaxCode(str(tax_code).upper())
    except ValueError as exc:
        raise InvalidTaxCodeError(str(tax_code)) from exc


class VATCalculator:
    """Tax-code driven VAT helpers (SR, ZR, ES, OP)."""

    @staticmethod
    def calculate_vat(inclusive_amount: Number, tax_code: str | TaxCode = TaxCode.SR) -> VATCalculation:
        """
        VAT contained in an inclusive (gross) amount.

        Example: AED 105 under SR -> net 100, VAT 5, total 105.
        """
        code = resolve_tax_code(tax_code)
        amount = to_decimal(inclusive_amount, "inclusive_amount")
        if code.rate == 0:
            # Zero-rated, exempt, or out of scope
            return VATCalculation(net_amount=q2(amount), vat_amount=q2(Decimal("0")), total=q2(amount))
        breakdown = calculate_tax_inclusive(amount, code.rate)
        return VATCalculation(
            net_amount=breakdown.net_amount,
            vat_amount=breakdown.tax_amount,
            total=breakdown.total_amount,
        )

    @staticmethod
    def calculate_vat_from_net(exclusive_amount: Number, tax_code: str | TaxCode = TaxCode.SR) -> VATCalculation:
        """VAT added on top of a net amount (AED 100 under SR -> VAT 5, total 105)."""
        code = resolve_tax_code(tax_code)
        amount = to_decimal(exclusive_amount, "exclusive_amount")
        vat = amount * code.rate / HUNDRED
        return VATCalculation(net_amount=q2(amount), vat_amount=q2(vat), total=q2(amount + vat))

    @classmethod
    def calculate_vat_with_discount(
        cls,
        gross_amount: Number,
        discount_amount: Number,
        tax_code: str | TaxCode = TaxCode.SR,
    ) -> VATCalculation:
        """Flat discount comes off the gross first, then VAT is extracted."""
        gross = to_decimal(gross_amount, "gross_amount")
        discount = to_decimal(discount_amount, "discount_amount")
        return cls.calculate_vat(gross - discount, tax_code)
