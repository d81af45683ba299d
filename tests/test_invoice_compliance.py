"""Tests for FTA invoice rules (type selection, TRNs, retention)."""
import datetime as dt
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.core.exceptions import (
    CustomerNotFoundError,
    InvoiceNotFoundError,
    InvoiceRetentionError,
    SpaNotFoundError,
)
from app.models.models import Customer, Spa
from app.models.tax_models import Invoice
from app.services.invoice_compliance import (
    InvoiceService,
    can_delete_invoice,
    get_invoice_designation,
    prepare_fta_invoice,
    validate_trn,
)

SPA_TRN = "100234567890123"


def _registered_spa():
    return Spa(id=1, name="Serenity Spa", currency="AED", vat_enabled=True, tax_registration_number=SPA_TRN)


def _customer(trn=None):
    return Customer(id=7, spa_id=1, name="Layla", tax_registration_number=trn)


ISSUED = dt.datetime(2025, 3, 10, 12, 0)


def test_full_tax_invoice_at_ten_thousand():
    data = prepare_fta_invoice(
        _registered_spa(), _customer("300987654321003"), "9523.81", "476.19", "10000.00", "INV-1", issue_date=ISSUED
    )
    assert data["invoice_type"] == "full"
    assert data["supplier_trn"] == SPA_TRN
    assert data["customer_trn"] == "300987654321003"
    assert data["retention_date"] == dt.datetime(2030, 3, 10, 12, 0)
    assert data["total_amount"] == Decimal("10000.00")
    assert data["paid_amount"] == Decimal("0.00")
    assert data["status"] == "pending"


def test_simplified_tax_invoice_below_ten_thousand():
    data = prepare_fta_invoice(_registered_spa(), _customer(), 100, 5, 105, "INV-2", issue_date=ISSUED)
    assert data["invoice_type"] == "simplified"
    assert data["customer_trn"] is None
    assert data["retention_date"] is not None


@pytest.mark.parametrize(
    "vat_enabled,trn",
    [(False, SPA_TRN), (True, None), (True, ""), (False, None)],
)
def test_standard_invoice_when_not_registered(vat_enabled, trn):
    spa = Spa(id=1, name="Small Spa", currency="AED", vat_enabled=vat_enabled, tax_registration_number=trn)
    data = prepare_fta_invoice(spa, _customer("300987654321003"), 100, 5, 105, "INV-3", issue_date=ISSUED)
    assert data["invoice_type"] == "standard"
    assert data["supplier_trn"] is None
    assert data["customer_trn"] is None
    assert data["retention_date"] is None


def test_retention_from_leap_day():
    data = prepare_fta_invoice(
        _registered_spa(), _customer(), 100, 5, 105, "INV-4", issue_date=dt.datetime(2024, 2, 29, 9, 0)
    )
    assert data["retention_date"] == dt.datetime(2029, 3, 1, 9, 0)


def test_can_delete_invoice():
    standard = Invoice(retention_date=None)
    assert can_delete_invoice(standard).can_delete is True

    retained = Invoice(retention_date=dt.datetime(2030, 3, 10, 12, 0))
    check = can_delete_invoice(retained, as_of=dt.datetime(2025, 6, 1))
    assert check.can_delete is False
    assert "5 more year(s)" in check.reason
    assert "2030-03-10" in check.reason

    assert can_delete_invoice(retained, as_of=dt.datetime(2030, 3, 10, 12, 0)).can_delete is True


def test_invoice_designation():
    assert get_invoice_designation("full") == "TAX INVOICE"
    assert get_invoice_designation("simplified") == "SIMPLIFIED TAX INVOICE"
    assert get_invoice_designation("standard") == "INVOICE"
    assert get_invoice_designation(None) == "INVOICE"


@pytest.mark.parametrize(
    "trn,valid",
    [
        ("100234567890123", True),
        ("100-2345-6789-0123", True),
        ("100 2345 6789 0123", True),
        ("12345", False),
        ("10023456789012A", False),
        ("1002345678901234", False),
    ],
)
def test_validate_trn(trn, valid):
    assert validate_trn(trn).valid is valid


def test_validate_trn_required():
    result = validate_trn(None)
    assert result.valid is False
    assert result.error == "TRN is required"


def test_service_creates_numbered_invoices(db_session, spa_factory):
    spa = spa_factory(vat_enabled=True, tax_registration_number=SPA_TRN)
    customer = db_session.scalar(select(Customer).where(Customer.spa_id == spa.id))
    service = InvoiceService(db_session)

    first = service.create_invoice(spa.id, customer.id, "100.00", "5.00", "105.00", issue_date=ISSUED)
    second = service.create_invoice(spa.id, customer.id, "9523.81", "476.19", "10000.00", issue_date=ISSUED)

    assert first.invoice_number == f"INV-{spa.id:04d}-000001"
    assert second.invoice_number == f"INV-{spa.id:04d}-000002"
    assert first.invoice_type == "simplified"
    assert second.invoice_type == "full"
    assert first.supplier_trn == SPA_TRN


def test_service_missing_spa_or_customer(db_session, spa_factory):
    spa = spa_factory()
    service = InvoiceService(db_session)

    with pytest.raises(SpaNotFoundError):
        service.create_invoice(999, 1, 100, 5, 105)
    with pytest.raises(CustomerNotFoundError):
        service.create_invoice(spa.id, 999, 100, 5, 105)


def test_service_delete_respects_retention(db_session, spa_factory):
    spa = spa_factory(vat_enabled=True, tax_registration_number=SPA_TRN)
    customer = db_session.scalar(select(Customer).where(Customer.spa_id == spa.id))
    service = InvoiceService(db_session)
    invoice = service.create_invoice(spa.id, customer.id, 100, 5, 105, issue_date=ISSUED)

    with pytest.raises(InvoiceRetentionError) as exc:
        service.delete_invoice(invoice.id, as_of=dt.datetime(2026, 1, 1))
    assert exc.value.status_code == 409

    service.delete_invoice(invoice.id, as_of=dt.datetime(2030, 3, 11))
    assert db_session.get(Invoice, invoice.id) is None


def test_service_delete_unknown_or_foreign_invoice(db_session, spa_factory):
    spa = spa_factory()
    other = spa_factory("Other Spa")
    customer = db_session.scalar(select(Customer).where(Customer.spa_id == spa.id))
    service = InvoiceService(db_session)
    invoice = service.create_invoice(spa.id, customer.id, 100, 5, 105, issue_date=ISSUED)

    with pytest.raises(InvoiceNotFoundError):
        service.delete_invoice(12345)
    with pytest.raises(InvoiceNotFoundError):
        service.delete_invoice(invoice.id, spa_id=other.id)

    # Standard invoices carry no retention date
    service.delete_invoice(invoice.id, spa_id=spa.id)


def test_invoice_numbers_are_not_reused_after_delete(db_session, spa_factory):
    spa = spa_factory()
    customer = db_session.scalar(select(Customer).where(Customer.spa_id == spa.id))
    service = InvoiceService(db_session)

    first = service.create_invoice(spa.id, customer.id, 100, 5, 105, issue_date=ISSUED)
    second = service.create_invoice(spa.id, customer.id, 100, 5, 105, issue_date=ISSUED)
    service.delete_invoice(first.id)
    third = service.create_invoice(spa.id, customer.id, 100, 5, 105, issue_date=ISSUED)

    service.delete_invoice(third.id)
    fourth = service.create_invoice(spa.id, customer.id, 100, 5, 105, issue_date=ISSUED)

    assert second.invoice_number == f"INV-{spa.id:04d}-000002"
    assert third.invoice_number == f"INV-{spa.id:04d}-000003"
    assert fourth.invoice_number == f"INV-{spa.id:04d}-000004"


def test_invoice_sequences_are_per_spa(db_session, spa_factory):
    spa_a = spa_factory("Spa A")
    spa_b = spa_factory("Spa B")
    service = InvoiceService(db_session)
    customer_a = db_session.scalar(select(Customer).where(Customer.spa_id == spa_a.id))
    customer_b = db_session.scalar(select(Customer).where(Customer.spa_id == spa_b.id))

    service.create_invoice(spa_a.id, customer_a.id, 100, 5, 105, issue_date=ISSUED)
    other = service.create_invoice(spa_b.id, customer_b.id, 100, 5, 105, issue_date=ISSUED)
    assert other.invoice_number == f"INV-{spa_b.id:04d}-000001"
