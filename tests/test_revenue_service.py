"""Tests for annual revenue and VAT registration threshold tracking."""
import datetime as dt
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.core.exceptions import SpaNotFoundError
from app.models.alert_models import AlertEvent
from app.models.models import Customer
from app.models.tax_models import Invoice
from app.services.revenue_service import (
    VATThresholdService,
    calculate_annual_revenue,
    check_vat_threshold,
    should_send_threshold_notification,
)


def test_annual_revenue_only_counts_requested_year():
    invoices = [
        {"issue_date": "2025-03-10T10:00:00", "total_amount": 200000},
        {"issue_date": dt.datetime(2025, 11, 2, 9, 0), "total_amount": Decimal("180000")},
        {"issue_date": "2024-12-30T12:00:00", "total_amount": 50000},
    ]
    assert calculate_annual_revenue(invoices, 2025) == Decimal("380000")
    assert calculate_annual_revenue(invoices, 2024) == Decimal("50000")
    assert calculate_annual_revenue([], 2025) == Decimal("0")


def test_annual_revenue_window_edges():
    invoices = [
        {"issue_date": dt.datetime(2025, 1, 1, 0, 0, 0), "total_amount": 1},
        {"issue_date": dt.datetime(2025, 12, 31, 23, 59, 59), "total_amount": 10},
        {"issue_date": dt.datetime(2026, 1, 1, 0, 0, 0), "total_amount": 100},
        {"issue_date": dt.date(2025, 6, 1), "total_amount": 1000},
    ]
    assert calculate_annual_revenue(invoices, 2025) == Decimal("1011")


def test_annual_revenue_uses_wall_clock_of_stored_offset():
    invoices = [{"issue_date": "2025-12-31T23:30:00+04:00", "total_amount": 500}]
    assert calculate_annual_revenue(invoices, 2025) == Decimal("500")


def test_threshold_reached_above_limit():
    invoices = [{"issue_date": "2025-03-10T10:00:00", "total_amount": 380000}]
    status = check_vat_threshold(invoices, as_of=dt.date(2025, 6, 1))
    assert status.current_year == 2025
    assert status.annual_revenue == Decimal("380000")
    assert status.threshold_amount == Decimal("375000")
    assert status.threshold_reached is True
    assert status.percentage_of_threshold > 100
    assert status.remaining_to_threshold == Decimal("0")


def test_threshold_reached_exactly_at_limit():
    invoices = [{"issue_date": "2025-01-15T08:00:00", "total_amount": 375000}]
    status = check_vat_threshold(invoices, as_of=dt.date(2025, 1, 20))
    assert status.threshold_reached is True
    assert status.percentage_of_threshold == Decimal("100")


def test_threshold_not_reached():
    invoices = [{"issue_date": "2025-01-15T08:00:00", "total_amount": 93750}]
    status = check_vat_threshold(invoices, as_of=dt.date(2025, 1, 20))
    assert status.threshold_reached is False
    assert status.percentage_of_threshold == Decimal("25")
    assert status.remaining_to_threshold == Decimal("281250")


def test_threshold_custom_amount_and_other_year_ignored():
    invoices = [{"issue_date": "2024-01-15T08:00:00", "total_amount": 900000}]
    status = check_vat_threshold(invoices, threshold_amount=1000, as_of=dt.date(2025, 1, 20))
    assert status.annual_revenue == Decimal("0")
    assert status.threshold_reached is False


@pytest.mark.parametrize(
    "reached,last_year,expected",
    [
        (False, None, False),
        (True, None, True),
        (True, 2024, True),
        (True, 2025, False),
        (False, 2024, False),
    ],
)
def test_should_send_notification(reached, last_year, expected):
    assert should_send_threshold_notification(reached, last_year, as_of=dt.date(2025, 5, 1)) is expected


def _add_invoice(db, spa, amount, issued, status="paid", number=None):
    customer = db.scalar(select(Customer).where(Customer.spa_id == spa.id))
    invoice = Invoice(
        spa_id=spa.id,
        invoice_number=number or f"T-{spa.id}-{issued:%Y%m%d%H%M%S}-{amount}",
        customer_id=customer.id,
        issue_date=issued,
        subtotal=Decimal(amount),
        tax_amount=Decimal("0"),
        total_amount=Decimal(amount),
        status=status,
    )
    db.add(invoice)
    db.commit()
    return invoice


def test_service_check_spa_excludes_cancelled(db_session, spa_factory):
    spa = spa_factory()
    _add_invoice(db_session, spa, "300000", dt.datetime(2025, 2, 1, 10))
    _add_invoice(db_session, spa, "100000", dt.datetime(2025, 4, 1, 10), status="cancelled")
    _add_invoice(db_session, spa, "100000", dt.datetime(2024, 4, 1, 10))

    status = VATThresholdService(db_session).check_spa(spa.id, as_of=dt.date(2025, 6, 1))
    assert status.annual_revenue == Decimal("300000")
    assert status.threshold_reached is False


def test_service_scopes_to_spa(db_session, spa_factory):
    spa = spa_factory("Spa A")
    other = spa_factory("Spa B")
    _add_invoice(db_session, other, "400000", dt.datetime(2025, 2, 1, 10))

    status = VATThresholdService(db_session).check_spa(spa.id, as_of=dt.date(2025, 6, 1))
    assert status.annual_revenue == Decimal("0")


def test_notify_if_due_fires_once_per_year(db_session, spa_factory):
    spa = spa_factory()
    _add_invoice(db_session, spa, "380000", dt.datetime(2025, 3, 10, 10))
    service = VATThresholdService(db_session)

    status, sent = service.notify_if_due(spa.id, as_of=dt.date(2025, 6, 1))
    assert status.threshold_reached is True
    assert sent is True
    assert spa.last_vat_notification_year == 2025

    _, sent_again = service.notify_if_due(spa.id, as_of=dt.date(2025, 7, 1))
    assert sent_again is False

    alerts = db_session.scalars(select(AlertEvent).where(AlertEvent.spa_id == spa.id)).all()
    assert len(alerts) == 1
    assert alerts[0].category == "vat_threshold"
    assert alerts[0].severity == "warning"
    assert "AED 380000.00" in alerts[0].message


def test_notify_if_due_fires_again_next_year(db_session, spa_factory):
    spa = spa_factory(last_vat_notification_year=2024)
    _add_invoice(db_session, spa, "375000", dt.datetime(2025, 1, 5, 10))

    _, sent = VATThresholdService(db_session).notify_if_due(spa.id, as_of=dt.date(2025, 2, 1))
    assert sent is True
    assert spa.last_vat_notification_year == 2025


def test_notify_if_due_below_threshold(db_session, spa_factory):
    spa = spa_factory()
    _add_invoice(db_session, spa, "1000", dt.datetime(2025, 1, 5, 10))

    _, sent = VATThresholdService(db_session).notify_if_due(spa.id, as_of=dt.date(2025, 2, 1))
    assert sent is False
    assert spa.last_vat_notification_year is None
    assert db_session.scalar(select(func.count(AlertEvent.id))) == 0


def test_unknown_spa(db_session):
    with pytest.raises(SpaNotFoundError):
        VATThresholdService(db_session).check_spa(999)


def test_threshold_year_scenario():
    invoices = [
        {"issue_date": "2025-03-01", "total_amount": "200000"},
        {"issue_date": "2025-11-01", "total_amount": "180000"},
        {"issue_date": "2024-12-31", "total_amount": "999999"},
    ]
    assert calculate_annual_revenue(invoices, 2025) == Decimal("380000")

    status = check_vat_threshold(invoices, as_of=dt.date(2025, 12, 1))
    assert status.threshold_reached is True
    assert status.remaining_to_threshold == Decimal("0")
    assert status.percentage_of_threshold.quantize(Decimal("0.01")) == Decimal("101.33")


def test_notify_if_due_loads_spa_once(db_session, spa_factory, monkeypatch):
    spa = spa_factory()
    _add_invoice(db_session, spa, "380000", dt.datetime(2025, 3, 10, 10))
    service = VATThresholdService(db_session)

    lookups = []
    original = service._get_spa

    def counting_get_spa(spa_id):
        lookups.append(spa_id)
        return original(spa_id)

    monkeypatch.setattr(service, "_get_spa", counting_get_spa)

    _, sent = service.notify_if_due(spa.id, as_of=dt.date(2025, 6, 1))
    assert sent is True
    assert lookups == [spa.id]
