from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base
from app.models.tax_models import TaxCode

if TYPE_CHECKING:
    from app.models.tax_models import Invoice
else:
    # Import at runtime so every table is registered on Base.metadata
    from app.models import alert_models  # noqa: F401
    from app.models import tax_models  # noqa: F401
    Invoice = "Invoice"


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Spa(Base):
    """Tenant. Every revenue stream is scoped to a spa."""
    __tablename__ = "spas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(120))
    currency: Mapped[str] = mapped_column(String(3), default="AED")
    vat_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    tax_registration_number: Mapped[str | None] = mapped_column(String(15), nullable=True)
    # Year the registration-threshold notification last fired (None = never)
    last_vat_notification_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Last issued invoice sequence number
    invoice_sequence: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    staff: Mapped[list["Staff"]] = relationship(back_populates="spa")
    services: Mapped[list["Service"]] = relationship(back_populates="spa")
    invoices: Mapped[list["Invoice"]] = relationship()


class Staff(Base):
    __tablename__ = "staff"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    spa_id: Mapped[int] = mapped_column(ForeignKey("spas.id"), index=True)
    name: Mapped[str] = mapped_column(String(120))
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    spa: Mapped[Spa] = relationship(back_populates="staff")


class Service(Base):
    __tablename__ = "services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    spa_id: Mapped[int] = mapped_column(ForeignKey("spas.id"), index=True)
    name: Mapped[str] = mapped_column(String(120))
    duration: Mapped[int] = mapped_column(Integer, default=60)  # minutes
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    tax_code: Mapped[str] = mapped_column(String(2), default=TaxCode.SR.value)

    spa: Mapped[Spa] = relationship(back_populates="services")


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    spa_id: Mapped[int | None] = mapped_column(ForeignKey("spas.id"), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(120))
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # B2B customers that are VAT registered themselves
    tax_registration_number: Mapped[str | None] = mapped_column(String(15), nullable=True)


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    spa_id: Mapped[int] = mapped_column(ForeignKey("spas.id"), index=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"))
    booking_date: Mapped[dt.datetime] = mapped_column(DateTime, index=True)
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending, confirmed, completed, cancelled, no-show

    items: Mapped[list["BookingItem"]] = relationship(back_populates="booking")


class BookingItem(Base):
    """One priced service line of a booking. Price is VAT inclusive."""
    __tablename__ = "booking_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    booking_id: Mapped[int] = mapped_column(ForeignKey("bookings.id"), index=True)
    service_id: Mapped[int] = mapped_column(ForeignKey("services.id"))
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    net_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    vat_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    tax_code: Mapped[str] = mapped_column(String(2), default=TaxCode.SR.value)

    booking: Mapped[Booking] = relationship(back_populates="items")


class ProductSale(Base):
    """Retail sale. Tenant comes from the selling staff member."""
    __tablename__ = "product_sales"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    sold_by: Mapped[int] = mapped_column(ForeignKey("staff.id"), index=True)
    customer_id: Mapped[int | None] = mapped_column(ForeignKey("customers.id"), nullable=True)
    sale_date: Mapped[dt.datetime] = mapped_column(DateTime, index=True)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    net_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    vat_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    tax_code: Mapped[str] = mapped_column(String(2), default=TaxCode.SR.value)


class LoyaltyCard(Base):
    """Prepaid loyalty card. Tenant comes from the service it is issued for."""
    __tablename__ = "loyalty_cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    service_id: Mapped[int] = mapped_column(ForeignKey("services.id"), index=True)
    customer_id: Mapped[int | None] = mapped_column(ForeignKey("customers.id"), nullable=True)
    purchase_date: Mapped[dt.datetime] = mapped_column(DateTime, index=True)
    purchase_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    net_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    vat_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    tax_code: Mapped[str] = mapped_column(String(2), default=TaxCode.SR.value)
    sessions_total: Mapped[int] = mapped_column(Integer, default=10)
    sessions_used: Mapped[int] = mapped_column(Integer, default=0)
