from __future__ import annotations

import os
from decimal import Decimal

os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.config import settings  # noqa: E402
from app.db import session as db_session  # noqa: E402
from app.db.base_class import Base  # noqa: E402
from app.db.session import SessionLocal  # noqa: E402
from app.models import models  # noqa: E402,F401  (registers every table)
from app.models.models import Customer, Service, Spa, Staff  # noqa: E402


TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")


test_engine = create_engine(
    TEST_DATABASE_URL,
    future=True,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Ensure application code uses the test engine
settings.DATABASE_URL = TEST_DATABASE_URL  # type: ignore[attr-defined]
settings.ENV = "test"  # type: ignore[attr-defined]
db_session.engine = test_engine  # type: ignore[assignment]
SessionLocal.configure(bind=test_engine)


@pytest.fixture(autouse=True)
def _reset_database_state():
    """Ensure each test sees a fresh database schema."""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield


@pytest.fixture
def db_session():
    """Provide a transactional database session for tests."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture
def spa_factory(db_session):
    """Create a spa with one staff member, one SR service and one customer."""

    def _create(name: str = "Serenity Spa", **overrides) -> Spa:
        spa = Spa(name=name, currency="AED", **overrides)
        db_session.add(spa)
        db_session.flush()
        db_session.add_all(
            [
                Staff(spa_id=spa.id, name=f"{name} therapist"),
                Service(spa_id=spa.id, name="Hot stone massage", duration=60, price=Decimal("105.00")),
                Customer(spa_id=spa.id, name=f"{name} guest", email="guest@example.com"),
            ]
        )
        db_session.commit()
        return spa

    return _create


# FastAPI TestClient fixture
from fastapi.testclient import TestClient  # noqa: E402
from app.api.main import app  # noqa: E402
from app.api.rate_limit import limiter  # noqa: E402

limiter.enabled = False


@pytest.fixture
def client():  # noqa: D401 - simple factory fixture
    """Provide a FastAPI TestClient bound to the application."""
    return TestClient(app)
