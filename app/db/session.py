"""Database engine setup.

Test runs (ENV=test) use a shared in-memory SQLite database unless
DATABASE_URL points elsewhere, so logic tests need no PostgreSQL driver.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings

raw_url = settings.DATABASE_URL or "sqlite:///./dev.db"

if raw_url.startswith("sqlite:///:memory:"):
    # One connection shared across threads, otherwise each checkout sees an empty database
    engine = create_engine(
        raw_url,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
elif raw_url.startswith("postgresql"):
    engine = create_engine(
        raw_url,
        future=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True,
    )
else:
    engine = create_engine(raw_url, future=True)

SessionLocal = sessionmaker(bind=engine, class_=Session, expire_on_commit=False, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
