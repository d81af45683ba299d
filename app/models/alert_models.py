from __future__ import annotations

from datetime import datetime, timezone
from sqlalchemy import Column, ForeignKey, Integer, String, DateTime

from app.db.base_class import Base


class AlertEvent(Base):
    """In-app alert record surfaced on the admin dashboard.

    VAT threshold notifications are stored here; delivery over email/SMS is
    left to whichever channel reads the table.
    """
    __tablename__ = "alert_events"

    id = Column(Integer, primary_key=True, index=True)
    spa_id = Column(Integer, ForeignKey("spas.id"), nullable=True, index=True)
    category = Column(String(50), nullable=False, index=True)
    severity = Column(String(20), nullable=False, default="info")
    message = Column(String(500), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
