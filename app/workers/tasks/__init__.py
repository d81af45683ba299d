"""
Celery Tasks Module.

All tasks are registered with the Celery app.

Sub-modules:
- vat_tasks: VAT registration threshold scan
"""
from __future__ import annotations

from .vat_tasks import scan_vat_thresholds

__all__ = ["scan_vat_thresholds"]
