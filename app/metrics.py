"""Metrics facade.

Service code should ONLY call the semantic helpers here so the backend can
change freely.

Metrics:
- vat_reports_generated_total          VAT return reports produced
- vat_calculations_total               Ad-hoc VAT calculations served
- vat_threshold_checks_total           Registration threshold checks
- vat_threshold_notifications_total    Threshold alerts raised
- vat_report_duration_seconds          Report aggregation latency
"""

from __future__ import annotations

import logging
import time

from prometheus_client import Counter, Histogram

logger = logging.getLogger("metrics")

_VAT_REPORTS = Counter(
    "vat_reports_generated_total", "VAT return reports generated", ["scope"]
)
_VAT_CALCULATIONS = Counter("vat_calculations_total", "VAT calculations served")
_VAT_THRESHOLD_CHECKS = Counter("vat_threshold_checks_total", "VAT registration threshold checks")
_VAT_THRESHOLD_NOTIFICATIONS = Counter(
    "vat_threshold_notifications_total", "VAT registration threshold notifications raised"
)
_VAT_REPORT_DURATION = Histogram(
    "vat_report_duration_seconds",
    "Time spent aggregating a VAT return report",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
)


def vat_report_generated(spa_scoped: bool, duration_seconds: float) -> None:
    _VAT_REPORTS.labels(scope="spa" if spa_scoped else "all").inc()
    _VAT_REPORT_DURATION.observe(duration_seconds)
    logger.debug("metric vat_reports_generated_total += 1 (%.3fs)", duration_seconds)


def vat_calculation_record() -> None:
    _VAT_CALCULATIONS.inc()


def vat_threshold_check_record() -> None:
    _VAT_THRESHOLD_CHECKS.inc()


def vat_threshold_notification_record() -> None:
    _VAT_THRESHOLD_NOTIFICATIONS.inc()


class ReportTimer:
    def __init__(self, spa_scoped: bool):
        self.spa_scoped = spa_scoped
        self.start = time.perf_counter()

    def stop(self) -> float:
        dur = time.perf_counter() - self.start
        vat_report_generated(self.spa_scoped, dur)
        return dur


__all__ = [
    "vat_report_generated",
    "vat_calculation_record",
    "vat_threshold_check_record",
    "vat_threshold_notification_record",
    "ReportTimer",
]
