"""Reporting views package."""

from finance_tracker.reports.views import (
    COLOR_HEX,
    UNKNOWN_LABEL,
    ReportingViews,
    month_label,
)

__all__ = ["COLOR_HEX", "UNKNOWN_LABEL", "ReportingViews", "month_label"]
