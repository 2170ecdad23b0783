"""Spending analytics package."""

from subsentry.analytics.engine import (
    DEFAULT_ALERT_WINDOW_DAYS,
    DEFAULT_RED_ALERT_DAYS,
    AnalyticsEngine,
)

__all__ = [
    "DEFAULT_ALERT_WINDOW_DAYS",
    "DEFAULT_RED_ALERT_DAYS",
    "AnalyticsEngine",
]
