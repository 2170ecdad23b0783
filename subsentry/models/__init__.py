"""
Data Models Package

This package contains all Pydantic models used in SubSentry.
Everything persisted or shown to the user conforms to these schemas.
"""

from subsentry.models.base import CamelModel, as_day, utc_now
from subsentry.models.subscription import (
    AlertLevel,
    BillingCycle,
    Category,
    CategoryShare,
    Currency,
    DashboardSummary,
    RenewalAlert,
    SortOption,
    Subscription,
    SubscriptionDraft,
    SubscriptionStatus,
    SubscriptionUpdate,
    Totals,
    ValidationIssue,
)
from subsentry.models.user import Session, User, UserProfile
from subsentry.models.results import ActionResult
from subsentry.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    "CamelModel",
    "as_day",
    "utc_now",
    # Subscription models
    "AlertLevel",
    "BillingCycle",
    "Category",
    "CategoryShare",
    "Currency",
    "DashboardSummary",
    "RenewalAlert",
    "SortOption",
    "Subscription",
    "SubscriptionDraft",
    "SubscriptionStatus",
    "SubscriptionUpdate",
    "Totals",
    "ValidationIssue",
    # Users and sessions
    "Session",
    "User",
    "UserProfile",
    "ActionResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
