"""
Audit Models for SubSentry

Every mutation of the ledger and every session transition produces an
audit event. Events are emitted as structured log lines; they make it
possible to reconstruct what happened to a user's subscriptions,
including writes that failed and were rolled back.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from subsentry.models.base import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session lifecycle
    USER_SIGNED_UP = "user_signed_up"
    SIGNUP_REJECTED = "signup_rejected"
    USER_LOGGED_IN = "user_logged_in"
    LOGIN_FAILED = "login_failed"
    USER_LOGGED_OUT = "user_logged_out"
    SESSION_RESTORED = "session_restored"
    SESSION_DISCARDED = "session_discarded"

    # Ledger
    SUBSCRIPTIONS_LOADED = "subscriptions_loaded"
    SUBSCRIPTION_ADDED = "subscription_added"
    SUBSCRIPTION_UPDATED = "subscription_updated"
    SUBSCRIPTION_DELETED = "subscription_deleted"
    VALIDATION_FAILED = "validation_failed"
    SAVE_FAILED = "save_failed"

    # System events
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    entity_id is a plain string because subscription and user ids are
    opaque strings in storage.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about, and whose?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'subscription', 'user', 'session')"
    )
    entity_id: Optional[str] = None
    user_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.subscription_added(user_id, sub_id, "Netflix", "649.00")
        event = AuditEventBuilder.save_failed(user_id, "add", error)
    """

    @staticmethod
    def user_signed_up(user_id: str, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_UP,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            description=f"New account created for {email}",
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def signup_rejected(email: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNUP_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"Signup rejected: {reason}",
            details={"email": email, "reason": reason},
            is_user_action=True,
        )

    @staticmethod
    def user_logged_in(user_id: str, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_IN,
            entity_type="session",
            entity_id=user_id,
            user_id=user_id,
            description=f"{email} logged in",
            is_user_action=True,
        )

    @staticmethod
    def login_failed(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            description="Login failed: unknown email or wrong password",
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def user_logged_out(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_OUT,
            entity_type="session",
            entity_id=user_id,
            user_id=user_id,
            description="User logged out",
            is_user_action=True,
        )

    @staticmethod
    def session_restored(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_RESTORED,
            entity_type="session",
            entity_id=user_id,
            user_id=user_id,
            description="Session restored from stored token",
        )

    @staticmethod
    def session_discarded(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_DISCARDED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            description=f"Stored session ignored: {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def subscriptions_loaded(user_id: str, count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTIONS_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="ledger",
            entity_id=user_id,
            user_id=user_id,
            description=f"Loaded {count} subscriptions",
            details={"count": count},
        )

    @staticmethod
    def subscription_added(
        user_id: str,
        subscription_id: str,
        name: str,
        canonical_cost: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_ADDED,
            entity_type="subscription",
            entity_id=subscription_id,
            user_id=user_id,
            description=f"Subscription added: {name}",
            details={"name": name, "canonical_cost": canonical_cost},
            is_user_action=True,
        )

    @staticmethod
    def subscription_updated(
        user_id: str,
        subscription_id: str,
        changed_fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_UPDATED,
            entity_type="subscription",
            entity_id=subscription_id,
            user_id=user_id,
            description=f"Subscription updated ({len(changed_fields)} fields)",
            details={"changed_fields": changed_fields},
            is_user_action=True,
        )

    @staticmethod
    def subscription_deleted(user_id: str, subscription_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_DELETED,
            entity_type="subscription",
            entity_id=subscription_id,
            user_id=user_id,
            description=f"Subscription deleted: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        user_id: str,
        operation: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="subscription",
            user_id=user_id,
            description=f"{operation.capitalize()} rejected with {len(issues)} issues",
            details={"operation": operation, "issues": issues},
        )

    @staticmethod
    def save_failed(
        user_id: str,
        operation: str,
        error_message: str,
        subscription_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="subscription",
            entity_id=subscription_id,
            user_id=user_id,
            description=f"Could not persist {operation}; in-memory ledger rolled back",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"Storage error during {operation}",
            details={"operation": operation},
            error_message=error_message,
        )
