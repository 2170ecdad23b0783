"""
Audit Logger

DESIGN DECISION: Every ledger mutation and session transition is logged
as a structured event. This provides:
1. Traceability of what happened to a user's subscriptions
2. A record of writes that failed and were rolled back
3. Debugging capability without a debugger attached

Logging never raises into the caller's flow: a failed emit is reported
through the stdlib logging module instead.
"""

import logging
import sys
from typing import Optional

import structlog

from subsentry.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity

_fallback_logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """
    Configure structlog to render JSON through the stdlib logging module.

    Safe to call more than once; the last call wins.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Turns AuditEvent models into structlog calls at the matching level.
    """

    _LEVELS = {
        AuditSeverity.DEBUG: "debug",
        AuditSeverity.INFO: "info",
        AuditSeverity.WARNING: "warning",
        AuditSeverity.ERROR: "error",
        AuditSeverity.CRITICAL: "critical",
    }

    def __init__(self, logger_name: str = "subsentry.audit"):
        self._logger = structlog.get_logger(logger_name)
        self._events: list[AuditEvent] = []
        self._keep_history = False

    def keep_history(self, enabled: bool = True) -> None:
        """Also retain events in memory (used by tests and the debug view)."""
        self._keep_history = enabled
        if not enabled:
            self._events.clear()

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        if self._keep_history:
            self._events.append(event)

        try:
            method = getattr(self._logger, self._LEVELS[event.severity])
            method("audit_event", **event.to_log_dict())
        except Exception:
            # Log failure but don't raise
            _fallback_logger.exception("Failed to emit audit event %s", event.event_type.value)

    # -- Session ---------------------------------------------------------

    def log_signed_up(self, user_id: str, email: str) -> None:
        self.log(AuditEventBuilder.user_signed_up(user_id=user_id, email=email))

    def log_signup_rejected(self, email: str, reason: str) -> None:
        self.log(AuditEventBuilder.signup_rejected(email=email, reason=reason))

    def log_logged_in(self, user_id: str, email: str) -> None:
        self.log(AuditEventBuilder.user_logged_in(user_id=user_id, email=email))

    def log_login_failed(self, email: str) -> None:
        self.log(AuditEventBuilder.login_failed(email=email))

    def log_logged_out(self, user_id: str) -> None:
        self.log(AuditEventBuilder.user_logged_out(user_id=user_id))

    def log_session_restored(self, user_id: str) -> None:
        self.log(AuditEventBuilder.session_restored(user_id=user_id))

    def log_session_discarded(self, reason: str) -> None:
        self.log(AuditEventBuilder.session_discarded(reason=reason))

    # -- Ledger ----------------------------------------------------------

    def log_subscriptions_loaded(self, user_id: str, count: int) -> None:
        self.log(AuditEventBuilder.subscriptions_loaded(user_id=user_id, count=count))

    def log_subscription_added(
        self,
        user_id: str,
        subscription_id: str,
        name: str,
        canonical_cost: str,
    ) -> None:
        self.log(AuditEventBuilder.subscription_added(
            user_id=user_id,
            subscription_id=subscription_id,
            name=name,
            canonical_cost=canonical_cost,
        ))

    def log_subscription_updated(
        self,
        user_id: str,
        subscription_id: str,
        changed_fields: list[str],
    ) -> None:
        self.log(AuditEventBuilder.subscription_updated(
            user_id=user_id,
            subscription_id=subscription_id,
            changed_fields=changed_fields,
        ))

    def log_subscription_deleted(self, user_id: str, subscription_id: str, name: str) -> None:
        self.log(AuditEventBuilder.subscription_deleted(
            user_id=user_id,
            subscription_id=subscription_id,
            name=name,
        ))

    def log_validation_failed(self, user_id: str, operation: str, issues: list[dict]) -> None:
        self.log(AuditEventBuilder.validation_failed(
            user_id=user_id,
            operation=operation,
            issues=issues,
        ))

    def log_save_failed(
        self,
        user_id: str,
        operation: str,
        error_message: str,
        subscription_id: Optional[str] = None,
    ) -> None:
        self.log(AuditEventBuilder.save_failed(
            user_id=user_id,
            operation=operation,
            error_message=error_message,
            subscription_id=subscription_id,
        ))

    # -- Errors ----------------------------------------------------------

    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> None:
        self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            user_id=user_id,
        ))
