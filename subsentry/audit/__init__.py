"""Audit logging package."""

from subsentry.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
