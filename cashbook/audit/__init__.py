"""Audit logging package."""

from cashbook.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
