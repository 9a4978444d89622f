"""Audit logging package."""

from permission_journal.audit.logger import AuditLogger, configure_logging, get_logger

__all__ = ["AuditLogger", "configure_logging", "get_logger"]
