"""
Data Models Package

ORM entities for the journal store, pydantic models for the backup
document, validation results and audit events.
"""

from permission_journal.models.schema import (
    ENTITY_TABLES,
    STORED_IMPACT_MAX,
    STORED_IMPACT_MIN,
    Base,
    MoneyPermission,
    PermissionCategory,
    PermissionTag,
    create_schema,
    to_storage_datetime,
    to_wall_clock,
    utc_now,
)
from permission_journal.models.backup import (
    BACKUP_VERSION,
    BackupCategory,
    BackupDocument,
    BackupPermission,
    BackupTag,
)
from permission_journal.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from permission_journal.models.audit import (
    JournalEvent,
    JournalEventBuilder,
    JournalEventType,
    JournalSeverity,
)

__all__ = [
    # Schema
    "ENTITY_TABLES",
    "STORED_IMPACT_MAX",
    "STORED_IMPACT_MIN",
    "Base",
    "MoneyPermission",
    "PermissionCategory",
    "PermissionTag",
    "create_schema",
    "to_storage_datetime",
    "to_wall_clock",
    "utc_now",
    # Backup
    "BACKUP_VERSION",
    "BackupCategory",
    "BackupDocument",
    "BackupPermission",
    "BackupTag",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Audit
    "JournalEvent",
    "JournalEventBuilder",
    "JournalEventType",
    "JournalSeverity",
]
