"""
Audit Models for Money Permission Journal

Every change to the journal and every store lifecycle transition is
described by a JournalEvent. Events are rendered through structlog; they
are diagnostics only and are never persisted next to the user's data.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class JournalEventType(str, Enum):
    """Types of events we audit."""
    # Store lifecycle
    STORE_OPENED = "store_opened"
    STORE_RECOVERED = "store_recovered"
    STORE_FAILED = "store_failed"
    STORE_MIGRATED = "store_migrated"
    SAVE_FAILED = "save_failed"

    # Permissions
    PERMISSION_CREATED = "permission_created"
    PERMISSION_UPDATED = "permission_updated"
    PERMISSION_DELETED = "permission_deleted"

    # Categories and tags
    CATEGORY_CREATED = "category_created"
    CATEGORY_RENAMED = "category_renamed"
    CATEGORY_DELETED = "category_deleted"
    TAG_CREATED = "tag_created"
    TAG_RENAMED = "tag_renamed"
    TAG_DELETED = "tag_deleted"

    # Bulk operations
    DATA_RESET = "data_reset"
    BACKUP_EXPORTED = "backup_exported"
    BACKUP_IMPORTED = "backup_imported"

    # Rejections
    VALIDATION_FAILED = "validation_failed"
    STORE_NOT_READY = "store_not_ready"


class JournalSeverity(str, Enum):
    """Severity level for journal events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class JournalEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: JournalEventType
    severity: JournalSeverity = JournalSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'permission', 'category', 'store')"
    )
    entity_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class JournalEventBuilder:
    """
    Helper class to build journal events with common patterns.

    Usage:
        event = JournalEventBuilder.permission_created(permission_id, category)
        event = JournalEventBuilder.store_recovered(path, error)
    """

    @staticmethod
    def store_opened(location: str, tables: list[str]) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.STORE_OPENED,
            entity_type="store",
            description=f"Journal store opened at {location}",
            details={"location": location, "tables": tables},
        )

    @staticmethod
    def store_migrated(table: str, columns: list[str]) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.STORE_MIGRATED,
            entity_type="store",
            description=f"Added {len(columns)} column(s) to {table}",
            details={"table": table, "columns": columns},
        )

    @staticmethod
    def store_recovered(location: str, error_message: str) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.STORE_RECOVERED,
            severity=JournalSeverity.WARNING,
            entity_type="store",
            description="Store was unreadable and has been recreated empty",
            details={"location": location},
            error_message=error_message,
        )

    @staticmethod
    def store_failed(location: str, error_message: str) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.STORE_FAILED,
            severity=JournalSeverity.ERROR,
            entity_type="store",
            description="Journal store is unavailable",
            details={"location": location},
            error_message=error_message,
        )

    @staticmethod
    def save_failed(error_message: str, pending: dict[str, int]) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.SAVE_FAILED,
            severity=JournalSeverity.ERROR,
            entity_type="store",
            description="Save failed, pending changes rolled back",
            details={"pending": pending},
            error_message=error_message,
        )

    @staticmethod
    def store_not_ready(operation: str) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.STORE_NOT_READY,
            severity=JournalSeverity.WARNING,
            entity_type="store",
            description=f"Store not ready, skipped {operation}",
            details={"operation": operation},
        )

    @staticmethod
    def permission_created(
        permission_id: UUID,
        category: Optional[str],
        tag_count: int,
    ) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.PERMISSION_CREATED,
            entity_type="permission",
            entity_id=permission_id,
            description="Permission recorded",
            details={"category": category, "tag_count": tag_count},
        )

    @staticmethod
    def permission_updated(permission_id: UUID, has_outcome: bool) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.PERMISSION_UPDATED,
            entity_type="permission",
            entity_id=permission_id,
            description="Permission updated",
            details={"has_outcome": has_outcome},
        )

    @staticmethod
    def permission_deleted(permission_id: UUID) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.PERMISSION_DELETED,
            entity_type="permission",
            entity_id=permission_id,
            description="Permission deleted",
        )

    @staticmethod
    def category_created(category_id: UUID, name: str, order: int) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.CATEGORY_CREATED,
            entity_type="category",
            entity_id=category_id,
            description=f"Category created: {name}",
            details={"name": name, "order": order},
        )

    @staticmethod
    def category_deleted(category_id: UUID, name: str) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.CATEGORY_DELETED,
            entity_type="category",
            entity_id=category_id,
            description=f"Category deleted: {name}",
            details={"name": name},
        )

    @staticmethod
    def tag_created(tag_id: UUID, name: str) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.TAG_CREATED,
            entity_type="tag",
            entity_id=tag_id,
            description=f"Tag created: {name}",
            details={"name": name},
        )

    @staticmethod
    def tag_deleted(tag_id: UUID, name: str) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.TAG_DELETED,
            entity_type="tag",
            entity_id=tag_id,
            description=f"Tag deleted: {name}",
            details={"name": name},
        )

    @staticmethod
    def renamed(
        entity_type: str,
        entity_id: UUID,
        old_name: str,
        new_name: str,
        permissions_touched: int,
    ) -> JournalEvent:
        event_type = (
            JournalEventType.CATEGORY_RENAMED
            if entity_type == "category"
            else JournalEventType.TAG_RENAMED
        )
        return JournalEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} renamed: {old_name} -> {new_name}",
            details={
                "old_name": old_name,
                "new_name": new_name,
                "permissions_touched": permissions_touched,
            },
        )

    @staticmethod
    def data_reset(counts: dict[str, int]) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.DATA_RESET,
            severity=JournalSeverity.WARNING,
            description="All journal data deleted",
            details=counts,
        )

    @staticmethod
    def backup_exported(counts: dict[str, int], location: Optional[str] = None) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.BACKUP_EXPORTED,
            entity_type="backup",
            description="Backup exported",
            details={**counts, "location": location},
        )

    @staticmethod
    def backup_imported(imported: dict[str, int], skipped: dict[str, int]) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.BACKUP_IMPORTED,
            entity_type="backup",
            description=f"Backup imported: {sum(imported.values())} records",
            details={"imported": imported, "skipped": skipped},
        )

    @staticmethod
    def validation_failed(operation: str, issues: list[dict]) -> JournalEvent:
        return JournalEvent(
            event_type=JournalEventType.VALIDATION_FAILED,
            severity=JournalSeverity.WARNING,
            description=f"Rejected {operation}: {len(issues)} issue(s)",
            details={"operation": operation, "issues": issues},
        )
