"""
Backup export and import.

Export snapshots every permission, category and tag into a
BackupDocument. Import merges a document into the current store:
records whose id already exists are skipped, never overwritten. A
replacing import deletes and inserts in one save, so it either fully
lands or leaves the journal untouched.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from sqlalchemy import select

from permission_journal.audit import AuditLogger, get_logger
from permission_journal.journal.view_model import PermissionViewModel
from permission_journal.models.audit import JournalEventBuilder
from permission_journal.models.backup import (
    BackupCategory,
    BackupDocument,
    BackupPermission,
    BackupTag,
)
from permission_journal.models.schema import (
    MoneyPermission,
    PermissionCategory,
    PermissionTag,
)


logger = get_logger(__name__)

BACKUP_FILENAME_PREFIX = "MoneyPermissionsBackup"


class ImportSummary(BaseModel):
    """What an import added and what it left alone."""

    imported: dict[str, int] = Field(default_factory=dict)
    skipped: dict[str, int] = Field(default_factory=dict)
    saved: bool = True

    @property
    def total_imported(self) -> int:
        return sum(self.imported.values())


def export_backup(view_model: PermissionViewModel) -> BackupDocument:
    """Snapshot the whole journal."""
    return BackupDocument(
        export_date=datetime.now(timezone.utc),
        permissions=[BackupPermission.from_entity(p) for p in view_model.all_permissions()],
        categories=[BackupCategory.from_entity(c) for c in view_model.all_categories()],
        tags=[BackupTag.from_entity(t) for t in view_model.all_tags()],
    )


def backup_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"{BACKUP_FILENAME_PREFIX}_{now.strftime('%Y-%m-%d')}.json"


def write_backup(
    view_model: PermissionViewModel,
    directory: Path | str,
    audit_logger: Optional[AuditLogger] = None,
) -> Path:
    """Export to `directory` and return the written file path."""
    document = export_backup(view_model)
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    path = directory / backup_filename(document.export_date)
    path.write_text(document.to_json(), encoding="utf-8")

    (audit_logger or AuditLogger()).log(
        JournalEventBuilder.backup_exported(document.counts, str(path))
    )
    return path


def load_backup(path: Path | str) -> BackupDocument:
    """
    Read and validate a backup file.

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If the document is malformed
    """
    return BackupDocument.from_json(Path(path).read_bytes())


def _existing_ids(view_model: PermissionViewModel, model) -> set:
    session = view_model.store.session
    return set(session.scalars(select(model.id)))


def import_backup(
    view_model: PermissionViewModel,
    document: BackupDocument,
    replace: bool = False,
    audit_logger: Optional[AuditLogger] = None,
) -> ImportSummary:
    """
    Merge a backup into the journal.

    Args:
        view_model: Target journal
        document: Validated backup
        replace: Delete all current data in the same save

    Returns:
        Counts of imported and skipped records per entity type
    """
    summary = ImportSummary()
    if not view_model.store.is_ready:
        logger.warning("import_skipped_store_not_ready")
        summary.saved = False
        return summary

    records = []
    for name, model, entries in (
        ("permissions", MoneyPermission, document.permissions),
        ("categories", PermissionCategory, document.categories),
        ("tags", PermissionTag, document.tags),
    ):
        # Replaced data is deleted in the same save, so nothing is skipped
        existing = set() if replace else _existing_ids(view_model, model)
        fresh = []
        for entry in entries:
            if entry.id in existing:
                continue
            existing.add(entry.id)
            fresh.append(entry.to_entity())
        records.extend(fresh)
        summary.imported[name] = len(fresh)
        summary.skipped[name] = len(entries) - len(fresh)

    summary.saved = view_model.add_imported(records, replace=replace)
    if not summary.saved:
        summary.imported = {name: 0 for name in summary.imported}
        return summary

    (audit_logger or AuditLogger()).log(
        JournalEventBuilder.backup_imported(summary.imported, summary.skipped)
    )
    return summary
