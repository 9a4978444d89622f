"""Journal data access, statistics and backups."""

from permission_journal.journal.backup import (
    ImportSummary,
    backup_filename,
    export_backup,
    import_backup,
    load_backup,
    write_backup,
)
from permission_journal.journal.view_model import PermissionViewModel

__all__ = [
    "ImportSummary",
    "PermissionViewModel",
    "backup_filename",
    "export_backup",
    "import_backup",
    "load_backup",
    "write_backup",
]
