"""
Journal Factory

Wires configuration, logging, the store and the view model together.
Callers that need more control construct SQLiteJournalStore and
PermissionViewModel directly.
"""

from pathlib import Path
from typing import Optional

from permission_journal.audit import AuditLogger, configure_logging, get_logger
from permission_journal.config import Settings, get_settings
from permission_journal.journal import PermissionViewModel
from permission_journal.services.notifications import ChangeNotifier
from permission_journal.services.storage import SQLiteJournalStore


logger = get_logger(__name__)


async def create_journal(
    settings: Optional[Settings] = None,
    *,
    in_memory: Optional[bool] = None,
    db_path: Optional[str | Path] = None,
    notifier: Optional[ChangeNotifier] = None,
    timeout: Optional[float] = None,
) -> PermissionViewModel:
    """
    Factory function to open the store and build the view model.

    Args:
        settings: Root settings; defaults to the cached environment settings
        in_memory: Override StoreSettings.in_memory (previews and tests)
        db_path: Override StoreSettings.db_path
        notifier: Change notifier; defaults to the process-wide one
        timeout: Override StoreSettings.init_timeout_seconds

    Returns:
        The view model. Check view_model.store.is_ready: a store that
        failed to open is returned as-is and every operation no-ops.
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level, app_settings.log_format)

    audit_logger = AuditLogger()
    store = SQLiteJournalStore(
        settings.store,
        in_memory=in_memory,
        db_path=db_path,
        audit_logger=audit_logger,
    )
    await store.initialize(timeout)

    if not store.is_ready:
        logger.error(
            "journal_unavailable",
            location=store.location,
            error=str(store.initialization_error),
        )

    return PermissionViewModel(
        store,
        notifier=notifier,
        audit_logger=audit_logger,
        insight_settings=settings.insights,
    )
