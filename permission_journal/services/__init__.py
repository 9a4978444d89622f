"""Services package."""

from permission_journal.services.notifications import (
    PERMISSION_DATA_CHANGED,
    ChangeNotifier,
    notification_center,
)
from permission_journal.services.storage import (
    JournalStoreInterface,
    SaveError,
    SQLiteJournalStore,
    StorageError,
    StoreInitializationError,
    StoreTimeoutError,
    StoreUnavailableError,
)

__all__ = [
    # Notifications
    "PERMISSION_DATA_CHANGED",
    "ChangeNotifier",
    "notification_center",
    # Storage services
    "JournalStoreInterface",
    "SaveError",
    "SQLiteJournalStore",
    "StorageError",
    "StoreInitializationError",
    "StoreTimeoutError",
    "StoreUnavailableError",
]
