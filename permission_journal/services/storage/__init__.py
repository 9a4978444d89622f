"""
Storage Services Package

Provides the abstract store interface and the SQLite implementation the
journal runs on.
"""

from permission_journal.services.storage.interface import (
    JournalStoreInterface,
    SaveError,
    StorageError,
    StoreInitializationError,
    StoreTimeoutError,
    StoreUnavailableError,
)
from permission_journal.services.storage.sqlite_store import SQLiteJournalStore

__all__ = [
    # Interface
    "JournalStoreInterface",
    # Exceptions
    "SaveError",
    "StorageError",
    "StoreInitializationError",
    "StoreTimeoutError",
    "StoreUnavailableError",
    # SQLite implementation
    "SQLiteJournalStore",
]
