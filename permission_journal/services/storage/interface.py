"""
Abstract Store Interface

DESIGN DECISION: The data access layer talks to the store through this
interface only. This allows us to:
1. Construct the store explicitly and hand it to every consumer
   (no process-wide singleton)
2. Use a volatile in-memory store for tests and previews
3. Keep readiness checks and save semantics in one place

The interface is intentionally small: one shared session, readiness,
save and rollback. Queries are written against the session by the
access layer.
"""

from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy.orm import Session


class JournalStoreInterface(ABC):
    """
    Abstract interface for the journal's persistent store.

    Implementations own exactly one database and one long-lived
    read/write session for their lifetime.
    """

    @abstractmethod
    async def initialize(self, timeout: Optional[float] = None) -> "JournalStoreInterface":
        """
        Open (or create) the store.

        Never raises for load failures; check is_ready afterwards.

        Args:
            timeout: Seconds to wait for the store to open

        Returns:
            The store itself, ready or not
        """
        pass

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        """True only if the store opened (or was recovered) with no recorded error."""
        pass

    @property
    @abstractmethod
    def session(self) -> Session:
        """
        The shared read/write session.

        Raises:
            StoreUnavailableError: If the store is not ready
        """
        pass

    @abstractmethod
    def save(self) -> bool:
        """
        Commit pending changes.

        Returns:
            True if the changes are durable (or there was nothing to save),
            False if the store is not ready or the write failed and was
            rolled back
        """
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Discard all pending in-memory changes."""
        pass

    @abstractmethod
    def merge_external_changes(self) -> int:
        """
        Reload values changed in the database by another writer.

        Pending in-memory changes win over stored values, field by field.

        Returns:
            Number of objects refreshed
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the session and the database connection."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StoreUnavailableError(StorageError):
    """The store is not ready for reads or writes."""
    pass


class StoreInitializationError(StorageError):
    """The store could not be opened or its schema is unusable."""
    pass


class StoreTimeoutError(StoreInitializationError):
    """The store did not finish opening within the timeout."""
    pass


class SaveError(StorageError):
    """A commit failed and was rolled back."""
    pass
