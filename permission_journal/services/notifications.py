"""
In-process change notifications.

Screens that show derived data (dashboard, insights, gallery) subscribe to
PERMISSION_DATA_CHANGED and re-read the journal when it fires. Notifications
carry no payload.
"""

import threading
from typing import Callable

from permission_journal.audit import get_logger


PERMISSION_DATA_CHANGED = "PermissionDataChanged"

Observer = Callable[[], None]

logger = get_logger(__name__)


class ChangeNotifier:
    """
    Named, payload-free change notifications for in-process observers.

    Observers are zero-argument callables, so they re-read whatever they
    display. Posting is synchronous and happens after the change is saved.
    An observer that raises is logged and skipped.
    """

    def __init__(self) -> None:
        self._observers: dict[str, list[Observer]] = {}
        self._lock = threading.Lock()

    def subscribe(self, name: str, observer: Observer) -> Callable[[], None]:
        """Register an observer. Returns a callable that unsubscribes it."""
        with self._lock:
            self._observers.setdefault(name, []).append(observer)

        def unsubscribe() -> None:
            with self._lock:
                observers = self._observers.get(name, [])
                if observer in observers:
                    observers.remove(observer)

        return unsubscribe

    def post(self, name: str) -> int:
        """
        Notify every observer of `name`.

        An observer that raises is logged and skipped. Returns the number of
        observers notified successfully.
        """
        with self._lock:
            observers = list(self._observers.get(name, []))

        delivered = 0
        for observer in observers:
            try:
                observer()
            except Exception:
                logger.exception("notification_observer_failed", notification=name)
                continue
            delivered += 1
        return delivered

    def observer_count(self, name: str) -> int:
        with self._lock:
            return len(self._observers.get(name, []))


# Process-wide default
notification_center = ChangeNotifier()
