"""Shared fixtures: every test gets its own in-memory or tmp_path store."""

import asyncio

import pytest

from permission_journal.config import InsightSettings, StoreSettings
from permission_journal.journal import PermissionViewModel
from permission_journal.services.notifications import ChangeNotifier
from permission_journal.services.storage import SQLiteJournalStore


def open_store(**kwargs) -> SQLiteJournalStore:
    """Build and initialize a store synchronously."""
    timeout = kwargs.pop("timeout", None)
    store = SQLiteJournalStore(StoreSettings(**kwargs))
    return asyncio.run(store.initialize(timeout))


@pytest.fixture
def store():
    store = open_store(in_memory=True)
    yield store
    store.close()


@pytest.fixture
def notifier():
    return ChangeNotifier()


@pytest.fixture
def view_model(store, notifier):
    return PermissionViewModel(
        store,
        notifier=notifier,
        insight_settings=InsightSettings(),
    )


@pytest.fixture
def make_store():
    """Factory for file-backed stores; closes everything it opened."""
    opened = []

    def factory(**kwargs) -> SQLiteJournalStore:
        store = open_store(**kwargs)
        opened.append(store)
        return store

    yield factory
    for store in opened:
        store.close()
