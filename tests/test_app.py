"""Tests for the create_journal factory."""

import asyncio
from datetime import date

from permission_journal.app import create_journal
from permission_journal.config import Settings
from permission_journal.services.notifications import PERMISSION_DATA_CHANGED


class TestCreateJournal:
    """Tests for wiring the store and view model together."""

    def test_in_memory_journal(self, notifier):
        """Test an in-memory journal is ready and notifies."""
        view_model = asyncio.run(create_journal(Settings(), in_memory=True, notifier=notifier))
        calls = []
        notifier.subscribe(PERMISSION_DATA_CHANGED, lambda: calls.append(1))
        try:
            assert view_model.store.is_ready
            assert view_model.create_permission("I can", date(2024, 1, 1)) is not None
            assert calls == [1]
        finally:
            view_model.store.close()

    def test_file_journal(self, tmp_path):
        """Test a file journal creates its database."""
        db_path = tmp_path / "journal.sqlite"
        view_model = asyncio.run(create_journal(Settings(), db_path=db_path))
        try:
            assert view_model.store.is_ready
            assert db_path.exists()
        finally:
            view_model.store.close()

    def test_unavailable_store_still_returns_view_model(self, tmp_path):
        """Test an unopenable path yields an unready view model."""
        view_model = asyncio.run(create_journal(Settings(), db_path=tmp_path))
        assert not view_model.store.is_ready
        assert view_model.all_permissions() == []
