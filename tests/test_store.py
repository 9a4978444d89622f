"""
Tests for the SQLite journal store.

Covers opening, recovery from unreadable files, timeouts, save
semantics, the additive migration and merging external changes.
"""

import asyncio
import time
from datetime import datetime
from unittest.mock import Mock
from uuid import uuid4

import pytest
from sqlalchemy import create_engine, inspect, text

from permission_journal.config import StoreSettings
from permission_journal.models.schema import (
    CATEGORY_TABLE,
    PERMISSION_TABLE,
    MoneyPermission,
    PermissionCategory,
)
from permission_journal.services.storage import (
    SaveError,
    SQLiteJournalStore,
    StoreTimeoutError,
    StoreUnavailableError,
)


def create_legacy_table(db_path, ddl: str, rows=()) -> None:
    engine = create_engine(f"sqlite:///{db_path}")
    with engine.begin() as conn:
        conn.execute(text(ddl))
        for statement, params in rows:
            conn.execute(text(statement), params)
    engine.dispose()


class TestOpening:
    """Tests for initialize()."""

    def test_in_memory_store_is_ready(self, store):
        """Test an in-memory store opens ready."""
        assert store.is_ready
        assert store.in_memory
        assert store.location == ":memory:"
        assert not store.has_error
        assert not store.recovered

    def test_file_store_creates_database(self, make_store, tmp_path):
        """Test a file store creates its database file."""
        db_path = tmp_path / "nested" / "journal.sqlite"
        store = make_store(db_path=str(db_path))

        assert store.is_ready
        assert db_path.exists()
        tables = set(inspect(store.engine).get_table_names())
        assert {PERMISSION_TABLE, CATEGORY_TABLE} <= tables

    def test_session_before_initialize_raises(self):
        """Test session access before opening raises."""
        store = SQLiteJournalStore(StoreSettings(in_memory=True))
        assert not store.is_ready
        with pytest.raises(StoreUnavailableError):
            store.session

    def test_initialize_twice_is_harmless(self, store):
        """Test a second initialize keeps the same session."""
        session = store.session
        asyncio.run(store.initialize())
        assert store.session is session

    def test_data_survives_reopen(self, make_store, tmp_path):
        """Test saved records are read back after reopening."""
        db_path = str(tmp_path / "journal.sqlite")
        store = make_store(db_path=db_path)
        store.session.add(PermissionCategory(name="Travel", order=0))
        assert store.save()
        store.close()
        assert not store.is_ready

        reopened = make_store(db_path=db_path)
        names = [c.name for c in reopened.session.query(PermissionCategory)]
        assert names == ["Travel"]


class TestRecovery:
    """Tests for the one-shot destructive recovery."""

    def test_corrupt_file_is_recreated_empty(self, make_store, tmp_path):
        """Test an unreadable file is replaced once."""
        db_path = tmp_path / "journal.sqlite"
        db_path.write_bytes(b"this is not a sqlite database" * 100)
        (tmp_path / "journal.sqlite-wal").write_bytes(b"stale")

        store = make_store(db_path=str(db_path))

        assert store.is_ready
        assert store.recovered
        assert store.initialization_error is None
        assert not (tmp_path / "journal.sqlite-wal").exists()
        assert store.session.query(MoneyPermission).count() == 0

    def test_unopenable_path_leaves_store_unready(self, make_store, tmp_path):
        """Test a directory path leaves the store unready."""
        # A directory can be neither opened nor deleted as a database file
        store = make_store(db_path=str(tmp_path))
        assert not store.is_ready
        assert store.has_error
        assert not store.recovered

    def test_error_is_terminal(self, make_store, tmp_path):
        """Test a failed store does not retry."""
        store = make_store(db_path=str(tmp_path))
        error = store.initialization_error
        asyncio.run(store.initialize())
        assert not store.is_ready
        assert store.initialization_error is error

    def test_required_column_missing_triggers_recovery(self, make_store, tmp_path):
        """Test a missing required column recreates the store."""
        db_path = tmp_path / "journal.sqlite"
        create_legacy_table(
            db_path,
            f'CREATE TABLE "{PERMISSION_TABLE}" (id CHAR(32) PRIMARY KEY, date DATETIME)',
        )

        store = make_store(db_path=str(db_path))

        assert store.is_ready
        assert store.recovered
        columns = {c["name"] for c in inspect(store.engine).get_columns(PERMISSION_TABLE)}
        assert "statement" in columns


class TestTimeout:
    """Tests for the initialization timeout."""

    def test_slow_open_times_out(self, monkeypatch):
        """Test a slow open marks the store not ready."""
        store = SQLiteJournalStore(StoreSettings(in_memory=True))
        original = store._open_store

        def slow_open():
            time.sleep(0.5)
            return original()

        monkeypatch.setattr(store, "_open_store", slow_open)
        asyncio.run(store.initialize(timeout=0.05))

        assert not store.is_ready
        assert isinstance(store.initialization_error, StoreTimeoutError)
        assert "timed out" in str(store.initialization_error)

    def test_engine_finished_after_timeout_is_disposed(self, monkeypatch):
        """Test an engine the worker returns too late is disposed."""
        store = SQLiteJournalStore(StoreSettings(in_memory=True))
        late_engine = Mock()

        def slow_open():
            time.sleep(0.2)
            return late_engine

        monkeypatch.setattr(store, "_open_store", slow_open)
        # asyncio.run waits for the worker thread before returning
        asyncio.run(store.initialize(timeout=0.01))

        assert not store.is_ready
        late_engine.dispose.assert_called_once()


class TestSave:
    """Tests for save() and rollback()."""

    def test_save_without_changes_does_not_write(self, store):
        """Test an empty save skips the commit."""
        assert store.write_count == 0
        assert store.save()
        assert store.write_count == 0

    def test_save_commits_pending_changes(self, store):
        """Test a save commits and counts one write."""
        store.session.add(PermissionCategory(name="Food", order=0))
        assert store.has_pending_changes
        assert store.save()
        assert store.write_count == 1
        assert not store.has_pending_changes

        assert store.save()
        assert store.write_count == 1

    def test_save_on_unready_store_returns_false(self):
        """Test save fails on an unopened store."""
        store = SQLiteJournalStore(StoreSettings(in_memory=True))
        assert store.save() is False

    def test_failed_commit_rolls_back_everything(self, store):
        """Test a failed commit discards every pending change."""
        store.session.add(PermissionCategory(name="Kept out", order=0))
        store.session.add(MoneyPermission(statement=None, date=datetime(2024, 1, 1)))

        assert store.save() is False
        assert isinstance(store.last_save_error, SaveError)
        assert store.write_count == 0
        assert store.session.query(PermissionCategory).count() == 0

        # Store stays usable after a failed save
        store.session.add(PermissionCategory(name="Later", order=0))
        assert store.save()
        assert store.last_save_error is None

    def test_unbindable_value_fails_save_without_raising(self, store):
        """Test a value the driver cannot bind fails the save and rolls back."""
        store.session.add(MoneyPermission(
            statement="Too large",
            date=datetime(2024, 1, 1),
            emotional_tags=[],
            emotional_impact=2 ** 63,
        ))

        assert store.save() is False
        assert isinstance(store.last_save_error, SaveError)
        assert not store.has_pending_changes
        assert store.session.query(MoneyPermission).count() == 0

        store.session.add(MoneyPermission(
            statement="Fits", date=datetime(2024, 1, 1), emotional_tags=[]
        ))
        assert store.save()
        assert store.session.query(MoneyPermission).count() == 1

    def test_rollback_discards_pending(self, store):
        """Test rollback drops unsaved records."""
        store.session.add(PermissionCategory(name="Temp", order=0))
        store.rollback()
        assert not store.has_pending_changes
        assert store.session.query(PermissionCategory).count() == 0


class TestMigration:
    """Tests for the additive migration."""

    def test_missing_column_is_added(self, make_store, tmp_path):
        """Test an optional column is added to an old table."""
        db_path = tmp_path / "journal.sqlite"
        category_id = uuid4()
        create_legacy_table(
            db_path,
            f'CREATE TABLE "{CATEGORY_TABLE}" ('
            "id CHAR(32) PRIMARY KEY, name VARCHAR(200) NOT NULL, "
            "icon_name VARCHAR(100), color_hex VARCHAR(9))",
            rows=[(
                f'INSERT INTO "{CATEGORY_TABLE}" (id, name) VALUES (:id, :name)',
                {"id": category_id.hex, "name": "Legacy"},
            )],
        )

        store = make_store(db_path=str(db_path))

        assert store.is_ready
        assert not store.recovered
        category = store.session.get(PermissionCategory, category_id)
        assert category.name == "Legacy"
        assert category.order == 0


class TestMergeExternalChanges:
    """Tests for merging writes made by another connection."""

    def _permission(self, statement: str) -> MoneyPermission:
        return MoneyPermission(
            id=uuid4(),
            statement=statement,
            date=datetime(2024, 3, 1),
            emotional_tags=[],
            emotional_impact=0,
        )

    def test_in_memory_changes_win(self, make_store, tmp_path):
        """Test unsaved local edits beat external writes."""
        db_path = str(tmp_path / "journal.sqlite")
        first = make_store(db_path=db_path)
        second = make_store(db_path=db_path)

        permission = self._permission("Buy the good coffee")
        first.session.add(permission)
        assert first.save()

        other = second.session.get(MoneyPermission, permission.id)
        other.statement = "Buy the good tea"
        other.expected_impact = "Calmer mornings"
        assert second.save()

        permission.expected_impact = "Local edit"
        assert first.merge_external_changes() == 1
        assert permission.statement == "Buy the good tea"
        assert permission.expected_impact == "Local edit"

    def test_vanished_rows_are_dropped(self, make_store, tmp_path):
        """Test rows deleted elsewhere leave the session."""
        db_path = str(tmp_path / "journal.sqlite")
        first = make_store(db_path=db_path)
        second = make_store(db_path=db_path)

        permission = self._permission("Take the taxi")
        first.session.add(permission)
        assert first.save()

        second.session.delete(second.session.get(MoneyPermission, permission.id))
        assert second.save()

        assert first.merge_external_changes() == 0
        assert permission not in first.session
