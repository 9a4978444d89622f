"""
SQLite Store Implementation

DESIGN DECISION: The journal lives in a single local SQLite database
accessed through SQLAlchemy, because:
1. The data set is small and single-user
2. No server or setup is needed on the device
3. A single file is easy to back up, and easy to recreate

TRADEOFFS:
- Opening blocks on disk I/O, so it runs in a worker thread and the
  caller awaits it with an explicit timeout
- A corrupted or incompatible file is deleted and recreated empty.
  Losing the journal beats a journal that can never open again.
  This happens at most once per store instance.
- Saves never raise. A failed commit rolls back every pending change
  and is logged.
"""

import asyncio
import threading
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from permission_journal.audit import AuditLogger, get_logger
from permission_journal.config import StoreSettings, get_settings
from permission_journal.models.audit import JournalEventBuilder
from permission_journal.models.schema import ENTITY_TABLES, Base, create_schema
from permission_journal.services.storage.interface import (
    JournalStoreInterface,
    SaveError,
    StoreInitializationError,
    StoreTimeoutError,
    StoreUnavailableError,
)


# Files SQLite may leave next to the database
STORE_FILE_SUFFIXES = ("", "-wal", "-shm", "-journal")

IN_MEMORY_LOCATION = ":memory:"

# Errors that send the store through recovery
LOAD_ERRORS = (SQLAlchemyError, OSError, StoreInitializationError)

# Errors a commit can raise. The DBAPI raises the last three while binding
# parameters, and SQLAlchemy passes them through unwrapped.
SAVE_ERRORS = (SQLAlchemyError, OverflowError, ValueError, TypeError)


class SQLiteJournalStore(JournalStoreInterface):
    """
    SQLite implementation of the journal store.

    Owns one engine and one long-lived session. Consumers receive the
    store explicitly and must check is_ready before touching session.
    """

    def __init__(
        self,
        settings: Optional[StoreSettings] = None,
        *,
        in_memory: Optional[bool] = None,
        db_path: Optional[str | Path] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings or get_settings().store
        self._in_memory = self._settings.in_memory if in_memory is None else in_memory
        self._db_path = Path(db_path or self._settings.db_path).expanduser()

        self._engine: Optional[Engine] = None
        self._session: Optional[Session] = None
        self._is_loaded = False
        self._initialization_error: Optional[Exception] = None
        self._recovery_attempted = False
        self._recovered = False

        self._write_count = 0
        self._flushed_since_commit = False
        self.last_save_error: Optional[SaveError] = None

        self._lock = threading.RLock()
        self._audit = audit_logger or AuditLogger()
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def location(self) -> str:
        return IN_MEMORY_LOCATION if self._in_memory else str(self._db_path)

    @property
    def in_memory(self) -> bool:
        return self._in_memory

    @property
    def is_ready(self) -> bool:
        return (
            self._is_loaded
            and self._engine is not None
            and self._session is not None
            and self._initialization_error is None
        )

    @property
    def has_error(self) -> bool:
        return self._initialization_error is not None

    @property
    def initialization_error(self) -> Optional[Exception]:
        return self._initialization_error

    @property
    def recovered(self) -> bool:
        """True if the store was recreated empty after a load failure."""
        return self._recovered

    @property
    def write_count(self) -> int:
        """Number of successful commits since the store was opened."""
        return self._write_count

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StoreUnavailableError("Store has not been opened")
        return self._engine

    @property
    def session(self) -> Session:
        if not self.is_ready:
            raise StoreUnavailableError(
                f"Journal store at {self.location} is not ready"
            )
        return self._session

    @property
    def has_pending_changes(self) -> bool:
        """True if a commit would write anything."""
        if self._session is None:
            return False
        session = self._session
        if session.new or session.deleted or self._flushed_since_commit:
            return True
        return any(session.is_modified(obj) for obj in session.dirty)

    # ------------------------------------------------------------------
    # Opening
    # ------------------------------------------------------------------

    async def initialize(self, timeout: Optional[float] = None) -> "SQLiteJournalStore":
        """
        Open the store, recovering once from a load failure.

        The blocking open runs in a worker thread. If it does not finish
        within `timeout` seconds the store is marked not ready.
        """
        # A recorded error is terminal for this store instance
        if self.is_ready or self.has_error:
            return self

        timeout = self._settings.init_timeout_seconds if timeout is None else timeout

        try:
            engine = await self._open_in_thread(self._open_store, timeout)
        except StoreTimeoutError as e:
            self._fail(e)
            return self
        except LOAD_ERRORS as e:
            self._logger.warning(
                "store_load_failed",
                location=self.location,
                error=str(e),
            )
            self._initialization_error = e
            engine = await self._recover(e, timeout)
            if engine is None:
                return self

        self._attach(engine)
        self._audit.log(
            JournalEventBuilder.store_opened(self.location, list(ENTITY_TABLES))
        )
        return self

    async def _open_in_thread(self, opener, timeout: float) -> Engine:
        """
        Run `opener` in a worker thread and wait at most `timeout` seconds.

        The thread cannot be cancelled, so an engine it returns after the
        wait was abandoned is disposed instead of leaking its connections.
        """
        lock = threading.Lock()
        state = {"abandoned": False, "engine": None}

        def run() -> Engine:
            engine = opener()
            with lock:
                if not state["abandoned"]:
                    state["engine"] = engine
                    return engine
            engine.dispose()
            self._logger.info("late_engine_disposed", location=self.location)
            return engine

        try:
            return await asyncio.wait_for(asyncio.to_thread(run), timeout)
        except asyncio.TimeoutError:
            with lock:
                state["abandoned"] = True
                finished = state["engine"]
            # The opener finished between the timeout and the cancellation
            if finished is not None:
                finished.dispose()
            raise StoreTimeoutError(
                f"Store loading timed out after {timeout:g}s"
            ) from None

    async def _recover(self, error: Exception, timeout: float) -> Optional[Engine]:
        """Delete the store file and recreate it empty. One attempt only."""
        if self._recovery_attempted:
            self._fail(error)
            return None
        self._recovery_attempted = True

        self._logger.warning("store_recovery_started", location=self.location)
        try:
            engine = await self._open_in_thread(self._recreate_store, timeout)
        except LOAD_ERRORS as e:
            self._fail(e)
            return None

        self._initialization_error = None
        self._recovered = True
        self._audit.log(JournalEventBuilder.store_recovered(self.location, str(error)))
        return engine

    def _recreate_store(self) -> Engine:
        if not self._in_memory:
            self._remove_store_files()
        return self._open_store()

    def _remove_store_files(self) -> None:
        for suffix in STORE_FILE_SUFFIXES:
            path = Path(f"{self._db_path}{suffix}")
            if path.exists():
                path.unlink()
                self._logger.info("store_file_removed", path=str(path))

    def _create_engine(self) -> Engine:
        if self._in_memory:
            # One shared connection, so the worker thread that opens the
            # store and the caller's thread see the same database
            engine = create_engine(
                "sqlite://",
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=self._settings.echo_sql,
            )
        else:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(
                f"sqlite:///{self._db_path}",
                connect_args={"check_same_thread": False},
                echo=self._settings.echo_sql,
            )

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

        return engine

    def _open_store(self) -> Engine:
        """Create the engine, build and migrate the schema, verify tables."""
        engine = self._create_engine()
        try:
            with engine.begin() as conn:
                create_schema(conn)
                self._migrate(conn)
                self._verify_tables(conn)
        except LOAD_ERRORS:
            engine.dispose()
            raise
        return engine

    def _migrate(self, conn: Connection) -> dict[str, list[str]]:
        """
        Lightweight migration: add mapped columns missing from existing tables.

        Only additive changes are handled. A new required column without a
        server default cannot be added and fails the load.
        """
        inspector = inspect(conn)
        added: dict[str, list[str]] = {}

        for table in Base.metadata.sorted_tables:
            existing = {col["name"] for col in inspector.get_columns(table.name)}
            for column in table.columns:
                if column.name in existing:
                    continue
                if column.primary_key or (
                    not column.nullable and column.server_default is None
                ):
                    raise StoreInitializationError(
                        f"Cannot add required column {table.name}.{column.name}"
                    )

                ddl = (
                    f'ALTER TABLE "{table.name}" ADD COLUMN "{column.name}" '
                    f"{column.type.compile(dialect=conn.dialect)}"
                )
                if column.server_default is not None:
                    ddl += f" DEFAULT {column.server_default.arg}"
                    if not column.nullable:
                        ddl += " NOT NULL"
                conn.execute(text(ddl))
                added.setdefault(table.name, []).append(column.name)

        for table_name, columns in added.items():
            self._audit.log(JournalEventBuilder.store_migrated(table_name, columns))
        return added

    def _verify_tables(self, conn: Connection) -> None:
        tables = set(inspect(conn).get_table_names())
        missing = [name for name in ENTITY_TABLES if name not in tables]
        if missing:
            raise StoreInitializationError(
                f"Entities missing from store: {', '.join(missing)}"
            )

    def _attach(self, engine: Engine) -> None:
        self._engine = engine
        self._session = Session(engine, expire_on_commit=False)
        event.listen(self._session, "after_flush", self._on_flush)
        event.listen(self._session, "after_commit", self._on_commit)
        event.listen(self._session, "after_rollback", self._on_rollback)
        self._is_loaded = True

    def _fail(self, error: Exception) -> None:
        self._is_loaded = False
        self._initialization_error = error
        self._audit.log(JournalEventBuilder.store_failed(self.location, str(error)))

    # ------------------------------------------------------------------
    # Session bookkeeping
    # ------------------------------------------------------------------

    def _on_flush(self, session, flush_context) -> None:
        self._flushed_since_commit = True

    def _on_commit(self, session) -> None:
        self._flushed_since_commit = False
        self._write_count += 1

    def _on_rollback(self, session) -> None:
        self._flushed_since_commit = False

    def _pending_summary(self) -> dict[str, int]:
        session = self._session
        return {
            "new": len(session.new),
            "dirty": len(session.dirty),
            "deleted": len(session.deleted),
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self) -> bool:
        """
        Commit pending changes.

        No-op if the store is not ready or nothing changed. On failure,
        every pending change is rolled back and the error is logged.
        """
        if not self.is_ready:
            self._audit.log(JournalEventBuilder.store_not_ready("save"))
            return False

        with self._lock:
            if not self.has_pending_changes:
                return True

            pending = self._pending_summary()
            try:
                self._session.commit()
            except SAVE_ERRORS as e:
                self._discard_pending()
                self.last_save_error = SaveError(str(e))
                self._audit.log(JournalEventBuilder.save_failed(str(e), pending))
                return False

        self.last_save_error = None
        return True

    def rollback(self) -> None:
        if self._session is None:
            return
        with self._lock:
            self._discard_pending()

    def _discard_pending(self) -> None:
        session = self._session
        session.rollback()
        # rollback() is a no-op outside a transaction; pending objects and
        # attribute edits on loaded objects must still be discarded
        for obj in list(session.new):
            session.expunge(obj)
        session.expire_all()

    def merge_external_changes(self) -> int:
        """
        Pull in changes written to the database by someone else.

        Attributes with pending in-memory changes keep their in-memory
        value; everything else is reloaded. Objects whose rows are gone
        are dropped from the session.

        Returns:
            Number of objects refreshed
        """
        if not self.is_ready:
            return 0

        refreshed = 0
        with self._lock, self._session.no_autoflush:
            for obj in list(self._session.identity_map.values()):
                state = inspect(obj)
                if state.deleted or obj in self._session.deleted:
                    continue
                attribute_names = [
                    attr.key
                    for attr in state.mapper.column_attrs
                    if attr.key in state.unmodified
                    and not any(col.primary_key for col in attr.columns)
                ]
                if not attribute_names:
                    continue
                try:
                    self._session.refresh(obj, attribute_names=attribute_names)
                except InvalidRequestError:
                    self._session.expunge(obj)
                    continue
                refreshed += 1

        return refreshed

    def close(self) -> None:
        with self._lock:
            if self._session is not None:
                self._session.close()
                self._session = None
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
            self._is_loaded = False
