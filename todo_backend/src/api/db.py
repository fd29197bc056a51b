from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from threading import Lock, RLock
from typing import Any, Iterator, Optional, Sequence

from fastapi import Request

from .errors import StoreError
from .models import ResultSet, ResultTable
from .settings import Settings

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS todos (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    description TEXT NULL,
    status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'completed'))
)
"""


class Store:
    """
    Embedded SQLite store kept in memory and flushed to a file by ``persist``.

    All calls are serialized on one connection. A call that cannot get hold of the
    connection within ``timeout`` seconds raises StoreError.
    """

    def __init__(self, db_path: str = MEMORY_PATH, timeout: float = 5.0) -> None:
        self._db_path = db_path.strip() if db_path else MEMORY_PATH
        self._timeout = timeout
        self._lock = RLock()
        try:
            self._conn = sqlite3.connect(MEMORY_PATH, check_same_thread=False)
            self._load()
            self._conn.execute(_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"could not open store at {self._db_path}: {exc}") from exc

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def durable(self) -> bool:
        """True when writes are flushed to a file."""
        return self._db_path != MEMORY_PATH

    def _load(self) -> None:
        if not self.durable or not os.path.exists(self._db_path):
            return
        source = sqlite3.connect(self._db_path)
        try:
            source.backup(self._conn)
        finally:
            source.close()
        logger.info("Loaded todo store from %s", self._db_path)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._timeout):
            raise StoreError(f"store busy for more than {self._timeout}s")
        try:
            yield
        finally:
            self._lock.release()

    def query(self, sql: str, params: Sequence[Any] = ()) -> ResultSet:
        """Run a read-only statement with positional parameters and return its result set."""
        with self._locked():
            try:
                cursor = self._conn.execute(sql, tuple(params))
                rows = cursor.fetchall()
            except (sqlite3.Error, OverflowError) as exc:
                raise StoreError(str(exc)) from exc
        columns = [d[0] for d in cursor.description or ()]
        if not columns:
            return []
        return [ResultTable(columns=columns, values=[tuple(r) for r in rows])]

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Optional[int]:
        """
        Run a write statement (insert/update/delete) and commit it.

        Returns:
            The rowid of the last inserted row on this connection.
        """
        with self._locked():
            try:
                cursor = self._conn.execute(sql, tuple(params))
                self._conn.commit()
            except (sqlite3.Error, OverflowError) as exc:
                self._conn.rollback()
                raise StoreError(str(exc)) from exc
            return cursor.lastrowid

    def persist(self) -> None:
        """Flush the in-memory database to the durable file. No-op for memory-only stores."""
        if not self.durable:
            return
        with self._locked():
            try:
                os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
                target = sqlite3.connect(self._db_path)
                try:
                    self._conn.backup(target)
                finally:
                    target.close()
            except (sqlite3.Error, OSError) as exc:
                raise StoreError(f"could not persist store to {self._db_path}: {exc}") from exc

    def close(self) -> None:
        with self._lock:
            self._conn.close()


class StoreProvider:
    """
    Owns the single Store of the process and opens it on first use.
    Concurrent first callers share one initialization.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._store: Optional[Store] = None
        self._init_lock = Lock()

    def acquire(self) -> Store:
        store = self._store
        if store is None:
            with self._init_lock:
                if self._store is None:
                    logger.info("Opening todo store (%s)", self._settings.sqlite_db_path)
                    self._store = Store(
                        self._settings.sqlite_db_path,
                        timeout=self._settings.store_timeout,
                    )
                store = self._store
        return store

    def close(self) -> None:
        with self._init_lock:
            if self._store is not None:
                self._store.close()
                self._store = None


# PUBLIC_INTERFACE
def get_store_provider(request: Request) -> StoreProvider:
    """
    FastAPI dependency returning the application's StoreProvider.
    Tests replace it through ``app.dependency_overrides``.
    """
    return request.app.state.store_provider
