import threading

import pytest

from src.api import db
from src.api.db import Store, StoreProvider
from src.api.errors import StoreError
from src.api.settings import Settings


@pytest.fixture
def store():
    s = Store(":memory:")
    yield s
    s.close()


class TestStore:
    def test_creates_todos_table(self, store):
        rows = store.query("SELECT name FROM sqlite_master WHERE type='table' AND name='todos'")
        assert rows[0].values == [("todos",)]

    def test_execute_returns_inserted_id(self, store):
        first = store.execute("INSERT INTO todos (title) VALUES (?)", ("a",))
        second = store.execute("INSERT INTO todos (title) VALUES (?)", ("b",))
        assert (first, second) == (1, 2)

    def test_query_returns_columns_and_rows(self, store):
        store.execute("INSERT INTO todos (title, description) VALUES (?, ?)", ("a", "d"))
        rows = store.query("SELECT * FROM todos WHERE id = ?", (1,))
        assert rows[0].columns == ["id", "title", "description", "status"]
        assert rows[0].values == [(1, "a", "d", "pending")]

    def test_parameters_are_bound_not_interpolated(self, store):
        store.execute("INSERT INTO todos (title) VALUES (?)", ("x'); DROP TABLE todos; --",))
        rows = store.query("SELECT title FROM todos")
        assert rows[0].values == [("x'); DROP TABLE todos; --",)]

    def test_status_constraint(self, store):
        with pytest.raises(StoreError):
            store.execute("INSERT INTO todos (title, status) VALUES (?, ?)", ("a", "archived"))

    def test_bad_sql_raises_store_error(self, store):
        with pytest.raises(StoreError):
            store.query("SELECT * FROM missing_table")

    def test_integer_overflow_raises_store_error(self, store):
        with pytest.raises(StoreError):
            store.query("SELECT * FROM todos WHERE id = ?", (10**25,))
        with pytest.raises(StoreError):
            store.execute("DELETE FROM todos WHERE id = ?", (10**25,))

    def test_memory_store_persist_is_noop(self, store):
        assert not store.durable
        store.persist()

    def test_persist_and_reload(self, tmp_path):
        path = str(tmp_path / "nested" / "todos.db")
        first = Store(path)
        first.execute("INSERT INTO todos (title) VALUES (?)", ("kept",))
        first.persist()
        first.execute("INSERT INTO todos (title) VALUES (?)", ("not flushed",))
        first.close()

        second = Store(path)
        try:
            assert second.query("SELECT title FROM todos")[0].values == [("kept",)]
        finally:
            second.close()

    def test_unreadable_file_raises_store_error(self, tmp_path):
        path = tmp_path / "todos.db"
        path.write_bytes(b"this is not a sqlite database" * 10)
        with pytest.raises(StoreError):
            Store(str(path))

    def test_busy_store_times_out(self):
        store = Store(":memory:", timeout=0.05)
        held = threading.Event()
        release = threading.Event()

        def hold():
            with store._locked():
                held.set()
                release.wait(5)

        worker = threading.Thread(target=hold)
        worker.start()
        try:
            assert held.wait(5)
            with pytest.raises(StoreError, match="busy"):
                store.query("SELECT 1")
        finally:
            release.set()
            worker.join()
            store.close()


class TestStoreProvider:
    def test_acquire_is_lazy_and_returns_same_store(self, monkeypatch):
        opened = []

        class CountingStore(Store):
            def __init__(self, *args, **kwargs):
                opened.append(1)
                super().__init__(*args, **kwargs)

        monkeypatch.setattr(db, "Store", CountingStore)
        provider = StoreProvider(Settings(sqlite_db_path=":memory:"))
        assert opened == []

        assert provider.acquire() is provider.acquire()
        assert opened == [1]
        provider.close()

    def test_concurrent_first_use_opens_once(self, monkeypatch):
        opened = []
        gate = threading.Barrier(8)

        class CountingStore(Store):
            def __init__(self, *args, **kwargs):
                opened.append(1)
                super().__init__(*args, **kwargs)

        monkeypatch.setattr(db, "Store", CountingStore)
        provider = StoreProvider(Settings(sqlite_db_path=":memory:"))
        results = []

        def worker():
            gate.wait()
            results.append(provider.acquire())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(opened) == 1
        assert len(results) == 8
        assert all(r is results[0] for r in results)
        provider.close()

    def test_close_allows_reopening(self):
        provider = StoreProvider(Settings(sqlite_db_path=":memory:"))
        first = provider.acquire()
        provider.close()
        assert provider.acquire() is not first
        provider.close()
