"""Store interaction of the handlers, observed through a recording store."""
import pytest
from fastapi.testclient import TestClient

from src.api.db import Store, get_store_provider
from src.api.errors import StoreError
from src.api.main import create_app
from src.api.settings import Settings


class RecordingStore(Store):
    def __init__(self):
        super().__init__(":memory:")
        self.calls = []
        self.fail_on = None

    def _record(self, name):
        self.calls.append(name)
        if name == self.fail_on:
            raise StoreError(f"{name} failed: disk I/O error")

    def query(self, sql, params=()):
        self._record("query")
        return super().query(sql, params)

    def execute(self, sql, params=()):
        self._record("execute")
        return super().execute(sql, params)

    def persist(self):
        self._record("persist")
        super().persist()


class RecordingProvider:
    def __init__(self):
        self.store = RecordingStore()
        self.acquired = 0

    def acquire(self):
        self.acquired += 1
        return self.store


@pytest.fixture
def provider():
    return RecordingProvider()


@pytest.fixture
def client(provider):
    app = create_app(Settings(sqlite_db_path=":memory:", log_level="WARNING"))
    app.dependency_overrides[get_store_provider] = lambda: provider
    return TestClient(app)


def seed(provider, title="seeded"):
    todo_id = Store.execute(provider.store, "INSERT INTO todos (title) VALUES (?)", (title,))
    provider.store.calls.clear()
    return todo_id


class TestCallSequence:
    def test_create_inserts_reads_back_then_persists_once(self, client, provider):
        res = client.post("/todos/", json={"title": "Buy milk"})
        assert res.status_code == 201
        assert provider.store.calls == ["execute", "query", "persist"]

    def test_update_reads_writes_reads_then_persists_once(self, client, provider):
        tid = seed(provider)
        res = client.put(f"/todos/{tid}", json={"status": "completed"})
        assert res.status_code == 200
        assert provider.store.calls == ["query", "execute", "query", "persist"]

    def test_delete_reads_deletes_then_persists_once(self, client, provider):
        tid = seed(provider)
        res = client.delete(f"/todos/{tid}")
        assert res.status_code == 200
        assert provider.store.calls == ["query", "execute", "persist"]

    @pytest.mark.parametrize("method", ["put", "delete"])
    def test_missing_todo_stops_after_lookup(self, client, provider, method):
        kwargs = {"json": {"title": "x"}} if method == "put" else {}
        res = getattr(client, method)("/todos/99", **kwargs)
        assert res.status_code == 404
        assert provider.store.calls == ["query"]

    def test_reads_do_not_persist(self, client, provider):
        tid = seed(provider)
        client.get("/todos/")
        client.get(f"/todos/{tid}")
        client.get("/todos/search/all", params={"q": "seed"})
        assert provider.store.calls == ["query", "query", "query"]


class TestValidationBeforeStore:
    @pytest.mark.parametrize(
        "method, path, kwargs",
        [
            ("get", "/todos/abc", {}),
            ("get", "/todos/0", {}),
            ("put", "/todos/-1", {"json": {"title": "x"}}),
            ("put", "/todos/1", {"json": {"status": "archived"}}),
            ("delete", "/todos/abc", {}),
            ("post", "/todos/", {"json": {"description": "no title"}}),
            ("get", "/todos/?limit=1000", {}),
        ],
    )
    def test_invalid_requests_never_reach_the_store(self, client, provider, method, path, kwargs):
        res = getattr(client, method)(path, **kwargs)
        assert res.status_code in (400, 422)
        assert provider.acquired == 0
        assert provider.store.calls == []


class TestStoreFailures:
    @pytest.mark.parametrize("fail_on", ["execute", "query", "persist"])
    def test_create_failure_is_a_generic_500(self, client, provider, fail_on):
        provider.store.fail_on = fail_on
        res = client.post("/todos/", json={"title": "Buy milk"})
        assert res.status_code == 500
        assert res.json() == {"detail": "Internal server error"}
        assert "disk I/O" not in res.text

    def test_list_failure_is_a_generic_500(self, client, provider):
        provider.store.fail_on = "query"
        res = client.get("/todos/")
        assert res.status_code == 500
        assert res.json()["detail"] == "Internal server error"

    def test_unexpected_column_is_a_store_failure(self, client, provider):
        Store.execute(provider.store, "ALTER TABLE todos ADD COLUMN owner TEXT")
        tid = seed(provider)
        res = client.get(f"/todos/{tid}")
        assert res.status_code == 500
        assert res.json()["detail"] == "Internal server error"
