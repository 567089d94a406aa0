import os

os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from src.auth.context import AuthContext
from src.auth.dependencies import get_current_auth
from src.db import SupabaseRecordStore, get_store
from src.main import app


class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    def __init__(self, table_name: str, db: "FakeSupabase"):
        self.table_name = table_name
        self.db = db
        self.operation = "select"
        self.filters = []
        self.payload = None
        self.count = None
        self.row_limit = None

    def select(self, _fields: str, count=None):
        self.operation = "select"
        self.count = count
        return self

    def insert(self, payload: dict):
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload: dict):
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def eq(self, key: str, value):
        self.filters.append(("eq", key, value))
        return self

    def is_(self, key: str, value):
        self.filters.append(("is", key, value))
        return self

    def limit(self, n: int):
        self.row_limit = n
        return self

    def _matches(self, row: dict) -> bool:
        for kind, key, value in self.filters:
            if kind == "eq" and row.get(key) != value:
                return False
            if kind == "is" and value == "null" and row.get(key) is not None:
                return False
        return True

    def _check_unique(self, row: dict, ignore_id=None) -> None:
        table = self.db.tables.setdefault(self.table_name, [])
        for column in self.db.unique.get(self.table_name, ()):
            if column not in row:
                continue
            for existing in table:
                if existing.get("id") != ignore_id and existing.get(column) == row[column]:
                    raise APIError({"code": "23505", "message": f"duplicate key value violates unique constraint on {column}"})

    async def execute(self):
        self.db.calls.append((self.table_name, self.operation))
        table = self.db.tables.setdefault(self.table_name, [])
        if self.operation == "insert":
            row = dict(self.payload or {})
            self._check_unique(row)
            table.append(row)
            return FakeResponse([dict(row)])
        if self.operation == "update":
            updated = []
            for row in table:
                if self._matches(row):
                    self._check_unique(self.payload or {}, ignore_id=row.get("id"))
                    row.update(self.payload or {})
                    updated.append(dict(row))
            return FakeResponse(updated)
        if self.operation == "delete":
            removed = [row for row in table if self._matches(row)]
            self.db.tables[self.table_name] = [row for row in table if not self._matches(row)]
            return FakeResponse([dict(row) for row in removed])
        rows = [dict(row) for row in table if self._matches(row)]
        count = len(rows) if self.count else None
        if self.row_limit is not None:
            rows = rows[:self.row_limit]
        return FakeResponse(rows, count)


class FakeSupabase:
    def __init__(self, tables: dict | None = None, unique: dict | None = None):
        self.tables = tables if tables is not None else {}
        self.unique = unique if unique is not None else {"organizations": ("slug",)}
        self.calls = []

    def table(self, table_name: str):
        return FakeQuery(table_name, self)


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def store(fake_db):
    return SupabaseRecordStore(client=fake_db)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def set_auth():
    def _set(auth: AuthContext) -> None:
        async def _override():
            return auth

        app.dependency_overrides[get_current_auth] = _override

    return _set
