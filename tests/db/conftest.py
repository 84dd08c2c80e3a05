"""Fixtures for persistence tests.

FakeSupabase mimics the part of the supabase-py query builder the hosted
store uses, keeping rows in memory.
"""

from types import SimpleNamespace
from typing import Any

import pytest
from postgrest.exceptions import APIError

from bizu.db.hosted_store import HostedStore
from bizu.db.local_store import LocalStore


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: Any = None
        self.on_conflict = "id"
        self.filters: list[tuple[str, Any]] = []
        self.order_by: tuple[str, bool] | None = None
        self.limit_n: int | None = None

    def select(self, *columns: str) -> "FakeQuery":
        self.op = "select"
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self.op = "insert"
        self.payload = payload
        return self

    def upsert(self, payload: Any, on_conflict: str = "id") -> "FakeQuery":
        self.op = "upsert"
        self.payload = payload
        self.on_conflict = on_conflict
        return self

    def delete(self) -> "FakeQuery":
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.order_by = (column, desc)
        return self

    def limit(self, n: int) -> "FakeQuery":
        self.limit_n = n
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self) -> SimpleNamespace:
        self.db.calls.append((self.table, self.op, list(self.filters)))
        if self.table in self.db.failing:
            raise APIError({"message": f"{self.table} unavailable", "code": "503"})

        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "insert":
            rows.append(dict(self.payload))
            return SimpleNamespace(data=[self.payload])

        if self.op == "upsert":
            keys = self.on_conflict.split(",")
            payloads = self.payload if isinstance(self.payload, list) else [self.payload]
            for payload in payloads:
                existing = next(
                    (r for r in rows if all(r.get(k) == payload.get(k) for k in keys)),
                    None,
                )
                if existing is None:
                    rows.append(dict(payload))
                else:
                    existing.update(payload)
            return SimpleNamespace(data=payloads)

        if self.op == "delete":
            deleted = [r for r in rows if self._matches(r)]
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=deleted)

        result = [dict(r) for r in rows if self._matches(r)]
        if self.order_by is not None:
            column, desc = self.order_by
            result.sort(key=lambda r: r.get(column) or "", reverse=desc)
        if self.limit_n is not None:
            result = result[: self.limit_n]
        return SimpleNamespace(data=result)


class FakeSupabase:
    def __init__(self):
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, str, list]] = []
        self.failing: set[str] = set()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def hosted_store(fake_supabase, local_store) -> HostedStore:
    return HostedStore(fake_supabase, user_id="local", cache=local_store)


@pytest.fixture(params=["local", "hosted"])
def store(request, db_path, fake_supabase):
    """Each backend in turn, for behavior both must share."""
    if request.param == "local":
        return LocalStore(db_path, user_id="ana")
    return HostedStore(fake_supabase, user_id="ana", cache=LocalStore(db_path, user_id="ana"))


@pytest.fixture
def other_store(request, db_path, fake_supabase, store):
    """Same backend as ``store`` but owned by another user."""
    if isinstance(store, LocalStore):
        return LocalStore(db_path, user_id="bruno")
    return HostedStore(fake_supabase, user_id="bruno", cache=LocalStore(db_path, user_id="bruno"))
