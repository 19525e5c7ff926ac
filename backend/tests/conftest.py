"""Pytest fixtures: an in-memory stand-in for the Supabase data client."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app


class FakeDataClient:
    """Evaluates Filters over seeded rows and records every call it receives."""

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None, fail_on: Optional[set] = None):
        self.tables = {name: [dict(row) for row in rows] for name, rows in (tables or {}).items()}
        self.fail_on = fail_on or set()
        self.calls: List[tuple] = []

    def _check(self, method: str) -> None:
        if method in self.fail_on:
            raise RuntimeError(f"backend {method} failed")

    @staticmethod
    def _matches(row: Dict[str, Any], filters) -> bool:
        for f in filters or []:
            value = row.get(f.column)
            if value is None:
                return False
            if f.op == "eq" and not value == f.value:
                return False
            if f.op == "gte" and not value >= f.value:
                return False
            if f.op == "lte" and not value <= f.value:
                return False
            if f.op == "lt" and not value < f.value:
                return False
        return True

    async def count(self, table, filters=None):
        self.calls.append(("count", table, filters))
        self._check("count")
        return len([r for r in self.tables.get(table, []) if self._matches(r, filters)])

    async def select(self, table, columns, filters=None, order=None, descending=False, limit=None):
        self.calls.append(("select", table, filters))
        self._check("select")
        rows = [r for r in self.tables.get(table, []) if self._matches(r, filters)]
        if order:
            rows.sort(key=lambda r: r.get(order) or "", reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        names = [c.strip() for c in columns.split(",")]
        return [{name: r.get(name) for name in names} for r in rows]

    async def update(self, table, row_id, patch):
        self.calls.append(("update", table, row_id, patch))
        self._check("update")
        for row in self.tables.get(table, []):
            if row.get("id") == row_id:
                row.update(patch)
                return dict(row)
        return None

    async def delete(self, table, row_id):
        self.calls.append(("delete", table, row_id))
        self._check("delete")
        self.tables[table] = [r for r in self.tables.get(table, []) if r.get("id") != row_id]

    def methods_called(self) -> List[str]:
        return [call[0] for call in self.calls]


def days_ago(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


@pytest.fixture
def profiles() -> List[Dict[str, Any]]:
    return [
        {"id": "u1", "email": "ana@example.com", "name": "Ana", "role": "admin",
         "created_at": "2024-01-01T00:00:00+00:00", "updated_at": days_ago(1)},
        {"id": "u2", "email": "bo@example.com", "name": "Bo", "role": "user",
         "created_at": "2024-01-31T23:59:59+00:00", "updated_at": days_ago(10)},
        {"id": "u3", "email": "cy@example.com", "name": "Cy", "role": "user",
         "created_at": "2024-02-01T00:00:00+00:00", "updated_at": days_ago(45)},
        {"id": "u4", "email": "di@example.com", "name": "Di", "role": "user",
         "created_at": "2023-12-31T23:59:59+00:00", "updated_at": days_ago(90)},
    ]


@pytest.fixture
def payments() -> List[Dict[str, Any]]:
    return [
        {"id": "p1", "amount": 100, "status": "completed", "created_at": "2024-01-05T10:00:00+00:00"},
        {"id": "p2", "amount": 50, "status": "pending", "created_at": "2024-01-06T10:00:00+00:00"},
    ]


@pytest.fixture
def data_client(profiles, payments) -> FakeDataClient:
    return FakeDataClient({"profiles": profiles, "payments": payments})


@pytest.fixture
def settings() -> Settings:
    return Settings(server_url="https://analytics.example.com")


@pytest.fixture
def client(settings, data_client) -> TestClient:
    return TestClient(create_app(settings=settings, data_client=data_client))
