from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from core.dependencies import get_pool
from main import create_app


class FakePool:
    """
    In-memory stand-in for asyncpg.Pool, just enough for the users SQL.

    Statements are dispatched on their leading keyword. Every statement is
    recorded so tests can assert that nothing reached the database.
    """

    def __init__(self) -> None:
        self.rows: dict[int, dict[str, Any]] = {}
        self.statements: list[str] = []
        self.fail_with: BaseException | None = None
        self.closed = False
        self.terminated = False
        self.expired = 0
        self._next_id = 1
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _now(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _record(self, sql: str, timeout: float | None) -> str:
        statement = " ".join(sql.split())
        self.statements.append(statement)
        if self.fail_with is not None:
            raise self.fail_with
        return statement.split(" ", 1)[0].upper()

    @property
    def mutations(self) -> list[str]:
        return [s for s in self.statements if s.split(" ", 1)[0].upper() in {"INSERT", "UPDATE", "DELETE"}]

    async def fetchval(self, sql: str, *args: Any, timeout: float | None = None) -> Any:
        self._record(sql, timeout)
        return 1

    async def fetch(self, sql: str, *args: Any, timeout: float | None = None) -> list[dict[str, Any]]:
        self._record(sql, timeout)
        ordered = sorted(self.rows.values(), key=lambda r: r["created_at"], reverse=True)
        return [dict(r) for r in ordered]

    async def fetchrow(self, sql: str, *args: Any, timeout: float | None = None) -> dict[str, Any] | None:
        keyword = self._record(sql, timeout)
        if keyword == "SELECT":
            row = self.rows.get(args[0])
            return dict(row) if row is not None else None
        if keyword == "INSERT":
            name, email = args
            now = self._now()
            row = {
                "id": self._next_id,
                "name": name,
                "email": email,
                "created_at": now,
                "updated_at": now,
            }
            self.rows[self._next_id] = row
            self._next_id += 1
            return dict(row)
        if keyword == "UPDATE":
            name, email, user_id = args
            row = self.rows.get(user_id)
            if row is None:
                return None
            row.update(name=name, email=email, updated_at=self._now())
            return dict(row)
        raise AssertionError(f"unexpected statement: {sql}")

    async def execute(self, sql: str, *args: Any, timeout: float | None = None) -> str:
        keyword = self._record(sql, timeout)
        if keyword != "DELETE":
            raise AssertionError(f"unexpected statement: {sql}")
        removed = self.rows.pop(args[0], None)
        return f"DELETE {0 if removed is None else 1}"

    async def expire_connections(self) -> None:
        self.expired += 1

    async def close(self) -> None:
        self.closed = True

    def terminate(self) -> None:
        self.terminated = True


@pytest.fixture()
def fake_pool() -> FakePool:
    return FakePool()


@pytest.fixture()
def client(fake_pool: FakePool) -> TestClient:
    # No `with`: the lifespan (and its real pool) never starts.
    app = create_app()
    app.dependency_overrides[get_pool] = lambda: fake_pool
    return TestClient(app)
