"""Shared fakes standing in for asyncpg and the wall clock."""

from __future__ import annotations

import asyncio
from typing import Any

import asyncpg
import pytest

from sqlgate.config import ConnectionConfig


class FakeConnection:
    """In-memory stand-in for an asyncpg connection."""

    def __init__(self, rows: list[dict[str, Any]] | None = None) -> None:
        self.rows = list(rows or [])
        self.fetch_calls: list[tuple[str, tuple[object, ...]]] = []
        self.fetch_error: BaseException | None = None
        self.close_error: BaseException | None = None
        self.valid = True
        self.validity_checks = 0
        self.closed = False
        self.terminated = False
        self.busy = False

    async def fetch(self, sql: str, *args: object) -> list[dict[str, Any]]:
        if self.busy:
            raise asyncpg.InterfaceError("cannot perform operation: another operation is in progress")
        self.fetch_calls.append((sql, args))
        self.busy = True
        try:
            await asyncio.sleep(0)
            if self.fetch_error is not None:
                raise self.fetch_error
            return [dict(row) for row in self.rows]
        finally:
            self.busy = False

    async def execute(self, sql: str) -> str:
        assert sql == ""
        self.validity_checks += 1
        if not self.valid:
            raise ConnectionResetError("session expired")
        return ""

    def is_closed(self) -> bool:
        return self.closed

    async def close(self) -> None:
        if self.close_error is not None:
            raise self.close_error
        self.closed = True

    def terminate(self) -> None:
        self.terminated = True
        self.closed = True


class FakeDriver:
    """Replacement for `asyncpg.connect` that hands out FakeConnections."""

    def __init__(self) -> None:
        self.rows: list[dict[str, Any]] = []
        self.error: BaseException | None = None
        self.connections: list[FakeConnection] = []
        self.connect_kwargs: list[dict[str, object]] = []

    async def connect(self, **kwargs: object) -> FakeConnection:
        self.connect_kwargs.append(kwargs)
        if self.error is not None:
            raise self.error
        connection = FakeConnection(self.rows)
        self.connections.append(connection)
        return connection

    @property
    def latest(self) -> FakeConnection:
        return self.connections[-1]

    @property
    def fetch_count(self) -> int:
        return sum(len(conn.fetch_calls) for conn in self.connections)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def driver(monkeypatch: pytest.MonkeyPatch) -> FakeDriver:
    fake = FakeDriver()
    monkeypatch.setattr("sqlgate.connections.asyncpg.connect", fake.connect)
    return fake


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def connection_config() -> ConnectionConfig:
    return ConnectionConfig.model_validate(
        {
            "account": "warehouse.example.com:5439",
            "user": "analyst",
            "password": "s3cret",
            "warehouse": "COMPUTE_WH",
            "database": "analytics",
            "schema": "public",
            "role": "reader",
        }
    )
