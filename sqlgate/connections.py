"""Lifecycle manager for the single upstream connection."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import asyncpg

from .config import ConnectionConfig
from .query import Row, UpstreamExecutionError, records_to_rows

LOG = logging.getLogger(__name__)

CONNECTION_CACHE_TTL = 60.0
CONNECTION_ERROR_PREFIX = "Connection failed: "

Clock = Callable[[], float]


class ConnectionFailure(RuntimeError):
    """Raised when the upstream connection cannot be opened, verified or closed."""

    def __init__(self, message: str) -> None:
        super().__init__(f"{CONNECTION_ERROR_PREFIX}{message}")

    @classmethod
    def wrap(cls, exc: BaseException) -> "ConnectionFailure":
        return cls(str(exc) or exc.__class__.__name__)


class LiveConnection:
    """Thin adapter over an asyncpg connection.

    This is the only place that talks to the driver directly; everything above
    it deals in `Row` lists and the error types of this package.
    """

    def __init__(self, raw: Any) -> None:
        self._raw = raw

    @property
    def raw(self) -> Any:
        return self._raw

    async def execute(self, sql: str, *args: object) -> list[Row]:
        try:
            records = await self._raw.fetch(sql, *args)
        except asyncpg.PostgresError as exc:
            raise UpstreamExecutionError(str(exc)) from exc
        except (OSError, asyncpg.InterfaceError) as exc:
            raise ConnectionFailure.wrap(exc) from exc
        return records_to_rows(records)

    def is_up(self) -> bool:
        return not self._raw.is_closed()

    async def is_valid(self) -> bool:
        """Check the session with an empty simple-query round trip (no statement runs)."""

        try:
            await self._raw.execute("")
        except Exception:
            LOG.info("Session validity check failed", exc_info=True)
            return False
        return True

    async def close(self) -> None:
        await self._raw.close()

    def terminate(self) -> None:
        """Drop the socket immediately; used for handles that failed a check."""

        self._raw.terminate()


@dataclass(slots=True)
class ConnectionState:
    """Mutable state owned by ConnectionManager."""

    handle: LiveConnection | None = None
    last_verified_at: float = 0.0

    def reset(self) -> None:
        self.handle = None
        self.last_verified_at = 0.0


class ConnectionManager:
    """Owns one lazily created upstream connection and keeps it healthy."""

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        cache_ttl: float = CONNECTION_CACHE_TTL,
        connect_timeout: float = 10.0,
        clock: Clock = time.monotonic,
    ) -> None:
        self._config = config
        self._cache_ttl = cache_ttl
        self._connect_timeout = connect_timeout
        self._clock = clock
        self._state = ConnectionState()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state.handle is not None

    async def ensure_connection(self) -> LiveConnection:
        """Return the current handle, opening one first if needed."""

        async with self._lock:
            return await self._ensure_locked()

    async def test_connection(self) -> None:
        """Verify the connection, reusing a recent verification when possible."""

        async with self._lock:
            try:
                await self._test_locked()
            except ConnectionFailure as exc:
                LOG.error("Connection test failed: %s", exc)
                raise

    async def disconnect(self) -> None:
        """Close the handle if there is one; the handle is forgotten either way."""

        async with self._lock:
            handle = self._state.handle
            if handle is None:
                return
            try:
                await handle.close()
            except Exception as exc:
                LOG.error("Closing the upstream connection failed: %s", exc)
                raise ConnectionFailure.wrap(exc) from exc
            finally:
                self._state.reset()
            LOG.info("Upstream connection closed")

    async def run(self, sql: str, *args: object) -> list[Row]:
        """Execute one statement on the shared handle.

        Statements run one at a time under the manager lock. A transport
        failure discards the handle so the next call reconnects.
        """

        async with self._lock:
            handle = await self._ensure_locked()
            try:
                return await handle.execute(sql, *args)
            except ConnectionFailure:
                LOG.error("Upstream connection dropped during a statement")
                self._discard_locked()
                raise

    def _discard_locked(self) -> None:
        handle = self._state.handle
        if handle is not None:
            handle.terminate()
        self._state.reset()

    async def _test_locked(self) -> None:
        now = self._clock()
        state = self._state
        if state.handle is not None and state.last_verified_at > 0 and now - state.last_verified_at < self._cache_ttl:
            LOG.info("Connection active (cached verification)")
            return

        if state.handle is None:
            await self._ensure_locked()
            state.last_verified_at = now
            LOG.info("Connection established")
            return

        if state.handle.is_up() and await state.handle.is_valid():
            state.last_verified_at = now
            LOG.info("Connection active (verified)")
            return

        LOG.info("Connection is down; reconnecting")
        self._discard_locked()
        await self._ensure_locked()
        state.last_verified_at = now
        LOG.info("Reconnected")

    async def _ensure_locked(self) -> LiveConnection:
        if self._state.handle is not None:
            return self._state.handle
        LOG.info("Connecting to upstream: %s", self._config.describe())
        try:
            raw = await asyncpg.connect(**self._connect_kwargs())
        except Exception as exc:
            self._state.reset()
            LOG.error("Connect failed: %s", exc)
            raise ConnectionFailure.wrap(exc) from exc
        self._state.handle = LiveConnection(raw)
        return self._state.handle

    def _connect_kwargs(self) -> dict[str, object]:
        config = self._config
        kwargs: dict[str, object] = {
            "host": config.host,
            "user": config.username,
            "password": config.password.get_secret_value(),
            "timeout": self._connect_timeout,
        }
        if config.port is not None:
            kwargs["port"] = config.port
        if config.database:
            kwargs["database"] = config.database
        server_settings: dict[str, str] = {}
        if config.schema_name:
            server_settings["search_path"] = config.schema_name
        if config.role:
            server_settings["role"] = config.role
        if server_settings:
            kwargs["server_settings"] = server_settings
        return kwargs


__all__ = [
    "CONNECTION_CACHE_TTL",
    "CONNECTION_ERROR_PREFIX",
    "ConnectionFailure",
    "ConnectionManager",
    "ConnectionState",
    "LiveConnection",
]
