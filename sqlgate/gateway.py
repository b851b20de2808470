"""Query gateway tying the guard, connection manager and table cache together."""

from __future__ import annotations

import logging
import time
from typing import Callable

from .cache import TimedSlot
from .config import ConnectionConfig, GatewaySettings
from .connections import ConnectionManager
from .guard import ensure_read_only, ensure_valid_identifier
from .query import DESCRIBE_TABLE_QUERY, LIST_TABLES_QUERY, Row, describe_args

LOG = logging.getLogger(__name__)


class QueryGateway:
    """Read-only entry point for table listings, table descriptions and ad-hoc queries."""

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        settings: GatewaySettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        settings = settings or GatewaySettings()
        self._connections = ConnectionManager(
            config,
            cache_ttl=settings.connection_cache_ttl,
            connect_timeout=settings.connect_timeout,
            clock=clock,
        )
        self._tables: TimedSlot[list[Row]] = TimedSlot(settings.tables_cache_ttl, clock=clock)

    @property
    def connections(self) -> ConnectionManager:
        return self._connections

    @property
    def tables_cache(self) -> TimedSlot[list[Row]]:
        return self._tables

    async def test_connection(self) -> None:
        await self._connections.test_connection()

    async def list_tables(self) -> list[Row]:
        """Return the table listing, served from cache for up to the TTL."""

        async with self._tables.lock:
            cached = self._tables.get()
            if cached is not None:
                LOG.debug("Table listing served from cache")
                return cached
            rows = await self._execute(LIST_TABLES_QUERY)
            LOG.info("Table listing refreshed (%d tables)", len(rows))
            return self._tables.put(rows)

    async def describe_table(self, table_name: str) -> list[Row]:
        """Return column metadata for one table."""

        ensure_valid_identifier(table_name)
        return await self._execute(DESCRIBE_TABLE_QUERY, *describe_args(table_name))

    async def run_query(self, sql: str) -> list[Row]:
        """Run a read-only statement verbatim and return every row."""

        ensure_read_only(sql)
        return await self._execute(sql)

    async def close(self) -> None:
        self._tables.clear()
        await self._connections.disconnect()

    async def _execute(self, sql: str, *args: object) -> list[Row]:
        return await self._connections.run(sql, *args)


__all__ = ["QueryGateway"]
