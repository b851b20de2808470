"""MCP server exposing the gateway over stdio."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import suppress
from typing import Awaitable

from mcp.server.fastmcp import FastMCP

from . import __version__
from .gateway import QueryGateway
from .guard import PolicyRejection
from .query import Row

LOG = logging.getLogger(__name__)

SERVER_NAME = "sqlgate"
TABLES_URI = "sqlgate://tables"
SCHEMA_URI_TEMPLATE = "sqlgate://schema/{table_name}"
JSON_MIME_TYPE = "application/json"


def render_rows(rows: list[Row]) -> str:
    """Serialise rows as indented JSON; dates, decimals and the like become strings."""

    return json.dumps(rows, indent=2, default=str)


class GatewayServer:
    """Registers the gateway's operations as MCP resources and tools."""

    def __init__(self, gateway: QueryGateway, *, name: str = SERVER_NAME) -> None:
        self._gateway = gateway
        self._serve_task: asyncio.Task[None] | None = None
        self.mcp = FastMCP(name)
        self._register()

    @property
    def gateway(self) -> QueryGateway:
        return self._gateway

    async def tables_payload(self) -> str:
        return render_rows(await self._call("list_tables", self._gateway.list_tables()))

    async def schema_payload(self, table_name: str) -> str:
        return render_rows(await self._call("describe_table", self._gateway.describe_table(table_name)))

    async def query_payload(self, sql: str) -> str:
        return render_rows(await self._call("query", self._gateway.run_query(sql)))

    def start(self) -> asyncio.Task[None]:
        """Begin serving on stdio in a background task."""

        LOG.info("Serving %s %s on stdio", SERVER_NAME, __version__)
        self._serve_task = asyncio.create_task(self.mcp.run_stdio_async(), name="sqlgate-stdio")
        return self._serve_task

    async def stop(self) -> None:
        """Close the protocol transport, then the upstream connection.

        An error the transport task died with is re-raised once the upstream
        has been closed.
        """

        try:
            task = self._serve_task
            if task is not None:
                if not task.done():
                    task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
        finally:
            await self._gateway.close()
        LOG.info("Server stopped")

    def _register(self) -> None:
        @self.mcp.resource(
            TABLES_URI,
            name="tables",
            description="Tables visible to the configured user.",
            mime_type=JSON_MIME_TYPE,
        )
        async def tables() -> str:
            return await self.tables_payload()

        @self.mcp.resource(
            SCHEMA_URI_TEMPLATE,
            name="table-schema",
            description="Column names, types and nullability for one table.",
            mime_type=JSON_MIME_TYPE,
        )
        async def table_schema(table_name: str) -> str:
            return await self.schema_payload(table_name)

        @self.mcp.tool(name="query", description="Run a read-only SQL query and return the rows as JSON.")
        async def query(sql: str) -> str:
            return await self.query_payload(sql)

    async def _call(self, operation: str, pending: Awaitable[list[Row]]) -> list[Row]:
        try:
            return await pending
        except PolicyRejection as exc:
            LOG.warning("%s rejected: %s", operation, exc)
            raise
        except Exception as exc:
            LOG.error("%s failed: %s", operation, exc)
            raise


__all__ = ["GatewayServer", "JSON_MIME_TYPE", "SCHEMA_URI_TEMPLATE", "SERVER_NAME", "TABLES_URI", "render_rows"]
