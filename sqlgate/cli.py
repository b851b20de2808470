"""Command-line entry point: parse settings, verify the upstream, serve MCP on stdio."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from . import __version__
from .config import ConfigError, GatewaySettings, load_settings, parse_connection_config
from .connections import ConnectionFailure
from .gateway import QueryGateway
from .logs import configure_logging
from .server import GatewayServer

LOG = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sqlgate",
        description="Read-only MCP server for a remote analytical database.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--connection",
        required=True,
        metavar="JSON",
        help=(
            'Connection settings as a JSON object, e.g. '
            '\'{"account": "host:port", "user": "...", "password": "..."}\'. '
            "Optional keys: database, schema, role. 'warehouse' is accepted but ignored "
            "by the PostgreSQL-wire upstream."
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.toml (defaults to ~/.config/sqlgate/config.toml).",
    )
    return parser


async def serve(gateway: QueryGateway) -> int:
    """Verify the connection, serve until stdin closes or a signal arrives, then tear down."""

    try:
        await gateway.test_connection()
    except ConnectionFailure as exc:
        print(f"sqlgate: {exc}", file=sys.stderr)
        return 1

    server = GatewayServer(gateway)
    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop_requested.set)
        except NotImplementedError:  # pragma: no cover - Windows falls back to KeyboardInterrupt
            break

    serve_task = server.start()
    stop_task = asyncio.create_task(stop_requested.wait())
    await asyncio.wait({serve_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    stop_task.cancel()

    try:
        await server.stop()
    except Exception:
        LOG.exception("Server stopped with an error")
        return 1
    return 0


def main(argv: list[str] | None = None) -> None:
    """Console script entry point."""

    args = build_parser().parse_args(argv)
    settings: GatewaySettings = load_settings(args.config)
    configure_logging(settings)

    try:
        config = parse_connection_config(args.connection)
    except ConfigError as exc:
        LOG.error("%s", exc)
        print(f"sqlgate: {exc}", file=sys.stderr)
        sys.exit(1)

    gateway = QueryGateway(config, settings=settings)
    sys.exit(asyncio.run(serve(gateway)))


if __name__ == "__main__":
    main()
