"""Read-only MCP gateway in front of a remote analytical database."""

from __future__ import annotations

__version__ = "0.3.0"

from .config import ConnectionConfig, GatewaySettings
from .connections import ConnectionFailure, ConnectionManager
from .gateway import QueryGateway
from .guard import PolicyRejection, is_read_only, is_valid_identifier
from .query import UpstreamExecutionError

__all__ = [
    "ConnectionConfig",
    "ConnectionFailure",
    "ConnectionManager",
    "GatewaySettings",
    "PolicyRejection",
    "QueryGateway",
    "UpstreamExecutionError",
    "__version__",
    "is_read_only",
    "is_valid_identifier",
]
