"""Connection and runtime configuration loading helpers."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

import tomllib

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, model_validator

CONFIG_FILE = Path.home() / ".config" / "sqlgate" / "config.toml"
LOG_FILE = Path(tempfile.gettempdir()) / "sqlgate" / "app.log"


class ConfigError(ValueError):
    """Raised when the connection settings cannot be parsed."""


class ConnectionConfig(BaseModel):
    """Upstream connection settings passed on the command line."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    account: str
    username: str
    password: SecretStr
    warehouse: str | None = None
    database: str | None = None
    schema_name: str | None = Field(default=None, alias="schema")
    role: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _resolve_username(cls, data: object) -> object:
        # `user` wins over `username` when both are given.
        if isinstance(data, dict):
            user = data.get("user") or data.get("username")
            if not user:
                raise ValueError("Either 'user' or 'username' must be set.")
            data = {key: value for key, value in data.items() if key != "user"}
            data["username"] = user
        return data

    @property
    def host(self) -> str:
        host, _, _ = self.account.partition(":")
        return host

    @property
    def port(self) -> int | None:
        _, sep, port = self.account.partition(":")
        if sep and port.isdigit():
            return int(port)
        return None

    def describe(self) -> dict[str, str | None]:
        """Connection summary safe to write to logs (no secrets)."""

        return {
            "account": self.account,
            "username": self.username,
            "warehouse": self.warehouse,
            "database": self.database,
            "schema": self.schema_name,
            "role": self.role,
        }


class GatewaySettings(BaseModel):
    """Tunables read from config.toml."""

    connection_cache_ttl: float = 60.0
    tables_cache_ttl: float = 300.0
    connect_timeout: float = 10.0
    log_file: Path = LOG_FILE
    log_max_bytes: int = 10 * 1024 * 1024
    log_backup_count: int = 1
    log_level: str = "INFO"


def parse_connection_config(text: str) -> ConnectionConfig:
    """Parse the JSON connection string given to `--connection`."""

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Connection settings are not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Connection settings must be a JSON object.")
    try:
        return ConnectionConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid connection settings: {exc}") from exc


def load_settings(path: Path | None = None) -> GatewaySettings:
    """Load settings from disk; fall back to defaults if missing."""

    try:
        data = _read_settings_file(path or CONFIG_FILE)
    except FileNotFoundError:
        return GatewaySettings()
    except (tomllib.TOMLDecodeError, OSError):
        return GatewaySettings()
    return GatewaySettings(**data)


def _read_settings_file(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    for key in ("connection_cache_ttl", "tables_cache_ttl", "connect_timeout"):
        value = raw.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0:
            data[key] = float(value)
    logging_section = raw.get("logging")
    if isinstance(logging_section, dict):
        log_file = logging_section.get("file")
        if isinstance(log_file, str) and log_file:
            data["log_file"] = Path(log_file).expanduser()
        max_bytes = logging_section.get("max_bytes")
        if isinstance(max_bytes, int) and not isinstance(max_bytes, bool) and max_bytes > 0:
            data["log_max_bytes"] = max_bytes
        backup_count = logging_section.get("backup_count")
        if isinstance(backup_count, int) and not isinstance(backup_count, bool) and backup_count >= 0:
            data["log_backup_count"] = backup_count
        level = logging_section.get("level")
        if isinstance(level, str):
            data["log_level"] = level.upper()
    return data


__all__ = [
    "CONFIG_FILE",
    "ConfigError",
    "ConnectionConfig",
    "GatewaySettings",
    "LOG_FILE",
    "load_settings",
    "parse_connection_config",
]
