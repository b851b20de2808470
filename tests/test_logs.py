"""Tests for the file-only logging setup."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from sqlgate.config import GatewaySettings
from sqlgate.logs import configure_logging


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_records_go_to_rotating_file(tmp_path: Path, restore_root_logger: None) -> None:
    log_file = tmp_path / "logs" / "app.log"
    handler = configure_logging(GatewaySettings(log_file=log_file, log_max_bytes=200, log_backup_count=1))

    logger = logging.getLogger("sqlgate.test")
    for idx in range(20):
        logger.info("message number %d with some padding", idx)
    handler.flush()

    assert log_file.exists()
    assert (tmp_path / "logs" / "app.log.1").exists()
    assert not (tmp_path / "logs" / "app.log.2").exists()
    assert "[INFO] sqlgate.test: message number 19" in log_file.read_text()


def test_level_comes_from_settings(tmp_path: Path, restore_root_logger: None) -> None:
    configure_logging(GatewaySettings(log_file=tmp_path / "app.log", log_level="WARNING"))

    assert logging.getLogger().level == logging.WARNING


def test_unknown_level_falls_back_to_info(tmp_path: Path, restore_root_logger: None) -> None:
    configure_logging(GatewaySettings(log_file=tmp_path / "app.log", log_level="CHATTY"))

    assert logging.getLogger().level == logging.INFO


def test_unwritable_location_uses_null_handler(tmp_path: Path, restore_root_logger: None) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")

    handler = configure_logging(GatewaySettings(log_file=blocker / "app.log"))

    assert isinstance(handler, logging.NullHandler)
