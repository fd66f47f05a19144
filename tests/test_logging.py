"""Tests for litdoc.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from litdoc.logging import NOISY_LOGGERS, configure_logging, get_logger


def test_get_logger_nests_under_package() -> None:
    assert get_logger().name == "litdoc"
    assert get_logger("builder").name == "litdoc.builder"


def test_console_level_follows_verbose_flag() -> None:
    logger = configure_logging()
    [console] = logger.handlers
    assert console.level == logging.INFO
    assert logger.level == logging.INFO

    logger = configure_logging(verbose=True)
    [console] = logger.handlers
    assert console.level == logging.DEBUG


def test_log_file_records_debug_detail(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "litdoc.log"

    logger = configure_logging(log_file=log_file)
    get_logger("builder").debug("wrote %s", "a.html")
    get_logger("builder").info("2 files written")

    console, sink = logger.handlers
    assert console.level == logging.INFO
    assert sink.level == logging.DEBUG
    text = log_file.read_text(encoding="utf-8")
    assert "DEBUG litdoc.builder: wrote a.html" in text
    assert "INFO litdoc.builder: 2 files written" in text


def test_reconfiguring_replaces_handlers(tmp_path: Path) -> None:
    configure_logging(log_file=tmp_path / "first.log")
    logger = configure_logging()

    assert len(logger.handlers) == 1


def test_server_dependencies_are_quiet_unless_verbose() -> None:
    configure_logging()
    assert all(logging.getLogger(name).level == logging.WARNING for name in NOISY_LOGGERS)

    configure_logging(verbose=True)
    assert all(logging.getLogger(name).level == logging.DEBUG for name in NOISY_LOGGERS)
