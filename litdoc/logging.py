"""Logging for litdoc.

Everything litdoc logs goes through the ``litdoc`` logger tree. The CLI
configures it once: a terse console handler whose level follows
``--verbose``, plus an optional log file that always records DEBUG detail
so a ``serve`` session can be inspected after the fact.
"""

from __future__ import annotations

import logging
from pathlib import Path

_ROOT_NAME = "litdoc"
_CONSOLE_FORMAT = "[litdoc] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Dependencies of the preview server that log every event or request.
NOISY_LOGGERS = ("watchdog", "uvicorn.access")


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``litdoc.<name>``, or the package logger itself."""
    return logging.getLogger(f"{_ROOT_NAME}.{name}" if name else _ROOT_NAME)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach the console handler and, when ``log_file`` is set, a DEBUG file sink."""
    console_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_ROOT_NAME)
    logger.propagate = False
    _detach_handlers(logger)

    logger.addHandler(_handler(logging.StreamHandler(), console_level, _CONSOLE_FORMAT))
    if log_file is not None:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(
            _handler(logging.FileHandler(path, encoding="utf-8"), logging.DEBUG, _FILE_FORMAT)
        )
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(console_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)
    return logger


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _detach_handlers(logger: logging.Logger) -> None:
    # `serve` and tests call configure_logging repeatedly.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


__all__ = ["NOISY_LOGGERS", "configure_logging", "get_logger"]
