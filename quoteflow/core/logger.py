"""Process-wide logger for harness runs.

Every session, runner and CLI command writes through the ``quoteflow``
logger. Records go to stdout and to ``<work_dir>/logs/app.log`` (rotated at
2 MiB, three backups). Failure artifacts sit next to the log file:
screenshots in ``logs/shot`` and Playwright traces in ``logs/trace``, so one
``logs`` directory holds everything needed to diagnose a failed scenario.
Reports are written separately under ``<work_dir>/out``.

The starting level comes from ``QUOTEFLOW_LOG_LEVEL`` (default ``INFO``);
``quoteflow --log-level`` changes it for the running process.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .settings import LOG_LEVEL_ENV, ensure_work_dirs


LOGGER_NAME = "quoteflow"
LOG_FILE_NAME = "app.log"
_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LOGGER: logging.Logger | None = None


def get_logger(log_dir: Path | None = None) -> logging.Logger:
    """Return the harness logger, configuring it on first use.

    ``log_dir`` defaults to the ``logs`` directory of the work dir; the
    screenshot and trace folders are created alongside it.
    """
    global _LOGGER
    if _LOGGER is not None:
        return _LOGGER

    base = Path(log_dir) if log_dir is not None else ensure_work_dirs()["logs"]
    base.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(_resolve_level(os.getenv(LOG_LEVEL_ENV) or "INFO"))
    logger.propagate = False

    fmt = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)
    file_handler = RotatingFileHandler(
        base / LOG_FILE_NAME, maxBytes=2 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(fmt)
    logger.addHandler(file_handler)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(fmt)
    logger.addHandler(console)

    _LOGGER = logger
    return logger


def set_level(level_name: str) -> int:
    """Apply ``level_name`` (e.g. DEBUG) to the harness logger and root logger."""
    level_value = _resolve_level(level_name)
    logging.getLogger().setLevel(level_value)
    get_logger().setLevel(level_value)
    return level_value


def _resolve_level(level_name: str) -> int:
    level_value = getattr(logging, level_name.strip().upper(), None)
    if not isinstance(level_value, int):
        raise ValueError(f"Unknown log level: {level_name}")
    return level_value
