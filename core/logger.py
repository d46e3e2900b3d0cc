"""Logging setup shared by every module (``get_logger(__name__)``)."""

import logging
import sys
from pathlib import Path

from core.config import settings

ROOT_LOGGER_NAME = "crm"

_configured = False


def setup_logging(level: str | None = None, log_file: str | None = None) -> logging.Logger:
    """
    Configure the application root logger once.

    Args:
        level: Logging level name. Defaults to ``settings.LOG_LEVEL``.
        log_file: Optional path to a log file. Defaults to ``settings.LOG_FILE``.

    Returns:
        The configured root application logger.
    """
    global _configured
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if _configured:
        return root

    root.setLevel((level or settings.LOG_LEVEL).upper())
    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(fmt)
    root.addHandler(handler)

    log_file = log_file or settings.LOG_FILE
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setFormatter(fmt)
        root.addHandler(fh)

    _configured = True
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a child of the application logger for ``name``."""
    setup_logging()
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
