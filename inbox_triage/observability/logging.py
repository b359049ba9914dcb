from __future__ import annotations

import logging
import os
from typing import Final

PACKAGE_LOGGER: Final[str] = "inbox_triage"
_FORMAT: Final[str] = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

_configured = False


def _level_from_env() -> int:
    name = os.getenv("INBOX_TRIAGE_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _configure_package_logger() -> None:
    """Attach one stderr handler to the package logger, leaving the root alone."""
    global _configured
    package = logging.getLogger(PACKAGE_LOGGER)
    package.setLevel(_level_from_env())
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
        package.addHandler(handler)
        package.propagate = False
        _configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger for an engine module; names outside the package are nested under it."""
    _configure_package_logger()
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
