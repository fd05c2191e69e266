"""Logging configuration for cellsearch.

Provides a centralized logging setup with:
- Console handler (stderr) with a level taken from the search configuration
- Optional file handler (JSON lines for machine parsing)
- Environment fallback when no explicit level is supplied

Usage:
    from cellsearch.util.logging import get_logger, configure_logging

    configure_logging(level="DEBUG", json_file="/tmp/cellsearch.log")
    logger = get_logger(__name__)
    logger.info("Examining center frequency", extra={"center_hz": 806e6})
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional


_configured = False
_root_logger_name = "cellsearch"

# Extra record attributes copied into JSON output when present.
_EXTRA_KEYS = ("center_hz", "fc_index", "cell_id", "stage", "run_id", "error_type")


class JSONFormatter(logging.Formatter):
    """Emit log records as single-line JSON for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        output: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            if hasattr(record, key):
                output[key] = getattr(record, key)
        if record.exc_info:
            output["traceback"] = "".join(traceback.format_exception(*record.exc_info))
        return json.dumps(output, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console format with optional color."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_color:
            level_str = f"{self.LEVEL_COLORS.get(level, '')}{level:8}{self.RESET}"
        else:
            level_str = f"{level:8}"
        name = record.name.replace(f"{_root_logger_name}.", "")
        base = f"{level_str} [{name}] {record.getMessage()}"
        if record.exc_info:
            base += "\n" + "".join(traceback.format_exception(*record.exc_info))
        return base


def resolve_level(level: Optional[str] = None) -> str:
    """Return an upper-case level name, falling back to the environment.

    ``CELLSEARCH_DEBUG=1`` forces DEBUG; otherwise ``CELLSEARCH_LOG_LEVEL`` is
    consulted and INFO is the default.
    """
    if level:
        return str(level).upper()
    if os.environ.get("CELLSEARCH_DEBUG", "").strip().lower() in ("1", "true", "yes"):
        return "DEBUG"
    return os.environ.get("CELLSEARCH_LOG_LEVEL", "INFO").upper()


def configure_logging(
    *,
    level: Optional[str] = None,
    json_file: Optional[str] = None,
    use_color: bool = True,
) -> None:
    """Configure the cellsearch logging subsystem.

    Calling this again replaces the handlers installed by a previous call.
    """
    global _configured

    numeric_level = getattr(logging, resolve_level(level), logging.INFO)

    logger = logging.getLogger(_root_logger_name)
    logger.setLevel(numeric_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(ConsoleFormatter(use_color=use_color))
    logger.addHandler(console_handler)

    if json_file:
        try:
            file_handler = logging.FileHandler(json_file, mode="a", encoding="utf-8")
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(JSONFormatter())
            logger.addHandler(file_handler)
        except OSError as exc:
            logger.warning("Failed to open JSON log file %s: %s", json_file, exc)

    logger.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the cellsearch namespace.

    If configure_logging() has not been called, a default configuration
    is applied automatically.
    """
    if not _configured:
        configure_logging()

    if not name.startswith(_root_logger_name):
        if name == "__main__":
            name = f"{_root_logger_name}.main"
        else:
            name = f"{_root_logger_name}.{name}"

    return logging.getLogger(name)
