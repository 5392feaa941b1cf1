"""Logging for cdp-cli.

Records go to stderr so stdout carries only NDJSON results. Two formats:

    text: 2025-10-24 23:30:00 [WARNING] cdp_cli.router: Dropped malformed
          notification Network.responseReceived (method=Network.responseReceived)
    json: {"timestamp": "2025-10-24T21:30:00.123000+00:00", "level": "WARNING",
           "logger": "cdp_cli.router", "message": "...",
           "extra": {"method": "Network.responseReceived"},
           "location": {"file": "router.py", "line": 91, "function": "_dispatch"}}

Context fields attached with log_with_context travel on the record as the
``extra`` attribute; both formatters render them.
"""

import sys
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

PACKAGE_LOGGER = "cdp_cli"
LOG_FORMATS = ("text", "json")

# Record attribute holding log_with_context fields
CONTEXT_ATTR = "extra"


def _context(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    fields = getattr(record, CONTEXT_ATTR, None)
    return fields if isinstance(fields, dict) and fields else None


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Debug and warning-or-worse records carry their source location, so a
    dropped frame or a failing handler can be traced to the line that
    reported it.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fields = _context(record)
        if fields:
            log_data["extra"] = fields

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.levelno == logging.DEBUG or record.levelno >= logging.WARNING:
            log_data["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Single-line text with context fields appended as key=value pairs."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        fields = _context(record)
        if not fields:
            return text
        pairs = ", ".join(f"{key}={value}" for key, value in fields.items())
        first, newline, rest = text.partition("\n")
        return f"{first} ({pairs}){newline}{rest}"


def resolve_level(level: Optional[str] = None, quiet: bool = False, verbose: bool = False) -> int:
    """--quiet beats --verbose beats an explicit level name; INFO otherwise."""
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    if level:
        return getattr(logging, level.upper(), logging.INFO)
    return logging.INFO


def setup_logging(
    format_type: str = "text",
    level: Optional[str] = None,
    quiet: bool = False,
    verbose: bool = False,
) -> None:
    """Install a single stderr handler on the root logger.

    Called twice by the CLI: once from flags alone so configuration loading
    can log, then again with the merged configuration. Each call replaces the
    previous handler.

    Args:
        format_type: "text" or "json"; anything else falls back to text
        level: Level name such as "DEBUG" or "warning"
        quiet: Only errors
        verbose: Everything down to DEBUG
    """
    log_level = resolve_level(level, quiet, verbose)
    formatter = JSONFormatter() if format_type == "json" else TextFormatter()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    logging.getLogger(PACKAGE_LOGGER).setLevel(log_level)


def log_with_context(
    logger: logging.Logger, level: int, message: str, **fields: Any
) -> None:
    """Log message with structured context fields.

    The record keeps the caller's file, line and function.

    Example:
        log_with_context(
            logger, logging.WARNING, "Dropped malformed notification",
            method="Network.responseReceived", error="missing requestId"
        )
    """
    extra = {CONTEXT_ATTR: fields} if fields else None
    logger.log(level, message, extra=extra, stacklevel=2)
