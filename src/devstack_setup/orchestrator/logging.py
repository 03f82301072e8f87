"""Logging configuration.

Uses standard library logging with either a colored console formatter (the
default, for operators at a terminal) or a JSON formatter (for CI logs).
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_RESERVED_LOG_RECORD_ATTRS: set[str] = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
}

RED = "\033[0;31m"
GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
CYAN = "\033[0;36m"
BOLD = "\033[1m"
RESET = "\033[0m"


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_LOG_RECORD_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """A minimal JSON formatter for logging records."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra = _extra_fields(record)
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable `[TAG]  message` lines, optionally colored.

    Records logged with `extra={"header": True}` are rendered as section
    headers instead of tagged lines.
    """

    _TAGS: dict[int, tuple[str, str]] = {
        logging.DEBUG: ("[DBG]", ""),
        logging.INFO: ("[INFO]", CYAN),
        SUCCESS: ("[OK]", GREEN),
        logging.WARNING: ("[WARN]", YELLOW),
        logging.ERROR: ("[ERR]", RED),
        logging.CRITICAL: ("[ERR]", RED),
    }

    def __init__(self, *, color: bool) -> None:
        super().__init__()
        self._color = color

    def _paint(self, text: str, *codes: str) -> str:
        if not self._color or not any(codes):
            return text
        return "".join(codes) + text + RESET

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        message = record.getMessage()
        if getattr(record, "header", False):
            return "\n" + self._paint(f"--- {message} ---", BOLD, CYAN) + "\n"

        tag, color = self._TAGS.get(record.levelno, (f"[{record.levelname}]", ""))
        # Tags are padded to a fixed column so messages line up.
        line = self._paint(tag, color) + " " * max(1, 8 - len(tag)) + message
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class _MaxLevelFilter(logging.Filter):
    def __init__(self, below: int) -> None:
        super().__init__()
        self._below = below

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003 (record)
        return record.levelno < self._below


def _use_color(stream: TextIO) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def configure_logging(level: str, fmt: str = "console") -> None:
    """Configure root logging.

    Console output sends errors to stderr and everything else to stdout. JSON
    output writes every record to stdout.
    """

    root = logging.getLogger()

    # Remove any existing handlers to avoid duplicate logs when re-configuring.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if fmt == "json":
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)
    else:
        out = logging.StreamHandler(stream=sys.stdout)
        out.setFormatter(ConsoleFormatter(color=_use_color(sys.stdout)))
        out.addFilter(_MaxLevelFilter(logging.ERROR))

        err = logging.StreamHandler(stream=sys.stderr)
        err.setFormatter(ConsoleFormatter(color=_use_color(sys.stderr)))
        err.setLevel(logging.ERROR)

        root.addHandler(out)
        root.addHandler(err)

    root.setLevel(level.upper())

    # Keep third-party loggers reasonably quiet unless explicitly configured.
    logging.getLogger("urllib3").setLevel(max(root.level, logging.WARNING))


def header(logger: logging.Logger, title: str) -> None:
    """Log a section header."""

    logger.info(title, extra={"header": True})


def success(logger: logging.Logger, message: str, **extra: Any) -> None:
    """Log a completed step at the SUCCESS level."""

    logger.log(SUCCESS, message, extra=extra or None)
