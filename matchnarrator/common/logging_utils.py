"""Central logging utilities for the Match Narrator.

- One place to configure logging for the API process, the CLI and scripts.
- Colored human-readable output on a TTY (default) or JSON lines
  (``log_format="json"`` / ``LOG_FORMAT=json``) for log shipping.
- Optional file handler when a log directory is configured.

Usage:
    from matchnarrator.common.logging_utils import configure_logging, get_logger
    configure_logging(service="api", level="INFO")  # idempotent
    logger = get_logger(__name__)

Calling configure_logging() multiple times is safe; subsequent calls are no-ops
unless ``force=True`` is passed.
"""
from __future__ import annotations

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

_CONFIG_LOCK = threading.Lock()
_ALREADY_CONFIGURED = False

_STANDARD_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class ColorFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\x1b[38;5;245m",
        "INFO": "\x1b[38;5;39m",
        "WARNING": "\x1b[38;5;214m",
        "ERROR": "\x1b[38;5;196m",
        "CRITICAL": "\x1b[48;5;196m\x1b[38;5;231m",
    }
    RESET = "\x1b[0m"

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).astimezone()
        base = (
            f"{ts:%Y-%m-%d %H:%M:%S} | {record.levelname:<8} | {record.name} | "
            f"{record.getMessage()}"
        )
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        color = self.COLORS.get(record.levelname)
        return f"{color}{base}{self.RESET}" if color else base


class JsonFormatter(logging.Formatter):
    def __init__(self, service: Optional[str] = None):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.service:
            payload["service"] = self.service
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # extra={...} attributes passed by callers (match_id, event_id, ...)
        for key, value in record.__dict__.items():
            if key in _STANDARD_RECORD_ATTRS or key.startswith("_") or key in payload:
                continue
            try:
                json.dumps(value)
                payload[key] = value
            except (TypeError, ValueError):
                payload[key] = repr(value)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    service: str | None = None,
    *,
    level: str | None = None,
    log_format: str | None = None,
    log_dir: str | None = None,
    force: bool = False,
) -> None:
    """Configure root logging once.

    Explicit arguments win over the LOG_LEVEL / LOG_FORMAT / LOG_NO_COLOR
    environment variables.
    """
    global _ALREADY_CONFIGURED
    with _CONFIG_LOCK:
        if _ALREADY_CONFIGURED and not force:
            return

        log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
        fmt = (log_format or os.getenv("LOG_FORMAT", "console")).lower()
        no_color = os.getenv("LOG_NO_COLOR") == "1"

        root = logging.getLogger()
        for h in list(root.handlers):
            root.removeHandler(h)

        plain = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        if fmt == "json":
            formatter: logging.Formatter = JsonFormatter(service=service)
        elif sys.stderr.isatty() and not no_color:
            formatter = ColorFormatter()
        else:
            formatter = plain

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root.addHandler(handler)

        if log_dir:
            path = Path(log_dir) / f"{service or 'matchnarrator'}.log"
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setFormatter(JsonFormatter(service=service) if fmt == "json" else plain)
            root.addHandler(file_handler)

        root.setLevel(getattr(logging, log_level, logging.INFO))
        _ALREADY_CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "configure_logging",
    "get_logger",
]
