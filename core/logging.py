"""Logging configuration for the issuer, verifier and CLIs.

Two output modes:

  _ConsoleFormatter - single-line, human-readable, for local runs.
  _JsonFormatter    - one JSON object per line, for log shippers.
                      Enable with LOG_JSON=true.

Never pass subject names or birth data to a logger. Credentials are
identified in log lines by issuer, variant and timestamps only.
"""

from __future__ import annotations

import json
import logging
import sys


class _ConsoleFormatter(logging.Formatter):
    """Single-line formatter for stdout.

    - Always: ISO-8601 timestamp, level, logger name, message
    - WARNING+: appends [filename:lineno]
    """

    _BASE_FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
    _LOC_SUFFIX = "  [%(filename)s:%(lineno)d]"

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            self._style._fmt = self._BASE_FMT + self._LOC_SUFFIX
        else:
            self._style._fmt = self._BASE_FMT
        return super().format(record)


class _JsonFormatter(logging.Formatter):
    """JSON Lines formatter.

    Verification context passed through `extra=` (variant, reason,
    decode_stage, valid, expired) is lifted to top-level keys.
    """

    _CONTEXT_FIELDS = (
        "variant",
        "reason",
        "decode_stage",
        "valid",
        "expired",
        "issuer",
    )

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in self._CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Configure the root logger with a single stdout handler.

    Args:
        level_name: debug/info/warning/error; unknown names fall back to info.
        json_format: emit JSON lines instead of console lines.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ConsoleFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in ("werkzeug", "urllib3"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
