# src/bookreview/core/logging/formatters.py
"""
Formatters used by the dictConfig in builder.py.

  - JsonFormatter: one JSON object per line for log collectors. Includes service,
    env, version and request_id, plus anything passed via `extra={...}`.
  - ColorFormatter: compact ANSI-colored lines for a developer terminal.

JSON output
-----------
Each line looks like:

    {"timestamp": "...", "level": "INFO", "logger": "bookreview.exceptions.mapper",
     "message": "mapper.classified", "request_id": "3f2c...", "service": "bookreview",
     "env": "production", "version": "0.1.0", "operation": "comment.create",
     "category": "constraint", "matched": "substring", "trust_level": "public"}

Messages are short dotted event names (`classifier.unmatched`, `api.unhandled_error`)
and the details travel as extras, so collectors can filter on fields instead of
parsing prose.

Extras are copied as-is when json can serialize them and stringified otherwise.
Standard LogRecord attributes (args, msg, levelno...) are left out. Redaction is
not done here; RedactFilter runs on the handler before the formatter sees the
record.
"""

import json
import logging
from typing import Any
from logging import LogRecord
from bookreview.utils.project import get_project_version

PROJECT_VERSION = get_project_version()

# Attributes every LogRecord has; anything else on the record came from `extra`.
_STANDARD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    `format()` must never raise: extras that json can't serialize are stringified.
    """

    def __init__(self, *, env: str | None = None, service: str = "bookreview", datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "request_id": getattr(record, "request_id", "-"),
            "service": self.service,
            "env": self.env,
            "version": PROJECT_VERSION,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key in log_record or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                log_record[key] = value
            except (TypeError, ValueError):
                log_record[key] = str(value)

        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """
    TIMESTAMP | LEVEL | LOGGER | REQUEST_ID | MESSAGE, with the level colorized.
    """

    COLOR_CODES = {
        "DEBUG": "\033[1;36;47m",   # bold cyan on white
        "INFO": "\033[32m",         # green
        "WARNING": "\033[33m",      # yellow
        "ERROR": "\033[31m",        # red
        "CRITICAL": "\033[1;41m",   # bold on red background
        "RESET": "\033[0m",
    }

    def format(self, record: LogRecord) -> str:
        color = self.COLOR_CODES.get(record.levelname, "")
        reset = self.COLOR_CODES["RESET"]
        timestamp = self.formatTime(record, self.datefmt)

        base = (
            f"{timestamp} | {color}{record.levelname:<10}{reset} | "
            f"{record.name:<30} | "
            f"{getattr(record, 'request_id', '-'):<10} | "
            f"{record.getMessage()}"
        )

        if record.exc_info:
            base = base + "\n" + self.formatException(record.exc_info)

        return base
