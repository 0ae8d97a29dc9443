# src/bookreview/core/logging/builder.py
"""
Logging builder: build and apply a dictConfig from Settings.

Handlers:
  - console: always
  - file + error_file: when LOG_TO_STDOUT is false and LOG_DIR is set
  - error_console: otherwise

Loggers:
  - root at LOG_LEVEL
  - bookreview.diagnostics: unmatched public errors recorded by the classifier
    (development/testing only; the classifier never writes there in production)
  - uvicorn.error / uvicorn.access
  - sqlalchemy.engine: WARNING unless ENABLE_SQL_LOGGING (statements may carry user data)

Filters
-------
Every handler runs two filters, declared once here and referenced by name from
handlers.py:
  - request_id: RequestIdFilter, so `%(request_id)s` in the text format never
    KeyErrors and JSON lines always carry the id.
  - redact: RedactFilter. `keep_raw_errors` is true only in development/testing,
    the same run modes in which the classifier records unmatched errors. In
    staging/production a `raw_error` extra is masked even if some code logs one.

Formatters
----------
  - json: JsonFormatter with service name (from pyproject) and ENV.
  - standard: ColorFormatter when LOG_FORMAT == "text", otherwise a plain
    logging.Formatter with the same field layout.

Usage
-----
Call once at startup, before the app starts serving:

    settings = get_settings()
    setup_logging(settings)

`create_app` does this. Calling it again (tests do) replaces the handlers;
`disable_existing_loggers` is false so module-level loggers created at import
time keep working.
"""

from __future__ import annotations

from pathlib import Path
import logging
import logging.config

from bookreview.config.settings import Settings
from bookreview.exceptions.classifier import DIAGNOSTICS_LOGGER
from bookreview.utils.project import get_project_name

from .formatters import JsonFormatter, ColorFormatter
from .filters import RequestIdFilter, RedactFilter
from .handlers import (
    get_console_handler,
    get_file_handler,
    get_error_file_handler,
    get_error_console_handler,
)

_RAW_ERROR_ENVS = ("development", "testing")


def _writes_files(settings: Settings) -> bool:
    return (not settings.LOG_TO_STDOUT) and bool(settings.LOG_DIR)


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping for `settings`.

    Only reads plain attributes, so any settings-like object (e.g. SimpleNamespace in
    tests) works.
    """
    formatters = {
        "standard": {
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s",
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": get_project_name(),
        },
    }

    filters = {
        "request_id": {"()": RequestIdFilter},
        "redact": {
            "()": RedactFilter,
            "keep_raw_errors": settings.ENV in _RAW_ERROR_ENVS,
        },
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}
    if _writes_files(settings):
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers.keys()),
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            DIAGNOSTICS_LOGGER: {
                "level": "WARNING",
                "propagate": True,
            },
            "uvicorn.error": {
                "level": settings.LOG_LEVEL,
                "handlers": list(handlers.keys()),
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "DEBUG" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Create LOG_DIR when writing files, apply the dictConfig, and put a RequestIdFilter
    on the root logger so `%(request_id)s` never KeyErrors.
    """
    if _writes_files(settings):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))
    logging.getLogger().addFilter(RequestIdFilter())
