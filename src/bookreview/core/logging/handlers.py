# src/bookreview/core/logging/handlers.py
"""
Handler config factories for logging.dictConfig.

Each function returns a handler mapping; builder.py decides which ones are active.
All handlers run the "request_id" and "redact" filters declared by the builder.

Handlers
--------
  - console: StreamHandler (stderr) at LOG_LEVEL. Always on; in containers this is
    usually the only output, collected by the runtime.
  - file: RotatingFileHandler `<LOG_DIR>/app.log` at LOG_LEVEL, rotated at
    LOG_MAX_BYTES keeping LOG_BACKUP_COUNT files.
  - error_file: `<LOG_DIR>/errors.log`, ERROR and above, always JSON.
  - error_console: ERROR and above on stderr, always JSON; used instead of the
    file pair when LOG_TO_STDOUT is true or LOG_DIR is unset.

The factories only return plain dicts. Nothing is opened until dictConfig
instantiates them, so building a config in tests never touches the filesystem.
"""

from pathlib import Path

from bookreview.config.settings import Settings

_FILTERS = ["request_id", "redact"]


def _formatter_name(settings: Settings) -> str:
    return "json" if settings.LOG_FORMAT == "json" else "standard"


def get_console_handler(settings: Settings) -> dict:
    return {
        "class": "logging.StreamHandler",
        "formatter": _formatter_name(settings),
        "level": settings.LOG_LEVEL,
        "filters": list(_FILTERS),
    }


def get_file_handler(settings: Settings) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": _formatter_name(settings),
        "level": settings.LOG_LEVEL,
        "filename": str(Path(settings.LOG_DIR) / "app.log"),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "filters": list(_FILTERS),
    }


# ERROR and above in their own file, always structured, for alerting.
def get_error_file_handler(settings: Settings) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "json",
        "level": "ERROR",
        "filename": str(Path(settings.LOG_DIR) / "errors.log"),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "filters": list(_FILTERS),
    }


def get_error_console_handler(settings: Settings) -> dict:
    return {
        "class": "logging.StreamHandler",
        "formatter": "json",
        "level": "ERROR",
        "filters": list(_FILTERS),
    }
