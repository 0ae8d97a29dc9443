# src/bookreview/core/logging/filters.py
"""
Logging filters.

- RequestIdFilter: guarantees every LogRecord has `request_id` (contextvar set by
  RequestIDMiddleware, explicit `extra`, or the sentinel "-").
- RedactFilter: masks sensitive attributes passed through `extra`. Raw backend error
  text (`raw_error`) is only kept in development, where the classifier diagnostics
  rely on it; everywhere else it is masked like a credential.

The request id lives in a `contextvars.ContextVar`, so it follows a request across
`await` boundaries in FastAPI handlers.

How they are used
-----------------
builder.py declares both filters in the dictConfig "filters" section and every
handler lists them:

    "filters": {
        "request_id": {"()": RequestIdFilter},
        "redact": {"()": RedactFilter, "keep_raw_errors": False},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "filters": ["request_id", "redact"], ...}
    }

Handler-level filters see records from every logger, including ones that only
propagate to the root. RequestIdFilter is also added to the root logger itself,
which covers records logged on the root directly.

Request id lifecycle
--------------------
1. RequestIDMiddleware calls `set_request_id(rid)` and keeps the token.
2. Any log call during the request picks the id up through RequestIdFilter.
3. The middleware calls `reset_request_id(token)` when the response is done, so
   the id never leaks into whatever the same task logs next.

Redaction
---------
Matching is on attribute names only, case-insensitive. Values are never scanned:
a password inside a free-text message is not caught, which is why the classifier
and mapper put raw error text under the dedicated `raw_error` key, never in the message.
"""

import logging
from logging import LogRecord
import contextvars

_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)

REDACTED = "***REDACTED***"


def set_request_id(request_id: str | None):
    """Set the request id for the current context; returns a token for reset_request_id()."""
    return _request_id_ctx.set(request_id)


def reset_request_id(token):
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


class RequestIdFilter(logging.Filter):
    """
    Attach `request_id` to each record: explicit extra, else contextvar, else "-".
    Never drops a record.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = (
            getattr(record, "request_id", None) or get_request_id() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    """Mask record attributes whose names are sensitive."""

    SENSITIVE = {"password", "secret", "token", "access_token", "refresh_token", "authorization", "apikey"}
    # Raw store/auth error text may name tables, constraints or users' input.
    RAW_ERROR_KEYS = {"raw_error"}

    def __init__(self, name: str = "", *, keep_raw_errors: bool = False):
        super().__init__(name)
        self.keep_raw_errors = keep_raw_errors

    def filter(self, record: LogRecord) -> bool:
        masked = self.SENSITIVE if self.keep_raw_errors else self.SENSITIVE | self.RAW_ERROR_KEYS
        for key in list(record.__dict__.keys()):
            if key.lower() in masked:
                record.__dict__[key] = REDACTED
        return True


__all__ = [
    "set_request_id",
    "reset_request_id",
    "get_request_id",
    "RequestIdFilter",
    "RedactFilter",
    "REDACTED",
]
