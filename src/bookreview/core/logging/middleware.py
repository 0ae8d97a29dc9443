# src/bookreview/core/logging/middleware.py
"""
Request ID middleware for FastAPI / Starlette.

Purpose
-------
Every request gets an opaque request id. It is stored in the contextvar read by
RequestIdFilter, so each log line written while the request is handled carries it,
and it is echoed back in the `X-Request-ID` response header. A support request
("the admin page said: A database error occurred") can then be matched to the log
lines that hold the real error, which the page itself never shows.

How it works
------------
1. Look for an incoming `X-Request-ID` header (a proxy or the frontend may already
   have one). Use it when it passes `resolve_request_id`, otherwise generate a UUID4.
2. `set_request_id(rid)` stores it in the contextvar for the rest of the request.
3. `call_next(request)` runs the app. Route errors that were already classified
   (SafeError) are rendered by the app's own exception handlers and come back here
   as ordinary responses.
4. Unhandled exceptions also surface here, raised out of `call_next`. When the
   middleware is given an `on_error` handler it renders them itself, while the
   request id is still set, so the 500 response carries the header and the
   `api.unhandled_error` log line carries the id. Without `on_error` the exception
   propagates to Starlette's ServerErrorMiddleware as before, which runs outside
   this middleware: that response has no header and its log lines show "-".
5. The header is set on whatever response is returned, then the contextvar is reset.

Integration
-----------
`create_app` wires it with the HTTP boundary's handler:

    app.add_middleware(RequestIDMiddleware, on_error=unhandled_error_handler)

Security & validation
---------------------
Incoming ids end up verbatim in log lines. Only short values made of letters,
digits, `.`, `_` and `-` are accepted; anything else (newlines, very long values)
is replaced by a fresh UUID4 rather than sanitized.

Concurrency model
-----------------
The id lives in a `contextvars.ContextVar`, so concurrent requests each see their
own value across `await` points. Sync routes run in Starlette's threadpool, which
copies the context, so their log lines carry the id too.
"""

import re
import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from .filters import set_request_id, reset_request_id

REQUEST_ID_HEADER = "X-Request-ID"

_VALID_REQUEST_ID = re.compile(r"[A-Za-z0-9._-]{1,64}")

ErrorRenderer = Callable[[Request, Exception], Awaitable[Response]]


def resolve_request_id(incoming: str | None) -> str:
    """Return `incoming` if it is a safe id, else a new UUID4 string."""
    if incoming and _VALID_REQUEST_ID.fullmatch(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Sets the request id contextvar for the duration of a request and echoes it in
    the `X-Request-ID` response header.

    Args:
        app: the wrapped ASGI app.
        on_error: optional async `(request, exc) -> Response` used to render
            exceptions that escape the app, while the request id is still set.
    """

    def __init__(self, app: ASGIApp, on_error: ErrorRenderer | None = None):
        super().__init__(app)
        self.on_error = on_error

    async def dispatch(self, request: Request, call_next):
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = set_request_id(rid)
        try:
            try:
                response = await call_next(request)
            except Exception as exc:
                if self.on_error is None:
                    raise
                response = await self.on_error(request, exc)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            reset_request_id(token)
