# bookreview/api/v1/error_handlers.py
"""
FastAPI exception handlers: the HTTP end of the error boundary.

    - SafeError (raised by db_error_handler or by route code) is already sanitized;
      the handler only renders it.
    - Anything else escaped classification; it is classified here, at the trust level
      of the request (public unless the route depends on `privileged_request`).

The classifier and the fallback messages come from the app the request belongs to
(`app.state.classifier` / `app.state.settings`, set by `create_app`), so an app built
with explicit Settings answers with those settings and not the process environment.
Apps that never set them fall back to the process-wide defaults.

Register from the app factory:

    app = FastAPI()
    register_exception_handlers(app)
"""

from fastapi import Request
from fastapi.responses import JSONResponse
import logging
from bookreview.exceptions.base import SafeError
from bookreview.exceptions.classifier import Classification, classify_detailed, default_fallback
from bookreview.exceptions.rules import TrustLevel

logger = logging.getLogger(__name__)


def get_trust_level(request: Request) -> TrustLevel:
    # Anything unrecognised stored by a route is treated as public.
    try:
        return TrustLevel(getattr(request.state, "trust_level", TrustLevel.PUBLIC))
    except ValueError:
        return TrustLevel.PUBLIC


def classify_for_request(request: Request, exc: Exception) -> tuple[Classification, TrustLevel]:
    """Classify `exc` with the classifier and fallback configured on the request's app."""
    trust_level = get_trust_level(request)
    app = request.scope.get("app")
    state = getattr(app, "state", None)
    settings = getattr(state, "settings", None)
    classifier = getattr(state, "classifier", None)
    fallback = default_fallback(trust_level, settings)
    return classify_detailed(exc, trust_level, fallback, classifier=classifier), trust_level


async def safe_error_handler(request: Request, exc: SafeError) -> JSONResponse:
    """
    Status from exc.http_status(); payload {"detail": "...", "code": "constraint", ...}.
    """
    logger.info(
        "api.safe_error",
        extra={"method": request.method, "path": request.url.path, "category": exc.category.value},
    )
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    500 with a classified message. The stack goes to the logs, never to the client.
    """
    result, trust_level = classify_for_request(request, exc)
    logger.error(
        "api.unhandled_error",
        extra={
            "method": request.method,
            "path": request.url.path,
            "category": result.category.value,
            "trust_level": trust_level.value,
        },
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": result.message, "code": result.category.value})


def register_exception_handlers(app):
    app.add_exception_handler(SafeError, safe_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
