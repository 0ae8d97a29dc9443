from fastapi import FastAPI

from bookreview.api.v1.error_handlers import register_exception_handlers, unhandled_error_handler
from bookreview.config.settings import Settings, get_settings
from bookreview.core.logging import RequestIDMiddleware, setup_logging
from bookreview.exceptions.classifier import build_classifier


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    App factory: logging, request ids, and the error boundary.

    The classifier used by the exception handlers is built from `settings` and kept,
    with the settings, on `app.state`.

    Site routers (reviews, comments, admin) are mounted by the caller; admin routers
    should depend on `bookreview.core.dependencies.privileged_request`.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(title="bookreview")
    app.state.settings = settings
    app.state.classifier = build_classifier(settings)

    app.add_middleware(RequestIDMiddleware, on_error=unhandled_error_handler)
    register_exception_handlers(app)
    return app
