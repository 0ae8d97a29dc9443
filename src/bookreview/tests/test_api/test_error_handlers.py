import json
import logging

from fastapi import Depends, Request
from starlette.testclient import TestClient

import pytest

from bookreview.api.v1.error_handlers import get_trust_level
from bookreview.config.settings import Settings
from bookreview.core.dependencies import privileged_request
from bookreview.core.logging.builder import setup_logging
from bookreview.exceptions.base import SafeError
from bookreview.exceptions.classifier import DIAGNOSTICS_LOGGER
from bookreview.exceptions.rules import GENERIC_INTERNAL_MESSAGE, ErrorCategory, TrustLevel
from bookreview.main import create_app


@pytest.fixture
def app(test_settings):
    app = create_app(test_settings)

    @app.post("/reviews/{slug}/comments")
    def submit_comment(slug: str):
        raise SafeError("Comment must be 5000 characters or less.", category=ErrorCategory.VALIDATION, fields=["content"])

    @app.get("/reviews")
    def list_reviews():
        raise RuntimeError('relation "reviews" does not exist')

    @app.get("/admin/reviews", dependencies=[Depends(privileged_request)])
    def admin_list_reviews():
        raise RuntimeError('relation "reviews" does not exist')

    @app.put("/admin/reviews/{slug}", dependencies=[Depends(privileged_request)])
    def admin_update_review(slug: str):
        raise RuntimeError("cover image must be a JPEG or PNG")

    @app.get("/legacy/reviews")
    def legacy_admin_reviews(request: Request):
        request.state.trust_level = "privileged"
        raise RuntimeError("cover image must be a JPEG or PNG")

    @app.get("/about")
    def about():
        return {"title": "About"}

    return app


@pytest.fixture
def client(app):
    # Unhandled errors are re-raised by Starlette after the handler responds; we only
    # care about the response the client sees.
    return TestClient(app, raise_server_exceptions=False)


def test_safe_error_rendered_with_category_status(client):
    resp = client.post("/reviews/dune/comments")
    assert resp.status_code == 422
    assert resp.json() == {
        "detail": "Comment must be 5000 characters or less.",
        "code": "validation",
        "fields": ["content"],
    }
    assert resp.headers.get("X-Request-ID")


def test_unhandled_error_on_public_route_uses_public_fallback(client):
    resp = client.get("/reviews")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Something went wrong. Please try again.", "code": "internal"}
    assert "reviews" not in resp.json()["detail"]


def test_unhandled_error_on_admin_route_hides_internals(client):
    resp = client.get("/admin/reviews", headers={"X-Request-ID": "req-77"})
    assert resp.status_code == 500
    assert resp.json()["detail"] == GENERIC_INTERNAL_MESSAGE
    # The id shown to the admin must match the one in the error log.
    assert resp.headers["X-Request-ID"] == "req-77"


def test_unhandled_error_on_admin_route_passes_through_detail(client):
    resp = client.put("/admin/reviews/dune")
    assert resp.status_code == 500
    assert resp.json()["detail"] == "cover image must be a JPEG or PNG"
    assert resp.headers.get("X-Request-ID")


def test_trust_level_stored_as_string_is_honoured(client):
    resp = client.get("/legacy/reviews")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "cover image must be a JPEG or PNG", "code": "internal"}


def test_get_trust_level_coerces_state_values():
    request = Request({"type": "http", "state": {"trust_level": "privileged"}})
    assert get_trust_level(request) is TrustLevel.PRIVILEGED

    request = Request({"type": "http", "state": {"trust_level": "operator"}})
    assert get_trust_level(request) is TrustLevel.PUBLIC

    assert get_trust_level(Request({"type": "http", "state": {}})) is TrustLevel.PUBLIC


def test_successful_request_echoes_request_id(client):
    resp = client.get("/about", headers={"X-Request-ID": "req-42"})
    assert resp.status_code == 200
    assert resp.headers["X-Request-ID"] == "req-42"


def test_unhandled_error_log_line_carries_request_id(capsys, test_settings):
    # Built here so the log handlers write to the captured stderr.
    app = create_app(test_settings)

    @app.get("/admin/settings", dependencies=[Depends(privileged_request)])
    def admin_settings():
        raise RuntimeError("site settings row missing")

    resp = TestClient(app, raise_server_exceptions=False).get(
        "/admin/settings", headers={"X-Request-ID": "req-77"}
    )
    assert resp.status_code == 500
    assert resp.headers["X-Request-ID"] == "req-77"

    records = []
    for line in capsys.readouterr().err.splitlines():
        try:
            records.append(json.loads(line))
        except ValueError:
            continue
    errors = [r for r in records if r.get("message") == "api.unhandled_error"]
    assert errors
    assert all(r["request_id"] == "req-77" for r in errors)
    assert errors[0]["trust_level"] == "privileged"


# -----------------------
# App built from explicit settings
# -----------------------

@pytest.fixture
def production_client(test_settings):
    settings = Settings(
        ENV="production",
        LOG_TO_STDOUT=True,
        PUBLIC_FALLBACK_MESSAGE="Oops.",
        ADMIN_FALLBACK_MESSAGE="Admin oops.",
        ERROR_MESSAGE_MAX_LENGTH=10,
    )
    app = create_app(settings)

    @app.get("/reviews")
    def list_reviews():
        raise RuntimeError("brand new backend failure")

    @app.get("/admin/reviews", dependencies=[Depends(privileged_request)])
    def admin_list_reviews():
        raise RuntimeError("abcdefghijklmnopqrstuvwxyz")

    @app.get("/admin/empty", dependencies=[Depends(privileged_request)])
    def admin_empty():
        raise RuntimeError()

    yield TestClient(app, raise_server_exceptions=False)
    setup_logging(test_settings)


def test_app_uses_its_own_settings(production_client):
    assert production_client.get("/reviews").json()["detail"] == "Oops."
    assert production_client.get("/admin/reviews").json()["detail"] == "abcdefghij"
    assert production_client.get("/admin/empty").json()["detail"] == "Admin oops."


def test_production_app_never_records_unmatched_errors(production_client, caplog):
    assert production_client.app.state.classifier.record_unmatched is False

    with caplog.at_level(logging.WARNING, logger=DIAGNOSTICS_LOGGER):
        production_client.get("/reviews")
    assert not [r for r in caplog.records if r.name == DIAGNOSTICS_LOGGER]
