# src/bookreview/tests/test_logging/test_middleware_integration.py
import json
import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.testclient import TestClient

from bookreview.core.logging.builder import setup_logging
from bookreview.core.logging.filters import get_request_id
from bookreview.core.logging.middleware import RequestIDMiddleware, resolve_request_id


def test_request_id_in_response_and_logs(capsys, test_settings):
    setup_logging(test_settings)

    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/reviews")
    def reviews():
        logging.getLogger("bookreview").info("listing reviews")
        return {"ok": True}

    resp = TestClient(app).get("/reviews")
    assert resp.status_code == 200
    rid = resp.headers.get("X-Request-ID")
    assert rid

    stderr = capsys.readouterr().err.strip()
    assert stderr, "Expected JSON log lines on stderr."

    found = False
    for line in stderr.splitlines():
        try:
            rec = json.loads(line)
        except ValueError:
            continue
        if rec.get("message") == "listing reviews" and rec.get("request_id") == rid:
            found = True
            break
    assert found, "No log line with the response's request id"


def test_resolve_request_id_rejects_unsafe_values():
    assert resolve_request_id("abc-123") == "abc-123"
    generated = resolve_request_id("abc\n")
    assert generated != "abc\n"
    assert len(generated) == 36
    assert resolve_request_id(None) != resolve_request_id(None)
    assert resolve_request_id("x" * 65) != "x" * 65


def test_on_error_renders_escaped_exceptions_with_request_id():
    seen = {}

    async def render(request, exc):
        seen["request_id"] = get_request_id()
        return JSONResponse({"detail": "rendered"}, status_code=500)

    app = FastAPI()
    app.add_middleware(RequestIDMiddleware, on_error=render)

    @app.get("/boom")
    def boom():
        raise RuntimeError("boom")

    resp = TestClient(app, raise_server_exceptions=False).get("/boom", headers={"X-Request-ID": "req-9"})
    assert resp.status_code == 500
    assert resp.json() == {"detail": "rendered"}
    assert resp.headers["X-Request-ID"] == "req-9"
    assert seen["request_id"] == "req-9"
