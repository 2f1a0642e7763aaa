"""Unit tests for PermissiveCORSMiddleware and the error envelope handlers."""

from unittest.mock import patch

import pytest
from fastapi import FastAPI, Query
from httpx import ASGITransport, AsyncClient

from mindwave.api.middleware.cors import ALLOWED_HEADERS, PermissiveCORSMiddleware, cors_headers
from mindwave.api.middleware.error_handler import error_envelope, register_error_handlers
from mindwave.core.exceptions import GENERIC_USER_MESSAGE, AnalysisNotFoundError


def _create_test_app() -> FastAPI:
    """Create a minimal FastAPI app with the CORS middleware and error handlers."""
    app = FastAPI()
    app.add_middleware(PermissiveCORSMiddleware)
    register_error_handlers(app)

    @app.get("/ok")
    async def ok():
        return {"status": "ok"}

    @app.get("/missing")
    async def missing():
        raise AnalysisNotFoundError(analysis_id=7)

    @app.get("/crash")
    async def crash():
        raise RuntimeError("database password is hunter2")

    @app.get("/typed")
    async def typed(limit: int = Query(...)):
        return {"limit": limit}

    return app


@pytest.fixture
async def client():
    transport = ASGITransport(app=_create_test_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


class TestCorsHeaders:
    @patch("mindwave.api.middleware.cors.get_settings")
    def test_wildcard(self, mock_settings):
        mock_settings.return_value.cors_origins = ["*"]
        headers = cors_headers("https://app.example")
        assert headers["Access-Control-Allow-Origin"] == "*"
        assert headers["Access-Control-Allow-Headers"] == ALLOWED_HEADERS

    @patch("mindwave.api.middleware.cors.get_settings")
    def test_listed_origin_echoed(self, mock_settings):
        mock_settings.return_value.cors_origins = ["https://a.example", "https://b.example"]
        assert cors_headers("https://b.example")["Access-Control-Allow-Origin"] == "https://b.example"

    @patch("mindwave.api.middleware.cors.get_settings")
    def test_unlisted_origin_gets_first_allowed(self, mock_settings):
        mock_settings.return_value.cors_origins = ["https://a.example"]
        assert cors_headers("https://evil.example")["Access-Control-Allow-Origin"] == "https://a.example"


class TestCorsMiddleware:
    async def test_preflight_short_circuits(self, client):
        resp = await client.options("/does-not-exist")
        assert resp.status_code == 200
        assert resp.content == b""
        assert resp.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"

    async def test_headers_on_success(self, client):
        resp = await client.get("/ok")
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"

    async def test_headers_on_domain_error(self, client):
        resp = await client.get("/missing")
        assert resp.status_code == 404
        assert resp.headers["access-control-allow-origin"] == "*"


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


class TestErrorEnvelope:
    def test_shape(self):
        body = error_envelope("Nope.", "SOME_CODE", "detail", timestamp="2026-01-01T00:00:00+00:00")
        assert body == {
            "success": False,
            "error": "Nope.",
            "code": "SOME_CODE",
            "technical_error": "detail",
            "timestamp": "2026-01-01T00:00:00+00:00",
        }

    def test_timestamp_defaults_to_now(self):
        assert error_envelope("e", "C", None)["timestamp"]

    async def test_domain_error(self, client):
        body = (await client.get("/missing")).json()
        assert body["success"] is False
        assert body["code"] == "ANALYSIS_NOT_FOUND"
        assert body["error"] == "Analysis not found."

    async def test_validation_error(self, client):
        resp = await client.get("/typed", params={"limit": "many"})
        assert resp.status_code == 422
        assert resp.json()["code"] == "VALIDATION_ERROR"

    async def test_unexpected_error_hides_details(self, client):
        resp = await client.get("/crash")
        assert resp.status_code == 500
        body = resp.json()
        assert body["code"] == "INTERNAL_ERROR"
        assert body["error"] == GENERIC_USER_MESSAGE
        assert "hunter2" not in resp.text
        assert resp.headers["access-control-allow-origin"] == "*"
