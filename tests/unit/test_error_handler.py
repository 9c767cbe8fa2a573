"""
Unit tests for error handler middleware.
"""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel

from api.middleware.error_handler import setup_exception_handlers
from core.exceptions import (
    AppException,
    CreationNotFoundError,
    GenerationError,
    RateLimitError,
    UsageLimitExceededError,
    ValidationError,
)


class _Body(BaseModel):
    title: str
    count: int


def _create_test_app() -> FastAPI:
    """Create a minimal FastAPI app with exception handlers for testing."""
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/raise-app-exception")
    async def raise_app_exception():
        raise AppException(message="Something broke", error_code="test_error")

    @app.get("/raise-generation-error")
    async def raise_generation_error():
        raise GenerationError(message="GPU out of memory")

    @app.get("/raise-creation-not-found")
    async def raise_creation_not_found():
        raise CreationNotFoundError()

    @app.get("/raise-usage-limit")
    async def raise_usage_limit():
        raise UsageLimitExceededError(details={"kind": "images", "limit": 10})

    @app.get("/raise-rate-limit")
    async def raise_rate_limit():
        raise RateLimitError(retry_after=42, details={"limit": 30})

    @app.get("/raise-validation-error")
    async def raise_validation_error():
        raise ValidationError(message="Invalid prompt")

    @app.post("/validate-body")
    async def validate_body(body: _Body):
        return {"ok": True}

    @app.get("/raise-http-400")
    async def raise_http_400():
        raise HTTPException(status_code=400, detail="Bad input")

    @app.get("/raise-http-501")
    async def raise_http_501():
        raise HTTPException(status_code=501, detail="Coming soon")

    @app.get("/raise-http-418")
    async def raise_http_418():
        raise HTTPException(status_code=418, detail="Teapot")

    @app.get("/raise-unexpected")
    async def raise_unexpected():
        raise RuntimeError("Something unexpected")

    return app


@pytest.fixture
def test_client():
    app = _create_test_app()
    return TestClient(app, raise_server_exceptions=False)


class TestAppExceptionHandler:
    """Test that AppException subclasses produce the error envelope."""

    def test_envelope_shape(self, test_client):
        resp = test_client.get("/raise-app-exception")
        assert resp.status_code == 500
        body = resp.json()
        assert body == {
            "status": "error",
            "message": "Something broke",
            "error": {"code": "test_error", "message": "Something broke"},
        }

    def test_generation_error(self, test_client):
        resp = test_client.get("/raise-generation-error")
        assert resp.status_code == 500
        body = resp.json()
        assert body["status"] == "error"
        assert body["error"]["code"] == "generation_failed"
        assert body["error"]["message"] == "GPU out of memory"

    def test_creation_not_found(self, test_client):
        resp = test_client.get("/raise-creation-not-found")
        assert resp.status_code == 404
        body = resp.json()
        assert body["message"] == "Creation not found"
        assert body["error"]["code"] == "creation_not_found"

    def test_usage_limit_with_details(self, test_client):
        resp = test_client.get("/raise-usage-limit")
        assert resp.status_code == 403
        body = resp.json()
        assert body["error"]["code"] == "usage_limit_exceeded"
        assert body["error"]["details"] == {"kind": "images", "limit": 10}

    def test_rate_limit_sets_retry_after(self, test_client):
        resp = test_client.get("/raise-rate-limit")
        assert resp.status_code == 429
        assert resp.headers["Retry-After"] == "42"
        assert resp.json()["error"]["code"] == "rate_limit_exceeded"

    def test_validation_error(self, test_client):
        resp = test_client.get("/raise-validation-error")
        assert resp.status_code == 422
        body = resp.json()
        assert body["error"]["code"] == "validation_error"


class TestRequestValidationHandler:
    """Test that request validation failures use the envelope."""

    def test_invalid_body(self, test_client):
        resp = test_client.post("/validate-body", json={"title": "x", "count": "many"})
        assert resp.status_code == 422
        body = resp.json()
        assert body["status"] == "error"
        assert body["error"]["code"] == "validation_error"
        fields = [e["field"] for e in body["error"]["details"]["errors"]]
        assert "body -> count" in fields


class TestHTTPExceptionFallbackHandler:
    """Test that HTTPException is wrapped in the envelope."""

    def test_http_400(self, test_client):
        resp = test_client.get("/raise-http-400")
        assert resp.status_code == 400
        body = resp.json()
        assert body["status"] == "error"
        assert body["error"]["code"] == "bad_request"
        assert body["error"]["message"] == "Bad input"

    def test_unknown_route(self, test_client):
        resp = test_client.get("/nowhere")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_http_501(self, test_client):
        resp = test_client.get("/raise-http-501")
        assert resp.status_code == 501
        assert resp.json()["error"]["code"] == "not_implemented"

    def test_unmapped_status(self, test_client):
        resp = test_client.get("/raise-http-418")
        assert resp.status_code == 418
        assert resp.json()["error"]["code"] == "http_error"


class TestGeneralExceptionHandler:
    """Test that unhandled exceptions also produce the envelope."""

    def test_unexpected_error(self, test_client):
        resp = test_client.get("/raise-unexpected")
        assert resp.status_code == 500
        body = resp.json()
        assert body["status"] == "error"
        assert body["error"]["code"] == "internal_error"
        assert body["error"]["details"]["type"] == "RuntimeError"
