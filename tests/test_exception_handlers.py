"""Tests for global exception handlers.

Validates that every error type is rendered in the flat ``{error, details?}``
shape with the right HTTP status and no stack traces.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from chat_proxy.core.errors import (
    AppError,
    ConfigurationAppError,
    RateLimitAppError,
    UpstreamAppError,
    ValidationAppError,
)
from chat_proxy.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.post("/test-validation")
        async def endpoint():
            raise ValidationAppError(code="invalid_payload", message="Messages array is required")

        response = client.post("/test-validation")

        assert response.status_code == 400
        assert response.json() == {"error": "Messages array is required"}

    def test_upstream_error_passes_status_and_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.post("/test-upstream")
        async def endpoint():
            raise UpstreamAppError(
                code="upstream_request_failed",
                message="Gemini API request failed",
                details='{"error": {"code": 429, "status": "RESOURCE_EXHAUSTED"}}',
                upstream_status=429,
            )

        response = client.post("/test-upstream")

        assert response.status_code == 429
        assert response.json() == {
            "error": "Gemini API request failed",
            "details": '{"error": {"code": 429, "status": "RESOURCE_EXHAUSTED"}}',
        }

    def test_rate_limit_error_shape_and_headers(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.post("/test-rate-limit")
        async def endpoint():
            raise RateLimitAppError(
                code="rate_limit_exceeded",
                message="Too many requests. Please try again later.",
                retry_after_seconds=42,
                headers={"Retry-After": "42"},
            )

        response = client.post("/test-rate-limit")

        assert response.status_code == 429
        assert response.json() == {
            "error": "Too many requests. Please try again later.",
            "retryAfterSeconds": 42,
        }
        assert response.headers["Retry-After"] == "42"

    def test_configuration_error_returns_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.post("/test-config")
        async def endpoint():
            raise ConfigurationAppError(
                code="provider_api_key_missing",
                message="Internal server error",
                details="GEMINI_API_KEY is not configured",
            )

        response = client.post("/test-config")

        assert response.status_code == 500
        assert response.json()["details"] == "GEMINI_API_KEY is not configured"


class TestHttpExceptionHandler:
    def test_wrong_method_is_flat_405(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.post("/only-post")
        async def endpoint():
            return {}

        response = client.get("/only-post")

        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}
        assert response.headers["allow"] == "POST"

    def test_unknown_path_is_flat_404(self, client: TestClient):
        response = client.post("/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}


class TestGeneralExceptionHandler:
    def test_returns_generic_error_with_message_text(self):
        request = AsyncMock()
        request.url.path = "/api/gemini"
        request.method = "POST"

        response = asyncio.run(general_exception_handler(request, RuntimeError("socket closed")))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data == {"error": "Internal server error", "details": "socket closed"}

    def test_never_leaks_stack_trace_or_type(self):
        request = AsyncMock()
        request.url.path = "/api/gemini"
        request.method = "POST"

        response = asyncio.run(general_exception_handler(request, ValueError("bad value")))

        text = bytes(response.body).decode()
        assert "Traceback" not in text
        assert 'File "' not in text
        assert "ValueError" not in text


def test_setup_registers_handlers(app_with_handlers: FastAPI):
    assert AppError in app_with_handlers.exception_handlers
    assert Exception in app_with_handlers.exception_handlers
