"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any import of ``chat_proxy`` so the
global settings object sees test values and no .env file is picked up.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("CLAUDE_API_KEY", "test-claude-key")
os.environ.setdefault("OPENROUTER_API_KEY", "test-openrouter-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from chat_proxy.adapters.providers.base import AbstractProviderAdapter, ProviderConfig
from chat_proxy.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from chat_proxy.core.app_factory import create_app
from chat_proxy.schemas.chat import ChatCompletionRequest


class StubAdapter(AbstractProviderAdapter):
    """Adapter double that records calls instead of talking to a provider."""

    request_model = ChatCompletionRequest
    missing_field_message = "Messages array is required"

    def __init__(
        self,
        name: str = "anthropic",
        *,
        response: dict[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        super().__init__(
            ProviderConfig(
                name=name,
                display_name=name.title(),
                endpoint_url="https://upstream.invalid",
                api_key="stub-key",
                api_key_env="STUB_API_KEY",
                auth_header="x-api-key",
                default_model="stub-model",
            )
        )
        self.response = response if response is not None else {"ok": True}
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def translate_request(self, request: ChatCompletionRequest) -> dict[str, Any]:
        return {"messages": request.messages}

    async def call_upstream(self, body: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(body)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def stub_adapters() -> dict[str, StubAdapter]:
    return {name: StubAdapter(name) for name in ("gemini", "anthropic", "openrouter")}


@pytest.fixture
def limiter() -> InMemoryFixedWindowRateLimiter:
    return InMemoryFixedWindowRateLimiter(limit=100, window_seconds=600)


@pytest.fixture
def make_client(limiter: InMemoryFixedWindowRateLimiter) -> Callable[..., TestClient]:
    """Build a TestClient around a fresh app with a fresh limiter by default."""

    def _make(adapters: dict[str, AbstractProviderAdapter], **kwargs: Any) -> TestClient:
        kwargs.setdefault("rate_limiter", limiter)
        kwargs.setdefault("rate_limit_enabled", True)
        kwargs.setdefault("rate_limit_exempt", ())
        return TestClient(create_app(adapters=adapters, **kwargs))

    return _make


@pytest.fixture
def mock_http_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Return a factory for httpx clients backed by an in-process handler."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def stub_adapter_factory() -> type[StubAdapter]:
    return StubAdapter
