"""OpenRouter adapter.

OpenRouter speaks the OpenAI chat-completions protocol, so the call goes
through the official OpenAI Python SDK pointed at OpenRouter's base URL. The
raw HTTP response is used so the provider payload reaches the client exactly
as OpenRouter sent it.
"""

from __future__ import annotations

from typing import Any

import httpx
from openai import APIStatusError, AsyncOpenAI

from chat_proxy.adapters.providers.base import AbstractProviderAdapter, ProviderConfig
from chat_proxy.schemas.chat import ChatCompletionRequest

class OpenRouterAdapter(AbstractProviderAdapter):
    """Client for OpenRouter chat completions returning the raw provider JSON.

    Uses the OpenAI SDK with retries disabled; a failed call is reported once.
    """

    request_model = ChatCompletionRequest
    missing_field_message = "Messages array is required"

    def __init__(
        self,
        config: ProviderConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the adapter.

        The SDK client is created on first use so the service can start
        without an OpenRouter key configured.

        Args:
            config: Provider configuration (``endpoint_url`` is the base URL).
            http_client: Optional shared httpx client handed to the SDK.
        """
        super().__init__(config)
        self._http_client = http_client
        self._client: AsyncOpenAI | None = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._require_api_key(),
                base_url=self.config.endpoint_url,
                timeout=self.config.timeout_seconds,
                max_retries=0,
                default_headers=dict(self.config.extra_headers) or None,
                http_client=self._http_client,
            )
        return self._client

    def translate_request(self, request: ChatCompletionRequest) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": request.model or self.config.default_model,
            "messages": request.messages,
            **self.config.generation,
        }
        if request.stop:
            body["stop"] = request.stop
        return body

    async def call_upstream(self, body: dict[str, Any]) -> dict[str, Any]:
        try:
            raw = await self.client.chat.completions.with_raw_response.create(**body)
        except APIStatusError as exc:
            raise self._upstream_failed(exc.status_code, exc.response.text) from exc

        return raw.http_response.json()

    async def aclose(self) -> None:
        # A shared http_client is closed by its owner
        if self._client is not None and self._http_client is None:
            await self._client.close()
        self._client = None
