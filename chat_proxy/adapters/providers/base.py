"""Provider adapter interfaces.

A provider adapter isolates one upstream API's wire format from the proxy's
generic request/response contract. Every adapter exposes three capabilities:

- ``translate_request``: validated inbound payload -> upstream JSON body
- ``call_upstream``: exactly one outbound call, no retries
- ``translate_response``: upstream JSON -> body returned to the client

Upstream non-2xx answers are surfaced as ``UpstreamAppError`` carrying the
provider's status and raw body text; everything else (network errors, bad
JSON) propagates unchanged for the service layer to classify.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

import httpx
from pydantic import BaseModel

from chat_proxy.core.errors import ConfigurationAppError, UpstreamAppError


@dataclass(frozen=True)
class ProviderConfig:
    """Static, per-provider configuration resolved from settings at startup.

    Attributes:
        name: Route/provider name (``gemini``, ``anthropic``, ``openrouter``).
        display_name: Human name used in error messages.
        endpoint_url: Fully resolved URL (or base URL for SDK-backed adapters).
        api_key: Provider secret, or None when not configured.
        api_key_env: Environment variable that should hold the secret.
        auth_header: Header carrying the secret.
        auth_scheme: Optional scheme prefix (e.g. ``Bearer``).
        default_model: Model used when the client does not choose one.
        generation: Fixed generation parameters merged into every request.
        extra_headers: Additional static headers.
        timeout_seconds: Outbound request timeout.
    """

    name: str
    display_name: str
    endpoint_url: str
    api_key: str | None
    api_key_env: str
    auth_header: str
    default_model: str
    auth_scheme: str | None = None
    generation: dict[str, Any] = field(default_factory=dict)
    extra_headers: dict[str, str] = field(default_factory=dict)
    timeout_seconds: float = 60.0


class AbstractProviderAdapter(ABC):
    """Interface for upstream provider adapters."""

    request_model: type[BaseModel]
    missing_field_message: str = "Messages array is required"

    def __init__(self, config: ProviderConfig) -> None:
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    @abstractmethod
    def translate_request(self, request: BaseModel) -> dict[str, Any]:
        """Build the upstream JSON body from a validated inbound payload."""
        ...

    @abstractmethod
    async def call_upstream(self, body: dict[str, Any]) -> dict[str, Any]:
        """Send ``body`` upstream and return the decoded JSON answer.

        Raises:
            UpstreamAppError: If the provider answers with a non-2xx status.
            ConfigurationAppError: If the provider API key is not configured.
        """
        ...

    def translate_response(self, data: dict[str, Any]) -> dict[str, Any]:
        """Map the upstream answer to the client-facing body (identity by default)."""
        return data

    async def complete(self, request: BaseModel) -> dict[str, Any]:
        body = self.translate_request(request)
        data = await self.call_upstream(body)
        return self.translate_response(data)

    async def aclose(self) -> None:
        """Release resources owned by the adapter (nothing by default)."""

    def _require_api_key(self) -> str:
        if not self.config.api_key:
            raise ConfigurationAppError(
                code="provider_api_key_missing",
                message="Internal server error",
                details=f"{self.config.api_key_env} is not configured",
            )
        return self.config.api_key

    def _upstream_failed(self, status_code: int, body_text: str) -> UpstreamAppError:
        return UpstreamAppError(
            code="upstream_request_failed",
            message=f"{self.config.display_name} API request failed",
            details=body_text,
            upstream_status=status_code,
        )


class HttpProviderAdapter(AbstractProviderAdapter):
    """Adapter base that posts JSON with httpx.

    If ``http_client`` is provided it is used for every call (connection
    reuse) and its lifecycle belongs to the caller. Otherwise a client is
    created and closed per call.
    """

    def __init__(
        self,
        config: ProviderConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(config)
        self._http_client = http_client

    def _build_headers(self) -> dict[str, str]:
        api_key = self._require_api_key()
        token = f"{self.config.auth_scheme} {api_key}" if self.config.auth_scheme else api_key
        return {
            self.config.auth_header: token,
            "Content-Type": "application/json",
            **self.config.extra_headers,
        }

    @asynccontextmanager
    async def _client_context(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return

        client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        try:
            yield client
        finally:
            await client.aclose()

    async def call_upstream(self, body: dict[str, Any]) -> dict[str, Any]:
        headers = self._build_headers()

        async with self._client_context() as client:
            response = await client.post(
                self.config.endpoint_url,
                headers=headers,
                json=body,
                timeout=self.config.timeout_seconds,
            )

        if not response.is_success:
            raise self._upstream_failed(response.status_code, response.text)

        return response.json()
