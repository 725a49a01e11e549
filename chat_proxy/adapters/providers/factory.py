"""Factory pattern for creating provider adapter instances."""

from __future__ import annotations

import httpx

from chat_proxy.adapters.providers.anthropic import MAX_TOKENS, TEMPERATURE, AnthropicAdapter
from chat_proxy.adapters.providers.base import AbstractProviderAdapter, ProviderConfig
from chat_proxy.adapters.providers.gemini import GENERATION_CONFIG, GeminiAdapter
from chat_proxy.adapters.providers.openrouter import OpenRouterAdapter
from chat_proxy.core.config import Settings, settings as default_settings
from chat_proxy.core.errors import ValidationAppError

SUPPORTED_PROVIDERS = ("gemini", "anthropic", "openrouter")


def build_provider_config(provider: str, cfg: Settings | None = None) -> ProviderConfig:
    """Resolve the immutable ProviderConfig for ``provider`` from settings.

    Raises:
        ValidationAppError: If the provider is unknown.
    """
    cfg = cfg or default_settings
    timeout = cfg.app.upstream_timeout_seconds

    if provider == "gemini":
        return ProviderConfig(
            name="gemini",
            display_name="Gemini",
            endpoint_url=(
                f"{cfg.gemini.base_url.rstrip('/')}/models/{cfg.gemini.model}:generateContent"
            ),
            api_key=cfg.gemini.api_key,
            api_key_env="GEMINI_API_KEY",
            auth_header="x-goog-api-key",
            default_model=cfg.gemini.model,
            generation=dict(GENERATION_CONFIG),
            timeout_seconds=timeout,
        )

    if provider == "anthropic":
        return ProviderConfig(
            name="anthropic",
            display_name="Claude",
            endpoint_url=f"{cfg.anthropic.base_url.rstrip('/')}/messages",
            api_key=cfg.anthropic.api_key,
            api_key_env="CLAUDE_API_KEY",
            auth_header="x-api-key",
            default_model=cfg.anthropic.model,
            generation={"max_tokens": MAX_TOKENS, "temperature": TEMPERATURE},
            extra_headers={"anthropic-version": cfg.anthropic.api_version},
            timeout_seconds=timeout,
        )

    if provider == "openrouter":
        extra_headers: dict[str, str] = {}
        if cfg.openrouter.site_url:
            extra_headers["HTTP-Referer"] = cfg.openrouter.site_url
        if cfg.openrouter.app_title:
            extra_headers["X-Title"] = cfg.openrouter.app_title
        return ProviderConfig(
            name="openrouter",
            display_name="OpenRouter",
            endpoint_url=cfg.openrouter.base_url.rstrip("/"),
            api_key=cfg.openrouter.api_key,
            api_key_env="OPENROUTER_API_KEY",
            auth_header="Authorization",
            auth_scheme="Bearer",
            default_model=cfg.openrouter.model,
            generation={"max_tokens": MAX_TOKENS, "temperature": TEMPERATURE},
            extra_headers=extra_headers,
            timeout_seconds=timeout,
        )

    raise ValidationAppError(
        code="unknown_provider",
        message=(
            f"Unknown provider: '{provider}'. Supported providers: "
            f"{', '.join(SUPPORTED_PROVIDERS)}"
        ),
    )


def create_provider_adapter(
    provider: str,
    *,
    cfg: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AbstractProviderAdapter:
    """Instantiate the adapter for ``provider``.

    Args:
        provider: One of SUPPORTED_PROVIDERS (case-insensitive).
        cfg: Settings to read; defaults to the global settings.
        http_client: Optional shared httpx client for connection reuse.

    Returns:
        AbstractProviderAdapter: Configured adapter instance.

    Raises:
        ValidationAppError: If the provider is unknown.
    """
    provider = provider.lower()
    config = build_provider_config(provider, cfg)

    if provider == "gemini":
        return GeminiAdapter(config, http_client=http_client)
    if provider == "anthropic":
        return AnthropicAdapter(config, http_client=http_client)
    return OpenRouterAdapter(config, http_client=http_client)


def create_provider_adapters(
    *,
    cfg: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, AbstractProviderAdapter]:
    return {
        name: create_provider_adapter(name, cfg=cfg, http_client=http_client)
        for name in SUPPORTED_PROVIDERS
    }
