"""Provider adapter layer - one adapter per upstream chat API."""

from chat_proxy.adapters.providers.anthropic import AnthropicAdapter
from chat_proxy.adapters.providers.base import (
    AbstractProviderAdapter,
    HttpProviderAdapter,
    ProviderConfig,
)
from chat_proxy.adapters.providers.factory import (
    SUPPORTED_PROVIDERS,
    build_provider_config,
    create_provider_adapter,
    create_provider_adapters,
)
from chat_proxy.adapters.providers.gemini import GeminiAdapter
from chat_proxy.adapters.providers.openrouter import OpenRouterAdapter

__all__ = [
    "AbstractProviderAdapter",
    "AnthropicAdapter",
    "GeminiAdapter",
    "HttpProviderAdapter",
    "OpenRouterAdapter",
    "ProviderConfig",
    "SUPPORTED_PROVIDERS",
    "build_provider_config",
    "create_provider_adapter",
    "create_provider_adapters",
]
