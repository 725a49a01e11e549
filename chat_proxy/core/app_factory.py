from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and
per-app state) so tests can build isolated apps with stub adapters or a
custom limiter.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Mapping

import httpx
from fastapi import FastAPI

from chat_proxy.adapters.providers.base import AbstractProviderAdapter
from chat_proxy.adapters.providers.factory import create_provider_adapters
from chat_proxy.adapters.rate_limit.base import AbstractRateLimiter
from chat_proxy.api.routes import health_router, proxy_router
from chat_proxy.core.config import settings
from chat_proxy.core.exception_handlers import setup_exception_handlers
from chat_proxy.core.logging import configure_logging
from chat_proxy.core.middleware import request_id_middleware
from chat_proxy.core.rate_limit import get_rate_limiter, parse_provider_list
from chat_proxy.services.proxy_service import ProxyService

logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Proxy", "description": "Chat proxies for Gemini, Anthropic and OpenRouter."},
    {"name": "Health", "description": "Liveness checks."},
]


def _install_adapters(app: FastAPI, adapters: Mapping[str, AbstractProviderAdapter]) -> None:
    app.state.adapters = dict(adapters)
    app.state.proxy_services = {
        name: ProxyService(adapter) for name, adapter in adapters.items()
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Share one pooled httpx client across adapters while the app is serving.

    Injected adapters (tests) are left as they are.
    """
    http_client: httpx.AsyncClient | None = None
    if not app.state.adapters_injected:
        http_client = httpx.AsyncClient(timeout=settings.app.upstream_timeout_seconds)
        _install_adapters(app, create_provider_adapters(http_client=http_client))

    logger.info(
        "app.startup",
        extra={
            "providers": sorted(app.state.adapters),
            "rate_limit_enabled": app.state.rate_limit_enabled,
            "rate_limit_exempt": sorted(app.state.rate_limit_exempt),
        },
    )
    try:
        yield
    finally:
        for adapter in app.state.adapters.values():
            await adapter.aclose()
        if http_client is not None:
            await http_client.aclose()
        logger.info("app.shutdown")


def create_app(
    *,
    adapters: Mapping[str, AbstractProviderAdapter] | None = None,
    rate_limiter: AbstractRateLimiter | None = None,
    rate_limit_exempt: Iterable[str] | None = None,
    rate_limit_enabled: bool | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        adapters: Provider adapters keyed by route name; built from settings
            when omitted.
        rate_limiter: Admission controller; the process-wide limiter when omitted.
        rate_limit_exempt: Provider routes that skip rate limiting; read from
            APP_RATE_LIMIT_EXEMPT_PROVIDERS when omitted.
        rate_limit_enabled: Override APP_RATE_LIMIT_ENABLED.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Chat Proxy",
        description=(
            "Forwards chat requests to Gemini, Anthropic and OpenRouter, translating "
            "between OpenAI-style payloads and each provider's format, with a "
            "per-client fixed-window rate limit."
        ),
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    app.state.adapters_injected = adapters is not None
    _install_adapters(app, adapters if adapters is not None else create_provider_adapters())

    app.state.rate_limiter = rate_limiter if rate_limiter is not None else get_rate_limiter()
    app.state.rate_limit_enabled = (
        settings.app.rate_limit_enabled if rate_limit_enabled is None else rate_limit_enabled
    )
    app.state.rate_limit_exempt = (
        parse_provider_list(settings.app.rate_limit_exempt_providers)
        if rate_limit_exempt is None
        else {name.lower() for name in rate_limit_exempt}
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(proxy_router)
    app.include_router(health_router)

    return app
