"""Rate limiting dependency for FastAPI routes.

This module wires the admission controller into the HTTP layer.

Rate limiting strategy:
- Fixed window per client, keyed by client identifier.
- The client identifier is the first X-Forwarded-For entry, else the peer
  address. It is untrusted and trivially spoofable by anyone who can set
  headers; it buckets traffic, it does not identify anyone.
- Applied to every proxy route unless the provider is listed in
  APP_RATE_LIMIT_EXEMPT_PROVIDERS.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Awaitable, Callable

from fastapi import Request

from chat_proxy.adapters.rate_limit.base import AbstractRateLimiter
from chat_proxy.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from chat_proxy.core.config import settings
from chat_proxy.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests. Please try again later."

_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int, int] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.
    """

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
        settings.app.rate_limit_max_clients,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryFixedWindowRateLimiter(
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
            max_clients=settings.app.rate_limit_max_clients,
        )
        _limiter_config = config

    return _limiter


def parse_provider_list(value: str | None) -> set[str]:
    """Parse a comma-separated list of provider names.

    Examples:
        >>> sorted(parse_provider_list("openrouter, Gemini"))
        ['gemini', 'openrouter']
        >>> parse_provider_list(None)
        set()
    """
    if not value:
        return set()
    return {item.strip().lower() for item in value.split(",") if item.strip()}


def resolve_client_id(request: Request, *, trust_forwarded_for: bool = True) -> str:
    """Derive the rate limit bucket for a request.

    Args:
        request: FastAPI request.
        trust_forwarded_for: Use the X-Forwarded-For header when present.

    Returns:
        str: First forwarded-for address, else the peer host, else "unknown".
    """

    if trust_forwarded_for:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            first = forwarded_for.split(",")[0].strip()
            if first:
                return first

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _hash_client_id(client_id: str) -> str:
    """Hash the client id for logging without exposing addresses."""
    return hashlib.sha256(client_id.encode()).hexdigest()[:16]


def require_rate_limit(provider: str) -> Callable[[Request], Awaitable[None]]:
    """Build the rate limit dependency for one provider route.

    The limiter and the exempt set are read from ``request.app.state`` so each
    app instance (and each test) owns its own state.

    Args:
        provider: Route/provider name checked against the exempt list.

    Returns:
        Async FastAPI dependency raising RateLimitAppError on rejection.
    """

    async def enforce_rate_limit(request: Request) -> None:
        state = request.app.state
        if not state.rate_limit_enabled or provider in state.rate_limit_exempt:
            return

        limiter: AbstractRateLimiter = state.rate_limiter
        client_id = resolve_client_id(
            request,
            trust_forwarded_for=settings.app.trust_forwarded_for,
        )
        decision = limiter.check_and_record(client_id)

        if decision.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "provider": provider,
                    "client_hash": _hash_client_id(client_id),
                    "limit": decision.limit,
                    "remaining": decision.remaining,
                },
            )
            return

        retry_after = decision.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "provider": provider,
                "client_hash": _hash_client_id(client_id),
                "limit": decision.limit,
                "retry_after_s": retry_after,
            },
        )

        headers: dict[str, str] = {}
        if settings.app.rate_limit_include_headers:
            headers["Retry-After"] = str(retry_after)
            headers["X-RateLimit-Limit"] = str(decision.limit)
            headers["X-RateLimit-Remaining"] = str(decision.remaining)
            headers["X-RateLimit-Reset"] = str(decision.reset_at)

        raise RateLimitAppError(
            code="rate_limit_exceeded",
            message=RATE_LIMIT_MESSAGE,
            retry_after_seconds=retry_after,
            headers=headers,
        )

    return enforce_rate_limit
