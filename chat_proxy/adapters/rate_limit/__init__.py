"""Rate limiting adapters.

A small abstraction layer so the proxy can run with an in-memory limiter and
later move to a shared store without changing the API layer.
"""

from chat_proxy.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision
from chat_proxy.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitDecision",
]
