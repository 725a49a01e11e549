"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the storage backend stays swappable and testable in isolation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a check-and-record call.

    Attributes:
        allowed: Whether the request is admitted.
        limit: Max requests per window.
        remaining: Requests left in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the client's window rolls over.
        retry_after_seconds: Suggested wait in whole seconds; set only when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for admission controllers."""

    @abstractmethod
    def check_and_record(self, client_id: str, now: float | None = None) -> RateLimitDecision:
        """Record one request for ``client_id`` and decide whether to admit it.

        The check and the increment happen together so concurrent callers can
        never both observe the same count.

        Args:
            client_id: Opaque client identifier (e.g. an IP address).
            now: Optional UNIX time in seconds; defaults to the limiter's clock.

        Returns:
            RateLimitDecision describing whether the request was admitted.
        """
        raise NotImplementedError
