"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit,
  and a restart forgets every window.
- Windows start at each client's first request, not on a shared epoch grid,
  so a client may burst up to 2x the limit across a window boundary.
- Rejected attempts still count toward the window.
- Bounded: at most ``max_clients`` windows are tracked (LRU with expiry sweep).
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from chat_proxy.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision

logger = logging.getLogger(__name__)


@dataclass
class ClientWindow:
    count: int
    reset_at: float


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per client.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        max_clients: int | None = 10_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of admitted requests per window.
            window_seconds: Size of the window in seconds.
            max_clients: Maximum tracked clients (None for unbounded).
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit, window_seconds or max_clients are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if max_clients is not None and max_clients < 1:
            raise ValueError("max_clients must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._max_clients = max_clients
        self._clock = clock
        self._lock = threading.RLock()
        self._windows: OrderedDict[str, ClientWindow] = OrderedDict()
        self._evictions = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def stats(self) -> dict[str, int | None]:
        """Return lightweight limiter metrics without exposing client ids."""

        with self._lock:
            return {
                "limit": self._limit,
                "window_seconds": self._window_seconds,
                "max_clients": self._max_clients,
                "clients": len(self._windows),
                "evictions": self._evictions,
            }

    def check_and_record(self, client_id: str, now: float | None = None) -> RateLimitDecision:
        """Count one request for ``client_id`` and decide whether to admit it.

        Never raises: an empty or missing identifier simply shares one bucket
        with every other such request.

        Args:
            client_id: Opaque client identifier.
            now: UNIX time in seconds; defaults to the configured clock.

        Returns:
            RateLimitDecision with the admission verdict and window metadata.
        """
        if now is None:
            now = self._clock()
        key = client_id or ""

        with self._lock:
            window = self._windows.get(key)

            if window is None:
                window = ClientWindow(count=1, reset_at=now + self._window_seconds)
                self._windows[key] = window
                self._evict_locked(now)
                return self._allowed(window)

            self._windows.move_to_end(key)

            if now > window.reset_at:
                window.count = 1
                window.reset_at = now + self._window_seconds
                return self._allowed(window)

            window.count += 1
            if window.count > self._limit:
                return self._blocked(window, now)
            return self._allowed(window)

    def _allowed(self, window: ClientWindow) -> RateLimitDecision:
        return RateLimitDecision(
            allowed=True,
            limit=self._limit,
            remaining=max(0, self._limit - window.count),
            reset_at=int(math.ceil(window.reset_at)),
            retry_after_seconds=None,
        )

    def _blocked(self, window: ClientWindow, now: float) -> RateLimitDecision:
        return RateLimitDecision(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(math.ceil(window.reset_at)),
            retry_after_seconds=max(0, int(math.ceil(window.reset_at - now))),
        )

    def _evict_locked(self, now: float) -> None:
        """Keep the map within ``max_clients``.

        Expired windows at the least-recently-used end go first; if the map is
        still too large the least recently seen live window is dropped, which
        resets that client's count.
        """
        # Each window is popped at most once, so the sweep is amortised O(1)
        while self._windows:
            oldest = next(iter(self._windows.values()))
            if now <= oldest.reset_at:
                break
            self._windows.popitem(last=False)
            self._evictions += 1

        if self._max_clients is None:
            return

        while len(self._windows) > self._max_clients:
            self._windows.popitem(last=False)
            self._evictions += 1
            logger.debug(
                "rate_limit.evicted_live_window",
                extra={"clients": len(self._windows), "max_clients": self._max_clients},
            )
