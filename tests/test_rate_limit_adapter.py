"""Unit tests for the in-memory fixed-window rate limiter."""

from unittest.mock import Mock

import pytest

from chat_proxy.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter


def test_allows_up_to_limit_in_same_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    assert limiter.check_and_record("k").allowed is True
    assert limiter.check_and_record("k").allowed is True
    result = limiter.check_and_record("k")
    assert result.allowed is True
    assert result.remaining == 0
    assert result.retry_after_seconds is None


def test_hundred_and_first_request_in_window_is_rejected() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=100, window_seconds=600)
    start = 1_700_000_000.0

    for i in range(100):
        assert limiter.check_and_record("client", now=start + i).allowed is True

    blocked = limiter.check_and_record("client", now=start + 100)
    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.retry_after_seconds is not None
    assert blocked.retry_after_seconds >= 0
    # window opened at `start`, so 500 s remain
    assert blocked.retry_after_seconds == 500


def test_retry_after_rounds_up_to_whole_seconds() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=10)

    limiter.check_and_record("k", now=1000.0)
    blocked = limiter.check_and_record("k", now=1000.4)

    assert blocked.retry_after_seconds == 10


def test_window_starts_at_first_request_not_epoch_grid() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=10)

    assert limiter.check_and_record("k", now=1005.0).allowed is True
    # An epoch-aligned window would have reset at 1010
    assert limiter.check_and_record("k", now=1012.0).allowed is False
    assert limiter.check_and_record("k", now=1015.0).allowed is False
    assert limiter.check_and_record("k", now=1015.1).allowed is True


def test_resets_after_window_elapses() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=2, window_seconds=600, clock=clock)

    for _ in range(5):
        limiter.check_and_record("k")
    assert limiter.check_and_record("k").allowed is False

    clock.return_value = 1000.0 + 600.001
    result = limiter.check_and_record("k")
    assert result.allowed is True
    assert result.remaining == 1


def test_request_exactly_at_reset_time_still_counts_in_old_window() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=10)

    limiter.check_and_record("k", now=1000.0)
    assert limiter.check_and_record("k", now=1010.0).allowed is False


def test_rejected_attempts_keep_counting() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=2, window_seconds=60)

    decisions = [limiter.check_and_record("k", now=1000.0 + i).allowed for i in range(6)]

    assert decisions == [True, True, False, False, False, False]


def test_isolated_by_client() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.check_and_record("k1").allowed is True
    assert limiter.check_and_record("k1").allowed is False

    assert limiter.check_and_record("k2").allowed is True


def test_empty_client_id_shares_one_bucket_and_never_raises() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60)

    assert limiter.check_and_record("", now=1000.0).allowed is True
    assert limiter.check_and_record("", now=1001.0).allowed is False


def test_store_is_bounded_with_lru_eviction() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60, max_clients=2)

    limiter.check_and_record("a", now=1000.0)
    limiter.check_and_record("b", now=1000.0)
    # Touch "a" so "b" is the least recently seen
    limiter.check_and_record("a", now=1001.0)
    limiter.check_and_record("c", now=1002.0)

    assert len(limiter) == 2
    assert limiter.stats()["evictions"] == 1
    # "a" is still tracked and blocked; "b" was forgotten and starts over
    assert limiter.check_and_record("a", now=1003.0).allowed is False
    assert limiter.check_and_record("b", now=1003.0).allowed is True


def test_expired_windows_are_swept_when_new_clients_arrive() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=5, window_seconds=10, max_clients=100)

    limiter.check_and_record("old-1", now=1000.0)
    limiter.check_and_record("old-2", now=1001.0)
    limiter.check_and_record("new", now=1020.0)

    assert len(limiter) == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0, "window_seconds": 60},
        {"limit": 1, "window_seconds": 0},
        {"limit": 1, "window_seconds": 60, "max_clients": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryFixedWindowRateLimiter(**kwargs)
