"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses. Each error carries the
HTTP status it should be rendered with.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code (logged, not returned).
        message: Human-readable error message, returned as ``error``.
        details: Optional free-form text returned as ``details``.
    """

    code: str
    message: str
    details: str | None = None

    status_code = 500

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when the client payload is malformed."""

    status_code = 400


class ConfigurationAppError(AppError):
    """Raised when the service is missing configuration it needs (e.g. an API key)."""

    status_code = 500


class InternalAppError(AppError):
    """Raised for unexpected failures (network errors, malformed upstream JSON, bugs)."""

    status_code = 500


@dataclass
class UpstreamAppError(AppError):
    """Raised when a provider answers with a non-success status.

    The provider's status code and raw body are passed through to the client.
    """

    upstream_status: int = 502

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return self.upstream_status


@dataclass
class RateLimitAppError(AppError):
    """Raised when a client exceeds its request budget."""

    retry_after_seconds: int = 0
    headers: dict[str, str] = field(default_factory=dict)

    status_code = 429
