"""Proxy service orchestrating payload validation and one provider call.

This is the single, provider-agnostic request pipeline behind every proxy
route:
- Validate the inbound payload against the adapter's request model
- Delegate translation and the upstream call to the adapter
- Classify failures: client errors (400), upstream failures (passthrough
  status), unexpected failures (500 with the failure's message)
"""

from __future__ import annotations

import logging
import time
from typing import Any

from pydantic import BaseModel, ValidationError

from chat_proxy.adapters.providers.base import AbstractProviderAdapter
from chat_proxy.core.errors import AppError, InternalAppError, UpstreamAppError, ValidationAppError

logger = logging.getLogger(__name__)


class ProxyService:
    """Forward one validated chat request to a provider adapter.

    Attributes:
        adapter: Provider adapter used for translation and transport.
    """

    def __init__(self, adapter: AbstractProviderAdapter) -> None:
        self.adapter = adapter

    def validate_payload(self, payload: Any) -> BaseModel:
        """Check that the payload carries a real list of messages/contents.

        Raises:
            ValidationAppError: If the required list is missing or malformed.
        """
        try:
            return self.adapter.request_model.model_validate(payload)
        except ValidationError as exc:
            logger.info(
                "proxy.invalid_payload",
                extra={
                    "provider": self.adapter.name,
                    "error_count": exc.error_count(),
                    "fields": sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]}),
                },
            )
            raise ValidationAppError(
                code="invalid_payload",
                message=self.adapter.missing_field_message,
            ) from exc

    async def forward(self, payload: Any) -> dict[str, Any]:
        """Validate ``payload``, call the provider, and return the client body.

        Args:
            payload: Decoded JSON request body.

        Returns:
            dict[str, Any]: Body to send back with status 200.

        Raises:
            ValidationAppError: Payload is missing the required list.
            UpstreamAppError: Provider answered with a non-2xx status.
            AppError: Other domain failures (e.g. missing configuration).
            InternalAppError: Any unexpected failure, wrapping its message.
        """
        request = self.validate_payload(payload)
        provider = self.adapter.name
        start = time.perf_counter()

        try:
            body = await self.adapter.complete(request)
        except UpstreamAppError as exc:
            logger.warning(
                "proxy.upstream_failed",
                extra={
                    "provider": provider,
                    "upstream_status": exc.upstream_status,
                    "upstream_body": exc.details,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
            raise
        except AppError:
            raise
        except Exception as exc:
            logger.error(
                "proxy.unexpected_error",
                extra={
                    "provider": provider,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            raise InternalAppError(
                code="internal_error",
                message="Internal server error",
                details=str(exc),
            ) from exc

        logger.info(
            "proxy.completed",
            extra={
                "provider": provider,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return body
