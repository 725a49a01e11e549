"""Proxy endpoints, one per upstream provider.

Each route is POST-only (FastAPI answers other methods with 405 before any
dependency runs), rate limited per client, and delegates to the
ProxyService registered for its provider on ``app.state``.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from chat_proxy.core.errors import ValidationAppError
from chat_proxy.core.rate_limit import require_rate_limit
from chat_proxy.schemas.chat import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ErrorResponse,
    GeminiGenerateRequest,
    RateLimitErrorResponse,
)
from chat_proxy.services.proxy_service import ProxyService

router = APIRouter(prefix="/api", tags=["Proxy"])

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Malformed payload"},
    405: {"model": ErrorResponse, "description": "Only POST is allowed"},
    429: {"model": RateLimitErrorResponse, "description": "Client exceeded its request budget"},
    500: {"model": ErrorResponse, "description": "Unexpected failure"},
    "4XX": {"model": ErrorResponse, "description": "Upstream failure (status passed through)"},
    "5XX": {"model": ErrorResponse, "description": "Upstream failure (status passed through)"},
}


def _request_body_doc(model: type) -> dict[str, Any]:
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema(by_alias=True)}},
        }
    }


async def read_json_body(request: Request) -> Any:
    """Decode the request body as JSON.

    An empty body decodes to None so it fails payload validation like any
    other body without the required list.

    Raises:
        ValidationAppError: If the body is not valid JSON.
    """
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ValidationAppError(
            code="invalid_json",
            message="Request body must be valid JSON",
        ) from exc


async def _forward(provider: str, request: Request) -> JSONResponse:
    service: ProxyService = request.app.state.proxy_services[provider]
    payload = await read_json_body(request)
    body = await service.forward(payload)
    return JSONResponse(status_code=200, content=body)


@router.post(
    "/gemini",
    dependencies=[Depends(require_rate_limit("gemini"))],
    responses=_ERROR_RESPONSES,
    openapi_extra=_request_body_doc(GeminiGenerateRequest),
    summary="Gemini generateContent proxy",
)
async def proxy_gemini(request: Request) -> JSONResponse:
    """Forward a Gemini-native ``{contents, systemInstruction?}`` payload.

    Returns the provider's JSON unchanged.
    """
    return await _forward("gemini", request)


@router.post(
    "/anthropic",
    dependencies=[Depends(require_rate_limit("anthropic"))],
    response_model=ChatCompletionResponse,
    responses=_ERROR_RESPONSES,
    openapi_extra=_request_body_doc(ChatCompletionRequest),
    summary="Anthropic Messages proxy (OpenAI-style in and out)",
)
async def proxy_anthropic(request: Request) -> JSONResponse:
    """Forward OpenAI-style ``{messages, model?, stop?}`` to Claude.

    Returns ``{choices: [{message: {role: "assistant", content}}]}``.
    """
    return await _forward("anthropic", request)


@router.post(
    "/openrouter",
    dependencies=[Depends(require_rate_limit("openrouter"))],
    responses=_ERROR_RESPONSES,
    openapi_extra=_request_body_doc(ChatCompletionRequest),
    summary="OpenRouter chat completions proxy",
)
async def proxy_openrouter(request: Request) -> JSONResponse:
    return await _forward("openrouter", request)
