"""Pydantic schemas for inbound chat payloads and the uniform chat response.

Inbound models only check the one thing the proxy relies on: the
messages/contents field is a real list. Items and optional fields are
forwarded to the provider untouched, so the provider reports its own errors.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class GeminiGenerateRequest(BaseModel):
    """Gemini-native generateContent payload accepted by ``/api/gemini``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    contents: list[Any] = Field(
        ...,
        description="Ordered conversation turns in Gemini format.",
    )
    system_instruction: Any = Field(
        default=None,
        alias="systemInstruction",
        description="Optional Gemini systemInstruction object.",
    )


class ChatCompletionRequest(BaseModel):
    """OpenAI-style chat payload accepted by ``/api/anthropic`` and ``/api/openrouter``."""

    model_config = ConfigDict(extra="ignore")

    messages: list[Any] = Field(
        ...,
        description="Ordered chat messages ({role, content}); system messages allowed.",
    )
    model: Any = Field(
        default=None,
        description="Upstream model id; the provider default is used when omitted. Forwarded as given.",
    )
    stop: Any = Field(
        default=None,
        description="Stop sequence(s); forwarded as given, a single string becomes a list for Claude.",
    )


class AssistantMessage(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str = ""


class ChatChoice(BaseModel):
    message: AssistantMessage


class ChatCompletionResponse(BaseModel):
    """Minimal OpenAI-compatible response produced for non-OpenAI upstreams."""

    choices: list[ChatChoice]

    @classmethod
    def from_text(cls, text: str) -> "ChatCompletionResponse":
        return cls(choices=[ChatChoice(message=AssistantMessage(content=text))])


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response except rate limiting."""

    error: str
    details: str | None = None


class RateLimitErrorResponse(BaseModel):
    error: str
    retryAfterSeconds: int
