"""Anthropic Messages API adapter.

Accepts OpenAI-style chat messages and answers in OpenAI chat-completion
shape, so clients written against OpenAI can talk to Claude unchanged.
"""

from __future__ import annotations

from typing import Any

from chat_proxy.adapters.providers.base import HttpProviderAdapter
from chat_proxy.schemas.chat import ChatCompletionRequest, ChatCompletionResponse

MAX_TOKENS = 1000
TEMPERATURE = 0.7


def _is_system(message: Any) -> bool:
    return isinstance(message, dict) and message.get("role") == "system"


def split_system_prompt(messages: list[Any]) -> tuple[str, list[Any]]:
    """Separate system messages from the conversation.

    The first system message becomes the system prompt; every system message
    is dropped from the conversation, the rest is kept in order and unmodified.
    Items that are not objects are never system messages; Claude rejects them.

    Examples:
        >>> split_system_prompt([{"role": "system", "content": "S"}, {"role": "user", "content": "hi"}])
        ('S', [{'role': 'user', 'content': 'hi'}])
    """
    system_messages = [m for m in messages if _is_system(m)]
    system_prompt = (system_messages[0].get("content") if system_messages else None) or ""
    conversation = [m for m in messages if not _is_system(m)]
    return system_prompt, conversation


def extract_first_text(data: dict[str, Any]) -> str:
    """Return the text of the first content block, or "" when there is none."""
    content = data.get("content")
    if not isinstance(content, list) or not content:
        return ""
    first = content[0]
    if not isinstance(first, dict):
        return ""
    return first.get("text") or ""


class AnthropicAdapter(HttpProviderAdapter):
    """Translate OpenAI-style chat requests to ``/v1/messages`` and back."""

    request_model = ChatCompletionRequest
    missing_field_message = "Messages array is required"

    def translate_request(self, request: ChatCompletionRequest) -> dict[str, Any]:
        system_prompt, conversation = split_system_prompt(request.messages)

        stop = request.stop or []
        if isinstance(stop, str):
            stop = [stop]

        return {
            "model": request.model or self.config.default_model,
            "max_tokens": self.config.generation.get("max_tokens", MAX_TOKENS),
            "temperature": self.config.generation.get("temperature", TEMPERATURE),
            "system": system_prompt,
            "messages": conversation,
            "stop_sequences": stop,
        }

    def translate_response(self, data: dict[str, Any]) -> dict[str, Any]:
        return ChatCompletionResponse.from_text(extract_first_text(data)).model_dump()
