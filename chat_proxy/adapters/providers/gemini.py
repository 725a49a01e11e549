"""Gemini generateContent adapter.

The inbound payload is already in Gemini's native shape, so the request is
forwarded as-is with fixed generation settings and the response is returned
untouched.
"""

from __future__ import annotations

from typing import Any

from chat_proxy.adapters.providers.base import HttpProviderAdapter
from chat_proxy.schemas.chat import GeminiGenerateRequest

GENERATION_CONFIG: dict[str, Any] = {
    "temperature": 0.7,
    "maxOutputTokens": 100,
    "stopSequences": ["."],
    "thinkingConfig": {"thinkingBudget": 0},
}


class GeminiAdapter(HttpProviderAdapter):
    """Pass-through adapter for ``models/{model}:generateContent``."""

    request_model = GeminiGenerateRequest
    missing_field_message = "Contents array is required"

    def translate_request(self, request: GeminiGenerateRequest) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if request.system_instruction is not None:
            body["systemInstruction"] = request.system_instruction
        body["contents"] = request.contents
        body["generationConfig"] = dict(self.config.generation or GENERATION_CONFIG)
        return body
