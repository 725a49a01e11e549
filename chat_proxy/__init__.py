"""Chat proxy service for Gemini, Anthropic and OpenRouter."""
