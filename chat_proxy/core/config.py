"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Provider secrets keep the names the deployment already uses
(GEMINI_API_KEY, CLAUDE_API_KEY, OPENROUTER_API_KEY).
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_log_settings() -> "LogSettings":
    return LogSettings()


def _build_app_settings() -> "AppSettings":
    return AppSettings()


def _build_gemini_settings() -> "GeminiSettings":
    return GeminiSettings()


def _build_anthropic_settings() -> "AnthropicSettings":
    return AnthropicSettings()


def _build_openrouter_settings() -> "OpenRouterSettings":
    return OpenRouterSettings()


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(
        None,
        description="Log file path when output=file (default logs/app.log)",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )
    max_field_chars: int = Field(
        2000,
        description="Truncate string log fields (e.g. upstream error bodies) past this length",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting on proxy routes",
    )
    rate_limit_requests: int = Field(
        100,
        description="Maximum number of requests allowed per window (per client)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        600,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_max_clients: int = Field(
        10_000,
        description="Maximum number of client windows tracked in memory",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    rate_limit_exempt_providers: str | None = Field(
        None,
        description="Comma-separated provider routes that skip rate limiting (e.g. openrouter)",
    )
    trust_forwarded_for: bool = Field(
        True,
        description="Derive the client id from X-Forwarded-For when present",
    )

    upstream_timeout_seconds: float = Field(
        60.0,
        description="Timeout for outbound provider calls in seconds",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class GeminiSettings(BaseSettings):
    """Gemini generateContent upstream."""

    api_key: str | None = Field(None, description="Google AI Studio API key")
    model: str = Field("gemini-2.5-flash", description="Model used for every request")
    base_url: str = Field(
        "https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST API base URL",
    )

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        case_sensitive=False,
    )


class AnthropicSettings(BaseSettings):
    """Anthropic Messages API upstream."""

    api_key: str | None = Field(None, description="Anthropic API key")
    model: str = Field(
        "claude-3-haiku-20240307",
        description="Default model when the client does not pick one",
    )
    base_url: str = Field("https://api.anthropic.com/v1", description="Anthropic API base URL")
    api_version: str = Field("2023-06-01", description="Value of the anthropic-version header")

    model_config = SettingsConfigDict(
        env_prefix="CLAUDE_",
        case_sensitive=False,
    )


class OpenRouterSettings(BaseSettings):
    """OpenRouter (OpenAI-compatible) upstream."""

    api_key: str | None = Field(None, description="OpenRouter API key")
    model: str = Field(
        "mistralai/mistral-7b-instruct:free",
        description="Default free-tier model when the client does not pick one",
    )
    base_url: str = Field("https://openrouter.ai/api/v1", description="OpenRouter API base URL")
    site_url: str | None = Field(
        None,
        description="Sent as HTTP-Referer so OpenRouter can attribute traffic",
    )
    app_title: str | None = Field(None, description="Sent as X-Title")

    model_config = SettingsConfigDict(
        env_prefix="OPENROUTER_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if a setting has an invalid value.
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    gemini: GeminiSettings = Field(default_factory=_build_gemini_settings)
    anthropic: AnthropicSettings = Field(default_factory=_build_anthropic_settings)
    openrouter: OpenRouterSettings = Field(default_factory=_build_openrouter_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
