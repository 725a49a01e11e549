"""Structured logging for the proxy.

Every log line is a JSON object carrying the request id of the request that
produced it. Before a record is formatted, two things are scrubbed:

- fields whose *name* is sensitive (API keys, auth headers, chat payloads)
- configured provider API key *values*, wherever they appear in the message
  or in string fields (upstream error bodies sometimes echo request URLs)

Long string fields are truncated so a verbose upstream error page cannot
flood the sink.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from chat_proxy.core.config import LogSettings, Settings, settings

REDACTED = "[REDACTED]"

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        # credentials
        "api_key",
        "x-api-key",
        "x-goog-api-key",
        "authorization",
        "gemini_api_key",
        "claude_api_key",
        "openrouter_api_key",
        "token",
        "secret",
        "password",
        "cookie",
        "set-cookie",
        # conversation content
        "messages",
        "contents",
        "system",
        "systeminstruction",
        "system_instruction",
        "prompt",
        "completion",
        # raw client address (logs carry client_hash instead)
        "client_ip",
    }
)

# Attributes every LogRecord has; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def set_request_id(request_id: str | None) -> None:
    """Bind ``request_id`` to the current context."""

    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


def configured_secrets(cfg: Settings) -> list[str]:
    """Return the provider API keys that are set, for value masking."""

    keys = (cfg.gemini.api_key, cfg.anthropic.api_key, cfg.openrouter.api_key)
    return [key for key in keys if key]


class Redactor:
    """Scrub sensitive field names and secret values from log data.

    Args:
        sensitive_keys: Field names (case-insensitive) whose values are replaced.
        secrets: Literal values masked wherever they occur inside strings.
        max_chars: Strings longer than this are cut; 0 disables truncation.
    """

    def __init__(
        self,
        sensitive_keys: Iterable[str] = SENSITIVE_KEYS_DEFAULT,
        secrets: Iterable[str] = (),
        max_chars: int = 0,
    ) -> None:
        self.sensitive_keys = {key.lower() for key in sensitive_keys}
        # Longest first so a key that contains another is masked whole
        self.secrets = sorted({s for s in secrets if s}, key=len, reverse=True)
        self.max_chars = max_chars

    def is_sensitive(self, key: str) -> bool:
        return key.lower() in self.sensitive_keys

    def scrub_text(self, text: str) -> str:
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        if self.max_chars and len(text) > self.max_chars:
            text = f"{text[: self.max_chars]}...[truncated {len(text) - self.max_chars} chars]"
        return text

    def scrub(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.scrub_text(value)
        if isinstance(value, Mapping):
            return {
                k: REDACTED if isinstance(k, str) and self.is_sensitive(k) else self.scrub(v)
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple)):
            return type(value)(self.scrub(item) for item in value)
        return value

    def extras(self, record: LogRecord) -> dict[str, Any]:
        """Return the record's ``extra`` fields, scrubbed."""

        data: dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_"):
                continue
            data[key] = REDACTED if self.is_sensitive(key) else self.scrub(value)
        return data


class RequestIdFilter(logging.Filter):
    """Copy the context request id onto records that lack one."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class SensitiveDataFilter(logging.Filter):
    """Scrub a record in place so every downstream formatter sees safe data.

    The message is rendered and scrubbed once here; ``args`` are cleared so
    formatters do not re-interpolate the raw values.
    """

    def __init__(self, redactor: Redactor | None = None) -> None:
        super().__init__()
        self.redactor = redactor or Redactor()

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        record.msg = self.redactor.scrub_text(record.getMessage())
        record.args = None
        for key, value in self.redactor.extras(record).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, extras."""

    def __init__(self, *, ensure_ascii: bool = True) -> None:
        super().__init__()
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_") or value is None:
                continue
            payload[key] = value

        request_id = payload.get("request_id") or get_request_id()
        if request_id:
            payload["request_id"] = request_id

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_type"] = record.exc_info[0].__name__

        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    file_path = Path(log_settings.file_path or "logs/chat_proxy.log")
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if log_settings.max_bytes:
        return RotatingFileHandler(
            file_path,
            maxBytes=log_settings.max_bytes,
            backupCount=log_settings.backup_count,
            encoding="utf-8",
        )
    return logging.FileHandler(file_path, encoding="utf-8")


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install the proxy's handler on the root logger.

    Safe to call repeatedly (each app instance calls it); the previous root
    handlers are replaced.

    Args:
        log_settings: Overrides ``settings.log``.
    """

    cfg = log_settings or settings.log
    level = logging.DEBUG if settings.app.debug else getattr(logging, cfg.level.upper(), logging.INFO)

    redactor = Redactor(
        secrets=configured_secrets(settings),
        max_chars=cfg.max_field_chars,
    )

    handler = _build_handler(cfg)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter(redactor))
    if cfg.format.lower() == "plain":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # httpx logs every outbound URL at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    # uvicorn installs its own handlers; propagating would print each line twice
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.access").propagate = False
