"""JSON logging for the coach pipelines, scoped per inbound event."""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import re
import uuid
from typing import Any, Dict, Iterator, Optional

CORRELATION_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("correlation_id", default=None)
OPERATION: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("operation", default=None)

# Attributes every LogRecord carries; anything else on a record came from ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

# User-authored text, prompts, generated replies and image payloads never reach the logs.
SENSITIVE_KEYS = frozenset(
    {
        "note",
        "vision",
        "user_vision",
        "prompt",
        "system",
        "system_instruction",
        "user",
        "user_instruction",
        "instruction",
        "text",
        "image_base64",
        "image",
        "body",
    }
)
_EMAIL = re.compile(r"[\w.\-]+@[\w.\-]+")
_BASE64_RUN = re.compile(r"^[A-Za-z0-9+/=]{512,}$")
_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "openai", "google.auth")


class JsonFormatter(logging.Formatter):
    """One JSON object per line: level, event, correlation scope and extras."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "event": getattr(record, "event", message),
            "correlation_id": getattr(record, "correlation_id", None) or CORRELATION_ID.get(),
            "operation": OPERATION.get(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS and key not in payload:
                payload[key] = redact_for_log(value)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: int | str | None = None) -> None:
    """Route the root logger through a single JSON stream handler."""

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level or os.getenv("LOG_LEVEL", "INFO"), handlers=[handler], force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _scrub_text(value: str) -> str:
    if value.startswith("data:"):
        return "[redacted-data-url]"
    if _BASE64_RUN.match(value):
        return f"[redacted-blob len={len(value)}]"
    return _EMAIL.sub("[redacted-email]", value)


def redact_for_log(payload: Any) -> Any:
    """Return a log-safe copy: sensitive keys masked, emails and inline images removed."""

    if payload is None or isinstance(payload, (bool, int, float)):
        return payload
    if isinstance(payload, str):
        return _scrub_text(payload)
    if isinstance(payload, bytes):
        return f"<bytes len={len(payload)}>"
    if isinstance(payload, dict):
        return {
            key: "[redacted]" if key in SENSITIVE_KEYS else redact_for_log(value)
            for key, value in payload.items()
        }
    if isinstance(payload, (list, tuple, set)):
        return [redact_for_log(item) for item in payload]
    return str(payload)


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def ensure_correlation_id(correlation_id: str | None = None) -> str:
    """Adopt ``correlation_id``, else keep the current one, else start a new one."""

    if correlation_id:
        CORRELATION_ID.set(correlation_id)
        return correlation_id
    current = CORRELATION_ID.get()
    if current:
        return current
    fresh = uuid.uuid4().hex
    CORRELATION_ID.set(fresh)
    return fresh


@contextlib.contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    token = CORRELATION_ID.set(correlation_id or uuid.uuid4().hex)
    try:
        yield CORRELATION_ID.get()
    finally:
        CORRELATION_ID.reset(token)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with redacted structured fields.

    Field names must not collide with LogRecord attributes (``name``,
    ``message``, ``args`` and friends).
    """

    correlation_id = ensure_correlation_id(fields.pop("correlation_id", None))
    exc_info = fields.pop("exc_info", None)
    logger.log(
        level,
        event,
        exc_info=exc_info,
        extra={"event": event, "correlation_id": correlation_id, **redact_for_log(fields)},
    )


@contextlib.contextmanager
def operation_context(name: str, correlation_id: str | None = None) -> Iterator[str]:
    """Scope one inbound event: a fresh correlation id plus the operation name."""

    operation_token = OPERATION.set(name)
    try:
        with correlation_context(correlation_id) as scoped_id:
            yield scoped_id
    finally:
        OPERATION.reset(operation_token)


__all__ = [
    "JsonFormatter",
    "SENSITIVE_KEYS",
    "configure_logging",
    "correlation_context",
    "ensure_correlation_id",
    "get_logger",
    "log_event",
    "operation_context",
    "redact_for_log",
]
