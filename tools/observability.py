"""Call instrumentation for provider requests."""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Any, Callable, Dict, ParamSpec, TypeVar

from tidy_app.logging_config import ensure_correlation_id, get_logger, log_event

LOGGER = get_logger(__name__)
P = ParamSpec("P")
R = TypeVar("R")

_PREVIEW_LIMIT = 120


def _preview_kwargs(kwargs: Dict[str, Any], max_keys: int = 6) -> Dict[str, Any]:
    """Summarise call arguments; long strings and raw bytes are reduced to their size."""

    preview: Dict[str, Any] = {}
    for key, value in list(kwargs.items())[:max_keys]:
        if isinstance(value, (str, bytes)) and len(value) > _PREVIEW_LIMIT:
            preview[key] = f"<{type(value).__name__} len={len(value)}>"
        else:
            preview[key] = value
    if len(kwargs) > max_keys:
        preview["truncated"] = True
    return preview


def _result_summary(result: Any) -> Dict[str, Any]:
    if isinstance(result, str):
        return {"result_chars": len(result)}
    if isinstance(result, bytes):
        return {"result_bytes": len(result)}
    return {}


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def instrument_call(call_name: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Log start, completion and failure of one external call with its duration.

    Failures are logged with the exception type (and provider status when
    present) and re-raised unchanged.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            correlation_id = ensure_correlation_id()
            log_event(
                LOGGER,
                logging.INFO,
                "call_started",
                call=call_name,
                correlation_id=correlation_id,
                kwargs=_preview_kwargs(kwargs),
            )
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "call_failed",
                    call=call_name,
                    correlation_id=correlation_id,
                    duration_ms=_elapsed_ms(start),
                    error=type(exc).__name__,
                    status_code=getattr(exc, "status_code", None),
                )
                raise
            log_event(
                LOGGER,
                logging.INFO,
                "call_completed",
                call=call_name,
                correlation_id=correlation_id,
                duration_ms=_elapsed_ms(start),
                **_result_summary(result),
            )
            return result

        return wrapper

    return decorator


__all__ = ["instrument_call"]
