"""Recovery of structured scene analysis from free-form model output."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from models.analysis import AnalysisResult
from models.errors import MalformedAnalysis


def extract_first_json_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` span in ``text``.

    Braces inside JSON string literals are ignored, so prose, code fences or a
    trailing remark around the object do not confuse the scan.
    """

    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        char = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]
    return None


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def recover_analysis(text: str) -> Tuple[Dict[str, Any], AnalysisResult]:
    """Parse model output into the raw payload and its validated schema.

    Tries the whole text first, then the first balanced object span. Raises
    :class:`MalformedAnalysis` when neither yields a valid analysis.
    """

    raw = (text or "").strip()
    payload = _loads_object(raw)
    if payload is None:
        span = extract_first_json_object(raw)
        payload = _loads_object(span) if span else None
    if payload is None:
        raise MalformedAnalysis("analysis output contained no parseable JSON object", raw_text=raw)

    try:
        result = AnalysisResult.model_validate(payload)
    except ValidationError as exc:
        raise MalformedAnalysis(
            f"analysis output failed schema checks: {exc.error_count()} error(s)", raw_text=raw
        ) from exc
    return payload, result


__all__ = ["extract_first_json_object", "recover_analysis"]
