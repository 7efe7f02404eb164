from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from resumeai.errors import ExtractionFailure
from resumeai.models import ResumeDocument

_LEADING_FENCE = re.compile(r"^\s*```(?:json)?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"```\s*$")


def strip_code_fence(raw: str) -> str:
    text = _LEADING_FENCE.sub("", raw, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def _salvage(raw: str, opening: str, closing: str) -> Any:
    text = strip_code_fence(raw)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Span from the first opening to the last closing delimiter; sibling values fail here.
    start = text.find(opening)
    end = text.rfind(closing)
    if start == -1 or end == -1 or end <= start:
        raise ExtractionFailure("Model response does not contain a JSON value", raw_text=raw)
    try:
        return json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise ExtractionFailure(f"Model response is not valid JSON: {exc.msg}", raw_text=raw) from exc


def _to_document(payload: Any, raw: str) -> ResumeDocument:
    if not isinstance(payload, dict):
        raise ExtractionFailure("Model response is not a JSON object", raw_text=raw)
    try:
        return ResumeDocument.model_validate(payload)
    except ValidationError as exc:
        raise ExtractionFailure(
            f"Model response does not match the resume shape: {exc.error_count()} error(s)",
            raw_text=raw,
        ) from exc


def extract_object(raw: str) -> ResumeDocument:
    return _to_document(_salvage(raw, "{", "}"), raw)


def extract_array(raw: str) -> list[ResumeDocument]:
    payload = _salvage(raw, "[", "]")
    if not isinstance(payload, list):
        raise ExtractionFailure("Model response is not a JSON array", raw_text=raw)
    return [_to_document(item, raw) for item in payload]


def parse_json_object(raw: str) -> dict[str, Any]:
    text = strip_code_fence(raw)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExtractionFailure(f"Model response is not valid JSON: {exc.msg}", raw_text=raw) from exc
    if not isinstance(payload, dict):
        raise ExtractionFailure("Model response is not a JSON object", raw_text=raw)
    return payload
