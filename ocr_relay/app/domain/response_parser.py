"""Recognizer payload parsing.

Turns whatever the external recognizer produced (inline HTTP response body or the
`result` field of a callback) into an OcrResult. Extraction order:

1. provider shape: ``candidates[0].content.parts[*].text`` with an optional
   ``candidates[0].avgLogprobs`` turned into a confidence via ``exp``;
2. shallow fields ``text`` then ``result``;
3. the whole payload serialized as JSON.

A body that is not JSON at all is used verbatim. Parse failures never reach the
caller: they are logged and the raw payload becomes the text.
"""
from __future__ import annotations

import json
import math
from typing import Any

from loguru import logger

from ocr_relay.app.constants import (
    ACKNOWLEDGMENT_MESSAGES,
    DEFAULT_CONFIDENCE,
    DEFAULT_LANGUAGE,
    MAX_LOGPROB_CONFIDENCE,
    MIN_LOGPROB_CONFIDENCE,
)
from ocr_relay.app.core import SERVICE_NAME
from ocr_relay.app.domain.errors import ResponseParseFailure
from ocr_relay.app.domain.models import OcrResult

_MAX_RESULT_DEPTH = 2

# Anything a hostile or malformed payload can trigger while being read.
_RECOVERABLE = (ResponseParseFailure, ArithmeticError, RecursionError, TypeError, ValueError)


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).warning("")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_float(value: Any) -> float | None:
    """Finite float for a JSON number, None when it is not a number or does not fit a float."""
    if not _is_number(value):
        return None
    try:
        converted = float(value)
    except OverflowError:
        return None
    return converted if math.isfinite(converted) else None


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def confidence_from_logprob(logprob: float) -> float:
    """exp(avg log-probability), clamped to [0.1, 1.0]."""
    try:
        return clamp(math.exp(logprob), MIN_LOGPROB_CONFIDENCE, MAX_LOGPROB_CONFIDENCE)
    except OverflowError:
        return MAX_LOGPROB_CONFIDENCE


def _dump(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, default=str)


def _dump_or_placeholder(payload: Any) -> str:
    try:
        return _dump(payload)
    except (RecursionError, ValueError):
        return "<unserializable payload>"


def _candidate_text(payload: dict[str, Any]) -> OcrResult | None:
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None

    candidate = candidates[0]
    if not isinstance(candidate, dict):
        raise ResponseParseFailure(f"candidate has unexpected type {type(candidate).__name__}")

    content = candidate.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return None

    texts = [
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    ]
    text = "".join(texts)
    if not text:
        return None

    confidence = DEFAULT_CONFIDENCE
    logprob = candidate.get("avgLogprobs")
    if logprob is not None:
        value = _as_float(logprob)
        if value is None:
            raise ResponseParseFailure(f"avgLogprobs is not a usable number ({type(logprob).__name__})")
        confidence = confidence_from_logprob(value)

    return OcrResult(text=text, confidence=confidence, language=DEFAULT_LANGUAGE)


def _flat_result(payload: dict[str, Any], text: str) -> OcrResult:
    confidence = _as_float(payload.get("confidence"))
    language = payload.get("language")
    return OcrResult(
        text=text,
        confidence=clamp(confidence, 0.0, 1.0) if confidence is not None else DEFAULT_CONFIDENCE,
        language=language if isinstance(language, str) and language else DEFAULT_LANGUAGE,
    )


def _extract(payload: Any, depth: int) -> OcrResult | None:
    if isinstance(payload, str):
        return OcrResult(text=payload, confidence=DEFAULT_CONFIDENCE, language=DEFAULT_LANGUAGE) if payload else None

    if isinstance(payload, list) and len(payload) == 1:
        return _extract(payload[0], depth)

    if not isinstance(payload, dict):
        return None

    primary = _candidate_text(payload)
    if primary is not None:
        return primary

    text = payload.get("text")
    if isinstance(text, str) and text:
        return _flat_result(payload, text)

    nested = payload.get("result")
    if isinstance(nested, str) and nested:
        return _flat_result(payload, nested)
    if isinstance(nested, (dict, list)) and nested and depth < _MAX_RESULT_DEPTH:
        inner = _extract(nested, depth + 1)
        if inner is not None:
            return inner
        return _flat_result(payload, _dump(nested))

    return None


def parse_recognizer_payload(payload: Any) -> OcrResult:
    """Extract an OcrResult from decoded JSON. Raises ResponseParseFailure on a malformed provider shape."""
    extracted = _extract(payload, depth=0)
    if extracted is not None:
        return extracted
    return OcrResult(text=_dump(payload), confidence=DEFAULT_CONFIDENCE, language=DEFAULT_LANGUAGE)


def normalize_result(payload: Any, *, processing_id: str = "") -> OcrResult:
    """Same as parse_recognizer_payload, but degrades to the serialized payload instead of raising."""
    try:
        return parse_recognizer_payload(payload)
    except _RECOVERABLE as exc:
        _log("response_parse_fallback", processing_id=processing_id, reason=str(exc))
        return OcrResult(text=_dump_or_placeholder(payload), confidence=DEFAULT_CONFIDENCE, language=DEFAULT_LANGUAGE)


def parse_recognizer_body(body: str, *, processing_id: str = "") -> OcrResult:
    """Parse a raw inline response body. Never raises; the raw body is the last resort."""
    try:
        payload = json.loads(body)
    except (ValueError, RecursionError):
        _log("response_parse_fallback", processing_id=processing_id, reason="body_not_json")
        return OcrResult(text=body, confidence=DEFAULT_CONFIDENCE, language=DEFAULT_LANGUAGE)

    try:
        return parse_recognizer_payload(payload)
    except _RECOVERABLE as exc:
        _log("response_parse_fallback", processing_id=processing_id, reason=str(exc))
        return OcrResult(text=body, confidence=DEFAULT_CONFIDENCE, language=DEFAULT_LANGUAGE)


def is_acknowledgment(status_code: int, body: str) -> bool:
    """True when the recognizer accepted the job and will report through the callback."""
    if status_code == 202:
        return True
    stripped = body.strip()
    if not stripped:
        return True
    try:
        payload = json.loads(stripped)
    except (ValueError, RecursionError):
        return False
    return (
        isinstance(payload, dict)
        and set(payload) == {"message"}
        and payload.get("message") in ACKNOWLEDGMENT_MESSAGES
    )
