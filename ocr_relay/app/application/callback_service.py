"""Inbound recognizer callbacks. The only path where untrusted input can settle a record."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from loguru import logger

from ocr_relay.app.application.record_lifecycle import RecordLifecycle, TransitionOutcome
from ocr_relay.app.core import SERVICE_NAME
from ocr_relay.app.domain.errors import MissingField
from ocr_relay.app.domain.response_parser import normalize_result


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


@dataclass(frozen=True)
class CallbackPayload:
    processing_id: str | None
    result: Any = None
    error: Any = None


def _is_absent(value: Any) -> bool:
    """None, false, zero and blank strings count as not sent; empty objects and lists do not."""
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (dict, list)):
        return False
    return not value


def _error_message(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("message"), str):
        return value["message"]
    return json.dumps(value, ensure_ascii=False, default=str)


class CallbackService:
    def __init__(self, lifecycle: RecordLifecycle) -> None:
        self._lifecycle = lifecycle

    async def receive(self, payload: CallbackPayload) -> TransitionOutcome:
        """
        Merge a callback into its record. An error wins over a result; a callback
        carrying neither is rejected. Raises MissingField or NotFound.
        """
        processing_id = (payload.processing_id or "").strip()
        if not processing_id:
            raise MissingField("processingId", "Processing ID is required")

        _log(
            "callback_received",
            processing_id=processing_id,
            has_result=not _is_absent(payload.result),
            has_error=not _is_absent(payload.error),
        )

        if not _is_absent(payload.error):
            return await self._lifecycle.fail_record(processing_id, _error_message(payload.error))

        if _is_absent(payload.result):
            raise MissingField("result", "result or error is required")

        result = normalize_result(payload.result, processing_id=processing_id)
        return await self._lifecycle.complete_record(processing_id, result)
