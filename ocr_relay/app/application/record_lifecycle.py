"""
Record state transitions shared by every producer.

The dispatcher's inline path, the callback receiver and intake all end a record
through complete_record/fail_record, so there is exactly one place that decides
what a terminal transition means. Terminal records are never rewritten: a late
or duplicate transition is logged and reported as IGNORED.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from loguru import logger

from ocr_relay.app.core import SERVICE_NAME
from ocr_relay.app.domain.errors import NotFound
from ocr_relay.app.domain.models import OcrResult, ProcessingRecord
from ocr_relay.app.ports.processing_registry import ProcessingRegistry, Transition


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class TransitionOutcome(str, Enum):
    APPLIED = "applied"
    IGNORED = "ignored"


class RecordLifecycle:
    def __init__(self, registry: ProcessingRegistry) -> None:
        self._registry = registry

    async def complete_record(self, processing_id: str, result: OcrResult) -> TransitionOutcome:
        def transition(record: ProcessingRecord) -> ProcessingRecord | None:
            return None if record.is_terminal else record.completed(result)

        outcome = await self._apply(processing_id, transition, attempted="completed")
        if outcome is TransitionOutcome.APPLIED:
            _log(
                "record_completed",
                processing_id=processing_id,
                text_preview=result.text[:100],
                confidence=result.confidence,
            )
        return outcome

    async def fail_record(self, processing_id: str, error: str) -> TransitionOutcome:
        message = error.strip() or "Unknown error"

        def transition(record: ProcessingRecord) -> ProcessingRecord | None:
            return None if record.is_terminal else record.failed(message)

        outcome = await self._apply(processing_id, transition, attempted="error")
        if outcome is TransitionOutcome.APPLIED:
            logger.bind(
                service_name=SERVICE_NAME,
                event="record_failed",
                processing_id=processing_id,
                error=message,
            ).warning("")
        return outcome

    async def _apply(self, processing_id: str, transition: Transition, *, attempted: str) -> TransitionOutcome:
        updated = await self._registry.update(processing_id, transition)
        if updated is None:
            raise NotFound(processing_id)
        record, changed = updated
        if changed:
            return TransitionOutcome.APPLIED
        _log(
            "late_transition_ignored",
            processing_id=processing_id,
            current_status=record.status,
            attempted_status=attempted,
        )
        return TransitionOutcome.IGNORED
