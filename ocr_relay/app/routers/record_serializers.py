"""Helpers to serialize domain records into API payloads."""
from __future__ import annotations

from ocr_relay.app.domain.models import ImageInfo, ProcessingRecord
from ocr_relay.app.schemas.processing import (
    ImageInfoPayload,
    OcrResultPayload,
    ProcessingRecordResponse,
)


def image_info_payload(info: ImageInfo) -> ImageInfoPayload:
    return ImageInfoPayload(
        filename=info.filename,
        original_name=info.original_name,
        size=int(info.size),
        path=info.path,
        upload_time=info.upload_time,
        content_type=info.content_type,
    )


def record_payload(record: ProcessingRecord) -> ProcessingRecordResponse:
    """Full record as returned to pollers; result and error are mutually exclusive."""
    result = None
    if record.result is not None:
        result = OcrResultPayload(
            text=record.result.text,
            confidence=float(record.result.confidence),
            language=record.result.language,
        )
    return ProcessingRecordResponse(
        processing_id=record.processing_id,
        status=record.status,
        image_info=image_info_payload(record.image_info),
        result=result,
        error=record.error,
        timestamp=record.timestamp,
        completed_at=record.completed_at,
    )
