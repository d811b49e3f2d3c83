"""Domain models. Records are immutable; every transition replaces the record."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from ocr_relay.app.constants import TERMINAL_STATUSES, ProcessingStatus


def utc_now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def new_processing_id() -> str:
    return f"proc_{uuid.uuid4().hex}"


@dataclass(frozen=True)
class ImageInfo:
    """Stored upload metadata. Written once at intake."""

    filename: str
    original_name: str
    size: int
    path: str
    upload_time: str
    content_type: str


@dataclass(frozen=True)
class OcrResult:
    text: str
    confidence: float
    language: str

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise TypeError("result.text must be a str")
        if not 0.0 <= float(self.confidence) <= 1.0:
            raise ValueError("result.confidence must be within [0, 1]")


@dataclass(frozen=True)
class ProcessingRecord:
    """Lifecycle state for one submitted image."""

    processing_id: str
    status: str
    image_info: ImageInfo
    timestamp: str
    result: OcrResult | None = None
    error: str | None = None
    completed_at: str | None = None

    def __post_init__(self) -> None:
        if self.result is not None and self.error is not None:
            raise ValueError("record cannot carry both result and error")
        if self.status == ProcessingStatus.COMPLETED and self.result is None:
            raise ValueError("completed record requires a result")
        if self.status == ProcessingStatus.ERROR and not self.error:
            raise ValueError("error record requires an error message")
        if self.status == ProcessingStatus.PROCESSING and (self.result is not None or self.error is not None):
            raise ValueError("processing record cannot carry a result or error")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @staticmethod
    def new(image_info: ImageInfo, processing_id: str | None = None) -> "ProcessingRecord":
        return ProcessingRecord(
            processing_id=processing_id or new_processing_id(),
            status=ProcessingStatus.PROCESSING,
            image_info=image_info,
            timestamp=utc_now_iso(),
        )

    def completed(self, result: OcrResult) -> "ProcessingRecord":
        return replace(
            self,
            status=ProcessingStatus.COMPLETED,
            result=result,
            error=None,
            completed_at=utc_now_iso(),
        )

    def failed(self, error: str) -> "ProcessingRecord":
        return replace(
            self,
            status=ProcessingStatus.ERROR,
            result=None,
            error=error,
            completed_at=utc_now_iso(),
        )


@dataclass(frozen=True)
class ImageUpload:
    """Raw upload as received by intake, before validation."""

    original_name: str
    content_type: str
    data: bytes
