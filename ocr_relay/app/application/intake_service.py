"""
Accepts plain upload data and the storage/registry/dispatcher abstractions; returns an outcome.
Router translates outcome and domain errors to HTTP status codes and content.
"""
from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from loguru import logger

from ocr_relay.app.application.dispatcher import Dispatcher
from ocr_relay.app.application.record_lifecycle import RecordLifecycle
from ocr_relay.app.constants import ALLOWED_IMAGE_EXTENSIONS, ALLOWED_IMAGE_MIME_TYPES
from ocr_relay.app.core import SERVICE_NAME
from ocr_relay.app.domain.errors import DispatchSetupFailure, NotFound, PayloadTooLarge, ValidationError
from ocr_relay.app.domain.models import (
    ImageInfo,
    ImageUpload,
    ProcessingRecord,
    new_processing_id,
    utc_now_iso,
)
from ocr_relay.app.ports.image_storage import ImageStorage
from ocr_relay.app.ports.processing_registry import ProcessingRegistry


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


@dataclass(frozen=True)
class IntakeOutcome:
    """Result of submit.
    success=True => dispatch was scheduled and the record is pending.
    success=False => dispatch setup failed; record is already in error and error is set.
    """
    success: bool
    record: ProcessingRecord
    error: str | None = None

    @property
    def processing_id(self) -> str:
        return self.record.processing_id


def validate_image(original_name: str, content_type: str) -> str:
    """Return the lowercased extension if both extension and MIME type are allowed images."""
    extension = Path(original_name or "").suffix.lower()
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if extension not in ALLOWED_IMAGE_EXTENSIONS or mime not in ALLOWED_IMAGE_MIME_TYPES:
        raise ValidationError("Only image files are allowed")
    return extension


def generate_stored_filename(extension: str) -> str:
    return f"image-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{extension}"


class IntakeService:
    def __init__(
        self,
        registry: ProcessingRegistry,
        storage: ImageStorage,
        dispatcher: Dispatcher,
        lifecycle: RecordLifecycle,
        *,
        max_upload_bytes: int,
        id_factory: Callable[[], str] = new_processing_id,
    ) -> None:
        self._registry = registry
        self._storage = storage
        self._dispatcher = dispatcher
        self._lifecycle = lifecycle
        self._max_upload_bytes = int(max_upload_bytes)
        self._id_factory = id_factory

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    async def submit(self, upload: ImageUpload) -> IntakeOutcome:
        extension = validate_image(upload.original_name, upload.content_type)
        if len(upload.data) > self._max_upload_bytes:
            raise PayloadTooLarge(self._max_upload_bytes)

        filename = generate_stored_filename(extension)
        path = await self._storage.save(filename, upload.data)
        image_info = ImageInfo(
            filename=filename,
            original_name=upload.original_name,
            size=len(upload.data),
            path=path,
            upload_time=utc_now_iso(),
            content_type=upload.content_type.split(";", 1)[0].strip().lower(),
        )

        record = ProcessingRecord.new(image_info, processing_id=self._id_factory())
        await self._registry.create(record)
        _log(
            "upload_accepted",
            processing_id=record.processing_id,
            filename=filename,
            original_name=upload.original_name,
            size=image_info.size,
        )

        try:
            self._dispatcher.schedule(record.processing_id, image_info)
        except DispatchSetupFailure as exc:
            message = f"Dispatch setup failed: {exc}"
            await self._lifecycle.fail_record(record.processing_id, message)
            failed = await self._registry.get(record.processing_id)
            if failed is None:
                raise NotFound(record.processing_id) from exc
            return IntakeOutcome(success=False, record=failed, error=message)

        return IntakeOutcome(success=True, record=record)
