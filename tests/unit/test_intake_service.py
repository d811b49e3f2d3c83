"""Unit tests for IntakeService.submit."""
from __future__ import annotations

import re

import pytest

from ocr_relay.app.application.dispatcher import Dispatcher
from ocr_relay.app.application.intake_service import (
    IntakeService,
    generate_stored_filename,
    validate_image,
)
from ocr_relay.app.application.record_lifecycle import RecordLifecycle
from ocr_relay.app.constants import ProcessingStatus
from ocr_relay.app.domain.errors import PayloadTooLarge, ValidationError
from ocr_relay.app.domain.models import ImageUpload
from ocr_relay.app.infrastructure.registry.in_memory_registry import InMemoryProcessingRegistry
from ocr_relay.app.ports.http_client import RequestTimeout
from tests.conftest import FakeHttpClient, FakeImageStorage, PNG_BYTES, RecordingExecutor


def _service(*, executor: RecordingExecutor | None = None, max_bytes: int = 1024, storage=None):
    registry = InMemoryProcessingRegistry()
    storage = storage or FakeImageStorage()
    executor = executor or RecordingExecutor()
    lifecycle = RecordLifecycle(registry)
    dispatcher = Dispatcher(
        FakeHttpClient(),
        storage,
        lifecycle,
        executor,
        webhook_url="http://ocr.test/hook",
        callback_url="http://relay.test/api/webhook/ocr-result",
        timeout=RequestTimeout(connect_seconds=1.0, total_seconds=30.0),
    )
    service = IntakeService(registry, storage, dispatcher, lifecycle, max_upload_bytes=max_bytes)
    return service, registry, storage, executor


def _upload(name: str = "scan.png", content_type: str = "image/png", data: bytes = PNG_BYTES) -> ImageUpload:
    return ImageUpload(original_name=name, content_type=content_type, data=data)


@pytest.mark.asyncio
async def test_submit_creates_processing_record_and_schedules_dispatch():
    service, registry, storage, executor = _service()

    outcome = await service.submit(_upload())

    assert outcome.success is True
    record = await registry.get(outcome.processing_id)
    assert record.status == ProcessingStatus.PROCESSING
    assert record.result is None and record.error is None
    assert record.image_info.original_name == "scan.png"
    assert record.image_info.size == len(PNG_BYTES)
    assert storage.files[record.image_info.filename] == PNG_BYTES
    assert len(executor.pending) == 1
    executor.discard()


@pytest.mark.asyncio
async def test_submit_issues_fresh_ids():
    service, _, _, executor = _service()

    ids = {(await service.submit(_upload())).processing_id for _ in range(25)}

    assert len(ids) == 25
    assert all(pid.startswith("proc_") for pid in ids)
    executor.discard()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("name", "content_type"),
    [
        ("notes.txt", "text/plain"),
        ("scan.png", "application/pdf"),
        ("scan.pdf", "image/png"),
        ("noextension", "image/png"),
    ],
)
async def test_submit_rejects_non_images_without_record(name, content_type):
    service, registry, storage, executor = _service()

    with pytest.raises(ValidationError):
        await service.submit(_upload(name, content_type))

    assert len(registry) == 0
    assert storage.files == {}
    assert executor.pending == []


@pytest.mark.asyncio
async def test_submit_rejects_oversize_without_record():
    service, registry, storage, _ = _service(max_bytes=16)

    with pytest.raises(PayloadTooLarge):
        await service.submit(_upload(data=b"x" * 17))

    assert len(registry) == 0
    assert storage.files == {}


@pytest.mark.asyncio
async def test_dispatch_setup_failure_settles_record_before_returning():
    service, registry, _, _ = _service(executor=RecordingExecutor(closed=True))

    outcome = await service.submit(_upload())

    assert outcome.success is False
    assert outcome.error
    record = await registry.get(outcome.processing_id)
    assert record.status == ProcessingStatus.ERROR
    assert record is outcome.record


@pytest.mark.asyncio
async def test_storage_failure_propagates_without_record():
    service, registry, _, _ = _service(storage=FakeImageStorage(raise_on_save=OSError("disk full")))

    with pytest.raises(OSError):
        await service.submit(_upload())

    assert len(registry) == 0


def test_validate_image_accepts_mixed_case_and_parameters():
    assert validate_image("PHOTO.JPG", "image/jpeg; charset=binary") == ".jpg"
    assert validate_image("x.webp", "image/webp") == ".webp"


def test_generate_stored_filename_keeps_extension():
    name = generate_stored_filename(".png")

    assert re.fullmatch(r"image-\d+-\d+\.png", name)
