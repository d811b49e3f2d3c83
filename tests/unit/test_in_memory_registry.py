"""Unit tests for the in-memory processing registry."""
from __future__ import annotations

import asyncio

import pytest

from ocr_relay.app.constants import ProcessingStatus
from ocr_relay.app.domain.errors import DuplicateRecordError
from ocr_relay.app.domain.models import ImageInfo, OcrResult, ProcessingRecord
from ocr_relay.app.infrastructure.registry.in_memory_registry import InMemoryProcessingRegistry


def _record(processing_id: str = "proc_1") -> ProcessingRecord:
    info = ImageInfo(
        filename="image-1-2.png",
        original_name="scan.png",
        size=10,
        path="uploads/image-1-2.png",
        upload_time="2024-01-01T00:00:00+00:00",
        content_type="image/png",
    )
    return ProcessingRecord.new(info, processing_id=processing_id)


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_create_then_get_returns_same_record():
    registry = InMemoryProcessingRegistry()
    record = _record()

    await registry.create(record)

    assert await registry.get("proc_1") is record
    assert await registry.get("proc_missing") is None


@pytest.mark.asyncio
async def test_create_rejects_duplicate_id():
    registry = InMemoryProcessingRegistry()
    await registry.create(_record())

    with pytest.raises(DuplicateRecordError):
        await registry.create(_record())


@pytest.mark.asyncio
async def test_update_unknown_id_returns_none():
    registry = InMemoryProcessingRegistry()

    assert await registry.update("proc_missing", lambda r: r.failed("x")) is None
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_update_applies_transition_and_reports_change():
    registry = InMemoryProcessingRegistry()
    await registry.create(_record())

    record, changed = await registry.update("proc_1", lambda r: r.failed("boom"))

    assert changed is True
    assert record.status == ProcessingStatus.ERROR
    assert (await registry.get("proc_1")).error == "boom"


@pytest.mark.asyncio
async def test_update_returning_none_leaves_record():
    registry = InMemoryProcessingRegistry()
    original = _record()
    await registry.create(original)

    record, changed = await registry.update("proc_1", lambda r: None)

    assert changed is False
    assert record is original


@pytest.mark.asyncio
async def test_concurrent_terminal_transitions_settle_exactly_once():
    registry = InMemoryProcessingRegistry()
    await registry.create(_record())
    result = OcrResult(text="t", confidence=0.9, language="en")

    def complete(r: ProcessingRecord):
        return None if r.is_terminal else r.completed(result)

    def fail(r: ProcessingRecord):
        return None if r.is_terminal else r.failed("late")

    outcomes = await asyncio.gather(*[registry.update("proc_1", complete if i % 2 else fail) for i in range(20)])

    assert sum(1 for _, changed in outcomes if changed) == 1


@pytest.mark.asyncio
async def test_evict_expired_only_drops_settled_records_past_ttl():
    clock = FakeClock()
    registry = InMemoryProcessingRegistry(ttl_seconds=60, clock=clock)
    await registry.create(_record("proc_done"))
    await registry.create(_record("proc_pending"))
    await registry.update("proc_done", lambda r: r.failed("x"))

    clock.now += 30
    assert await registry.evict_expired() == 0

    clock.now += 31
    assert await registry.evict_expired() == 1
    assert await registry.get("proc_done") is None
    assert await registry.get("proc_pending") is not None


@pytest.mark.asyncio
async def test_evict_disabled_when_ttl_zero():
    clock = FakeClock()
    registry = InMemoryProcessingRegistry(ttl_seconds=0, clock=clock)
    await registry.create(_record())
    await registry.update("proc_1", lambda r: r.failed("x"))

    clock.now += 10_000
    assert await registry.evict_expired() == 0
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_close_marks_registry_not_ready():
    registry = InMemoryProcessingRegistry()
    assert registry.ready is True
    await registry.close()
    assert registry.ready is False
