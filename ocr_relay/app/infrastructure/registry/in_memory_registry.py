"""In-memory ProcessingRegistry. One asyncio.Lock guards every operation; no I/O happens under it."""
from __future__ import annotations

import asyncio
import time
from typing import Any, Callable

from loguru import logger

from ocr_relay.app.core import SERVICE_NAME
from ocr_relay.app.domain.errors import DuplicateRecordError
from ocr_relay.app.domain.models import ProcessingRecord
from ocr_relay.app.ports.processing_registry import Transition


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class InMemoryProcessingRegistry:
    """Dict-backed registry. Settled records older than ttl_seconds are dropped by evict_expired()."""

    def __init__(self, *, ttl_seconds: float = 0.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._records: dict[str, ProcessingRecord] = {}
        self._settled_at: dict[str, float] = {}
        self._lock = asyncio.Lock()
        self._ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._closed = False

    @property
    def ready(self) -> bool:
        return not self._closed

    def __len__(self) -> int:
        return len(self._records)

    async def create(self, record: ProcessingRecord) -> None:
        async with self._lock:
            if record.processing_id in self._records:
                raise DuplicateRecordError(record.processing_id)
            self._records[record.processing_id] = record

    async def get(self, processing_id: str) -> ProcessingRecord | None:
        async with self._lock:
            return self._records.get(processing_id)

    async def update(self, processing_id: str, transition: Transition) -> tuple[ProcessingRecord, bool] | None:
        async with self._lock:
            current = self._records.get(processing_id)
            if current is None:
                return None
            replacement = transition(current)
            if replacement is None or replacement is current:
                return current, False
            if replacement.processing_id != processing_id:
                raise ValueError("transition must not change the processing id")
            self._records[processing_id] = replacement
            if replacement.is_terminal:
                self._settled_at.setdefault(processing_id, self._clock())
            return replacement, True

    async def evict_expired(self) -> int:
        if self._ttl_seconds <= 0:
            return 0
        cutoff = self._clock() - self._ttl_seconds
        async with self._lock:
            expired = [pid for pid, settled in self._settled_at.items() if settled <= cutoff]
            for pid in expired:
                self._records.pop(pid, None)
                self._settled_at.pop(pid, None)
        if expired:
            _log("records_evicted", count=len(expired))
        return len(expired)

    async def close(self) -> None:
        self._closed = True
