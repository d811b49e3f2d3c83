"""Read-only status lookup for pollers."""
from __future__ import annotations

from ocr_relay.app.domain.errors import NotFound
from ocr_relay.app.domain.models import ProcessingRecord
from ocr_relay.app.ports.processing_registry import ProcessingRegistry


class StatusService:
    def __init__(self, registry: ProcessingRegistry) -> None:
        self._registry = registry

    async def get_status(self, processing_id: str) -> ProcessingRecord:
        record = await self._registry.get(processing_id)
        if record is None:
            raise NotFound(processing_id)
        return record
