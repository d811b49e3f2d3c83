"""Port: processing record store. The registry owns the record set; callers change it only through update()."""
from __future__ import annotations

from typing import Callable, Protocol

from ocr_relay.app.domain.models import ProcessingRecord

# Receives the current record; returns the replacement, or None to leave it unchanged.
Transition = Callable[[ProcessingRecord], "ProcessingRecord | None"]


class ProcessingRegistry(Protocol):
    """Interface for record storage. create/get/update are atomic with respect to each other."""

    @property
    def ready(self) -> bool: ...

    async def create(self, record: ProcessingRecord) -> None:
        """Insert a new record; raise DuplicateRecordError if the id exists."""
        ...

    async def get(self, processing_id: str) -> ProcessingRecord | None: ...

    async def update(self, processing_id: str, transition: Transition) -> tuple[ProcessingRecord, bool] | None:
        """Apply transition atomically. Returns (current record, changed) or None when the id is unknown."""
        ...

    async def evict_expired(self) -> int:
        """Drop settled records past their retention. Returns how many were removed."""
        ...

    async def close(self) -> None: ...
