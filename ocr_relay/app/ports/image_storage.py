"""Port: durable storage for uploaded images, addressed by generated filename."""
from __future__ import annotations

from typing import Protocol


class ImageStorage(Protocol):
    async def prepare(self) -> None:
        """Create whatever the backend needs before the first save."""
        ...

    async def save(self, filename: str, data: bytes) -> str:
        """Store bytes under filename; return the storage path."""
        ...

    async def read(self, filename: str) -> bytes:
        """Return stored bytes; raise FileNotFoundError when absent."""
        ...

    def locate(self, filename: str) -> str | None:
        """Path of a stored file, or None if it does not exist or the name is unsafe."""
        ...
