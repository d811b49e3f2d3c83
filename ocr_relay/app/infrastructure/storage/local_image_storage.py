"""Local-disk ImageStorage using aiofiles."""
from __future__ import annotations

import asyncio
from pathlib import Path

import aiofiles


class LocalImageStorage:
    """Stores uploads as flat files under one directory. Filenames never contain path separators."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    async def prepare(self) -> None:
        await asyncio.to_thread(self._root.mkdir, parents=True, exist_ok=True)

    def _safe_path(self, filename: str) -> Path | None:
        if not filename or filename in (".", "..") or Path(filename).name != filename or "\\" in filename:
            return None
        return self._root / filename

    async def save(self, filename: str, data: bytes) -> str:
        path = self._safe_path(filename)
        if path is None:
            raise ValueError(f"unsafe filename: {filename!r}")
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)
        return str(path)

    async def read(self, filename: str) -> bytes:
        path = self._safe_path(filename)
        if path is None:
            raise FileNotFoundError(filename)
        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    def locate(self, filename: str) -> str | None:
        path = self._safe_path(filename)
        if path is None or not path.is_file():
            return None
        return str(path)
