"""Port: runs dispatch work detached from the request that scheduled it."""
from __future__ import annotations

from typing import Any, Coroutine, Protocol


class DispatchExecutor(Protocol):
    @property
    def ready(self) -> bool: ...

    def submit(self, work: Coroutine[Any, Any, None], *, name: str = "") -> None:
        """Schedule work and return immediately; raise RuntimeError if work cannot be accepted."""
        ...

    async def close(self) -> None:
        """Stop accepting work and wait (bounded) for in-flight tasks."""
        ...
