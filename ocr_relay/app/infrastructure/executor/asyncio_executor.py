"""DispatchExecutor backed by asyncio tasks on the running loop."""
from __future__ import annotations

import asyncio
from typing import Any, Coroutine

from loguru import logger

from ocr_relay.app.core import SERVICE_NAME


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class AsyncioDispatchExecutor:
    """
    Keeps a strong reference to every in-flight task until it finishes.
    close() stops intake, waits up to grace_seconds, then cancels what is left.
    """

    def __init__(self, *, grace_seconds: float = 5.0) -> None:
        self._tasks: set[asyncio.Task[None]] = set()
        self._grace_seconds = float(grace_seconds)
        self._closing = False

    @property
    def ready(self) -> bool:
        return not self._closing

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def submit(self, work: Coroutine[Any, Any, None], *, name: str = "") -> None:
        if self._closing:
            work.close()
            raise RuntimeError("executor_closed")
        task = asyncio.get_running_loop().create_task(work, name=name or None)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("dispatch task {} crashed", task.get_name())

    async def close(self) -> None:
        self._closing = True
        if not self._tasks:
            return
        pending = set(self._tasks)
        _log("executor_draining", in_flight=len(pending))
        _, still_running = await asyncio.wait(pending, timeout=self._grace_seconds)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            _log("executor_cancelled", cancelled=len(still_running))
