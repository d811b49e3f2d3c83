from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Coroutine

import pytest
from fastapi import FastAPI

from ocr_relay.app.composition import AppDependencies
from ocr_relay.app.config.settings import Settings
from ocr_relay.app.infrastructure.registry.in_memory_registry import InMemoryProcessingRegistry
from ocr_relay.app.main import attach_dependencies
from ocr_relay.app.ports.http_client import FilePart, HttpClientError, RequestTimeout
from ocr_relay.app.routers.health import health_router
from ocr_relay.app.routers.result import result_router
from ocr_relay.app.routers.upload import upload_router
from ocr_relay.app.routers.uploads import uploads_router
from ocr_relay.app.routers.webhook import webhook_router

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeResponse:
    """Implements HttpResponse; raise_for_status mirrors the httpx adapter."""

    def __init__(self, status_code: int = 200, text: str = "") -> None:
        self.status_code = status_code
        self.text = text

    def raise_for_status(self) -> None:
        if not 200 <= self.status_code < 300:
            raise HttpClientError(f"http status {self.status_code} for fake")


class FakeHttpClient:
    """Implements AbstractHttpClient for tests; records every post."""

    def __init__(
        self,
        response: FakeResponse | None = None,
        *,
        raise_on_post: Exception | None = None,
    ) -> None:
        self.response = response or FakeResponse(202, "")
        self.raise_on_post = raise_on_post
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def post_multipart(
        self,
        url: str,
        *,
        fields: dict[str, str],
        file: FilePart,
        timeout: RequestTimeout,
    ) -> FakeResponse:
        self.calls.append({"url": url, "fields": dict(fields), "file": file, "timeout": timeout})
        if self.raise_on_post is not None:
            raise self.raise_on_post
        return self.response

    async def close(self) -> None:
        self.closed = True


class FakeImageStorage:
    """Implements ImageStorage in memory."""

    def __init__(self, *, raise_on_save: Exception | None = None) -> None:
        self.files: dict[str, bytes] = {}
        self._raise_on_save = raise_on_save

    async def prepare(self) -> None:
        return

    async def save(self, filename: str, data: bytes) -> str:
        if self._raise_on_save is not None:
            raise self._raise_on_save
        self.files[filename] = data
        return f"memory/{filename}"

    async def read(self, filename: str) -> bytes:
        if filename not in self.files:
            raise FileNotFoundError(filename)
        return self.files[filename]

    def locate(self, filename: str) -> str | None:
        return None


class RecordingExecutor:
    """Implements DispatchExecutor by holding submitted work until the test runs it."""

    def __init__(self, *, closed: bool = False) -> None:
        self.pending: list[Coroutine[Any, Any, None]] = []
        self.names: list[str] = []
        self.closed = closed

    @property
    def ready(self) -> bool:
        return not self.closed

    def submit(self, work: Coroutine[Any, Any, None], *, name: str = "") -> None:
        if self.closed:
            work.close()
            raise RuntimeError("executor_closed")
        self.pending.append(work)
        self.names.append(name)

    async def run_all(self) -> None:
        while self.pending:
            await self.pending.pop(0)

    def discard(self) -> None:
        for work in self.pending:
            work.close()
        self.pending.clear()

    async def close(self) -> None:
        self.closed = True


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "OCR_WEBHOOK_URL": "http://recognizer.test/webhook/ocr",
        "PUBLIC_BASE_URL": "http://relay.test",
        "UPLOAD_DIR": "uploads-test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def build_dependencies(
    *,
    settings: Settings | None = None,
    http_client: FakeHttpClient | None = None,
    storage: Any = None,
    executor: Any = None,
    registry: InMemoryProcessingRegistry | None = None,
) -> AppDependencies:
    return AppDependencies(
        settings=settings or make_settings(),
        registry=registry or InMemoryProcessingRegistry(),
        storage=storage if storage is not None else FakeImageStorage(),
        http_client=http_client or FakeHttpClient(),
        executor=executor if executor is not None else RecordingExecutor(),
    )


def build_app(deps: AppDependencies) -> FastAPI:
    app = FastAPI()
    attach_dependencies(app, deps)
    app.include_router(health_router)
    app.include_router(upload_router)
    app.include_router(result_router)
    app.include_router(webhook_router)
    app.include_router(uploads_router)
    return app


def run(coro: Coroutine[Any, Any, Any]) -> Any:
    return asyncio.run(coro)


@pytest.fixture()
def deps() -> AppDependencies:
    wired = build_dependencies()
    yield wired
    executor = wired.executor
    if isinstance(executor, RecordingExecutor):
        executor.discard()


@pytest.fixture()
def test_app(deps: AppDependencies) -> FastAPI:
    return build_app(deps)


@pytest.fixture()
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"
