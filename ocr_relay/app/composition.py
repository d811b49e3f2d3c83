"""
Composition root: single place where concrete implementations are wired.

Builds settings, registry, storage, HTTP client and dispatch executor from config,
then the application services on top of them; provides connect/close lifecycle.
Used by lifespan to populate app.state. Explicit wiring only.
"""
from __future__ import annotations

from typing import Any

from loguru import logger

from ocr_relay.app.application.callback_service import CallbackService
from ocr_relay.app.application.dispatcher import Dispatcher
from ocr_relay.app.application.intake_service import IntakeService
from ocr_relay.app.application.record_lifecycle import RecordLifecycle
from ocr_relay.app.application.status_service import StatusService
from ocr_relay.app.config.settings import Settings
from ocr_relay.app.core import SERVICE_NAME
from ocr_relay.app.infrastructure.executor.asyncio_executor import AsyncioDispatchExecutor
from ocr_relay.app.infrastructure.http.factory import create_http_client
from ocr_relay.app.infrastructure.registry.factory import create_processing_registry
from ocr_relay.app.infrastructure.storage.factory import create_image_storage
from ocr_relay.app.ports.dispatch_executor import DispatchExecutor
from ocr_relay.app.ports.http_client import AbstractHttpClient, RequestTimeout
from ocr_relay.app.ports.image_storage import ImageStorage
from ocr_relay.app.ports.processing_registry import ProcessingRegistry


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class AppDependencies:
    """Holds wired dependencies and their lifecycle. Built only in composition root."""

    def __init__(
        self,
        *,
        settings: Settings,
        registry: ProcessingRegistry,
        storage: ImageStorage,
        http_client: AbstractHttpClient,
        executor: DispatchExecutor,
    ) -> None:
        self._settings = settings
        self._registry = registry
        self._storage = storage
        self._http_client = http_client
        self._executor = executor

        self._lifecycle = RecordLifecycle(registry)
        self._dispatcher = Dispatcher(
            http_client,
            storage,
            self._lifecycle,
            executor,
            webhook_url=settings.ocr_webhook_url,
            callback_url=settings.callback_url,
            timeout=RequestTimeout(
                connect_seconds=min(settings.dispatch_connect_timeout_seconds, settings.dispatch_timeout_seconds),
                total_seconds=settings.dispatch_timeout_seconds,
            ),
        )
        self._intake_service = IntakeService(
            registry,
            storage,
            self._dispatcher,
            self._lifecycle,
            max_upload_bytes=settings.max_upload_bytes,
        )
        self._callback_service = CallbackService(self._lifecycle)
        self._status_service = StatusService(registry)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def registry(self) -> ProcessingRegistry:
        return self._registry

    @property
    def storage(self) -> ImageStorage:
        return self._storage

    @property
    def executor(self) -> DispatchExecutor:
        return self._executor

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def intake_service(self) -> IntakeService:
        return self._intake_service

    @property
    def callback_service(self) -> CallbackService:
        return self._callback_service

    @property
    def status_service(self) -> StatusService:
        return self._status_service

    async def connect(self) -> None:
        await self._storage.prepare()
        _log(
            "dependencies_ready",
            webhook_url=self._settings.ocr_webhook_url,
            callback_url=self._settings.callback_url,
            upload_dir=self._settings.upload_dir,
        )

    async def close(self) -> None:
        # drain dispatches first: they still need the HTTP client and registry
        try:
            await self._executor.close()
        except Exception as exc:
            logger.warning("dispatch executor close failed: {}", exc)

        try:
            await self._http_client.close()
        except Exception as exc:
            logger.warning("http client close failed: {}", exc)

        try:
            await self._registry.close()
        except Exception as exc:
            logger.warning("registry close failed: {}", exc)


def create_app_dependencies(settings: Settings | None = None) -> AppDependencies:
    """
    Composition root: build all app dependencies in one place.
    Caller owns lifecycle (connect/close). Registry and storage backends
    are selected from settings (registry_backend, storage_backend).
    """
    _settings = settings or Settings()
    return AppDependencies(
        settings=_settings,
        registry=create_processing_registry(_settings),
        storage=create_image_storage(_settings),
        http_client=create_http_client(_settings),
        executor=AsyncioDispatchExecutor(grace_seconds=_settings.shutdown_grace_seconds),
    )
