"""
FastAPI application entry point for the OCR relay.

Run:
    ocr-relay            (uses HOST/PORT from settings)
    uvicorn ocr_relay.app.main:app --port 3000
"""
import asyncio
from contextlib import asynccontextmanager, suppress
from typing import Any

from fastapi import FastAPI
from loguru import logger

from ocr_relay.app.composition import AppDependencies, create_app_dependencies
from ocr_relay.app.config.settings import Settings
from ocr_relay.app.core import SERVICE_NAME
from ocr_relay.app.core.logging import configure_logging
from ocr_relay.app.ports.processing_registry import ProcessingRegistry
from ocr_relay.app.routers.health import health_router
from ocr_relay.app.routers.result import result_router
from ocr_relay.app.routers.upload import upload_router
from ocr_relay.app.routers.uploads import uploads_router
from ocr_relay.app.routers.webhook import webhook_router


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


async def sweep_expired_records(registry: ProcessingRegistry, interval_seconds: float) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await registry.evict_expired()
        except Exception as e:
            logger.warning("record eviction failed: {}", e)


def attach_dependencies(app: FastAPI, deps: AppDependencies) -> None:
    app.state.settings = deps.settings
    app.state.registry = deps.registry
    app.state.image_storage = deps.storage
    app.state.dispatch_executor = deps.executor
    app.state.intake_service = deps.intake_service
    app.state.callback_service = deps.callback_service
    app.state.status_service = deps.status_service


def create_app(deps: AppDependencies | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        wired = deps or create_app_dependencies()
        configure_logging(wired.settings.log_level)
        _log("app_starting")
        sweeper: asyncio.Task | None = None
        try:
            await wired.connect()
            attach_dependencies(app, wired)
            ttl = wired.settings.record_ttl_seconds
            if ttl > 0:
                sweeper = asyncio.create_task(sweep_expired_records(wired.registry, max(ttl / 2, 1.0)))
            yield
        finally:
            _log("app_stopping")
            if sweeper is not None:
                sweeper.cancel()
                with suppress(asyncio.CancelledError):
                    await sweeper
            await wired.close()

    app = FastAPI(
        title="OCR Relay",
        description="Relays uploaded images to an external OCR webhook and tracks results.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(health_router)
    app.include_router(upload_router)
    app.include_router(result_router)
    app.include_router(webhook_router)
    app.include_router(uploads_router)
    return app


app = create_app()


def main() -> None:
    import uvicorn

    settings = Settings()
    uvicorn.run("ocr_relay.app.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
