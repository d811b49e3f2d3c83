from typing import Any

from fastapi import APIRouter, Request, Response
from loguru import logger

from ocr_relay.app.core import SERVICE_NAME

health_router = APIRouter(tags=["Health"])


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


@health_router.get(
    "/health/live",
    summary="Liveness probe",
    description="Returns 200 if the process is running.",
    responses={200: {"description": "Service is alive."}},
)
async def live() -> dict:
    return {"status": "ok"}


@health_router.get(
    "/health/ready",
    summary="Readiness probe",
    description="Returns 200 only when the processing registry and the dispatch executor accept work.",
    responses={
        200: {"description": "Registry and executor are ready."},
        503: {"description": "Registry or executor not ready."},
    },
)
async def ready(request: Request) -> Response:
    registry = getattr(request.app.state, "registry", None)
    executor = getattr(request.app.state, "dispatch_executor", None)
    if registry is None or executor is None:
        _log("components_not_initialized")
        return Response(status_code=503, content="Not ready")
    if not registry.ready:
        _log("registry_not_ready")
        return Response(status_code=503, content="Registry not ready")
    if not executor.ready:
        _log("executor_not_ready")
        return Response(status_code=503, content="Dispatch executor not ready")
    return Response(status_code=200, content="OK")
