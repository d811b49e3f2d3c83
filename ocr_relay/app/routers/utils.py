from __future__ import annotations

from typing import Any

from fastapi import Request, Response
from loguru import logger

from ocr_relay.app.core import SERVICE_NAME
from ocr_relay.app.schemas.processing import ErrorResponse


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).warning("")


def json_response(content: str, status_code: int = 200) -> Response:
    return Response(status_code=status_code, media_type="application/json", content=content)


def error_response(
    status_code: int,
    error: str,
    *,
    details: str | None = None,
    processing_id: str | None = None,
) -> Response:
    return json_response(
        ErrorResponse(error=error, details=details, processing_id=processing_id).to_json(),
        status_code=status_code,
    )


def get_dependency(request: Request, name: str) -> Any | None:
    """Read a wired service from app.state; None when the app was not fully initialized."""
    dependency = getattr(request.app.state, name, None)
    if dependency is None:
        _log("dependency_missing", name=name)
    return dependency


__all__ = [
    "json_response",
    "error_response",
    "get_dependency",
]
