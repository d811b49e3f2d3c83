from __future__ import annotations

from fastapi import APIRouter, Request, Response
from fastapi.responses import FileResponse

from ocr_relay.app.routers.utils import error_response, get_dependency

uploads_router = APIRouter(tags=["Uploads"])


@uploads_router.get(
    "/uploads/{filename}",
    summary="Stored image",
    responses={200: {"description": "Image bytes."}, 404: {"description": "No such image."}},
)
async def get_upload(request: Request, filename: str) -> Response:
    storage = get_dependency(request, "image_storage")
    if storage is None:
        return error_response(503, "Service not available")
    path = storage.locate(filename)
    if path is None:
        return error_response(404, "Image not found")
    return FileResponse(path)
