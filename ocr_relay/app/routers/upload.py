from __future__ import annotations

from typing import Any

from fastapi import APIRouter, File, Request, Response, UploadFile
from loguru import logger

from ocr_relay.app.core import SERVICE_NAME
from ocr_relay.app.domain.errors import PayloadTooLarge, ValidationError
from ocr_relay.app.domain.models import ImageUpload
from ocr_relay.app.routers.record_serializers import image_info_payload
from ocr_relay.app.routers.utils import error_response, get_dependency, json_response
from ocr_relay.app.schemas.processing import UploadResponse

READ_CHUNK_BYTES = 1024 * 1024

upload_router = APIRouter(prefix="/api", tags=["Upload"])


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).warning("")


def _declared_length(request: Request) -> int | None:
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


async def read_limited(upload: UploadFile, limit: int) -> bytes:
    """Read an upload in chunks, failing as soon as more than limit bytes arrive."""
    chunks: list[bytes] = []
    received = 0
    while True:
        chunk = await upload.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        received += len(chunk)
        if received > limit:
            raise PayloadTooLarge(limit)
        chunks.append(chunk)
    return b"".join(chunks)


@upload_router.post(
    "/upload",
    summary="Upload an image for OCR",
    description="Stores the image, creates a processing record and dispatches it to the recognizer in the background. Returns immediately with a processingId to poll.",
    responses={
        200: {"description": "Image accepted; processing started."},
        400: {"description": "No file, or file is not an allowed image type."},
        413: {"description": "File exceeds the upload size limit."},
        502: {"description": "Dispatch to the recognizer could not be started; the record is already in error."},
        503: {"description": "Service not initialized."},
    },
)
async def upload_image(request: Request, image: UploadFile | None = File(None)) -> Response:
    intake = get_dependency(request, "intake_service")
    if intake is None:
        return error_response(503, "Service not available")

    limit = intake.max_upload_bytes
    declared = _declared_length(request)
    # multipart framing adds a little on top of the file itself
    if declared is not None and declared > limit + READ_CHUNK_BYTES:
        _log("upload_rejected", reason="payload_too_large", declared=declared)
        return error_response(413, str(PayloadTooLarge(limit)))

    if image is None or not image.filename:
        _log("upload_rejected", reason="no_file")
        return error_response(400, "No image file uploaded")

    try:
        data = await read_limited(image, limit)
        outcome = await intake.submit(
            ImageUpload(
                original_name=image.filename,
                content_type=image.content_type or "",
                data=data,
            )
        )
    except PayloadTooLarge as exc:
        _log("upload_rejected", reason="payload_too_large", original_name=image.filename)
        return error_response(413, str(exc))
    except ValidationError as exc:
        _log("upload_rejected", reason="invalid_type", original_name=image.filename, content_type=image.content_type)
        return error_response(400, str(exc))
    except Exception as exc:
        logger.exception("upload failed: {}", exc)
        return error_response(500, "Upload failed", details=str(exc))
    finally:
        await image.close()

    if not outcome.success:
        return error_response(502, outcome.error or "Dispatch failed", processing_id=outcome.processing_id)

    return json_response(
        UploadResponse(
            processing_id=outcome.processing_id,
            image_info=image_info_payload(outcome.record.image_info),
        ).to_json()
    )
