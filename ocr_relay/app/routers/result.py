from __future__ import annotations

from fastapi import APIRouter, Request, Response

from ocr_relay.app.domain.errors import NotFound
from ocr_relay.app.routers.record_serializers import record_payload
from ocr_relay.app.routers.utils import error_response, get_dependency, json_response

result_router = APIRouter(prefix="/api", tags=["Result"])


@result_router.get(
    "/result/{processing_id}",
    summary="Poll a processing record",
    description="Returns the record as it currently stands. Clients re-poll about once a second while status is processing.",
    responses={
        200: {"description": "Record found (processing, completed or error)."},
        404: {"description": "Unknown processing id."},
    },
)
async def get_result(request: Request, processing_id: str) -> Response:
    status_service = get_dependency(request, "status_service")
    if status_service is None:
        return error_response(503, "Service not available")
    try:
        record = await status_service.get_status(processing_id)
    except NotFound as exc:
        return error_response(404, str(exc))
    return json_response(record_payload(record).to_json())
