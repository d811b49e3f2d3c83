from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request, Response
from loguru import logger
from pydantic import ValidationError as PayloadValidationError

from ocr_relay.app.application.callback_service import CallbackPayload
from ocr_relay.app.application.record_lifecycle import TransitionOutcome
from ocr_relay.app.core import SERVICE_NAME
from ocr_relay.app.domain.errors import MissingField, NotFound
from ocr_relay.app.routers.utils import error_response, get_dependency, json_response
from ocr_relay.app.schemas.processing import CallbackAckResponse, CallbackRequest

webhook_router = APIRouter(prefix="/api/webhook", tags=["Webhook"])


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).warning("")


@webhook_router.post(
    "/ocr-result",
    summary="Recognizer callback",
    description="Settles a processing record. An error field wins over a result; callbacks for already settled records are acknowledged and ignored.",
    responses={
        200: {"description": "Callback accepted."},
        400: {"description": "Malformed body or missing processingId/result."},
        404: {"description": "Unknown processing id."},
        500: {"description": "Callback could not be processed."},
    },
)
async def receive_ocr_result(request: Request) -> Response:
    callback_service = get_dependency(request, "callback_service")
    if callback_service is None:
        return error_response(503, "Service not available")

    try:
        body = await request.json()
        parsed = CallbackRequest.model_validate(body)
    except (ValueError, PayloadValidationError) as exc:
        _log("callback_rejected", reason="malformed_body", error=str(exc))
        return error_response(400, "Invalid callback payload")

    try:
        outcome = await callback_service.receive(
            CallbackPayload(
                processing_id=parsed.processing_id,
                result=parsed.result,
                error=parsed.error,
            )
        )
    except MissingField as exc:
        _log("callback_rejected", reason="missing_field", field=exc.field)
        return error_response(400, str(exc))
    except NotFound as exc:
        _log("callback_rejected", reason="not_found", processing_id=exc.processing_id)
        return error_response(404, str(exc))
    except Exception as exc:
        logger.exception("webhook callback error: {}", exc)
        return error_response(500, "Failed to process webhook result")

    message = (
        "Result received successfully"
        if outcome is TransitionOutcome.APPLIED
        else "Result already recorded"
    )
    return json_response(CallbackAckResponse(message=message).to_json())
