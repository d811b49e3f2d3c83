"""Dispatcher: sends a stored image to the external recognizer and applies an inline answer.

schedule() is the synchronous part run inside the upload request; dispatch() runs
detached on the executor and always ends by either leaving the record pending
(recognizer will call back), completing it (inline result) or failing it.
One outbound attempt, no retry.
"""
from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from loguru import logger

from ocr_relay.app.application.record_lifecycle import RecordLifecycle
from ocr_relay.app.core import SERVICE_NAME
from ocr_relay.app.domain.errors import (
    DispatchNetworkFailure,
    DispatchSetupFailure,
    DispatchTimeout,
    NotFound,
)
from ocr_relay.app.domain.models import ImageInfo
from ocr_relay.app.domain.response_parser import is_acknowledgment, parse_recognizer_body
from ocr_relay.app.ports.dispatch_executor import DispatchExecutor
from ocr_relay.app.ports.http_client import (
    AbstractHttpClient,
    FilePart,
    HttpClientError,
    HttpClientTimeoutError,
    HttpResponse,
    RequestTimeout,
)
from ocr_relay.app.ports.image_storage import ImageStorage

IMAGE_FIELD = "data"


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def is_minimally_valid_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)
    except ValueError:
        return False


class Dispatcher:
    def __init__(
        self,
        client: AbstractHttpClient,
        storage: ImageStorage,
        lifecycle: RecordLifecycle,
        executor: DispatchExecutor,
        *,
        webhook_url: str,
        callback_url: str,
        timeout: RequestTimeout,
    ) -> None:
        self._client = client
        self._storage = storage
        self._lifecycle = lifecycle
        self._executor = executor
        self._webhook_url = webhook_url
        self._callback_url = callback_url
        self._timeout = timeout

    def schedule(self, processing_id: str, image_info: ImageInfo) -> None:
        """Hand dispatch to the executor. Raises DispatchSetupFailure if it cannot start."""
        if not is_minimally_valid_url(self._webhook_url):
            raise DispatchSetupFailure(f"invalid recognizer url: {self._webhook_url!r}")
        try:
            self._executor.submit(self.dispatch(processing_id, image_info), name=f"dispatch-{processing_id}")
        except RuntimeError as exc:
            raise DispatchSetupFailure(f"dispatch rejected: {exc}") from exc
        _log("dispatch_scheduled", processing_id=processing_id, filename=image_info.filename)

    async def dispatch(self, processing_id: str, image_info: ImageInfo) -> None:
        _log("dispatch_started", processing_id=processing_id, url=self._webhook_url)
        try:
            response = await self._send(processing_id, image_info)
        except (DispatchSetupFailure, DispatchNetworkFailure) as exc:
            logger.bind(
                service_name=SERVICE_NAME,
                event="dispatch_failed",
                processing_id=processing_id,
                reason=str(exc),
                timed_out=isinstance(exc, DispatchTimeout),
            ).warning("")
            await self._settle_failure(processing_id, f"Recognizer call failed: {exc}")
            return
        except Exception as exc:
            logger.exception("dispatch {} failed unexpectedly: {}", processing_id, exc)
            await self._settle_failure(processing_id, f"Recognizer call failed: {exc}")
            return

        body = response.text
        if is_acknowledgment(response.status_code, body):
            _log("dispatch_acknowledged", processing_id=processing_id, status_code=response.status_code)
            return

        _log("dispatch_inline_result", processing_id=processing_id, status_code=response.status_code)
        result = parse_recognizer_body(body, processing_id=processing_id)
        try:
            await self._lifecycle.complete_record(processing_id, result)
        except NotFound:
            logger.warning("record {} vanished before inline result was applied", processing_id)

    async def _send(self, processing_id: str, image_info: ImageInfo) -> HttpResponse:
        try:
            content = await self._storage.read(image_info.filename)
        except OSError as exc:
            raise DispatchSetupFailure(f"stored image unreadable: {exc}") from exc

        fields = {
            "processingId": processing_id,
            "callbackUrl": self._callback_url,
            "originalName": image_info.original_name,
            "size": str(image_info.size),
            "uploadTime": image_info.upload_time,
        }
        file = FilePart(
            field_name=IMAGE_FIELD,
            filename=image_info.original_name,
            content=content,
            content_type=image_info.content_type,
        )
        try:
            response = await self._client.post_multipart(
                self._webhook_url,
                fields=fields,
                file=file,
                timeout=self._timeout,
            )
            response.raise_for_status()
        except HttpClientTimeoutError as exc:
            raise DispatchTimeout(str(exc)) from exc
        except HttpClientError as exc:
            raise DispatchNetworkFailure(str(exc)) from exc
        return response

    async def _settle_failure(self, processing_id: str, message: str) -> None:
        try:
            await self._lifecycle.fail_record(processing_id, message)
        except NotFound:
            logger.warning("record {} vanished before failure was recorded", processing_id)
