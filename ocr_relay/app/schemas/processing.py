from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ocr_relay.app.constants import ProcessingStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class ImageInfoPayload(_CamelModel):
    filename: str
    original_name: str
    size: int
    path: str
    upload_time: str
    content_type: str


class OcrResultPayload(_CamelModel):
    text: str
    confidence: float
    language: str


class ProcessingRecordResponse(_CamelModel):
    processing_id: str
    status: str = ProcessingStatus.PROCESSING
    image_info: ImageInfoPayload
    result: OcrResultPayload | None = None
    error: str | None = None
    timestamp: str
    completed_at: str | None = None


class UploadResponse(_CamelModel):
    success: bool = True
    processing_id: str
    image_info: ImageInfoPayload
    message: str = "Image uploaded successfully. Processing..."


class CallbackRequest(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    processing_id: str | None = None
    result: Any = None
    error: Any = None


class CallbackAckResponse(_CamelModel):
    success: bool = True
    message: str


class ErrorResponse(_CamelModel):
    error: str
    details: str | None = None
    processing_id: str | None = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
