"""Domain errors. Routers map these to HTTP status codes; the dispatcher maps them to record failures."""
from __future__ import annotations


class OcrRelayError(Exception):
    """Base for all relay errors."""


class ValidationError(OcrRelayError):
    """Upload is missing or is not an allowed image type."""


class PayloadTooLarge(OcrRelayError):
    """Upload exceeds the configured size limit."""

    def __init__(self, limit_bytes: int) -> None:
        super().__init__(f"File too large. Maximum size is {limit_bytes // (1024 * 1024)}MB.")
        self.limit_bytes = limit_bytes


class DispatchSetupFailure(OcrRelayError):
    """Dispatch could not be scheduled; nothing was sent to the recognizer."""


class DispatchNetworkFailure(OcrRelayError):
    """Outbound call to the recognizer failed (network error or non-2xx status)."""


class DispatchTimeout(DispatchNetworkFailure):
    """Outbound call to the recognizer exceeded its deadline."""


class ResponseParseFailure(OcrRelayError):
    """Recognizer payload did not match any known shape. Always recovered by the caller."""


class MissingField(OcrRelayError):
    """A required field is absent from an inbound payload."""

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"{field} is required")
        self.field = field


class NotFound(OcrRelayError):
    """No record exists for the given processing id."""

    def __init__(self, processing_id: str) -> None:
        super().__init__("Processing ID not found")
        self.processing_id = processing_id


class DuplicateRecordError(OcrRelayError):
    """A record with this processing id already exists."""
