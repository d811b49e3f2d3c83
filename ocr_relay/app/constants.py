"""Service-level constants shared across modules."""
from __future__ import annotations


class ProcessingStatus:
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


TERMINAL_STATUSES = frozenset({ProcessingStatus.COMPLETED, ProcessingStatus.ERROR})

CALLBACK_PATH = "/api/webhook/ocr-result"

ALLOWED_IMAGE_EXTENSIONS = frozenset({".jpeg", ".jpg", ".png", ".gif", ".bmp", ".webp"})
ALLOWED_IMAGE_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/bmp",
        "image/x-ms-bmp",
        "image/webp",
    }
)

DEFAULT_CONFIDENCE = 0.95
DEFAULT_LANGUAGE = "zh-CN"
MIN_LOGPROB_CONFIDENCE = 0.1
MAX_LOGPROB_CONFIDENCE = 1.0

# Bodies some webhook runners return when they accept work and will call back later.
ACKNOWLEDGMENT_MESSAGES = frozenset({"Workflow was started"})
