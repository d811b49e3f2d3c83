"""HTTP client port: contract for posting multipart payloads to the recognizer.

Application code depends on this port; infrastructure (httpx) implements it.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


class HttpClientError(Exception):
    """Base for HTTP client failures (status, network, etc.)."""


class HttpClientTimeoutError(HttpClientError):
    """Raised when the request times out."""


@runtime_checkable
class HttpResponse(Protocol):
    """Minimal read-only view of an HTTP response."""

    @property
    def text(self) -> str: ...

    @property
    def status_code(self) -> int: ...

    def raise_for_status(self) -> None: ...


@dataclass(frozen=True)
class RequestTimeout:
    """Connect timeout and overall deadline in seconds."""

    connect_seconds: float
    total_seconds: float


@dataclass(frozen=True)
class FilePart:
    """One file field of a multipart body."""

    field_name: str
    filename: str
    content: bytes
    content_type: str


@runtime_checkable
class AbstractHttpClient(Protocol):
    """Port: perform multipart POST requests. Implementations live in infrastructure."""

    async def post_multipart(
        self,
        url: str,
        *,
        fields: dict[str, str],
        file: FilePart,
        timeout: RequestTimeout,
    ) -> HttpResponse:
        """POST form fields plus one file; raise HttpClientTimeoutError or HttpClientError on failure."""
        ...

    async def close(self) -> None:
        """Release resources (e.g. connection pool). No-op allowed if nothing to close."""
        ...
