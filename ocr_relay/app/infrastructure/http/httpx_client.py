"""Concrete HTTP client implementation using httpx (injected where AbstractHttpClient is needed)."""
from __future__ import annotations

import asyncio

import httpx

from ocr_relay.app.ports.http_client import (
    AbstractHttpClient,
    FilePart,
    HttpClientError,
    HttpClientTimeoutError,
    HttpResponse,
    RequestTimeout,
)


class _HttpxResponseAdapter:
    """Adapts httpx.Response to the HttpResponse protocol."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def text(self) -> str:
        return self._response.text

    @property
    def status_code(self) -> int:
        return self._response.status_code

    def raise_for_status(self) -> None:
        try:
            self._response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise HttpClientError(
                f"http status {exc.response.status_code} for {exc.request.url}"
            ) from exc


class HttpxHttpClient(AbstractHttpClient):
    """AbstractHttpClient implementation using httpx.AsyncClient."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def post_multipart(
        self,
        url: str,
        *,
        fields: dict[str, str],
        file: FilePart,
        timeout: RequestTimeout,
    ) -> HttpResponse:
        httpx_timeout = httpx.Timeout(
            connect=timeout.connect_seconds,
            read=timeout.total_seconds,
            write=timeout.total_seconds,
            pool=timeout.connect_seconds,
        )
        files = {file.field_name: (file.filename, file.content, file.content_type)}
        try:
            # httpx timeouts are per phase; wait_for bounds the whole exchange.
            response = await asyncio.wait_for(
                self._client.post(url, data=fields, files=files, timeout=httpx_timeout),
                timeout=timeout.total_seconds,
            )
            return _HttpxResponseAdapter(response)
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise HttpClientTimeoutError(
                f"timeout of {timeout.total_seconds:g}s exceeded while posting to {url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise HttpClientError(f"http post failed for {url}: {exc}") from exc

    async def close(self) -> None:
        await self._client.aclose()
