"""Builds the outbound recognizer client from settings."""
from __future__ import annotations

import httpx

from ocr_relay.app.config.settings import Settings
from ocr_relay.app.infrastructure.http.httpx_client import HttpxHttpClient
from ocr_relay.app.ports.http_client import AbstractHttpClient


def create_http_client(settings: Settings) -> AbstractHttpClient:
    """Client-wide defaults mirror the dispatch timeouts; the adapter still passes them per request."""
    total = settings.dispatch_timeout_seconds
    async_client = httpx.AsyncClient(
        timeout=httpx.Timeout(total, connect=min(settings.dispatch_connect_timeout_seconds, total)),
        follow_redirects=True,
    )
    return HttpxHttpClient(async_client)
