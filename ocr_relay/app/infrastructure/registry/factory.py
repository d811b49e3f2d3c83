"""Registry factory: selects implementation from config."""
from __future__ import annotations

from ocr_relay.app.config.settings import Settings
from ocr_relay.app.infrastructure.registry.in_memory_registry import InMemoryProcessingRegistry
from ocr_relay.app.ports.processing_registry import ProcessingRegistry


def create_processing_registry(settings: Settings) -> ProcessingRegistry:
    backend = settings.registry_backend.strip().lower()

    if backend == "inmemory":
        return InMemoryProcessingRegistry(ttl_seconds=settings.record_ttl_seconds)

    raise ValueError(f"Unsupported registry backend: {backend}")
