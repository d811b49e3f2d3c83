"""Image storage factory: selects implementation from config."""
from __future__ import annotations

from ocr_relay.app.config.settings import Settings
from ocr_relay.app.infrastructure.storage.local_image_storage import LocalImageStorage
from ocr_relay.app.ports.image_storage import ImageStorage


def create_image_storage(settings: Settings) -> ImageStorage:
    backend = settings.storage_backend.strip().lower()

    if backend == "local":
        return LocalImageStorage(settings.upload_dir)

    raise ValueError(f"Unsupported storage backend: {backend}")
