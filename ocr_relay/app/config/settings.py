"""Settings for the relay service."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ocr_relay.app.constants import CALLBACK_PATH


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    host: str = Field("0.0.0.0", validation_alias="HOST")
    port: int = Field(3000, validation_alias="PORT")

    ocr_webhook_url: str = Field("http://localhost:5678/webhook/ocr", validation_alias="OCR_WEBHOOK_URL")
    # Base address the recognizer uses to reach this service; the callback path is appended.
    public_base_url: str = Field("http://localhost:3000", validation_alias="PUBLIC_BASE_URL")

    upload_dir: str = Field("uploads", validation_alias="UPLOAD_DIR")
    max_upload_bytes: int = Field(10 * 1024 * 1024, validation_alias="MAX_UPLOAD_BYTES")

    dispatch_timeout_seconds: float = Field(30.0, validation_alias="DISPATCH_TIMEOUT_SECONDS")
    dispatch_connect_timeout_seconds: float = Field(10.0, validation_alias="DISPATCH_CONNECT_TIMEOUT_SECONDS")
    shutdown_grace_seconds: float = Field(5.0, validation_alias="SHUTDOWN_GRACE_SECONDS")

    # 0 keeps every record for the lifetime of the process.
    record_ttl_seconds: float = Field(0.0, validation_alias="RECORD_TTL_SECONDS")

    registry_backend: str = Field("inmemory", validation_alias="REGISTRY_BACKEND")
    storage_backend: str = Field("local", validation_alias="STORAGE_BACKEND")

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    @property
    def callback_url(self) -> str:
        return self.public_base_url.rstrip("/") + CALLBACK_PATH
