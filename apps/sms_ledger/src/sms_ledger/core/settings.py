"""Application settings loaded from environment variables."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for ingestion, inference and persistence layers."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    database_url: str = Field(
        default="sqlite+pysqlite:///sms_ledger.db",
        alias="DATABASE_URL",
    )
    inbox_path: str = Field(default="inbox.json", alias="SMS_INBOX_PATH")
    inference_base_url: str = Field(
        default="http://127.0.0.1:11434",
        alias="INFERENCE_BASE_URL",
    )
    inference_model: str = Field(
        default="gemma:2b-instruct",
        alias="INFERENCE_MODEL",
    )
    inference_max_tokens: int = Field(
        default=1024,
        alias="INFERENCE_MAX_TOKENS",
        gt=0,
    )
    inference_timeout_seconds: float = Field(
        default=120.0,
        alias="INFERENCE_TIMEOUT_SECONDS",
        gt=0,
    )
    sync_interval_seconds: float = Field(
        default=60.0,
        alias="SYNC_INTERVAL_SECONDS",
        gt=0,
    )
    sync_chunk_size: int = Field(default=5, alias="SYNC_CHUNK_SIZE", ge=1)
    background_sync_enabled: bool = Field(
        default=False,
        alias="BACKGROUND_SYNC_ENABLED",
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance for the current process."""

    return Settings()
