"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_CONTENT_TYPES = "image/jpeg,image/png,image/heic,image/webp"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    storage_bucket: str = "meal-uploads"
    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str = "medium"
    openai_store: bool = False
    max_upload_bytes: int = 8 * 1024 * 1024
    upload_grant_expiry_seconds: int = 600
    allowed_content_types: str = DEFAULT_CONTENT_TYPES
    analysis_timeout_seconds: float = 30.0
    analysis_dedupe_in_flight: bool = True
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_content_types(raw: str | None) -> frozenset[str]:
    """Parse the allowed upload content types from env."""
    if raw is None or not raw.strip():
        raw = DEFAULT_CONTENT_TYPES
    types: set[str] = set()
    for chunk in raw.split(","):
        value = chunk.strip().lower()
        if value:
            types.add(value)
    return frozenset(types)
