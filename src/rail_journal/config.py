"""Application configuration."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_STORAGE_KEY = "sg_rail_journey_visits"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    cloudinary_cloud_name: str
    cloudinary_upload_preset: str
    openai_api_key: str | None = None
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str | None = None
    openai_store: bool = False
    storage_backend: Literal["file", "supabase"] = "file"
    storage_path: str = "~/.rail_journal/visits.json"
    storage_key: str = DEFAULT_STORAGE_KEY
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    supabase_table: str = "kv_store"
    catalog_path: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def captions_enabled(self) -> bool:
        """Return True when a caption generation credential is configured."""
        return bool(self.openai_api_key and self.openai_api_key.strip())
