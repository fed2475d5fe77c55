"""Application configuration."""

import os
from datetime import timedelta
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    admin_token: str | None = None
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    off_base_url: str = "https://world.openfoodfacts.org/api/v0"
    off_user_agent: str = "barcode-nutrition/0.1"
    off_timeout_seconds: float = 15
    product_cache_backend: Literal["supabase", "memory"] = "supabase"
    product_cache_table: str = "barcode_products"
    product_cache_ttl_days: int = 7
    camera_index: int = 0
    scan_interval_seconds: float = 0.1
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def product_cache_ttl(self) -> timedelta:
        return timedelta(days=self.product_cache_ttl_days)
