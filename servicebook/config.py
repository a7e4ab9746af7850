"""Application configuration via pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SERVICEBOOK_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "ServiceBook"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 2

    # Booking store
    store_backend: Literal["memory", "http"] = "memory"
    upstream_api_url: str = "http://localhost:5000/api"
    upstream_timeout_seconds: float = Field(default=10.0, gt=0)

    # Money
    currency: str = "INR"

    # Subscriptions
    trial_days: int = Field(default=15, ge=0)

    # Bookings start here; "Payment Pending" makes payment submission come first
    booking_initial_status: Literal["Pending", "Payment Pending"] = "Pending"

    # CORS
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    @property
    def server_workers(self) -> int:
        """Worker processes to run; the in-memory store lives inside one process."""
        if self.debug or self.store_backend == "memory":
            return 1
        return self.workers


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
