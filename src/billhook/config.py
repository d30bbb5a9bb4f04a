"""
billhook Configuration Management

Centralized configuration using pydantic-settings with environment variable support.
Read once at process start; collaborators receive explicit values at construction.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, RedisDsn
from pydantic_settings import BaseSettings, SettingsConfigDict

from billhook.core.models import KnownPriceIds


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ══════════════════════════════════════════════════════════════
    # Application
    # ══════════════════════════════════════════════════════════════
    app_name: str = "billhook"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    api_version: str = "v1"

    # ══════════════════════════════════════════════════════════════
    # Stripe Billing
    # ══════════════════════════════════════════════════════════════
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_webhook_tolerance: int = 300  # seconds

    # Price IDs (configured in Stripe Dashboard)
    stripe_growth_plan_price_id: str = ""
    stripe_ridiculously_cheap_plan_price_id: str = ""
    stripe_free_plan_price_id: str = ""

    # ══════════════════════════════════════════════════════════════
    # Client Records
    # ══════════════════════════════════════════════════════════════
    clients_backend: Literal["remote", "memory", "redis"] = "remote"
    clients_service_url: str = "http://localhost:3001"
    clients_collection: str = "clients"

    # ══════════════════════════════════════════════════════════════
    # Tracking
    # ══════════════════════════════════════════════════════════════
    tracking_service_url: str = "http://localhost:3002"
    tracking_enabled: bool = True

    # ══════════════════════════════════════════════════════════════
    # Infrastructure
    # ══════════════════════════════════════════════════════════════
    redis_url: RedisDsn = Field(default="redis://localhost:6379/0")
    http_timeout_seconds: float = 10.0

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def known_price_ids(self) -> KnownPriceIds:
        """Price identifiers used to resolve plan keys."""
        return KnownPriceIds(
            growth=self.stripe_growth_plan_price_id,
            cheap=self.stripe_ridiculously_cheap_plan_price_id,
            free=self.stripe_free_plan_price_id,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export
settings = get_settings()
