"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Probe and selector timeouts stay in the low single-digit seconds

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - show_wrong_pin_message is a toggle: whether a failed PIN gets a distinguishing
      message is a product decision, so both behaviours ship
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://qr:qr@db:5432/qr_redirect"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Anthropic (fallback chooser)
    anthropic_api_key: str = "sk-ant-placeholder"
    anthropic_max_retries: int = 1
    anthropic_timeout_seconds: float = 3.0
    anthropic_base_delay_ms: int = 200
    anthropic_max_delay_ms: int = 1000
    fallback_model: str = "claude-haiku-4-5-20251001"
    fallback_max_tokens: int = 300
    fallback_strategy: Literal["anthropic", "first"] = "anthropic"

    # Resolution timeouts
    probe_timeout_seconds: float = Field(2.0, gt=0, le=10)
    selector_timeout_seconds: float = Field(3.0, gt=0, le=10)
    probe_user_agent: str = "qr-redirect-liveness/1.0"

    # PIN feedback
    show_wrong_pin_message: bool = True
    wrong_pin_message: str = "The PIN you entered is incorrect. Please try again."

    # Boundary pages
    pin_page_path: str = "/q/{slug}/auth"
    unavailable_page_path: str = "/link-error"

    # Scan metadata
    anonymize_client_ip: bool = True
    trust_forwarded_for: bool = False
    scan_drain_timeout_seconds: float = 10.0

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("pin_page_path")
    @classmethod
    def pin_page_has_slug(cls, v: str) -> str:
        if "{slug}" not in v:
            raise ValueError("pin_page_path must contain '{slug}'")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
