"""
Centralized configuration for the Debate Arena backend.

All settings are loaded from environment variables with sensible defaults.
Provider settings are namespaced (e.g., OPENROUTER_*, SUPABASE_*).
"""

from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Debate Arena API"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Storage
    storage_backend: Literal["supabase", "memory"] = "supabase"

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""

    # Completion provider (OpenRouter)
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    app_url: str = "http://localhost:3000"
    app_title: str = "LLM Debate Arena"

    # Turn execution
    turn_timeout_seconds: float = 30.0
    provider_max_retries: int = 2
    temperature: float = 0.7
    max_output_tokens: int = 1000

    # Debate limits
    max_turns_default: int = 10
    max_turns_min: int = 2
    max_turns_limit: int = 50
    min_topic_length: int = 10

    # Event feed
    event_page_limit: int = 500
    stream_poll_interval_seconds: float = 0.75

    # Retention
    credential_ttl_hours: int = 24
    debate_retention_hours: int = 24
    cleanup_interval_hours: int = 1


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
