"""
Application settings loaded from the environment (and an optional .env file).
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # API
    cors_origins: list[str] = ["*"]
    host: str = "0.0.0.0"
    port: int = 8000

    # Agents
    llm_model: str = "gemini-2.5-flash"
    sub_agent_model: str = "gemini-2.5-flash-lite"
    adk_app_name: str = "agent_gateway"
    adk_user_id: str = "web"
    default_agent_id: str = "triage-agent"

    # Approvals
    approval_store_backend: str = "memory"
    # None disables expiry of parked approvals.
    approval_ttl_seconds: float | None = 3600.0

    # Credentials and external APIs
    gemini_api_key: str | None = None
    search_api_key: str | None = None
    search_api_url: str = "https://api.parallel.ai/v1beta/search"
    search_max_results: int = 10

    # Observability
    log_level: str = "INFO"
    log_json: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
