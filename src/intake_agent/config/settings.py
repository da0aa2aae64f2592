"""Engine settings read from the environment (prefix INTAKE_)."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="INTAKE_", extra="ignore")

    # ---- LLM ----
    openai_api_key: str | None = None
    llm_base_url: str = "https://api.openai.com"
    chat_model: str = "gpt-4o-mini"
    extraction_model: str | None = Field(default=None, description="Defaults to chat_model")
    summary_model: str | None = Field(default=None, description="Defaults to chat_model")
    vision_model: str | None = Field(default=None, description="Defaults to chat_model")
    request_timeout: float = 60.0

    # ---- Context budget ----
    summarize_threshold: int = Field(default=20, ge=1)
    recent_window: int = Field(default=10, ge=1)

    # ---- Persona ----
    sanitizer_max_iterations: int = Field(default=10, ge=1)

    # ---- Logging ----
    environment: str = "development"
    log_level: str = "INFO"
