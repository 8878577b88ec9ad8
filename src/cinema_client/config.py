"""Application configuration."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    api_base_url: str
    api_token: str | None = None
    request_timeout_seconds: float = Field(default=10, gt=0)
    page_size: int = Field(default=12, gt=0)
    page_window: int = Field(default=10, gt=0)
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="CINEMA_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def normalize_token(raw: str | None) -> str | None:
    """Strip a configured credential and any Bearer prefix; blank means none."""
    if raw is None:
        return None
    cleaned = raw.strip()
    scheme, _, rest = cleaned.partition(" ")
    if scheme.lower() == "bearer":
        cleaned = rest.strip()
    return cleaned or None
