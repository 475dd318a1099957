"""Centralised application configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/gradeline/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Highlight colours used for inline comments (yellow, green, blue, purple, pink)
DEFAULT_PALETTE: tuple[str, ...] = (
    "#fef08a",
    "#bbf7d0",
    "#bfdbfe",
    "#e9d5ff",
    "#fbcfe8",
)


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class ApiConfig(BaseModel):
    """Submissions API connection settings."""

    base_url: str = "http://localhost:5000/api"
    token: SecretStr = SecretStr("")
    timeout: float = 30.0

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class AnnotationConfig(BaseModel):
    """Inline annotation behaviour."""

    palette: list[str] = list(DEFAULT_PALETTE)
    palette_seed: int | None = None
    ai_author: str = "AI Assistant"
    default_author: str = "Anonymous"

    @field_validator("palette")
    @classmethod
    def palette_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            msg = "ANNOTATION__PALETTE must contain at least one colour"
            raise ValueError(msg)
        return value


class AppConfig(BaseModel):
    """Application runtime configuration."""

    log_dir: Path = Path("logs")


class DevConfig(BaseModel):
    """Development and testing toggles."""

    backend_mock: bool = False


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Application settings with automatic .env loading and type validation.

    Environment variables use double-underscore delimiter for nesting:
    ``API__BASE_URL``, ``API__TOKEN``, ``ANNOTATION__PALETTE_SEED``, etc.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    api: ApiConfig = ApiConfig()
    annotation: AnnotationConfig = AnnotationConfig()
    app: AppConfig = AppConfig()
    dev: DevConfig = DevConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.info("Settings: no .env file found, using env vars and defaults")

    return settings
