"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI routes, the session cache and
the Colis Privé clients share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class CourierSettings(BaseSettings):
    """Configuration required for talking to the Colis Privé web services."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    auth_url: str = Field(
        "https://wsauthentificationexterne.colisprive.com",
        validation_alias="COLIS_PRIVE_AUTH_URL",
    )
    tournee_url: str = Field(
        "https://wstournee-v2.colisprive.com",
        validation_alias="COLIS_PRIVE_TOURNEE_URL",
    )
    default_societe: str = Field(
        ...,
        validation_alias="COLIS_PRIVE_SOCIETE",
        description="Carrier account used when a request does not name one.",
    )
    operator_password: str = Field(
        ...,
        validation_alias="COLIS_PRIVE_PASSWORD",
        description="Secret used for automatic re-authentication of operators.",
    )
    request_timeout_seconds: float = Field(
        30.0, validation_alias="COLIS_PRIVE_TIMEOUT_SECONDS", gt=0
    )
    tournee_attempts: int = Field(
        1,
        validation_alias="COLIS_PRIVE_TOURNEE_ATTEMPTS",
        ge=1,
        description="Attempts for tournée fetches; 1 disables retrying.",
    )

    @field_validator("auth_url", "tournee_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        """Paths are appended to the base URLs, so drop any trailing slash."""
        return value.rstrip("/")


class SessionCacheSettings(BaseSettings):
    """Lifetime and housekeeping of cached SsoHopps session tokens."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    ttl_hours: int = Field(24, validation_alias="SESSION_TOKEN_TTL_HOURS", gt=0)
    refresh_margin_seconds: int = Field(
        0,
        validation_alias="SESSION_TOKEN_REFRESH_MARGIN_SECONDS",
        ge=0,
        description="Treat tokens this close to expiry as stale.",
    )
    sweep_interval_seconds: int = Field(
        300, validation_alias="SESSION_CACHE_SWEEP_INTERVAL_SECONDS", gt=0
    )
    shard_count: int = Field(16, validation_alias="SESSION_CACHE_SHARDS", gt=0)


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    courier: CourierSettings = Field(default_factory=CourierSettings)
    session_cache: SessionCacheSettings = Field(default_factory=SessionCacheSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "CourierSettings",
    "SessionCacheSettings",
    "get_settings",
]
