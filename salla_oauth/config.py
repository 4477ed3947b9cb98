"""
Configuration management for the Salla OAuth strategy and example app.

Uses pydantic-settings for environment variable management. The
strategy itself only ever sees a validated StrategyConfig.
"""
from functools import lru_cache
from typing import List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from salla_oauth.exceptions import ConfigurationError

SALLA_AUTHORIZATION_URL = "https://accounts.salla.sa/oauth2/auth"
SALLA_TOKEN_URL = "https://accounts.salla.sa/oauth2/token"
SALLA_USER_PROFILE_URL = "https://accounts.salla.sa/oauth2/user/info"
SALLA_API_BASE_URL = "https://api.salla.dev/admin/v2"


class StrategyConfig(BaseModel):
    """Immutable provider configuration, built once at startup."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str
    callback_url: str
    authorization_url: str = SALLA_AUTHORIZATION_URL
    token_url: str = SALLA_TOKEN_URL
    user_profile_url: str = SALLA_USER_PROFILE_URL
    scope_separator: str = " "
    scope: List[str] = Field(default_factory=lambda: ["offline_access"])
    state_length: int = Field(default=16, ge=8)
    timeout: float = Field(default=10.0, gt=0)

    @field_validator("client_id", "client_secret")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("callback_url", "authorization_url", "token_url", "user_profile_url")
    @classmethod
    def _absolute_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"must be an absolute http(s) URL, got {value!r}")
        return value


def build_strategy_config(**options) -> StrategyConfig:
    """
    Build a StrategyConfig, turning validation failures into ConfigurationError.

    Options left as None fall back to the provider defaults.
    """
    options = {key: value for key, value in options.items() if value is not None}
    try:
        return StrategyConfig(**options)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid Salla strategy configuration: {exc}") from exc


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # App
    APP_NAME: str = "Salla OAuth Example"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    PORT: int = 8081
    LOG_LEVEL: str = "INFO"

    # Sessions
    SESSION_SECRET_KEY: str = "change-me-in-production-use-strong-secret"
    SESSION_MAX_AGE: int = 60 * 60 * 24

    # Salla OAuth
    SALLA_CLIENT_ID: str = ""
    SALLA_CLIENT_SECRET: str = ""
    SALLA_CALLBACK_URL: str = "http://localhost:8081/oauth/callback"
    SALLA_AUTHORIZATION_URL: Optional[str] = None
    SALLA_TOKEN_URL: Optional[str] = None
    SALLA_USER_PROFILE_URL: Optional[str] = None
    SALLA_SCOPE: str = "offline_access"
    SALLA_SCOPE_SEPARATOR: Optional[str] = None
    SALLA_HTTP_TIMEOUT: float = 10.0

    # Salla merchant API
    SALLA_API_BASE_URL: str = SALLA_API_BASE_URL

    # Observability
    SENTRY_DSN: Optional[str] = None
    ENVIRONMENT: str = "development"

    def strategy_config(self) -> StrategyConfig:
        """Validated strategy config; raises ConfigurationError on bad credentials."""
        return build_strategy_config(
            client_id=self.SALLA_CLIENT_ID,
            client_secret=self.SALLA_CLIENT_SECRET,
            callback_url=self.SALLA_CALLBACK_URL,
            authorization_url=self.SALLA_AUTHORIZATION_URL,
            token_url=self.SALLA_TOKEN_URL,
            user_profile_url=self.SALLA_USER_PROFILE_URL,
            scope=self.SALLA_SCOPE.split(),
            scope_separator=self.SALLA_SCOPE_SEPARATOR,
            timeout=self.SALLA_HTTP_TIMEOUT,
        )


@lru_cache
def get_settings() -> Settings:
    """Settings read once per process."""
    return Settings()
