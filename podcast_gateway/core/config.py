"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


DEFAULT_CORS_ORIGINS = ",".join(
    [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8080",
        "null",  # pages opened from file://
    ]
)


def _build_upstream_settings() -> "UpstreamSettings":
    """Build upstream catalog settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return UpstreamSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    return AppSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


def parse_origins(origins: str | None) -> list[str]:
    """Parse a comma-separated origin allow-list, keeping order.

    Examples:
        >>> parse_origins("http://a.test, http://b.test ,")
        ['http://a.test', 'http://b.test']
        >>> parse_origins(None)
        []
    """
    if not origins:
        return []
    return [origin.strip() for origin in origins.split(",") if origin.strip()]


class UpstreamSettings(BaseSettings):
    """Upstream podcast catalog configuration."""

    url: str = Field(
        ...,
        description="Base URL of the upstream podcast catalog API (without /podcasts)",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Timeout applied to every upstream request, in seconds",
        gt=0,
    )
    total_count_probe_limit: int = Field(
        10000,
        description=(
            "Page size used to count matching podcasts. Counts above this "
            "value are truncated because upstream has no count endpoint."
        ),
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="PODCAST_API_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    host: str = Field("0.0.0.0", description="Bind address for the HTTP server")
    port: int = Field(4000, description="Bind port for the HTTP server")

    cors_origins: str = Field(
        DEFAULT_CORS_ORIGINS,
        description="Comma-separated list of origins echoed back in CORS headers",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-IP rate limiting",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include RateLimit-* and Retry-After headers",
    )
    global_rate_limit_requests: int = Field(
        100,
        description="Requests allowed per IP per window on every route",
        ge=1,
    )
    global_rate_limit_window_seconds: int = Field(
        15 * 60,
        description="Global rate limit window size in seconds",
        ge=1,
    )
    graphql_rate_limit_requests: int = Field(
        50,
        description="GraphQL requests allowed per IP per window",
        ge=1,
    )
    graphql_rate_limit_window_seconds: int = Field(
        10 * 60,
        description="GraphQL rate limit window size in seconds",
        ge=1,
    )
    podcasts_rate_limit_requests: int = Field(
        30,
        description="REST podcast requests allowed per IP per window",
        ge=1,
    )
    podcasts_rate_limit_window_seconds: int = Field(
        5 * 60,
        description="REST podcast rate limit window size in seconds",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return parse_origins(self.cors_origins)


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file at this size (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and propagate the request id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if required settings are missing.
    """

    app_env: str = APP_ENV
    upstream: UpstreamSettings = Field(default_factory=_build_upstream_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
