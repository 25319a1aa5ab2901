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


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_shopify_settings() -> "ShopifySettings":
    """Build Shopify settings from environment.

    Pydantic Settings (v2) populates values from environment variables; static
    type checkers still treat fields as constructor arguments, hence the
    type ignore.
    """

    return ShopifySettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class ShopifySettings(BaseSettings):
    """Shopify Admin API configuration.

    The access token and store domain are optional here on purpose: the
    GraphQL client reports their absence as a configuration error at call
    time, so the rest of the service can boot without them.
    """

    access_token: str | None = Field(
        None,
        description="Admin API access token sent as X-Shopify-Access-Token",
    )
    store_domain: str | None = Field(
        None,
        description="Store host, e.g. my-store.myshopify.com",
    )
    api_version: str = Field(
        "2024-10",
        description="Admin API quarterly version",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Per-request timeout in seconds",
        gt=0,
    )
    max_retries: int = Field(
        3,
        description="Additional attempts allowed after a 429 response",
        ge=0,
    )
    default_retry_delay_ms: int = Field(
        2000,
        description="Backoff base when the 429 response carries no Retry-After",
        ge=0,
    )
    max_jitter_ms: int = Field(
        1000,
        description="Upper bound (exclusive) of the random jitter added per retry",
        ge=0,
    )
    page_size: int = Field(
        50,
        description="Products requested per GraphQL page during sync",
        ge=1,
        le=250,
    )
    currency: str = Field(
        "GBP",
        description="Currency code stamped on synced product records",
    )
    public_store_url: str | None = Field(
        None,
        description="Public storefront domain used for product links",
    )

    model_config = SettingsConfigDict(
        env_prefix="SHOPIFY_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-route-class rate limiting by client address",
    )
    rate_limit_sweep_interval_seconds: float = Field(
        300.0,
        description="Interval between sweeps of expired rate limit windows",
        gt=0,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include Retry-After and X-RateLimit-* headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int | None = Field(
        10_000_000,
        description="Rotate the log file after this many bytes (None disables rotation)",
    )
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    shopify: ShopifySettings = Field(default_factory=_build_shopify_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
