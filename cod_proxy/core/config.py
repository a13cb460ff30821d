"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Shopify credentials are optional at load time. The endpoint checks them per
request and answers ``ServerMisconfigured`` when they are absent, so a
half-configured deployment still starts and reports the fault to callers.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


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
_env_file = str(_env_path) if _env_path.is_file() else None

# Nested BaseSettings don't inherit env_file, so populate os.environ first.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_shopify_settings() -> "ShopifySettings":
    """Build Shopify settings from environment."""

    return ShopifySettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class ShopifySettings(BaseSettings):
    """Shopify Admin API connection settings."""

    shop_name: str | None = Field(
        None,
        description="Shop domain orders are created in (e.g., my-store.myshopify.com)",
    )
    access_token: str | None = Field(
        None,
        description="Admin API access token sent as X-Shopify-Access-Token",
    )
    api_version: str = Field(
        "2024-10",
        description="Admin API version used in the request path",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Timeout for the outbound order-creation request",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="SHOPIFY_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Endpoint behaviour configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    order_api: str = Field(
        "graphql",
        description="Order submission strategy: 'graphql' (orderCreate) or 'rest' (orders.json)",
        pattern="^(graphql|rest)$",
    )
    shop_domain_suffix: str = Field(
        ".myshopify.com",
        description="Suffix every proxied and configured shop domain must end with",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable the per-client order rate limit",
    )
    rate_limit_window_seconds: int = Field(
        300,
        description="One accepted order per client within this many seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include a Retry-After header when throttling",
    )
    rate_limit_max_entries: int = Field(
        10000,
        description="Prune expired limiter entries once the map grows past this size",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(0, description="Rotate the log file at this size (0 disables)")
    backup_count: int = Field(5, description="Rotated files to keep")
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
    """

    app_env: str = APP_ENV
    shopify: ShopifySettings = Field(default_factory=_build_shopify_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
