"""Centralized configuration management with environment-aware defaults.

This module implements the ambient configuration of Mercury using Pydantic
Settings: logging and the default HTTP transport are configured here, from
environment variables or a ``.env`` file.

Per-API configuration (base URL and customization hook) is deliberately not
part of these settings. It lives in :class:`mercury.client.api.APIConfig`,
an immutable value built in code, so that several APIs can coexist in one
process.

Features:
- **Type safety**: All configuration values are validated and typed
- **Environment variables**: Supports .env files and environment overrides
- **Nested configuration**: Uses __ delimiter for complex config structures
- **Caching**: Configuration is cached for performance

Configuration sources (in order of precedence):
1. Environment variables (``MERCURY_`` prefix)
2. .env file in the working directory
3. Default values in model definitions
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogConfig(BaseModel):
    """Simplified logging configuration."""

    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = (
        Field(
            default="INFO",
            description="Logging level",
        )
    )
    log_formatter_type: Literal["console", "json"] | None = Field(
        default=None,
        description="Log output formatter. Auto-detected if not specified.",
    )
    log_request_headers: bool = Field(
        default=True,
        description="Include (sanitized) request headers in dispatch log lines",
    )
    sensitive_fields: list[str] = Field(
        default_factory=lambda: [
            "password",
            "token",
            "secret",
            "api_key",
            "authorization",
        ],
        description="Field names to redact",
    )


class TransportConfig(BaseModel):
    """Configuration of the default httpx-based transport."""

    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Timeout per request (seconds)",
    )
    user_agent: str = Field(
        default="mercury/0.1",
        min_length=1,
        description="User-Agent header sent when a request does not set one",
    )
    follow_redirects: bool = Field(
        default=True,
        description="Whether the transport follows redirects",
    )
    treat_error_status_as_failure: bool = Field(
        default=True,
        description=(
            "Report 4xx/5xx responses as transport failures. The response body "
            "is still delivered alongside the error."
        ),
    )

    @field_validator("user_agent", mode="before")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        """Strip surrounding whitespace from the User-Agent."""
        _ = cls
        return v.strip() if isinstance(v, str) else v


class Settings(BaseSettings):
    """Main settings class for Mercury."""

    model_config = SettingsConfigDict(
        env_prefix="MERCURY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = Field(
        default="Mercury", description="Name of the client application, for logs"
    )
    app_version: str = Field(
        default="0.1.0", description="Version of the client application, for logs"
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Environment the application is running in",
    )
    debug: bool = Field(default=False, description="Debug mode flag")

    # Logging configuration
    log_config: LogConfig = Field(
        default_factory=LogConfig, description="Logging configuration"
    )

    # Transport configuration
    transport_config: TransportConfig = Field(
        default_factory=TransportConfig, description="HTTP transport configuration"
    )

    def model_post_init(self, __context: object) -> None:
        """Post initialization to set environment-based defaults."""
        super().model_post_init(__context)

        if self.log_config.log_formatter_type is None:
            self.log_config.log_formatter_type = self._detect_formatter()

    def _detect_formatter(self) -> Literal["console", "json"]:
        """Auto-detect log formatter based on environment."""
        # Cloud runtimes ingest structured logs
        if os.getenv("K_SERVICE") or os.getenv("AWS_EXECUTION_ENV"):
            return "json"

        if self.environment == "development":
            return "console"
        return "json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
