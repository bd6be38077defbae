"""Configuration management for the D&D Beyond character converter.

This module provides centralized configuration using pydantic-settings,
supporting environment variables, .env files, and runtime overrides.

Example:
    >>> from ddb_converter.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.fetch.timeout_seconds)
    30.0

Environment Variables:
    DDB_CONVERTER_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    DDB_CONVERTER_JSON_LOGS: Emit one JSON object per log event
    DDB_CONVERTER_MANAGE_LOGGING: Set false when the host application configures logging
    DDB_CONVERTER_FEATURE_FLAGS: JSON object of feature flag overrides
    DDB_CONVERTER_FETCH_PROXY_URL: Optional CORS/relay proxy prefix
    DDB_CONVERTER_FETCH_MAX_RETRIES: Attempts for transient fetch failures
    DDB_CONVERTER_CONVERSION_DEFAULT_FORMAT: fantasy_grounds, foundry_vtt or generic_json
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ddb_converter.core.constants import DDB_CHARACTER_API_URL, DEFAULT_SANITIZE_MAX_LENGTH
from ddb_converter.core.exceptions import ConfigurationError


OutputFormat = Literal["fantasy_grounds", "foundry_vtt", "generic_json"]


class FetchSettings(BaseSettings):
    """Configuration for the D&D Beyond character-service client.

    Attributes:
        api_base_url: Character service endpoint; the character id is appended.
        proxy_url: Optional prefix placed in front of the full API URL.
        timeout_seconds: Per-request timeout.
        max_retries: Total attempts for transient failures (network, 5xx, 429).
        retry_backoff_seconds: Initial exponential backoff between attempts.
        retry_backoff_max_seconds: Upper bound for the backoff.
        user_agent: User-Agent header sent with every request.
    """

    model_config = SettingsConfigDict(
        env_prefix="DDB_CONVERTER_FETCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_base_url: str = Field(
        default=DDB_CHARACTER_API_URL,
        description="D&D Beyond character service endpoint",
    )
    proxy_url: str = Field(
        default="",
        description="Optional proxy prefix for the character service",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="HTTP request timeout",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum attempts for transient failures",
    )
    retry_backoff_seconds: float = Field(
        default=2.0,
        ge=0,
        le=60,
        description="Initial exponential backoff",
    )
    retry_backoff_max_seconds: float = Field(
        default=8.0,
        ge=0,
        le=300,
        description="Maximum backoff between attempts",
    )
    user_agent: str = Field(
        default="ddb-converter/0.1.0",
        description="User-Agent header",
    )

    @field_validator("api_base_url", mode="after")
    @classmethod
    def ensure_trailing_slash(cls, value: str) -> str:
        """Make sure the character id can be appended directly.

        Args:
            value: The configured endpoint.

        Returns:
            The endpoint ending in a slash.
        """
        return value if value.endswith("/") else f"{value}/"

    @model_validator(mode="after")
    def validate_backoff_window(self) -> "FetchSettings":
        """Ensure the backoff ceiling is not below the initial backoff.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If retry_backoff_max_seconds < retry_backoff_seconds.
        """
        if self.retry_backoff_max_seconds < self.retry_backoff_seconds:
            raise ConfigurationError(
                f"retry_backoff_max_seconds ({self.retry_backoff_max_seconds}) must be at least "
                f"retry_backoff_seconds ({self.retry_backoff_seconds})",
                config_key="retry_backoff_max_seconds",
            )
        return self


class ConversionSettings(BaseSettings):
    """Configuration for the conversion pipeline.

    Attributes:
        default_format: Output format used when a caller does not choose one.
        description_max_length: Truncation length for sanitized descriptions.
        include_descriptions: Emit feature/trait descriptions in the output.
        include_raw_data: Embed the validated payload in generic JSON output.
        validate_output: Check assembled XML and generic JSON documents.
    """

    model_config = SettingsConfigDict(
        env_prefix="DDB_CONVERTER_CONVERSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_format: OutputFormat = Field(
        default="fantasy_grounds",
        description="Default output format",
    )
    description_max_length: int = Field(
        default=DEFAULT_SANITIZE_MAX_LENGTH,
        ge=50,
        le=100_000,
        description="Maximum sanitized description length",
    )
    include_descriptions: bool = Field(
        default=True,
        description="Include descriptions for features and traits",
    )
    validate_output: bool = Field(
        default=True,
        description="Check assembled output documents before returning them",
    )
    include_raw_data: bool = Field(
        default=True,
        description="Embed the validated payload in generic JSON output",
    )


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name stamped on every log event.
        app_version: Application version stamped on every log event.
        debug: Enable debug mode; forces DEBUG logging.
        log_level: Application logging level.
        json_logs: Render logs as JSON instead of console output.
        manage_logging: Configure structlog when a converter is created.
        feature_flags: Overrides for the converter's feature flags.
        fetch: Character-service client settings.
        conversion: Conversion pipeline settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="DDB_CONVERTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="D&D Beyond Character Converter",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON formatted logs",
    )
    manage_logging: bool = Field(
        default=True,
        description="Configure structlog when a converter is created",
    )
    feature_flags: dict[str, bool] = Field(
        default_factory=dict,
        description="Feature flag overrides",
    )

    fetch: FetchSettings = Field(default_factory=FetchSettings)
    conversion: ConversionSettings = Field(default_factory=ConversionSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access.

    Example:
        >>> clear_settings_cache()
        >>> settings = get_settings()  # Reloads from environment
    """
    get_settings.cache_clear()


__all__ = [
    "OutputFormat",
    "FetchSettings",
    "ConversionSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
