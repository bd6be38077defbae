"""Core module providing configuration, logging, feature flags, and exceptions.

Exports:
    Exceptions:
        DdbConverterError: Base exception for all converter errors.
        ConfigurationError: Configuration-related errors.
        ValidationError: Input validation errors.
        FetchError: Character-service failures.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.
        FeatureFlags: Immutable feature flag set.

    Logging:
        configure_logging: Set up application logging.
        configure_from_settings: Apply the logging fields of Settings.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from ddb_converter.core.config import (
    ConversionSettings,
    FetchSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from ddb_converter.core.exceptions import (
    CharacterDataError,
    CharacterNotFoundError,
    CharacterNotPublicError,
    ConfigurationError,
    DdbConverterError,
    ExportError,
    FetchError,
    InvalidCharacterIdError,
    InvalidResponseError,
    NetworkError,
    ProcessingError,
    RateLimitError,
    UpstreamServerError,
    ValidationError,
)
from ddb_converter.core.flags import DEFAULT_FEATURE_FLAGS, FeatureFlag, FeatureFlags
from ddb_converter.core.logging import (
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
)


__all__ = [
    # Base exception
    "DdbConverterError",
    # Configuration & validation exceptions
    "ConfigurationError",
    "ValidationError",
    "InvalidCharacterIdError",
    "CharacterDataError",
    # Fetch exceptions
    "FetchError",
    "CharacterNotPublicError",
    "CharacterNotFoundError",
    "RateLimitError",
    "UpstreamServerError",
    "NetworkError",
    "InvalidResponseError",
    # Conversion exceptions
    "ProcessingError",
    "ExportError",
    # Configuration
    "Settings",
    "FetchSettings",
    "ConversionSettings",
    "get_settings",
    "clear_settings_cache",
    # Feature flags
    "FeatureFlag",
    "FeatureFlags",
    "DEFAULT_FEATURE_FLAGS",
    # Logging
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
]
