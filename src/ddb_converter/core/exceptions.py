"""Custom exception hierarchy for the D&D Beyond character converter.

All exceptions inherit from DdbConverterError so callers can handle any
converter failure at the application boundary, while the subclasses keep
the context of the domain that raised them (configuration, input
validation, upstream fetch, section processing, document export).

Example:
    >>> from ddb_converter.core.exceptions import CharacterNotFoundError
    >>> raise CharacterNotFoundError("No such character", character_id="12345", status_code=404)
"""

from __future__ import annotations

from typing import Any


class DdbConverterError(Exception):
    """Base exception for all converter errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception.

        Returns:
            String representation suitable for debugging.
        """
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(DdbConverterError):
    """Raised when application configuration is invalid.

    This includes invalid settings values, unknown feature flags in a
    strict context, or incompatible configuration combinations.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(DdbConverterError):
    """Raised when input validation fails.

    Input validation errors are surfaced to the caller immediately and
    are never retried.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


class InvalidCharacterIdError(ValidationError):
    """Raised when a character ID or URL cannot be parsed."""


class CharacterDataError(ValidationError):
    """Raised when character JSON does not match the expected schema."""


# =============================================================================
# Upstream Fetch Exceptions
# =============================================================================


class FetchError(DdbConverterError):
    """Base exception for D&D Beyond character-service failures.

    Each subclass carries a user-facing message and whether the failure
    is transient. Only retryable failures are re-attempted by the fetcher.

    Attributes:
        character_id: The character that was being fetched.
        status_code: HTTP status code returned by the service, if any.
        retryable: Whether the request may succeed if attempted again.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        character_id: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize fetch error with request context.

        Args:
            message: Human-readable error description.
            character_id: The character that was being fetched.
            status_code: HTTP status code returned by the service.
            details: Optional dictionary containing additional error context.
        """
        self.character_id = character_id
        self.status_code = status_code
        combined_details = details or {}
        if character_id:
            combined_details["character_id"] = character_id
        if status_code is not None:
            combined_details["status_code"] = status_code
        super().__init__(message, details=combined_details)

    @property
    def user_message(self) -> str:
        """Message suitable for showing to the person running the conversion."""
        return self.message


class CharacterNotPublicError(FetchError):
    """Raised on 401/403: the character exists but is not publicly visible."""


class CharacterNotFoundError(FetchError):
    """Raised on 404: no character with this ID exists."""


class RateLimitError(FetchError):
    """Raised on 429: the character service is throttling requests.

    This exception includes retry timing information when available.
    """

    retryable = True

    def __init__(
        self,
        message: str,
        *,
        retry_after_seconds: float | None = None,
        character_id: str | None = None,
        status_code: int | None = 429,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize rate limit error with retry context.

        Args:
            message: Human-readable error description.
            retry_after_seconds: Seconds to wait before retrying.
            character_id: The character that was being fetched.
            status_code: HTTP status code returned by the service.
            details: Optional dictionary containing additional error context.
        """
        self.retry_after_seconds = retry_after_seconds
        combined_details = details or {}
        if retry_after_seconds is not None:
            combined_details["retry_after_seconds"] = retry_after_seconds
        super().__init__(
            message,
            character_id=character_id,
            status_code=status_code,
            details=combined_details,
        )


class UpstreamServerError(FetchError):
    """Raised on 500/502/503 from the character service."""

    retryable = True


class NetworkError(FetchError):
    """Raised when the request never produced a response (DNS, timeout, reset)."""

    retryable = True


class InvalidResponseError(FetchError):
    """Raised when the service responds with a body that is not a character."""


# =============================================================================
# Conversion Exceptions
# =============================================================================


class ProcessingError(DdbConverterError):
    """Raised when a rules engine fails while building one sheet section.

    The converter catches this per section, logs it, and degrades the
    affected fragment to a placeholder comment.
    """

    def __init__(
        self,
        message: str,
        *,
        section: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize processing error with section context.

        Args:
            message: Human-readable error description.
            section: Name of the sheet section being generated.
            details: Optional dictionary containing additional error context.
        """
        self.section = section
        combined_details = details or {}
        if section:
            combined_details["section"] = section
        super().__init__(message, details=combined_details)


class ExportError(DdbConverterError):
    """Raised when an assembled output document is invalid."""

    def __init__(
        self,
        message: str,
        *,
        format_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize export error with output format context.

        Args:
            message: Human-readable error description.
            format_name: The output format being generated.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if format_name:
            combined_details["format_name"] = format_name
        super().__init__(message, details=combined_details)


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
]
