"""D&D Beyond character-service client.

Fetches a public character by id (or sharing URL) and classifies failures
into the FetchError hierarchy. Only transient failures (network errors,
5xx responses, and rate limiting) are retried, with exponential backoff;
authorization and not-found responses fail immediately.

Example:
    >>> fetcher = CharacterFetcher()
    >>> data = fetcher.fetch_character("https://www.dndbeyond.com/characters/151483095")
    >>> data["name"]
    'Thorin'
"""

from __future__ import annotations

import re
from typing import Any

import requests
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ddb_converter.core.config import FetchSettings, get_settings
from ddb_converter.core.constants import DDB_CHARACTER_URL_PATTERN
from ddb_converter.core.exceptions import (
    CharacterNotFoundError,
    CharacterNotPublicError,
    FetchError,
    InvalidCharacterIdError,
    InvalidResponseError,
    NetworkError,
    RateLimitError,
    UpstreamServerError,
)
from ddb_converter.core.logging import get_logger


logger = get_logger(__name__)

_URL_ID = re.compile(DDB_CHARACTER_URL_PATTERN)
_DIGITS = re.compile(r"^\d+$")

SERVER_ERROR_STATUSES = frozenset({500, 502, 503})

STATUS_MESSAGES: dict[int, str] = {
    401: "Character not found or not public. Ensure character visibility is set to Public.",
    403: "Access denied. Character must be set to Public visibility.",
    404: "Character not found. Please check the character ID.",
    429: "Rate limit exceeded. Please wait before trying again.",
    500: "D&D Beyond server error. Please try again later.",
    502: "D&D Beyond server error. Please try again later.",
    503: "D&D Beyond server error. Please try again later.",
}


def validate_character_id(raw: str | int | None) -> str:
    """Extract a numeric character id from an id or a sharing URL.

    Args:
        raw: A bare id ("151483095") or a dndbeyond.com/characters/<id> URL.

    Returns:
        The id as a string of digits.

    Raises:
        InvalidCharacterIdError: If no id can be found.

    Example:
        >>> validate_character_id("https://www.dndbeyond.com/characters/42/builder")
        '42'
    """
    if raw is None:
        raise InvalidCharacterIdError("Character ID is required", field_name="character_id")
    text = str(raw).strip()
    if not text:
        raise InvalidCharacterIdError("Character ID is required", field_name="character_id")

    match = _URL_ID.search(text)
    if match:
        return match.group(1)
    if _DIGITS.match(text):
        return text
    raise InvalidCharacterIdError(
        "Invalid format. Use character ID or D&D Beyond character URL",
        field_name="character_id",
        invalid_value=text,
    )


def _retry_after(response: requests.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def classify_response_error(response: requests.Response, character_id: str) -> FetchError:
    """Map a non-2xx response to the matching FetchError.

    Args:
        response: The failed response.
        character_id: The character being fetched.

    Returns:
        An exception instance (not raised).
    """
    status = response.status_code
    message = STATUS_MESSAGES.get(
        status,
        f"Unable to fetch character data (Error {status}). Please try again.",
    )
    if status in (401, 403):
        return CharacterNotPublicError(message, character_id=character_id, status_code=status)
    if status == 404:
        return CharacterNotFoundError(message, character_id=character_id, status_code=status)
    if status == 429:
        return RateLimitError(
            message,
            retry_after_seconds=_retry_after(response),
            character_id=character_id,
        )
    if status in SERVER_ERROR_STATUSES:
        return UpstreamServerError(message, character_id=character_id, status_code=status)
    return FetchError(message, character_id=character_id, status_code=status)


def extract_character(payload: Any, character_id: str) -> dict[str, Any]:
    """Unwrap the character from a proxy wrapper or a bare response.

    Raises:
        InvalidResponseError: If the payload holds no character.
    """
    if isinstance(payload, dict):
        if payload.get("success") and isinstance(payload.get("data"), dict):
            return payload["data"]
        if payload.get("id") and payload.get("name"):
            return payload
    raise InvalidResponseError(
        "Invalid response format from D&D Beyond API",
        character_id=character_id,
    )


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, FetchError) and exc.retryable


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retrying character fetch",
        attempt=retry_state.attempt_number,
        error_type=type(exc).__name__ if exc else None,
    )


class CharacterFetcher:
    """Fetches character JSON from the D&D Beyond character service.

    Attributes:
        settings: Client settings (endpoint, timeout, retry policy).
        session: HTTP session reused across requests.
    """

    def __init__(
        self,
        settings: FetchSettings | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings or get_settings().fetch
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/json",
                "User-Agent": self.settings.user_agent,
            }
        )

    def build_url(self, character_id: str) -> str:
        """Full request URL, including the optional proxy prefix."""
        return f"{self.settings.proxy_url}{self.settings.api_base_url}{character_id}"

    def _request(self, character_id: str) -> dict[str, Any]:
        url = self.build_url(character_id)
        try:
            response = self.session.get(url, timeout=self.settings.timeout_seconds)
        except requests.Timeout as exc:
            raise NetworkError(
                "Request timed out. Please check your connection and try again.",
                character_id=character_id,
                details={"url": url},
            ) from exc
        except requests.RequestException as exc:
            raise NetworkError(
                "Network error. Please check your internet connection and try again.",
                character_id=character_id,
                details={"url": url, "error": str(exc)},
            ) from exc

        if not response.ok:
            raise classify_response_error(response, character_id)

        try:
            payload = response.json()
        except ValueError as exc:
            raise InvalidResponseError(
                f"JSON parsing error: {exc}",
                character_id=character_id,
                status_code=response.status_code,
            ) from exc
        return extract_character(payload, character_id)

    def fetch_character(self, raw_id: str | int) -> dict[str, Any]:
        """Fetch one character.

        Args:
            raw_id: Character id or sharing URL.

        Returns:
            The character JSON object.

        Raises:
            InvalidCharacterIdError: If raw_id holds no character id.
            FetchError: If the service call fails after any retries.
        """
        character_id = validate_character_id(raw_id)
        settings = self.settings

        @retry(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(settings.max_retries),
            wait=wait_exponential(
                multiplier=settings.retry_backoff_seconds,
                max=settings.retry_backoff_max_seconds,
            ),
            before_sleep=_log_retry,
            reraise=True,
        )
        def _fetch() -> dict[str, Any]:
            return self._request(character_id)

        logger.info("Fetching character", character_id=character_id)
        try:
            data = _fetch()
        except FetchError as exc:
            logger.warning(
                "Character fetch failed",
                character_id=character_id,
                error_type=type(exc).__name__,
                status_code=exc.status_code,
            )
            raise
        logger.info("Character fetched", character_id=character_id, name=data.get("name"))
        return data


__all__ = [
    "STATUS_MESSAGES",
    "validate_character_id",
    "classify_response_error",
    "extract_character",
    "CharacterFetcher",
]
