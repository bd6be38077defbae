"""Tests for the D&D Beyond character-service client."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
import requests

from ddb_converter.core.config import FetchSettings
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
from ddb_converter.fetch.client import (
    CharacterFetcher,
    classify_response_error,
    extract_character,
    validate_character_id,
)


CHARACTER = {"id": 151483095, "name": "Thorin"}


def _response(status: int = 200, payload: Any = None, **headers: str) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.headers = headers
    response.json.return_value = payload
    return response


@pytest.fixture
def session() -> MagicMock:
    """Mock requests session."""
    return MagicMock()


@pytest.fixture
def fetcher(session: MagicMock, fast_fetch_settings: FetchSettings) -> CharacterFetcher:
    """Fetcher with three attempts, no backoff, and a mock session."""
    return CharacterFetcher(fast_fetch_settings, session=session)


class TestValidateCharacterId:
    """Tests for validate_character_id."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("151483095", "151483095"),
            (151483095, "151483095"),
            ("  42  ", "42"),
            ("https://www.dndbeyond.com/characters/151483095", "151483095"),
            ("https://dndbeyond.com/characters/42/builder", "42"),
        ],
    )
    def test_valid(self, raw: str | int, expected: str) -> None:
        """Test bare ids and sharing URLs."""
        assert validate_character_id(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "12a", "https://example.com/42"])
    def test_invalid(self, raw: str | None) -> None:
        """Test values without an id are rejected."""
        with pytest.raises(InvalidCharacterIdError):
            validate_character_id(raw)

    def test_invalid_format_message(self) -> None:
        """Test the user-facing message for malformed input."""
        with pytest.raises(InvalidCharacterIdError) as exc_info:
            validate_character_id("not-an-id")

        assert exc_info.value.message == (
            "Invalid format. Use character ID or D&D Beyond character URL"
        )


class TestClassifyResponseError:
    """Tests for classify_response_error."""

    @pytest.mark.parametrize(
        ("status", "error_type", "retryable"),
        [
            (401, CharacterNotPublicError, False),
            (403, CharacterNotPublicError, False),
            (404, CharacterNotFoundError, False),
            (429, RateLimitError, True),
            (500, UpstreamServerError, True),
            (502, UpstreamServerError, True),
            (503, UpstreamServerError, True),
        ],
    )
    def test_status_mapping(self, status: int, error_type: type[FetchError], retryable: bool) -> None:
        """Test each status maps to its error class."""
        error = classify_response_error(_response(status), "42")

        assert type(error) is error_type
        assert error.retryable is retryable
        assert error.character_id == "42"
        assert error.status_code == status

    def test_messages(self) -> None:
        """Test user-facing messages."""
        assert classify_response_error(_response(404), "1").user_message == (
            "Character not found. Please check the character ID."
        )
        assert classify_response_error(_response(403), "1").user_message == (
            "Access denied. Character must be set to Public visibility."
        )

    def test_unknown_status(self) -> None:
        """Test other statuses become a plain FetchError."""
        error = classify_response_error(_response(418), "1")

        assert type(error) is FetchError
        assert error.retryable is False
        assert error.message == "Unable to fetch character data (Error 418). Please try again."

    def test_retry_after_header(self) -> None:
        """Test Retry-After is parsed when numeric."""
        limited = classify_response_error(_response(429, **{"Retry-After": "12"}), "1")
        garbled = classify_response_error(_response(429, **{"Retry-After": "soon"}), "1")

        assert isinstance(limited, RateLimitError)
        assert limited.retry_after_seconds == 12.0
        assert isinstance(garbled, RateLimitError)
        assert garbled.retry_after_seconds is None


class TestExtractCharacter:
    """Tests for extract_character."""

    def test_wrapper(self) -> None:
        """Test the success/data wrapper is unwrapped."""
        assert extract_character({"success": True, "data": CHARACTER}, "1") == CHARACTER

    def test_bare_character(self) -> None:
        """Test a bare character object is accepted."""
        assert extract_character(CHARACTER, "1") == CHARACTER

    @pytest.mark.parametrize(
        "payload",
        [None, [], {"success": False, "data": CHARACTER}, {"success": True, "data": None}, {"id": 1}],
    )
    def test_invalid(self, payload: Any) -> None:
        """Test payloads without a character are rejected."""
        with pytest.raises(InvalidResponseError) as exc_info:
            extract_character(payload, "1")

        assert exc_info.value.message == "Invalid response format from D&D Beyond API"


class TestCharacterFetcher:
    """Tests for CharacterFetcher.fetch_character."""

    def test_build_url(self, fast_fetch_settings: FetchSettings, session: MagicMock) -> None:
        """Test the proxy prefix and endpoint are joined with the id."""
        plain = CharacterFetcher(fast_fetch_settings, session=session)
        proxied = CharacterFetcher(
            fast_fetch_settings.model_copy(update={"proxy_url": "https://proxy.example/?u="}),
            session=session,
        )

        assert plain.build_url("42") == (
            "https://character-service.dndbeyond.com/character/v5/character/42"
        )
        assert proxied.build_url("42").startswith("https://proxy.example/?u=https://")

    def test_success(self, fetcher: CharacterFetcher, session: MagicMock) -> None:
        """Test a wrapped response is unwrapped and the URL id extracted."""
        session.get.return_value = _response(200, {"success": True, "data": CHARACTER})

        data = fetcher.fetch_character("https://www.dndbeyond.com/characters/151483095")

        assert data == CHARACTER
        url = session.get.call_args.args[0]
        assert url.endswith("/151483095")
        assert session.get.call_args.kwargs["timeout"] == fetcher.settings.timeout_seconds

    def test_sets_headers(self, fetcher: CharacterFetcher, session: MagicMock) -> None:
        """Test Accept and User-Agent headers are set on the session."""
        headers = session.headers.update.call_args.args[0]

        assert headers["Accept"] == "application/json"
        assert headers["User-Agent"] == fetcher.settings.user_agent

    def test_not_found_is_not_retried(self, fetcher: CharacterFetcher, session: MagicMock) -> None:
        """Test a 404 fails on the first attempt."""
        session.get.return_value = _response(404)

        with pytest.raises(CharacterNotFoundError):
            fetcher.fetch_character("42")

        assert session.get.call_count == 1

    def test_not_public_is_not_retried(self, fetcher: CharacterFetcher, session: MagicMock) -> None:
        """Test a 403 fails on the first attempt."""
        session.get.return_value = _response(403)

        with pytest.raises(CharacterNotPublicError):
            fetcher.fetch_character("42")

        assert session.get.call_count == 1

    def test_network_errors_are_retried(self, fetcher: CharacterFetcher, session: MagicMock) -> None:
        """Test connection failures are retried up to max_retries."""
        session.get.side_effect = requests.ConnectionError("reset")

        with pytest.raises(NetworkError) as exc_info:
            fetcher.fetch_character("42")

        assert session.get.call_count == 3
        assert exc_info.value.retryable is True
        assert "Network error" in exc_info.value.message

    def test_timeout_message(self, fetcher: CharacterFetcher, session: MagicMock) -> None:
        """Test timeouts get their own message."""
        session.get.side_effect = requests.Timeout("slow")

        with pytest.raises(NetworkError) as exc_info:
            fetcher.fetch_character("42")

        assert exc_info.value.message.startswith("Request timed out")

    def test_server_error_then_success(self, fetcher: CharacterFetcher, session: MagicMock) -> None:
        """Test a transient 503 is retried until the service recovers."""
        session.get.side_effect = [_response(503), _response(503), _response(200, CHARACTER)]

        assert fetcher.fetch_character("42") == CHARACTER
        assert session.get.call_count == 3

    def test_server_error_exhausts_retries(
        self,
        fetcher: CharacterFetcher,
        session: MagicMock,
    ) -> None:
        """Test the last error is re-raised once attempts run out."""
        session.get.return_value = _response(502)

        with pytest.raises(UpstreamServerError) as exc_info:
            fetcher.fetch_character("42")

        assert session.get.call_count == 3
        assert exc_info.value.status_code == 502

    def test_invalid_json(self, fetcher: CharacterFetcher, session: MagicMock) -> None:
        """Test an unparseable body fails without retrying."""
        response = _response(200)
        response.json.side_effect = ValueError("Expecting value")
        session.get.return_value = response

        with pytest.raises(InvalidResponseError) as exc_info:
            fetcher.fetch_character("42")

        assert exc_info.value.message.startswith("JSON parsing error")
        assert session.get.call_count == 1

    def test_invalid_id_never_requests(self, fetcher: CharacterFetcher, session: MagicMock) -> None:
        """Test id validation happens before any request."""
        with pytest.raises(InvalidCharacterIdError):
            fetcher.fetch_character("not-an-id")

        session.get.assert_not_called()
