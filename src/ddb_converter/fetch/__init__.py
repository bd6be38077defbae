"""D&D Beyond character-service client.

Example:
    >>> from ddb_converter.fetch import CharacterFetcher
    >>> character_json = CharacterFetcher().fetch_character("151483095")
"""

from __future__ import annotations

from ddb_converter.fetch.client import (
    STATUS_MESSAGES,
    CharacterFetcher,
    classify_response_error,
    extract_character,
    validate_character_id,
)


__all__ = [
    "STATUS_MESSAGES",
    "CharacterFetcher",
    "classify_response_error",
    "extract_character",
    "validate_character_id",
]
