"""Tests for language extraction."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Callable
from typing import Any

import pytest

from ddb_converter.models.character import DdbCharacter
from ddb_converter.rules.languages import (
    foundry_languages,
    generate_language_xml,
    is_language_choice,
    language_display_name,
    language_foundry_key,
    process_languages,
)


def _language(sub_type: str, *, granted: bool = True) -> dict[str, Any]:
    return {"type": "language", "subType": sub_type, "isGranted": granted}


class TestLanguageNames:
    """Tests for name and code lookups."""

    @pytest.mark.parametrize(
        ("sub_type", "expected"),
        [
            ("common", "Common"),
            ("deep-speech", "Deep Speech"),
            ("thieves-cant", "Thieves' Cant"),
            ("old-tongue", "Old Tongue"),
            ("DWARVISH", "Dwarvish"),
        ],
    )
    def test_display_name(self, sub_type: str, expected: str) -> None:
        """Test the table, then title-cased subTypes."""
        assert language_display_name(sub_type) == expected

    def test_foundry_key(self) -> None:
        """Test dialects map to their parent language code."""
        assert language_foundry_key("deep-speech") == "deep"
        assert language_foundry_key("auran") == "primordial"
        assert language_foundry_key("gith") is None
        assert language_foundry_key("old-tongue") is None

    def test_choice_sub_types(self) -> None:
        """Test placeholder grants are recognized."""
        assert is_language_choice("choose-a-language")
        assert is_language_choice("Select-A-Standard-Language")
        assert not is_language_choice("elvish")


class TestProcessLanguages:
    """Tests for process_languages."""

    def test_fighter_languages(self, fighter: DdbCharacter) -> None:
        """Test granted languages and the background choice."""
        result = process_languages(fighter)

        assert [lang.name for lang in result.languages] == ["Common", "Dwarvish"]
        assert result.total_languages == 2
        assert result.languages[0].source == "race"
        assert [(c.sub_type, c.source) for c in result.choices] == [
            ("choose-a-language", "background"),
        ]
        assert result.skipped == []

    def test_duplicates_and_ungranted_skipped(
        self,
        build_character: Callable[..., DdbCharacter],
    ) -> None:
        """Test each language is listed once and only when granted."""
        character = build_character(
            modifiers={
                "race": [_language("elvish"), _language("sylvan", granted=False)],
                "class": [_language("elvish"), _language("abyssal")],
            }
        )

        result = process_languages(character)

        assert [lang.name for lang in result.languages] == ["Abyssal", "Elvish"]
        assert result.skipped == ["sylvan", "elvish"]

    def test_non_language_modifiers_ignored(
        self,
        build_character: Callable[..., DdbCharacter],
    ) -> None:
        """Test only language modifiers are read."""
        character = build_character(
            modifiers={"race": [{"type": "proficiency", "subType": "common", "isGranted": True}]}
        )

        assert process_languages(character).languages == []


class TestFoundryLanguages:
    """Tests for the Foundry VTT traits.languages value."""

    def test_codes_and_custom(self, build_character: Callable[..., DdbCharacter]) -> None:
        """Test known codes are deduplicated and unknown names go to custom."""
        character = build_character(
            modifiers={
                "race": [
                    _language("aquan"),
                    _language("auran"),
                    _language("common"),
                    _language("gith"),
                    _language("sphinx"),
                ]
            }
        )

        value = foundry_languages(process_languages(character))

        assert value == {"value": ["primordial", "common"], "custom": "Gith; Sphinx"}

    def test_fighter(self, fighter: DdbCharacter) -> None:
        """Test the fighter has no custom languages."""
        assert foundry_languages(process_languages(fighter)) == {
            "value": ["common", "dwarvish"],
            "custom": "",
        }


class TestLanguageXml:
    """Tests for the languagelist fragment."""

    def test_languagelist(self, fighter: DdbCharacter) -> None:
        """Test one record per language."""
        root = ET.fromstring(generate_language_xml(process_languages(fighter)))

        assert root.tag == "languagelist"
        assert [r.findtext("name") for r in root] == ["Common", "Dwarvish"]
        assert root[0].tag == "id-00001"

    def test_empty_languagelist(self) -> None:
        """Test a character without languages still gets the element."""
        xml = generate_language_xml(process_languages(DdbCharacter.model_validate({})))

        assert len(ET.fromstring(xml)) == 0
