"""Tests for the generic JSON formatter."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import pytest

from ddb_converter.core.exceptions import ExportError
from ddb_converter.export.generic_json import (
    ENGINE_SECTIONS,
    format_generic_json,
    serialize_generic_json,
    validate_generic_json,
)
from ddb_converter.models.conversion import ProcessedCharacter


EXPORTED_AT = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class TestFormatGenericJson:
    """Tests for format_generic_json."""

    def test_metadata(self, processed_fighter: ProcessedCharacter) -> None:
        """Test the metadata header."""
        document = format_generic_json(processed_fighter, exported_at=EXPORTED_AT)

        assert document["metadata"] == {
            "format": "generic_json",
            "version": "1.0",
            "exportDate": "2026-01-02T03:04:05+00:00",
            "characterId": 151483095,
            "characterName": "Thorin",
        }

    def test_character_summary(self, processed_fighter: ProcessedCharacter) -> None:
        """Test level, proficiency bonus, and class summary."""
        summary = format_generic_json(processed_fighter)["character"]

        assert summary["id"] == 151483095
        assert summary["name"] == "Thorin"
        assert summary["level"] == 4
        assert summary["proficiencyBonus"] == 2
        assert summary["classes"] == [{"name": "Fighter", "level": 4}]
        assert summary["hitPoints"]["base"] == 34
        assert summary["hitPoints"]["current"] == summary["hitPoints"]["maximum"] - 5

    def test_engine_results_included(self, processed_fighter: ProcessedCharacter) -> None:
        """Test every engine's result is dumped under processed."""
        processed = format_generic_json(processed_fighter)["processed"]

        assert set(processed) == set(ENGINE_SECTIONS)
        assert processed["encumbrance"]["total_weight"] == pytest.approx(83.5)
        assert processed["inventory"]["statistics"]["total_items"] == 7

    def test_missing_engines_are_null(self, processed_fighter: ProcessedCharacter) -> None:
        """Test failed or disabled engines appear as null with their bookkeeping."""
        processed = processed_fighter.model_copy(
            update={
                "inventory": None,
                "weapons": None,
                "section_errors": {"inventory": "boom"},
                "disabled_sections": ["feature_processor"],
            }
        )

        document = format_generic_json(processed)

        assert document["processed"]["inventory"] is None
        assert document["sectionErrors"] == {"inventory": "boom"}
        assert document["disabledSections"] == ["feature_processor"]

    def test_raw_data_optional(self, processed_fighter: ProcessedCharacter) -> None:
        """Test the validated payload is embedded with its camelCase keys."""
        with_raw = format_generic_json(processed_fighter)
        without_raw = format_generic_json(processed_fighter, include_raw=False)

        assert with_raw["rawData"]["baseHitPoints"] == 34
        assert "rejectedEntries" not in with_raw["rawData"]
        assert without_raw["rawData"] is None


class TestSerializeGenericJson:
    """Tests for serialize_generic_json and validate_generic_json."""

    def test_output_parses(self, processed_fighter: ProcessedCharacter) -> None:
        """Test serialized output is JSON of the same document."""
        document = format_generic_json(processed_fighter, exported_at=EXPORTED_AT)

        output = serialize_generic_json(document)

        assert json.loads(output)["metadata"]["characterName"] == "Thorin"
        assert output.startswith('{\n  "metadata": {')

    @pytest.mark.parametrize(
        ("output", "expected"),
        [
            ("not json", ["Invalid JSON"]),
            ("{}", ["Missing metadata object", "Missing character object"]),
            ('{"metadata": {}, "character": {"name": "X"}}', ["Missing character ID"]),
            ('{"metadata": {}, "character": {"id": 1, "name": ""}}', ["Missing character name"]),
        ],
    )
    def test_validation_errors(self, output: str, expected: list[str]) -> None:
        """Test each missing member is reported."""
        errors = validate_generic_json(output)

        assert len(errors) >= len(expected)
        for message in expected:
            assert any(e.startswith(message) for e in errors)

    def test_invalid_document_raises(self) -> None:
        """Test a document without a character id fails validation."""
        document: dict[str, Any] = {"metadata": {}, "character": {"id": None, "name": "X"}}

        with pytest.raises(ExportError) as exc_info:
            serialize_generic_json(document)

        assert "Missing character ID" in exc_info.value.message
        assert exc_info.value.details["format_name"] == "generic_json"

    def test_validation_can_be_skipped(self) -> None:
        """Test validate=False returns the text unchecked."""
        output = serialize_generic_json({"character": {}}, validate=False)

        assert json.loads(output) == {"character": {}}
