"""Generic JSON formatter.

Dumps a processed character as one JSON document for custom tooling and
debugging: a metadata header, a summary of the character, every engine's
result, and the degraded-section bookkeeping. The validated source
payload is included under ``rawData`` unless turned off.

Example:
    >>> document = format_generic_json(processed, include_raw=False)
    >>> document["character"]["level"]
    4
    >>> output = serialize_generic_json(document)
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from ddb_converter.core.exceptions import ExportError
from ddb_converter.core.logging import get_logger
from ddb_converter.models.conversion import ProcessedCharacter
from ddb_converter.models.enums import Alignment
from ddb_converter.models.progression import get_proficiency_bonus
from ddb_converter.rules.vitals import (
    calculate_armor_class,
    calculate_max_hit_points,
    current_hit_points,
)


logger = get_logger(__name__)

FORMAT_NAME = "generic_json"
FORMAT_VERSION = "1.0"

ENGINE_SECTIONS: tuple[str, ...] = (
    "abilities",
    "classes",
    "spell_slots",
    "encumbrance",
    "inventory",
    "weapons",
    "features",
    "languages",
    "proficiencies",
)
"""ProcessedCharacter fields written under ``processed``."""


def _summary(processed: ProcessedCharacter) -> dict[str, Any]:
    character = processed.character
    abilities = processed.abilities
    alignment = Alignment.from_ddb_id(character.alignment_id)
    level = character.total_level
    return {
        "id": character.id,
        "name": character.display_name,
        "level": level,
        "proficiencyBonus": get_proficiency_bonus(level),
        "race": character.race.display_name if character.race else None,
        "background": character.background.name if character.background else None,
        "alignment": alignment.display_name if alignment else None,
        "classes": [{"name": c.name, "level": c.level} for c in processed.classes],
        "hitPoints": {
            "base": character.base_hit_points,
            "bonus": character.bonus_hit_points or 0,
            "current": current_hit_points(character, abilities),
            "maximum": calculate_max_hit_points(character, abilities),
            "temp": character.temporary_hit_points,
        },
        "armorClass": calculate_armor_class(character, abilities),
        "currentXp": character.current_xp,
    }


def format_generic_json(
    processed: ProcessedCharacter,
    *,
    include_raw: bool = True,
    exported_at: datetime | None = None,
) -> dict[str, Any]:
    """Build the generic JSON document.

    Args:
        processed: Processed character.
        include_raw: Include the validated payload under ``rawData``.
        exported_at: Export timestamp; now (UTC) when omitted.

    Returns:
        Document ready for serialize_generic_json().
    """
    character = processed.character
    exported_at = exported_at or datetime.now(timezone.utc)

    document = {
        "metadata": {
            "format": FORMAT_NAME,
            "version": FORMAT_VERSION,
            "exportDate": exported_at.isoformat(),
            "characterId": character.id,
            "characterName": character.display_name,
        },
        "character": _summary(processed),
        "processed": processed.model_dump(mode="json", include=set(ENGINE_SECTIONS)),
        "sectionErrors": dict(processed.section_errors),
        "disabledSections": list(processed.disabled_sections),
        "rejectedEntries": character.rejected_entries,
        "rawData": (
            character.model_dump(mode="json", by_alias=True, exclude={"rejected_entries"})
            if include_raw
            else None
        ),
    }

    logger.info(
        "Generic JSON document generated",
        sections=[name for name in ENGINE_SECTIONS if getattr(processed, name) is not None],
        raw=include_raw,
    )
    return document


def validate_generic_json(output: str) -> list[str]:
    """Check a serialized document has its required members.

    Args:
        output: Serialized document.

    Returns:
        Problems found; empty when the document is well formed.
    """
    try:
        document = json.loads(output)
    except json.JSONDecodeError as exc:
        return [f"Invalid JSON: {exc.msg}"]

    errors = []
    if not isinstance(document.get("metadata"), dict):
        errors.append("Missing metadata object")
    summary = document.get("character")
    if not isinstance(summary, dict):
        errors.append("Missing character object")
        summary = {}
    if summary.get("id") is None:
        errors.append("Missing character ID")
    if not summary.get("name"):
        errors.append("Missing character name")
    return errors


def serialize_generic_json(document: dict[str, Any], *, validate: bool = True) -> str:
    """Serialize a document as indented JSON.

    Args:
        document: Output of format_generic_json().
        validate: Check the required members after serializing.

    Returns:
        The JSON text.

    Raises:
        ExportError: If validation finds a problem.
    """
    output = json.dumps(document, indent=2, default=str)
    if validate:
        errors = validate_generic_json(output)
        if errors:
            raise ExportError(
                f"Generated JSON failed validation: {'; '.join(errors)}",
                format_name=FORMAT_NAME,
                details={"errors": errors},
            )
    return output


__all__ = [
    "FORMAT_NAME",
    "FORMAT_VERSION",
    "ENGINE_SECTIONS",
    "format_generic_json",
    "serialize_generic_json",
    "validate_generic_json",
]
