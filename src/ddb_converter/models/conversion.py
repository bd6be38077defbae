"""Schemas for the conversion pipeline's intermediate and final results."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ddb_converter.models.character import DdbCharacter
from ddb_converter.models.features import (
    ProcessedFeatures,
    ProcessedLanguages,
    ProcessedProficiencies,
)
from ddb_converter.models.inventory import ProcessedInventory, WeaponEntry
from ddb_converter.models.results import (
    AbilityScoreResult,
    CharacterClass,
    EncumbranceResult,
    SpellSlotResult,
)


OutputFormatName = Literal["fantasy_grounds", "foundry_vtt", "generic_json"]


class ProcessedCharacter(BaseModel):
    """Every engine's output for one character.

    A section whose engine failed or was disabled by a feature flag is
    None. Failures are recorded in section_errors keyed by engine
    (inventory, weapons, spell_slots, ...); disabled engines are listed in
    disabled_sections by feature flag name.
    """

    model_config = ConfigDict(frozen=True)

    character: DdbCharacter
    abilities: AbilityScoreResult
    classes: list[CharacterClass] = Field(default_factory=list)
    spell_slots: SpellSlotResult | None = None
    encumbrance: EncumbranceResult | None = None
    inventory: ProcessedInventory | None = None
    weapons: list[WeaponEntry] | None = None
    features: ProcessedFeatures | None = None
    languages: ProcessedLanguages | None = None
    proficiencies: ProcessedProficiencies | None = None
    section_errors: dict[str, str] = Field(default_factory=dict)
    disabled_sections: list[str] = Field(default_factory=list)


class ConversionResult(BaseModel):
    """Outcome of one conversion request.

    Attributes:
        success: Whether an output document was produced.
        output: The serialized document (XML or JSON).
        format: Output format requested.
        character_name: Name of the converted character.
        character_id: D&D Beyond id of the converted character.
        warnings: Non-fatal problems (degraded sections, disabled engines).
        section_errors: Section name -> failure message.
        error: Fatal error message when success is False.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    output: str | None = None
    format: OutputFormatName = "fantasy_grounds"
    character_name: str | None = None
    character_id: str | None = None
    warnings: list[str] = Field(default_factory=list)
    section_errors: dict[str, str] = Field(default_factory=dict)
    error: str | None = None


__all__ = [
    "OutputFormatName",
    "ProcessedCharacter",
    "ConversionResult",
]
