"""Pydantic V2 schemas for the D&D Beyond character converter.

This package contains the input schema for D&D Beyond character JSON, the
result schemas produced by each rules engine, the enumerations they share,
and the static D&D 5E progression tables.
"""

from __future__ import annotations

from ddb_converter.models.character import (
    DdbCharacter,
    DdbClass,
    DdbFeat,
    DdbItem,
    DdbModifier,
    DdbModifiers,
    DdbRace,
)
from ddb_converter.models.conversion import ConversionResult, ProcessedCharacter
from ddb_converter.models.enums import (
    Ability,
    Alignment,
    CasterType,
    DamageType,
    EncumbranceLevel,
    FeatureType,
    ProficiencyLevel,
    Skill,
    TraitType,
    WeaponType,
)
from ddb_converter.models.features import (
    ClassFeature,
    Feat,
    FeatureOptions,
    Language,
    LanguageChoice,
    ProcessedFeatures,
    ProcessedLanguages,
    ProcessedProficiencies,
    RacialTrait,
)
from ddb_converter.models.inventory import (
    InventoryOptions,
    NestedInventory,
    ProcessedInventory,
    WeaponEntry,
)
from ddb_converter.models.results import (
    AbilityScore,
    AbilityScoreResult,
    CarryingCapacity,
    CharacterClass,
    EncumbranceResult,
    SpellSlotResult,
    StrengthProfile,
    calculate_modifier,
)


__all__ = [
    # Input schema
    "DdbCharacter",
    "DdbClass",
    "DdbFeat",
    "DdbItem",
    "DdbModifier",
    "DdbModifiers",
    "DdbRace",
    # Enums
    "Ability",
    "Alignment",
    "CasterType",
    "DamageType",
    "EncumbranceLevel",
    "FeatureType",
    "ProficiencyLevel",
    "Skill",
    "TraitType",
    "WeaponType",
    # Engine results
    "calculate_modifier",
    "AbilityScore",
    "AbilityScoreResult",
    "CharacterClass",
    "SpellSlotResult",
    "StrengthProfile",
    "CarryingCapacity",
    "EncumbranceResult",
    "InventoryOptions",
    "NestedInventory",
    "ProcessedInventory",
    "WeaponEntry",
    "FeatureOptions",
    "ClassFeature",
    "RacialTrait",
    "Feat",
    "ProcessedFeatures",
    "Language",
    "LanguageChoice",
    "ProcessedLanguages",
    "ProcessedProficiencies",
    # Conversion
    "ProcessedCharacter",
    "ConversionResult",
]
