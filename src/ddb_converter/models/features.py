"""Schemas for processed features, traits, feats, languages, and proficiencies."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ddb_converter.models.enums import Ability, FeatureType, ProficiencyLevel, Skill, TraitType


# =============================================================================
# Features, Traits & Feats
# =============================================================================


class FeatureOptions(BaseModel):
    """Options controlling feature processing.

    Attributes:
        include_subclass_features: Include features granted by the subclass.
        include_racial_traits: Process racial traits.
        include_feats: Process feats.
        include_descriptions: Keep descriptions on the processed entries.
        filter_by_level: Drop features above the class level.
        max_level: Highest feature level ever included.
    """

    model_config = ConfigDict(frozen=True)

    include_subclass_features: bool = True
    include_racial_traits: bool = True
    include_feats: bool = True
    include_descriptions: bool = True
    filter_by_level: bool = True
    max_level: int = Field(default=20, ge=1, le=20)


class FeatureUsage(BaseModel):
    """Limited-use recharge information."""

    model_config = ConfigDict(frozen=True)

    recharge_on: Literal["short_rest", "long_rest"]
    amount: int = 1


class ClassFeature(BaseModel):
    """A class or subclass feature."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    name: str
    description: str = ""
    class_name: str
    subclass_name: str | None = None
    required_level: int = 1
    type: FeatureType = FeatureType.PASSIVE
    usage: FeatureUsage | None = None

    @property
    def source_label(self) -> str:
        """Sheet source label, e.g. 'Fighter (Champion)'."""
        if self.subclass_name:
            return f"{self.class_name} ({self.subclass_name})"
        return self.class_name


class RacialTrait(BaseModel):
    """A racial or subracial trait."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    name: str
    description: str = ""
    race_name: str
    subrace_name: str | None = None
    source: Literal["race", "subrace"] = "race"
    type: TraitType = TraitType.PASSIVE

    @property
    def source_label(self) -> str:
        """Sheet source label, e.g. 'Elf (High Elf)'."""
        if self.subrace_name:
            return f"{self.race_name} ({self.subrace_name})"
        return self.race_name


MechanicsSource = Literal["structured", "heuristic", "none"]


class Feat(BaseModel):
    """A feat with its category tag and best-effort mechanics.

    Attributes:
        category: First category tag from the source data (Origin, General, ...).
        type: Lowercased category.
        mechanics: Mechanical effects, when known.
        mechanics_source: Which lookup produced the mechanics.
    """

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    name: str
    description: str = ""
    category: str
    type: str
    is_repeatable: bool = False
    mechanics: dict[str, Any] = Field(default_factory=dict)
    mechanics_source: MechanicsSource = "none"


class ProcessedFeatures(BaseModel):
    """Output of the feature processor."""

    model_config = ConfigDict(frozen=True)

    class_features: list[ClassFeature] = Field(default_factory=list)
    racial_traits: list[RacialTrait] = Field(default_factory=list)
    feats: list[Feat] = Field(default_factory=list)
    features_by_class: dict[str, list[ClassFeature]] = Field(default_factory=dict)
    traits_by_race: dict[str, list[RacialTrait]] = Field(default_factory=dict)
    feats_by_category: dict[str, list[Feat]] = Field(default_factory=dict)
    debug_info: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Languages
# =============================================================================


class Language(BaseModel):
    """A granted language."""

    model_config = ConfigDict(frozen=True)

    name: str
    sub_type: str
    source: str
    foundry_key: str | None = None


class LanguageChoice(BaseModel):
    """An unresolved 'choose a language' grant."""

    model_config = ConfigDict(frozen=True)

    sub_type: str
    source: str
    description: str | None = None


class ProcessedLanguages(BaseModel):
    """Output of the language processor."""

    model_config = ConfigDict(frozen=True)

    languages: list[Language] = Field(default_factory=list)
    choices: list[LanguageChoice] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_languages(self) -> int:
        """Number of granted languages."""
        return len(self.languages)


# =============================================================================
# Proficiencies
# =============================================================================


class ProcessedProficiencies(BaseModel):
    """Skill, saving throw, and other proficiencies.

    Attributes:
        skills: Proficiency level per skill (every skill present).
        saving_throws: Abilities with saving throw proficiency.
        proficiencies: Other proficiencies (armor, weapons, tools), in grant order.
    """

    model_config = ConfigDict(frozen=True)

    skills: dict[Skill, ProficiencyLevel] = Field(default_factory=dict)
    saving_throws: list[Ability] = Field(default_factory=list)
    proficiencies: list[str] = Field(default_factory=list)


__all__ = [
    "FeatureOptions",
    "FeatureUsage",
    "ClassFeature",
    "RacialTrait",
    "MechanicsSource",
    "Feat",
    "ProcessedFeatures",
    "Language",
    "LanguageChoice",
    "ProcessedLanguages",
    "ProcessedProficiencies",
]
