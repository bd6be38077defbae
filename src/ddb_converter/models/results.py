"""Result schemas for the ability, spellcasting, and encumbrance engines.

These models are the read-only outputs of a single conversion. Derived
values (ability totals and modifiers, carrying capacity tiers) are
computed fields so that the invariants between them hold by construction.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ddb_converter.models.enums import Ability, CasterType, EncumbranceLevel


def calculate_modifier(score: int) -> int:
    """Calculate ability modifier from score.

    Floor division keeps the modifier symmetric around 10, including for
    scores below 1.

    Args:
        score: Ability score (any integer).

    Returns:
        Ability modifier.

    Example:
        >>> calculate_modifier(16)
        3
        >>> calculate_modifier(9)
        -1
    """
    return (score - 10) // 2


# =============================================================================
# Ability Scores
# =============================================================================


class AbilityScore(BaseModel):
    """One ability score with its provenance.

    Attributes:
        ability: Which ability this is.
        base: Base score from the stats array.
        bonus: Sum of positive modifier bonuses.
        override: Override score that replaces base + bonus, if set.
    """

    model_config = ConfigDict(frozen=True)

    ability: Ability
    base: int
    bonus: int = 0
    override: int | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        """Effective score: override if present, otherwise base + bonus."""
        if self.override is not None:
            return self.override
        return self.base + self.bonus

    @computed_field  # type: ignore[prop-decorator]
    @property
    def modifier(self) -> int:
        """Ability modifier of the effective score."""
        return calculate_modifier(self.total)


class AbilityScoreResult(BaseModel):
    """All six ability scores.

    Attributes:
        scores: Score per ability.
        bonus_sources: Modifier bucket -> ability -> summed bonus.
    """

    model_config = ConfigDict(frozen=True)

    scores: dict[Ability, AbilityScore]
    bonus_sources: dict[str, dict[str, int]] = Field(default_factory=dict)

    def __getitem__(self, ability: Ability) -> AbilityScore:
        return self.scores[ability]

    def total(self, ability: Ability) -> int:
        """Effective score of an ability."""
        return self.scores[ability].total

    def modifier(self, ability: Ability) -> int:
        """Modifier of an ability."""
        return self.scores[ability].modifier


# =============================================================================
# Classes & Spell Slots
# =============================================================================


class CharacterClass(BaseModel):
    """A class level block after caster classification.

    Attributes:
        id: D&D Beyond class id.
        name: Class name as shown on the sheet.
        level: Levels in this class.
        subclass_name: Chosen subclass, if any.
        caster_type: Slot progression of this class.
        caster_level: Contribution to the multiclass caster level.
        spellcasting_ability: Ability used for this class's spells.
        hit_die: Hit die size.
        hit_dice_used: Hit dice spent.
    """

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    name: str
    level: int = Field(ge=1, le=20)
    subclass_name: str | None = None
    caster_type: CasterType = CasterType.NONE
    caster_level: int = 0
    spellcasting_ability: Ability | None = None
    hit_die: int = 8
    hit_dice_used: int = 0

    @property
    def key(self) -> str:
        """Lowercase class name."""
        return self.name.lower()


CalculationMethod = Literal["single_class", "multiclass", "pact_magic_only"]


class SpellSlotDebugInfo(BaseModel):
    """Breakdown of how spell slots were derived."""

    model_config = ConfigDict(frozen=True)

    class_breakdown: list[CharacterClass] = Field(default_factory=list)
    calculation_method: CalculationMethod = "single_class"
    caster_level_calculation: str = ""


class SpellSlotResult(BaseModel):
    """Spell slots for one character.

    Attributes:
        spell_slots: Spell level (1-9) -> slot count from the shared pool.
        pact_magic_slots: Spell level (1-9) -> Pact Magic slot count.
        multiclass_caster_level: Blended caster level (pact levels excluded).
        total_caster_classes: Number of classes that cast spells.
        debug_info: Derivation details.
    """

    model_config = ConfigDict(frozen=True)

    spell_slots: dict[int, int]
    pact_magic_slots: dict[int, int]
    multiclass_caster_level: int = 0
    total_caster_classes: int = 0
    debug_info: SpellSlotDebugInfo = Field(default_factory=SpellSlotDebugInfo)

    @property
    def has_spell_slots(self) -> bool:
        """Whether any shared-pool slot exists."""
        return any(self.spell_slots.values())

    @property
    def has_pact_magic(self) -> bool:
        """Whether any Pact Magic slot exists."""
        return any(self.pact_magic_slots.values())

    @property
    def pact_slot_level(self) -> int | None:
        """Level of the Pact Magic slots, if any."""
        for level, count in sorted(self.pact_magic_slots.items()):
            if count:
                return level
        return None


# =============================================================================
# Encumbrance
# =============================================================================


class StrengthProfile(BaseModel):
    """Inputs to carrying capacity."""

    model_config = ConfigDict(frozen=True)

    score: int
    powerful_build: bool = False


class CarryingCapacity(BaseModel):
    """Carrying capacity in pounds.

    Attributes:
        normal: Maximum carried weight (STR x 15, doubled by Powerful Build).
        push: Push/drag limit (STR x 30, doubled by Powerful Build).
        lift: Lift limit (same as push).
        powerful_build: Whether Powerful Build was applied.
    """

    model_config = ConfigDict(frozen=True)

    normal: int
    push: int
    lift: int
    powerful_build: bool = False


class EncumbranceResult(BaseModel):
    """Carried weight classified against capacity.

    Attributes:
        total_weight: Effective carried weight in pounds.
        carrying_capacity: Capacity limits.
        encumbrance_level: Encumbrance tier.
        speed_penalty: Feet of speed lost (0 when overloaded; speed is 0).
        disadvantage_on_checks: Disadvantage on STR/DEX/CON checks.
    """

    model_config = ConfigDict(frozen=True)

    total_weight: float
    carrying_capacity: CarryingCapacity
    encumbrance_level: EncumbranceLevel
    speed_penalty: int = 0
    disadvantage_on_checks: bool = False


__all__ = [
    "calculate_modifier",
    "AbilityScore",
    "AbilityScoreResult",
    "CharacterClass",
    "CalculationMethod",
    "SpellSlotDebugInfo",
    "SpellSlotResult",
    "StrengthProfile",
    "CarryingCapacity",
    "EncumbranceResult",
]
