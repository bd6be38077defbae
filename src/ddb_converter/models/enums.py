"""Enumeration types for the D&D Beyond character converter.

This module defines the enumerations shared by the rules engines and the
formatters: abilities and skills (with their D&D Beyond ids and Foundry VTT
keys), caster progressions, encumbrance tiers, feature classifications,
weapon attack types, and damage types.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class Ability(StrEnum):
    """D&D 5E ability scores.

    Members are declared in D&D Beyond stat id order (1 = STR ... 6 = CHA).
    """

    STR = "strength"
    DEX = "dexterity"
    CON = "constitution"
    INT = "intelligence"
    WIS = "wisdom"
    CHA = "charisma"

    @property
    def full_name(self) -> str:
        """Get the full name of the ability.

        Returns:
            Full ability name (e.g., 'Strength' for STR).
        """
        return self.value.capitalize()

    @property
    def abbreviation(self) -> str:
        """Get the lowercase three-letter key used by Foundry VTT."""
        return self.name.lower()

    @property
    def ddb_id(self) -> int:
        """Get the D&D Beyond stat id (1-6)."""
        return list(Ability).index(self) + 1

    @classmethod
    def from_ddb_id(cls, stat_id: int | None) -> Ability | None:
        """Look up an ability by D&D Beyond stat id.

        Args:
            stat_id: Stat id from a stats/bonusStats/overrideStats entry.

        Returns:
            The ability, or None when the id is out of range.
        """
        if stat_id is None or not 1 <= stat_id <= 6:
            return None
        return list(cls)[stat_id - 1]

    @classmethod
    def from_sub_type(cls, sub_type: str | None) -> Ability | None:
        """Look up an ability from a modifier subType such as 'strength-score'.

        Args:
            sub_type: Modifier subType.

        Returns:
            The ability, or None if the subType names no ability.
        """
        if not sub_type:
            return None
        name = sub_type.lower().removesuffix("-score")
        try:
            return cls(name)
        except ValueError:
            return None


class Skill(StrEnum):
    """D&D 5E skills and their associated abilities."""

    ACROBATICS = "acrobatics"
    ANIMAL_HANDLING = "animal_handling"
    ARCANA = "arcana"
    ATHLETICS = "athletics"
    DECEPTION = "deception"
    HISTORY = "history"
    INSIGHT = "insight"
    INTIMIDATION = "intimidation"
    INVESTIGATION = "investigation"
    MEDICINE = "medicine"
    NATURE = "nature"
    PERCEPTION = "perception"
    PERFORMANCE = "performance"
    PERSUASION = "persuasion"
    RELIGION = "religion"
    SLEIGHT_OF_HAND = "sleight_of_hand"
    STEALTH = "stealth"
    SURVIVAL = "survival"

    @property
    def ability(self) -> Ability:
        """Get the ability score used for checks with this skill."""
        return _SKILL_ABILITIES[self]

    @property
    def display_name(self) -> str:
        """Get the sheet label (e.g., 'Sleight of Hand')."""
        words = self.value.split("_")
        return " ".join(w if w == "of" else w.capitalize() for w in words)

    @property
    def foundry_key(self) -> str:
        """Get the three-letter Foundry VTT skill key."""
        return _SKILL_FOUNDRY_KEYS[self]


_SKILL_ABILITIES: dict[Skill, Ability] = {
    Skill.ATHLETICS: Ability.STR,
    Skill.ACROBATICS: Ability.DEX,
    Skill.SLEIGHT_OF_HAND: Ability.DEX,
    Skill.STEALTH: Ability.DEX,
    Skill.ARCANA: Ability.INT,
    Skill.HISTORY: Ability.INT,
    Skill.INVESTIGATION: Ability.INT,
    Skill.NATURE: Ability.INT,
    Skill.RELIGION: Ability.INT,
    Skill.ANIMAL_HANDLING: Ability.WIS,
    Skill.INSIGHT: Ability.WIS,
    Skill.MEDICINE: Ability.WIS,
    Skill.PERCEPTION: Ability.WIS,
    Skill.SURVIVAL: Ability.WIS,
    Skill.DECEPTION: Ability.CHA,
    Skill.INTIMIDATION: Ability.CHA,
    Skill.PERFORMANCE: Ability.CHA,
    Skill.PERSUASION: Ability.CHA,
}

_SKILL_FOUNDRY_KEYS: dict[Skill, str] = {
    Skill.ACROBATICS: "acr",
    Skill.ANIMAL_HANDLING: "ani",
    Skill.ARCANA: "arc",
    Skill.ATHLETICS: "ath",
    Skill.DECEPTION: "dec",
    Skill.HISTORY: "his",
    Skill.INSIGHT: "ins",
    Skill.INTIMIDATION: "itm",
    Skill.INVESTIGATION: "inv",
    Skill.MEDICINE: "med",
    Skill.NATURE: "nat",
    Skill.PERCEPTION: "prc",
    Skill.PERFORMANCE: "prf",
    Skill.PERSUASION: "per",
    Skill.RELIGION: "rel",
    Skill.SLEIGHT_OF_HAND: "slt",
    Skill.STEALTH: "ste",
    Skill.SURVIVAL: "sur",
}


class ProficiencyLevel(IntEnum):
    """Skill proficiency values as written to the Fantasy Grounds skilllist."""

    NONE = 0
    PROFICIENT = 1
    EXPERTISE = 2
    HALF = 3

    @property
    def foundry_value(self) -> float:
        """Get the Foundry VTT multiplier for this proficiency."""
        return {
            ProficiencyLevel.NONE: 0,
            ProficiencyLevel.PROFICIENT: 1,
            ProficiencyLevel.EXPERTISE: 2,
            ProficiencyLevel.HALF: 0.5,
        }[self]


class Alignment(StrEnum):
    """D&D 5E character alignments, keyed by D&D Beyond alignment id."""

    LAWFUL_GOOD = "lawful_good"
    NEUTRAL_GOOD = "neutral_good"
    CHAOTIC_GOOD = "chaotic_good"
    LAWFUL_NEUTRAL = "lawful_neutral"
    TRUE_NEUTRAL = "true_neutral"
    CHAOTIC_NEUTRAL = "chaotic_neutral"
    LAWFUL_EVIL = "lawful_evil"
    NEUTRAL_EVIL = "neutral_evil"
    CHAOTIC_EVIL = "chaotic_evil"

    @property
    def display_name(self) -> str:
        """Get human-readable alignment name (e.g., 'Lawful Good')."""
        if self is Alignment.TRUE_NEUTRAL:
            return "Neutral"
        return self.value.replace("_", " ").title()

    @classmethod
    def from_ddb_id(cls, alignment_id: int | None) -> Alignment | None:
        """Look up an alignment by D&D Beyond alignmentId (1-9)."""
        if alignment_id is None or not 1 <= alignment_id <= 9:
            return None
        return list(cls)[alignment_id - 1]


class CasterType(StrEnum):
    """Spell-slot progression shape of a class."""

    FULL = "full"
    HALF = "half"
    THIRD = "third"
    PACT = "pact"
    NONE = "none"


class EncumbranceLevel(StrEnum):
    """Encumbrance tiers under the variant encumbrance rule."""

    UNENCUMBERED = "unencumbered"
    ENCUMBERED = "encumbered"
    HEAVILY_ENCUMBERED = "heavily_encumbered"
    OVERLOADED = "overloaded"


class FeatureType(StrEnum):
    """How a class feature is used at the table."""

    PASSIVE = "passive"
    ACTIVE = "active"
    RESOURCE = "resource"
    SPELL = "spell"


class TraitType(StrEnum):
    """How a racial trait is used at the table."""

    PASSIVE = "passive"
    ACTIVE = "active"
    SPELL = "spell"
    PROFICIENCY = "proficiency"
    RESOURCE = "resource"


class WeaponType(IntEnum):
    """Fantasy Grounds weaponlist attack type."""

    MELEE = 0
    RANGED = 1
    THROWN = 2


class DamageType(StrEnum):
    """D&D 5E damage types."""

    BLUDGEONING = "bludgeoning"
    PIERCING = "piercing"
    SLASHING = "slashing"
    NECROTIC = "necrotic"
    ACID = "acid"
    COLD = "cold"
    FIRE = "fire"
    LIGHTNING = "lightning"
    THUNDER = "thunder"
    POISON = "poison"
    PSYCHIC = "psychic"
    RADIANT = "radiant"
    FORCE = "force"

    @classmethod
    def from_ddb_id(cls, damage_type_id: int | None) -> DamageType | None:
        """Look up a damage type by D&D Beyond damageTypeId (1-13)."""
        if damage_type_id is None or not 1 <= damage_type_id <= 13:
            return None
        return list(cls)[damage_type_id - 1]


__all__ = [
    "Ability",
    "Skill",
    "ProficiencyLevel",
    "Alignment",
    "CasterType",
    "EncumbranceLevel",
    "FeatureType",
    "TraitType",
    "WeaponType",
    "DamageType",
]
