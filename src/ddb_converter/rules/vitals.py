"""Hit points and armor class.

D&D Beyond stores the rolled or averaged hit point base without the
Constitution contribution, so the maximum is rebuilt from the computed
Constitution modifier. Armor class is taken from the armorClass field,
except for Barbarian and Monk Unarmored Defense, which are recomputed from
ability modifiers.
"""

from __future__ import annotations

from ddb_converter.core.constants import DEFAULT_ARMOR_CLASS
from ddb_converter.models.character import DdbCharacter
from ddb_converter.models.enums import Ability
from ddb_converter.models.results import AbilityScoreResult


def calculate_max_hit_points(character: DdbCharacter, abilities: AbilityScoreResult) -> int:
    """Maximum hit points.

    Args:
        character: Validated character.
        abilities: Computed ability scores.

    Returns:
        overrideHitPoints when set, otherwise base + bonus + CON mod x level.
    """
    if character.override_hit_points is not None:
        return character.override_hit_points
    return (
        character.base_hit_points
        + (character.bonus_hit_points or 0)
        + abilities.modifier(Ability.CON) * character.total_level
    )


def current_hit_points(character: DdbCharacter, abilities: AbilityScoreResult) -> int:
    """Maximum hit points less damage taken, never below zero."""
    return max(0, calculate_max_hit_points(character, abilities) - character.removed_hit_points)


def unarmored_defense_ability(character: DdbCharacter) -> Ability | None:
    """Second ability added by Unarmored Defense, if the class has it.

    Barbarian (Constitution) takes precedence over Monk (Wisdom).
    """
    if character.has_class("barbarian"):
        return Ability.CON
    if character.has_class("monk"):
        return Ability.WIS
    return None


def calculate_armor_class(character: DdbCharacter, abilities: AbilityScoreResult) -> int:
    """Effective armor class.

    Returns:
        10 + DEX + CON for a Barbarian, 10 + DEX + WIS for a Monk, else the
        armorClass field or 10.
    """
    ability = unarmored_defense_ability(character)
    if ability is not None:
        return DEFAULT_ARMOR_CLASS + abilities.modifier(Ability.DEX) + abilities.modifier(ability)
    return character.armor_class or DEFAULT_ARMOR_CLASS


__all__ = [
    "calculate_max_hit_points",
    "current_hit_points",
    "unarmored_defense_ability",
    "calculate_armor_class",
]
