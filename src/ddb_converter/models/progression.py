"""D&D 5E level progression data.

Static rule tables consumed by the rules engines:
- XP thresholds and proficiency bonus by level
- Hit dice by class
- Spell slots by caster progression (full, half, third)
- Pact Magic slots by Warlock level
- Class caster classification and spellcasting ability
"""

from __future__ import annotations

from ddb_converter.models.enums import Ability, CasterType

# =============================================================================
# XP Thresholds (PHB p.15)
# =============================================================================

XP_THRESHOLDS: dict[int, int] = {
    1: 0,
    2: 300,
    3: 900,
    4: 2700,
    5: 6500,
    6: 14000,
    7: 23000,
    8: 34000,
    9: 48000,
    10: 64000,
    11: 85000,
    12: 100000,
    13: 120000,
    14: 140000,
    15: 165000,
    16: 195000,
    17: 225000,
    18: 265000,
    19: 305000,
    20: 355000,
}


def get_xp_for_next_level(current_level: int) -> int | None:
    """Get XP needed for the next level. Returns None at level 20."""
    if current_level >= 20:
        return None
    return XP_THRESHOLDS[max(current_level, 0) + 1]


# =============================================================================
# Proficiency Bonus by Level (PHB p.15)
# =============================================================================


def get_proficiency_bonus(level: int) -> int:
    """Get proficiency bonus for a given total character level."""
    if level <= 4:
        return 2
    if level <= 8:
        return 3
    if level <= 12:
        return 4
    if level <= 16:
        return 5
    return 6  # Levels 17-20


# =============================================================================
# Hit Dice by Class
# =============================================================================

CLASS_HIT_DIE: dict[str, int] = {
    "barbarian": 12,
    "fighter": 10,
    "paladin": 10,
    "ranger": 10,
    "artificer": 8,
    "bard": 8,
    "cleric": 8,
    "druid": 8,
    "monk": 8,
    "rogue": 8,
    "warlock": 8,
    "sorcerer": 6,
    "wizard": 6,
}


def get_hit_die(class_name: str) -> int:
    """Get hit die size for a class, defaulting to d8."""
    return CLASS_HIT_DIE.get(class_name.lower(), 8)


# =============================================================================
# Spell Slots by Caster Level
# =============================================================================

# Full casters: Bard, Cleric, Druid, Sorcerer, Wizard. Also the shared
# multiclass spellcaster table.
FULL_CASTER_SLOTS: dict[int, dict[int, int]] = {
    1:  {1: 2},
    2:  {1: 3},
    3:  {1: 4, 2: 2},
    4:  {1: 4, 2: 3},
    5:  {1: 4, 2: 3, 3: 2},
    6:  {1: 4, 2: 3, 3: 3},
    7:  {1: 4, 2: 3, 3: 3, 4: 1},
    8:  {1: 4, 2: 3, 3: 3, 4: 2},
    9:  {1: 4, 2: 3, 3: 3, 4: 3, 5: 1},
    10: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2},
    11: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1},
    12: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1},
    13: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1},
    14: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1},
    15: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1, 8: 1},
    16: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1, 8: 1},
    17: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1, 8: 1, 9: 1},
    18: {1: 4, 2: 3, 3: 3, 4: 3, 5: 3, 6: 1, 7: 1, 8: 1, 9: 1},
    19: {1: 4, 2: 3, 3: 3, 4: 3, 5: 3, 6: 2, 7: 1, 8: 1, 9: 1},
    20: {1: 4, 2: 3, 3: 3, 4: 3, 5: 3, 6: 2, 7: 2, 8: 1, 9: 1},
}

# Half casters: Paladin, Ranger (start at level 2)
HALF_CASTER_SLOTS: dict[int, dict[int, int]] = {
    1:  {},
    2:  {1: 2},
    3:  {1: 3},
    4:  {1: 3},
    5:  {1: 4, 2: 2},
    6:  {1: 4, 2: 2},
    7:  {1: 4, 2: 3},
    8:  {1: 4, 2: 3},
    9:  {1: 4, 2: 3, 3: 2},
    10: {1: 4, 2: 3, 3: 2},
    11: {1: 4, 2: 3, 3: 3},
    12: {1: 4, 2: 3, 3: 3},
    13: {1: 4, 2: 3, 3: 3, 4: 1},
    14: {1: 4, 2: 3, 3: 3, 4: 1},
    15: {1: 4, 2: 3, 3: 3, 4: 2},
    16: {1: 4, 2: 3, 3: 3, 4: 2},
    17: {1: 4, 2: 3, 3: 3, 4: 3, 5: 1},
    18: {1: 4, 2: 3, 3: 3, 4: 3, 5: 1},
    19: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2},
    20: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2},
}

# Third casters: Artificer from level 1; Eldritch Knight and Arcane
# Trickster are gated to level 3+ by the slot engine.
THIRD_CASTER_SLOTS: dict[int, dict[int, int]] = {
    1:  {1: 2},
    2:  {1: 2},
    3:  {1: 2},
    4:  {1: 3},
    5:  {1: 3},
    6:  {1: 3},
    7:  {1: 4, 2: 2},
    8:  {1: 4, 2: 2},
    9:  {1: 4, 2: 2},
    10: {1: 4, 2: 3},
    11: {1: 4, 2: 3},
    12: {1: 4, 2: 3},
    13: {1: 4, 2: 3, 3: 2},
    14: {1: 4, 2: 3, 3: 2},
    15: {1: 4, 2: 3, 3: 2},
    16: {1: 4, 2: 3, 3: 3},
    17: {1: 4, 2: 3, 3: 3},
    18: {1: 4, 2: 3, 3: 3},
    19: {1: 4, 2: 3, 3: 3, 4: 1},
    20: {1: 4, 2: 3, 3: 3, 4: 1},
}

# Warlock pact magic
PACT_MAGIC_SLOTS: dict[int, tuple[int, int]] = {
    # level: (num_slots, slot_level)
    1:  (1, 1),
    2:  (2, 1),
    3:  (2, 2),
    4:  (2, 2),
    5:  (2, 3),
    6:  (2, 3),
    7:  (2, 4),
    8:  (2, 4),
    9:  (2, 5),
    10: (2, 5),
    11: (3, 5),
    12: (3, 5),
    13: (3, 5),
    14: (3, 5),
    15: (3, 5),
    16: (3, 5),
    17: (4, 5),
    18: (4, 5),
    19: (4, 5),
    20: (4, 5),
}

SLOT_TABLES: dict[CasterType, dict[int, dict[int, int]]] = {
    CasterType.FULL: FULL_CASTER_SLOTS,
    CasterType.HALF: HALF_CASTER_SLOTS,
    CasterType.THIRD: THIRD_CASTER_SLOTS,
}


def empty_slots() -> dict[int, int]:
    """Return a slot map with every spell level 1-9 set to zero."""
    return {level: 0 for level in range(1, 10)}


def get_spell_slots(caster_type: CasterType, level: int) -> dict[int, int]:
    """Get the nine-level slot map for a progression at a caster level.

    Args:
        caster_type: Full, half, or third caster progression.
        level: Level to look up; out-of-range levels yield no slots.

    Returns:
        Dict of {spell_level: num_slots} for levels 1-9.
    """
    slots = empty_slots()
    slots.update(SLOT_TABLES.get(caster_type, {}).get(level, {}))
    return slots


def get_pact_magic(level: int) -> tuple[int, int] | None:
    """Get Warlock pact magic slots.

    Returns:
        Tuple of (num_slots, slot_level) or None if not a warlock level.
    """
    return PACT_MAGIC_SLOTS.get(level)


# =============================================================================
# Caster Classification
# =============================================================================

CLASS_CASTER_TYPES: dict[str, CasterType] = {
    "bard": CasterType.FULL,
    "cleric": CasterType.FULL,
    "druid": CasterType.FULL,
    "sorcerer": CasterType.FULL,
    "wizard": CasterType.FULL,
    "paladin": CasterType.HALF,
    "ranger": CasterType.HALF,
    "artificer": CasterType.THIRD,
    "fighter": CasterType.THIRD,
    "rogue": CasterType.THIRD,
    "warlock": CasterType.PACT,
}

# Classes that only cast through one of these subclasses.
SPELLCASTING_SUBCLASSES: dict[str, set[str]] = {
    "fighter": {"eldritch_knight"},
    "rogue": {"arcane_trickster"},
}

SPELLLESS_SUBCLASSES: dict[str, set[str]] = {
    "ranger": {"spellless", "beast_master_spellless"},
}

SPELLCASTING_ABILITY: dict[str, Ability] = {
    "artificer": Ability.INT,
    "wizard": Ability.INT,
    "fighter": Ability.INT,
    "rogue": Ability.INT,
    "cleric": Ability.WIS,
    "druid": Ability.WIS,
    "ranger": Ability.WIS,
    "bard": Ability.CHA,
    "paladin": Ability.CHA,
    "sorcerer": Ability.CHA,
    "warlock": Ability.CHA,
}


def normalize_class_name(name: str | None) -> str:
    """Lowercase a class or subclass name and replace spaces with underscores."""
    return (name or "").strip().lower().replace(" ", "_")


__all__ = [
    "XP_THRESHOLDS",
    "get_xp_for_next_level",
    "get_proficiency_bonus",
    "CLASS_HIT_DIE",
    "get_hit_die",
    "FULL_CASTER_SLOTS",
    "HALF_CASTER_SLOTS",
    "THIRD_CASTER_SLOTS",
    "PACT_MAGIC_SLOTS",
    "SLOT_TABLES",
    "empty_slots",
    "get_spell_slots",
    "get_pact_magic",
    "CLASS_CASTER_TYPES",
    "SPELLCASTING_SUBCLASSES",
    "SPELLLESS_SUBCLASSES",
    "SPELLCASTING_ABILITY",
    "normalize_class_name",
]
