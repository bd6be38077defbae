"""Spell slot calculation for single-class and multiclass characters.

Non-pact casters share one slot pool. A character with a single casting
class reads that class's own progression table; two or more casting
classes read the full-caster table at the blended multiclass caster level
(full levels + half levels // 2 + third levels // 3, each class floored on
its own). Warlock levels never enter that sum: Pact Magic is looked up
separately from the raw Warlock level.
"""

from __future__ import annotations

from ddb_converter.core.constants import MAX_CHARACTER_LEVEL, MIN_CHARACTER_LEVEL
from ddb_converter.core.logging import get_logger
from ddb_converter.models.character import DdbClass
from ddb_converter.models.enums import Ability, CasterType
from ddb_converter.models.progression import (
    CLASS_CASTER_TYPES,
    SPELLCASTING_ABILITY,
    SPELLCASTING_SUBCLASSES,
    SPELLLESS_SUBCLASSES,
    empty_slots,
    get_hit_die,
    get_pact_magic,
    get_spell_slots,
    normalize_class_name,
)
from ddb_converter.models.results import (
    CalculationMethod,
    CharacterClass,
    SpellSlotDebugInfo,
    SpellSlotResult,
)


logger = get_logger(__name__)

SUBCLASS_CASTER_MIN_LEVEL = 3
"""Eldritch Knight and Arcane Trickster gain spellcasting at level 3."""


def classify_caster_type(class_name: str | None, subclass_name: str | None = None) -> CasterType:
    """Classify a class/subclass pair by spell slot progression.

    Args:
        class_name: Class name in any case.
        subclass_name: Subclass name in any case.

    Returns:
        The caster type; NONE for classes that do not cast.

    Example:
        >>> classify_caster_type("Fighter", "Eldritch Knight")
        <CasterType.THIRD: 'third'>
        >>> classify_caster_type("Fighter", "Champion")
        <CasterType.NONE: 'none'>
    """
    class_key = normalize_class_name(class_name)
    subclass_key = normalize_class_name(subclass_name)

    caster_type = CLASS_CASTER_TYPES.get(class_key, CasterType.NONE)
    if class_key in SPELLCASTING_SUBCLASSES and subclass_key not in SPELLCASTING_SUBCLASSES[class_key]:
        return CasterType.NONE
    if subclass_key and subclass_key in SPELLLESS_SUBCLASSES.get(class_key, set()):
        return CasterType.NONE
    return caster_type


def caster_level_contribution(caster_type: CasterType, level: int) -> int:
    """Levels a class adds to the multiclass caster level."""
    if caster_type is CasterType.FULL:
        return level
    if caster_type is CasterType.HALF:
        return level // 2
    if caster_type is CasterType.THIRD:
        return level // 3
    return 0


def build_character_class(ddb_class: DdbClass) -> CharacterClass:
    """Classify one D&D Beyond class entry.

    Args:
        ddb_class: Entry of the character's classes list.

    Returns:
        CharacterClass with caster type, caster level, and spellcasting ability.
    """
    name = ddb_class.name
    level = max(MIN_CHARACTER_LEVEL, min(ddb_class.level, MAX_CHARACTER_LEVEL))
    caster_type = classify_caster_type(name, ddb_class.subclass_name)

    spellcasting_ability: Ability | None = None
    if caster_type is not CasterType.NONE:
        definition_ability = (
            Ability.from_ddb_id(ddb_class.definition.spell_casting_ability_id)
            if ddb_class.definition
            else None
        )
        spellcasting_ability = definition_ability or SPELLCASTING_ABILITY.get(
            normalize_class_name(name)
        )

    hit_die = (ddb_class.definition.hit_dice if ddb_class.definition else None) or get_hit_die(name)

    return CharacterClass(
        id=ddb_class.definition.id if ddb_class.definition else ddb_class.id,
        name=name,
        level=level,
        subclass_name=ddb_class.subclass_name,
        caster_type=caster_type,
        caster_level=caster_level_contribution(caster_type, level),
        spellcasting_ability=spellcasting_ability,
        hit_die=hit_die,
        hit_dice_used=ddb_class.hit_dice_used,
    )


def _single_class_slots(cls: CharacterClass) -> dict[int, int]:
    """Slots for a lone casting class, read from its own progression."""
    if cls.caster_type is CasterType.THIRD:
        if cls.key != "artificer" and cls.level < SUBCLASS_CASTER_MIN_LEVEL:
            return empty_slots()
    return get_spell_slots(cls.caster_type, cls.level)


def _pact_slots(classes: list[CharacterClass]) -> dict[int, int]:
    """Pact Magic slots from the raw Warlock level."""
    slots = empty_slots()
    for cls in classes:
        if cls.caster_type is not CasterType.PACT:
            continue
        pact = get_pact_magic(cls.level)
        if pact is not None:
            count, slot_level = pact
            slots[slot_level] = count
        break
    return slots


def _describe_caster_level(classes: list[CharacterClass]) -> str:
    """Human-readable caster level sum.

    Example:
        'Wizard 3 (full) -> 3 + Paladin 5 (half) -> 2 = 5'
    """
    parts = [
        f"{cls.name} {cls.level} ({cls.caster_type.value}) -> {cls.caster_level}"
        for cls in classes
        if cls.caster_type not in (CasterType.NONE, CasterType.PACT)
    ]
    total = sum(cls.caster_level for cls in classes if cls.caster_type is not CasterType.PACT)
    if not parts:
        return "no shared-pool casters = 0"
    return " + ".join(parts) + f" = {total}"


def calculate_spell_slots(
    classes: list[CharacterClass],
    *,
    debug: bool = False,
) -> SpellSlotResult:
    """Calculate shared spell slots and Pact Magic slots.

    Args:
        classes: Classified classes of one character.
        debug: Log the calculation.

    Returns:
        SpellSlotResult; both slot maps always cover levels 1-9.
    """
    casters = [c for c in classes if c.caster_type is not CasterType.NONE]
    pool_casters = [c for c in casters if c.caster_type is not CasterType.PACT]
    has_pact = len(pool_casters) != len(casters)

    method: CalculationMethod
    if has_pact and not pool_casters:
        method = "pact_magic_only"
        spell_slots = empty_slots()
        caster_level = 0
    elif len(pool_casters) == 1:
        method = "single_class"
        spell_slots = _single_class_slots(pool_casters[0])
        caster_level = pool_casters[0].caster_level
    elif len(pool_casters) > 1:
        method = "multiclass"
        caster_level = min(sum(c.caster_level for c in pool_casters), MAX_CHARACTER_LEVEL)
        spell_slots = get_spell_slots(CasterType.FULL, caster_level)
    else:
        method = "single_class"
        spell_slots = empty_slots()
        caster_level = 0

    pact_magic_slots = _pact_slots(classes) if has_pact else empty_slots()

    result = SpellSlotResult(
        spell_slots=spell_slots,
        pact_magic_slots=pact_magic_slots,
        multiclass_caster_level=caster_level,
        total_caster_classes=len(casters),
        debug_info=SpellSlotDebugInfo(
            class_breakdown=classes,
            calculation_method=method,
            caster_level_calculation=_describe_caster_level(classes),
        ),
    )

    if debug:
        logger.debug(
            "Spell slots calculated",
            method=method,
            multiclass_caster_level=caster_level,
            total_caster_classes=len(casters),
            spell_slots={k: v for k, v in spell_slots.items() if v},
            pact_magic={k: v for k, v in pact_magic_slots.items() if v},
        )
    return result


def primary_spellcasting_ability(classes: list[CharacterClass]) -> Ability | None:
    """Spellcasting ability of the highest-level casting class."""
    casters = [c for c in classes if c.spellcasting_ability is not None]
    if not casters:
        return None
    return max(casters, key=lambda c: c.level).spellcasting_ability


__all__ = [
    "SUBCLASS_CASTER_MIN_LEVEL",
    "classify_caster_type",
    "caster_level_contribution",
    "build_character_class",
    "calculate_spell_slots",
    "primary_spellcasting_ability",
]
