"""Carrying capacity and encumbrance.

Tiers follow the variant encumbrance rule (PHB p.176), expressed as
multiples of the Strength score, with every multiple doubled by Powerful
Build:

    weight <= STR x 5           unencumbered
    weight >  STR x 5           encumbered          (-10 ft)
    weight >  STR x 10          heavily encumbered  (-20 ft, disadvantage)
    weight >  STR x 15          overloaded          (speed 0, disadvantage)

Carried weight honours container weight multipliers: contents of a
container with multiplier 0 (Bag of Holding and friends) weigh nothing, however
deeply they are nested inside it.
"""

from __future__ import annotations

from collections.abc import Mapping

from ddb_converter.core.constants import (
    CARRYING_CAPACITY_MULTIPLIER,
    ENCUMBERED_MULTIPLIER,
    HEAVILY_ENCUMBERED_MULTIPLIER,
    POWERFUL_BUILD_MULTIPLIER,
    PUSH_DRAG_LIFT_MULTIPLIER,
)
from ddb_converter.core.logging import get_logger
from ddb_converter.models.character import DdbCharacter, DdbItem
from ddb_converter.models.enums import EncumbranceLevel
from ddb_converter.models.results import CarryingCapacity, EncumbranceResult, StrengthProfile


logger = get_logger(__name__)

POWERFUL_BUILD_TRAIT = "powerful build"


def has_powerful_build(character: DdbCharacter) -> bool:
    """Check for the Powerful Build trait (goliaths, firbolgs, bugbears, ...).

    Args:
        character: Validated character.

    Returns:
        True if the race is a goliath or any racial trait is Powerful Build.
    """
    race = character.race
    if race is None:
        return False
    if "goliath" in race.display_name.lower():
        return True
    traits = list(race.racial_traits)
    if race.subrace_definition:
        traits.extend(race.subrace_definition.racial_traits)
    return any((t.name or "").strip().lower() == POWERFUL_BUILD_TRAIT for t in traits)


def calculate_carrying_capacity(strength: StrengthProfile) -> CarryingCapacity:
    """Carrying capacity for a Strength score.

    Example:
        >>> calculate_carrying_capacity(StrengthProfile(score=15)).normal
        225
    """
    multiplier = POWERFUL_BUILD_MULTIPLIER if strength.powerful_build else 1
    push = strength.score * PUSH_DRAG_LIFT_MULTIPLIER * multiplier
    return CarryingCapacity(
        normal=strength.score * CARRYING_CAPACITY_MULTIPLIER * multiplier,
        push=push,
        lift=push,
        powerful_build=strength.powerful_build,
    )


def container_weight_multiplier(item: DdbItem, containers: Mapping[int, DdbItem]) -> float:
    """Combined weight multiplier of every container holding an item.

    Walks containerEntityId upwards, so a backpack inside a Bag of Holding
    passes the bag's multiplier on to its own contents. A container never
    scales itself, and a cycle stops at the first repeated container.

    Args:
        item: Inventory item.
        containers: Container items keyed by item id.

    Returns:
        Product of the holders' weight multipliers (1.0 when carried directly).
    """
    multiplier = 1.0
    seen = {item.id}
    parent = item.container_entity_id
    while parent is not None and parent in containers and parent not in seen:
        holder = containers[parent]
        multiplier *= holder.weight_multiplier
        seen.add(parent)
        parent = holder.container_entity_id
    return multiplier


def calculate_inventory_weight(items: list[DdbItem]) -> float:
    """Effective carried weight of a flat inventory.

    Items with quantity <= 0 are skipped. Items stored in containers have
    their weight scaled by the multiplier of every container above them.

    Args:
        items: Flat inventory list.

    Returns:
        Weight in pounds.
    """
    containers: dict[int, DdbItem] = {
        item.id: item for item in items if item.is_container and item.id is not None
    }

    total = 0.0
    for item in items:
        if item.quantity <= 0:
            continue
        total += item.unit_weight * item.quantity * container_weight_multiplier(item, containers)
    return total


def classify_encumbrance(weight: float, strength: StrengthProfile) -> EncumbranceLevel:
    """Classify carried weight into an encumbrance tier."""
    multiplier = POWERFUL_BUILD_MULTIPLIER if strength.powerful_build else 1
    score = strength.score * multiplier
    if weight > score * CARRYING_CAPACITY_MULTIPLIER:
        return EncumbranceLevel.OVERLOADED
    if weight > score * HEAVILY_ENCUMBERED_MULTIPLIER:
        return EncumbranceLevel.HEAVILY_ENCUMBERED
    if weight > score * ENCUMBERED_MULTIPLIER:
        return EncumbranceLevel.ENCUMBERED
    return EncumbranceLevel.UNENCUMBERED


_PENALTIES: dict[EncumbranceLevel, tuple[int, bool]] = {
    EncumbranceLevel.UNENCUMBERED: (0, False),
    EncumbranceLevel.ENCUMBERED: (10, False),
    EncumbranceLevel.HEAVILY_ENCUMBERED: (20, True),
    EncumbranceLevel.OVERLOADED: (0, True),
}


def calculate_encumbrance(
    strength: StrengthProfile,
    inventory: list[DdbItem],
    *,
    debug: bool = False,
) -> EncumbranceResult:
    """Calculate carried weight, capacity, and encumbrance tier.

    Args:
        strength: Strength score and Powerful Build flag.
        inventory: Flat inventory list.
        debug: Log the calculation.

    Returns:
        EncumbranceResult.
    """
    weight = calculate_inventory_weight(inventory)
    capacity = calculate_carrying_capacity(strength)
    level = classify_encumbrance(weight, strength)
    speed_penalty, disadvantage = _PENALTIES[level]

    if debug:
        logger.debug(
            "Encumbrance calculated",
            strength=strength.score,
            powerful_build=strength.powerful_build,
            total_weight=weight,
            capacity=capacity.normal,
            level=level,
        )

    return EncumbranceResult(
        total_weight=weight,
        carrying_capacity=capacity,
        encumbrance_level=level,
        speed_penalty=speed_penalty,
        disadvantage_on_checks=disadvantage,
    )


__all__ = [
    "has_powerful_build",
    "calculate_carrying_capacity",
    "container_weight_multiplier",
    "calculate_inventory_weight",
    "classify_encumbrance",
    "calculate_encumbrance",
]
