"""Weapon entries for the Fantasy Grounds weaponlist.

Every inventory item whose filterType is "Weapon" becomes a weaponlist
row. Weapon properties and damage come from structured item data when
D&D Beyond provides it; name-keyword inference is a separate, last-resort
path (``infer_weapon_properties`` and ``infer_weapon_damage``) so it never
overrides real data.
"""

from __future__ import annotations

from ddb_converter.core.constants import UNARMED_STRIKE_ITEM_ID
from ddb_converter.core.logging import get_logger
from ddb_converter.export.xml_writer import XmlWriter, fg_id
from ddb_converter.models.character import DdbItem
from ddb_converter.models.enums import Ability, DamageType, WeaponType
from ddb_converter.models.inventory import NestedInventory, WeaponEntry


logger = get_logger(__name__)

WEAPON_FILTER_TYPE = "Weapon"
AMMUNITION_SUB_TYPE = "Ammunition"
RANGED_ATTACK_TYPE = 2
"""D&D Beyond attackType of ranged weapons (1 is melee)."""

WEAPON_XML_DEPTH = 2

# =============================================================================
# Name-Keyword Inference
# =============================================================================

PROPERTY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Ranged": ("bow", "crossbow", "dart", "javelin", "sling", "blowgun"),
    "Two-handed": ("greatsword", "maul", "pike", "glaive", "halberd", "longbow", "heavy crossbow"),
    "Light": (
        "dagger",
        "dart",
        "javelin",
        "light hammer",
        "sickle",
        "scimitar",
        "shortsword",
        "handaxe",
    ),
    "Finesse": ("dagger", "dart", "rapier", "scimitar", "shortsword", "whip"),
    "Thrown": ("dart", "javelin", "light hammer", "handaxe", "spear", "trident"),
}
"""Property -> weapon name keywords, used only when the item has no properties."""

DAMAGE_BY_NAME: dict[str, tuple[str, DamageType]] = {
    "dagger": ("1d4", DamageType.PIERCING),
    "shortsword": ("1d6", DamageType.PIERCING),
    "longsword": ("1d8", DamageType.SLASHING),
    "greatsword": ("2d6", DamageType.SLASHING),
    "mace": ("1d6", DamageType.BLUDGEONING),
    "warhammer": ("1d8", DamageType.BLUDGEONING),
}

DEFAULT_DAMAGE: tuple[str, DamageType] = ("1d6", DamageType.SLASHING)

AMMUNITION_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("crossbow", ("bolt",)),
    ("bow", ("arrow",)),
    ("sling", ("bullet", "stone")),
    ("blowgun", ("needle",)),
)
"""Weapon name keyword -> ammunition name keywords. Crossbow is checked before bow."""


def infer_weapon_properties(name: str) -> list[str]:
    """Guess weapon properties from the weapon name.

    Example:
        >>> infer_weapon_properties("Dagger")
        ['Light', 'Finesse', 'Thrown']
    """
    lowered = name.lower()
    return [
        prop
        for prop, keywords in PROPERTY_KEYWORDS.items()
        if any(keyword in lowered for keyword in keywords)
    ]


def infer_weapon_damage(name: str) -> tuple[str, DamageType] | None:
    """Look up damage dice and type from the weapon name."""
    lowered = name.lower()
    for keyword, damage in DAMAGE_BY_NAME.items():
        if keyword in lowered:
            return damage
    return None


# =============================================================================
# Structured Lookups
# =============================================================================


def is_weapon(item: DdbItem) -> bool:
    """Whether an inventory item is a weapon."""
    return bool(item.definition and item.definition.filter_type == WEAPON_FILTER_TYPE)


def is_ammunition(item: DdbItem) -> bool:
    """Whether an inventory item is ammunition."""
    return bool(item.definition and item.definition.sub_type == AMMUNITION_SUB_TYPE)


def resolve_weapon_properties(item: DdbItem) -> list[str]:
    """Weapon properties from the first source that has any.

    Order: first weapon behaviour, then the definition's property list,
    then name-keyword inference.
    """
    definition = item.definition
    if definition is not None:
        if definition.weapon_behaviors and definition.weapon_behaviors[0].properties:
            return list(definition.weapon_behaviors[0].properties)
        if definition.properties:
            return list(definition.properties)
    return infer_weapon_properties(item.name)


def _damage_type(type_id: int | None, type_name: str | None) -> DamageType | None:
    damage_type = DamageType.from_ddb_id(type_id)
    if damage_type is None and type_name:
        try:
            damage_type = DamageType(type_name.lower())
        except ValueError:
            return None
    return damage_type


def resolve_weapon_damage(item: DdbItem) -> tuple[str, DamageType]:
    """Damage dice and type from the first source that has dice.

    Order: first weapon behaviour, then the definition damage, then the
    name table, then 1d6 slashing. A structured source without a damage
    type borrows the type from the name table.
    """
    definition = item.definition
    fallback = infer_weapon_damage(item.name)
    fallback_type = fallback[1] if fallback else DEFAULT_DAMAGE[1]

    if definition is not None:
        sources = []
        if definition.weapon_behaviors:
            behavior = definition.weapon_behaviors[0]
            sources.append((behavior.damage, behavior.damage_type_id, behavior.damage_type))
        sources.append((definition.damage, definition.damage_type_id, definition.damage_type))
        for dice, type_id, type_name in sources:
            if dice is None or dice.notation is None:
                continue
            return dice.notation, _damage_type(type_id, type_name) or fallback_type

    return fallback or DEFAULT_DAMAGE


def resolve_weapon_type(item: DdbItem, properties: list[str]) -> WeaponType:
    """Attack form of a weapon; thrown wins over ranged."""
    if "Thrown" in properties:
        return WeaponType.THROWN
    attack_type = item.definition.attack_type if item.definition else None
    if attack_type == RANGED_ATTACK_TYPE or {"Ranged", "Range", "Ammunition"} & set(properties):
        return WeaponType.RANGED
    return WeaponType.MELEE


def magic_bonus(item: DdbItem) -> int:
    """Sum of the item's granted 'magic' bonus modifiers (+1 weapons)."""
    if item.definition is None:
        return 0
    total = 0
    for modifier in item.definition.granted_modifiers:
        if modifier.type == "bonus" and modifier.sub_type == "magic":
            value = modifier.fixed_value if modifier.fixed_value is not None else modifier.value
            if isinstance(value, int) and not isinstance(value, bool):
                total += value
    return total


def find_ammunition(weapon_name: str, items: list[DdbItem]) -> DdbItem | None:
    """First ammunition item matching a weapon, or None.

    Example:
        Light Crossbow matches "Crossbow Bolts (20)"; Longbow matches "Arrows (20)".
    """
    lowered = weapon_name.lower()
    for weapon_keyword, ammo_keywords in AMMUNITION_KEYWORDS:
        if weapon_keyword not in lowered:
            continue
        for item in items:
            if is_ammunition(item) and any(k in item.name.lower() for k in ammo_keywords):
                return item
        return None
    return None


# =============================================================================
# Weapon Entries
# =============================================================================


def _entry(
    item: DdbItem,
    index: int,
    weapon_type: WeaponType,
    properties: list[str],
    items: list[DdbItem],
) -> WeaponEntry:
    dice, damage_type = resolve_weapon_damage(item)
    bonus = magic_bonus(item)

    max_ammo: int | None = None
    if weapon_type is WeaponType.THROWN:
        max_ammo = item.quantity
    elif weapon_type is WeaponType.RANGED:
        ammo = find_ammunition(item.name, items)
        max_ammo = ammo.quantity if ammo is not None else None

    return WeaponEntry(
        item_id=item.id if item.id is not None else index,
        inventory_index=index,
        name=item.name,
        weapon_type=weapon_type,
        attack_stat=Ability.DEX if weapon_type is WeaponType.RANGED else Ability.STR,
        damage_dice=dice,
        damage_type=damage_type,
        properties=properties,
        max_ammo=max_ammo,
        attack_bonus=bonus,
        damage_bonus=bonus,
    )


def unarmed_strike() -> WeaponEntry:
    """A monk's Unarmed Strike row."""
    return WeaponEntry(
        item_id=UNARMED_STRIKE_ITEM_ID,
        name="Unarmed Strike",
        weapon_type=WeaponType.MELEE,
        attack_stat=Ability.DEX,
        damage_dice="1d4",
        damage_type=DamageType.BLUDGEONING,
        properties=["Monk", "Unarmed"],
        linked_shortcut=False,
    )


def build_weapon_entries(inventory: NestedInventory, *, is_monk: bool = False) -> list[WeaponEntry]:
    """Build weaponlist rows from a nested inventory.

    Rows follow inventorylist order. Each thrown weapon yields a thrown row
    in order and a melee row appended after all other weapons; a monk's
    Unarmed Strike comes last.

    Args:
        inventory: Nested inventory (weapons and ammunition may sit in containers).
        is_monk: Whether to add Unarmed Strike.

    Returns:
        Weapon entries.
    """
    items = inventory.iter_items()
    entries: list[WeaponEntry] = []
    melee_forms: list[WeaponEntry] = []

    for index, item in enumerate(items, start=1):
        if not is_weapon(item):
            continue
        properties = resolve_weapon_properties(item)
        weapon_type = resolve_weapon_type(item, properties)
        entries.append(_entry(item, index, weapon_type, properties, items))
        if weapon_type is WeaponType.THROWN:
            melee_forms.append(_entry(item, index, WeaponType.MELEE, properties, items))

    entries.extend(melee_forms)
    if is_monk:
        entries.append(unarmed_strike())

    logger.debug("Weapons built", weapons=len(entries), thrown=len(melee_forms), monk=is_monk)
    return entries


def generate_weapon_xml(
    entries: list[WeaponEntry],
    *,
    depth: int = WEAPON_XML_DEPTH,
    sanitize: bool = True,
) -> str:
    """Render the weaponlist fragment."""
    writer = XmlWriter(depth, sanitize=sanitize)
    writer.open("weaponlist")
    for number, entry in enumerate(entries, start=1):
        writer.open(fg_id(number))
        writer.number("attackbonus", entry.attack_bonus)
        writer.string("attackstat", entry.attack_stat.value)
        writer.number("carried", 1)
        writer.open("damagelist")
        writer.open(fg_id(1))
        writer.number("bonus", entry.damage_bonus)
        writer.dice("dice", entry.damage_dice)
        writer.string("stat", entry.attack_stat.value)
        writer.string("type", entry.damage_type.value)
        writer.close()
        writer.close("damagelist")
        writer.number("handling", 0)
        writer.number("isidentified", 1)
        writer.string("name", entry.name)
        writer.string("properties", ", ".join(entry.properties))
        if entry.linked_shortcut and entry.inventory_index is not None:
            writer.window_reference(
                "shortcut", "item", f"....inventorylist.{fg_id(entry.inventory_index)}"
            )
        writer.number("type", int(entry.weapon_type))
        if entry.max_ammo is not None:
            writer.number("maxammo", entry.max_ammo)
        writer.close()
    writer.close("weaponlist")
    return writer.render()


__all__ = [
    "PROPERTY_KEYWORDS",
    "DAMAGE_BY_NAME",
    "infer_weapon_properties",
    "infer_weapon_damage",
    "is_weapon",
    "is_ammunition",
    "resolve_weapon_properties",
    "resolve_weapon_damage",
    "resolve_weapon_type",
    "magic_bonus",
    "find_ammunition",
    "unarmed_strike",
    "build_weapon_entries",
    "generate_weapon_xml",
]
