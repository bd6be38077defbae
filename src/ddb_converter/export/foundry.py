"""Foundry VTT actor formatter.

Builds a D&D 5e system ``character`` actor from a processed character: the
ability, attribute, skill, trait, currency, detail, and spell slot blocks of
``system``, plus embedded items for inventory, classes, class features,
racial traits, and feats. Embedded documents get random 16-character
alphanumeric ids, the format Foundry requires.

Example:
    >>> actor = format_foundry_actor(processed)
    >>> actor["system"]["abilities"]["str"]
    {'value': 16, 'proficient': 1}
    >>> output = serialize_foundry_actor(actor)
"""

from __future__ import annotations

import json
import secrets
import string
from collections.abc import Callable
from typing import Any, TypeVar

from ddb_converter.core.constants import FOUNDRY_DEFAULT_IMAGE, FOUNDRY_ID_LENGTH
from ddb_converter.core.exceptions import ProcessingError
from ddb_converter.core.logging import get_logger
from ddb_converter.models.character import DdbItem
from ddb_converter.models.conversion import ProcessedCharacter
from ddb_converter.models.enums import Ability, Alignment, ProficiencyLevel, Skill, WeaponType
from ddb_converter.models.results import CharacterClass
from ddb_converter.rules.languages import foundry_languages
from ddb_converter.rules.vitals import (
    calculate_armor_class,
    calculate_max_hit_points,
    current_hit_points,
)
from ddb_converter.rules.weapons import (
    is_weapon,
    magic_bonus,
    resolve_weapon_damage,
    resolve_weapon_properties,
    resolve_weapon_type,
)


logger = get_logger(__name__)

T = TypeVar("T")

FORMAT_NAME = "foundry_vtt"

_ID_ALPHABET = string.ascii_letters + string.digits

WEAPON_PROPERTY_CODES: dict[str, str] = {
    "ammunition": "amm",
    "finesse": "fin",
    "heavy": "hvy",
    "light": "lgt",
    "loading": "lod",
    "reach": "rch",
    "special": "spc",
    "thrown": "thr",
    "two-handed": "two",
    "versatile": "ver",
}
"""Weapon property name (lowercase) -> dnd5e property key."""

ITEM_IMAGES: dict[str, str] = {
    "weapon": "icons/weapons/swords/sword-guard-brown.webp",
    "equipment": "icons/equipment/chest/breastplate-banded-steel.webp",
    "consumable": "icons/consumables/potions/bottle-round-corked-red.webp",
    "container": "icons/containers/bags/pack-leather-brown.webp",
    "loot": "icons/containers/chest/chest-simple-box-brown.webp",
    "class": "icons/sundries/books/book-red-exclamation.webp",
    "feat": "icons/skills/melee/strike-sword-steel-yellow.webp",
}


def generate_foundry_id() -> str:
    """Random Foundry document id (16 characters, [a-zA-Z0-9]).

    Example:
        >>> len(generate_foundry_id())
        16
    """
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(FOUNDRY_ID_LENGTH))


# =============================================================================
# System Data
# =============================================================================


def _abilities(processed: ProcessedCharacter) -> dict[str, Any]:
    saves = set(processed.proficiencies.saving_throws) if processed.proficiencies else set()
    return {
        ability.abbreviation: {
            "value": processed.abilities.total(ability),
            "proficient": 1 if ability in saves else 0,
        }
        for ability in Ability
    }


def _attributes(processed: ProcessedCharacter) -> dict[str, Any]:
    character = processed.character
    race = character.race
    return {
        "ac": {
            "calc": "flat",
            "flat": calculate_armor_class(character, processed.abilities),
        },
        "hp": {
            "value": current_hit_points(character, processed.abilities),
            "max": calculate_max_hit_points(character, processed.abilities),
            "temp": character.temporary_hit_points,
        },
        "movement": {
            "walk": race.walk_speed if race else 30,
            "units": "ft",
        },
    }


def _skills(processed: ProcessedCharacter) -> dict[str, Any]:
    levels = processed.proficiencies.skills if processed.proficiencies else {}
    return {
        skill.foundry_key: {
            "value": levels.get(skill, ProficiencyLevel.NONE).foundry_value,
            "ability": skill.ability.abbreviation,
        }
        for skill in Skill
    }


def _currency(processed: ProcessedCharacter) -> dict[str, int]:
    currencies = processed.character.currencies
    keys = ("pp", "gp", "ep", "sp", "cp")
    return {key: getattr(currencies, key) if currencies else 0 for key in keys}


def _details(processed: ProcessedCharacter) -> dict[str, Any]:
    character = processed.character
    alignment = Alignment.from_ddb_id(character.alignment_id)
    traits = character.traits
    backstory = character.notes.backstory if character.notes else None
    return {
        "race": character.race.display_name if character.race else "",
        "background": (character.background.name if character.background else None) or "",
        "alignment": alignment.display_name if alignment else "",
        "level": character.total_level,
        "xp": {"value": character.current_xp},
        "trait": traits.personality_traits if traits and traits.personality_traits else "",
        "ideal": traits.ideals if traits and traits.ideals else "",
        "bond": traits.bonds if traits and traits.bonds else "",
        "flaw": traits.flaws if traits and traits.flaws else "",
        "biography": {"value": backstory or "", "public": ""},
    }


def _spells(processed: ProcessedCharacter) -> dict[str, Any]:
    slots = processed.spell_slots
    spells: dict[str, Any] = {}
    for level in range(1, 10):
        count = slots.spell_slots.get(level, 0) if slots else 0
        spells[f"spell{level}"] = {"value": count, "max": count}

    pact_level = slots.pact_slot_level if slots else None
    pact_count = slots.pact_magic_slots.get(pact_level, 0) if slots and pact_level else 0
    spells["pact"] = {"value": pact_count, "max": pact_count, "level": pact_level or 0}
    return spells


def _traits(processed: ProcessedCharacter) -> dict[str, Any]:
    if processed.languages is None:
        return {"languages": {"value": [], "custom": ""}}
    return {"languages": foundry_languages(processed.languages)}


# =============================================================================
# Embedded Items
# =============================================================================


def _item_type(item: DdbItem) -> str:
    definition = item.definition
    if is_weapon(item):
        return "weapon"
    if item.is_container:
        return "container"
    if definition is not None and definition.filter_type == "Armor":
        return "equipment"
    if definition is not None and definition.is_consumable:
        return "consumable"
    return "loot"


def _weapon_system(item: DdbItem) -> dict[str, Any]:
    properties = resolve_weapon_properties(item)
    weapon_type = resolve_weapon_type(item, properties)
    dice, damage_type = resolve_weapon_damage(item)
    number, _, denomination = dice.partition("d")
    codes = sorted(
        {WEAPON_PROPERTY_CODES[p.lower()] for p in properties if p.lower() in WEAPON_PROPERTY_CODES}
    )
    bonus = magic_bonus(item)
    if bonus:
        codes.append("mgc")
    return {
        "actionType": "rwak" if weapon_type is WeaponType.RANGED else "mwak",
        "damage": {
            "base": {
                "number": int(number) if number.isdigit() else 1,
                "denomination": int(denomination) if denomination.isdigit() else 6,
                "types": [damage_type.value],
                "bonus": "",
            },
        },
        "properties": codes,
        "magicalBonus": bonus or None,
    }


def _inventory_items(processed: ProcessedCharacter) -> list[dict[str, Any]]:
    if processed.inventory is None:
        return []
    structure = processed.inventory.nested_structure
    container_ids = {item_id: generate_foundry_id() for item_id in structure.containers}

    items: list[dict[str, Any]] = []
    for item in structure.root_items:
        items.append(_inventory_item(item, None, container_ids))
    for container_id, entry in structure.containers.items():
        for item in entry.contents:
            items.append(_inventory_item(item, container_ids[container_id], container_ids))
    return items


def _inventory_item(
    item: DdbItem,
    container: str | None,
    container_ids: dict[int, str],
) -> dict[str, Any]:
    definition = item.definition
    item_type = _item_type(item)
    system: dict[str, Any] = {
        "description": {"value": (definition.description or "") if definition else ""},
        "quantity": item.quantity,
        "weight": {"value": item.unit_weight, "units": "lb"},
        "price": {"value": (definition.cost or 0) if definition else 0, "denomination": "gp"},
        "equipped": item.equipped,
        "attuned": item.is_attuned,
        "container": container,
    }
    if item_type == "weapon":
        system.update(_weapon_system(item))

    document_id = container_ids.get(item.id) if item.id is not None else None
    return {
        "_id": document_id or generate_foundry_id(),
        "name": item.name,
        "type": item_type,
        "img": ITEM_IMAGES[item_type],
        "system": system,
    }


def _class_item(cls: CharacterClass) -> dict[str, Any]:
    ability = cls.spellcasting_ability
    return {
        "_id": generate_foundry_id(),
        "name": cls.name,
        "type": "class",
        "img": ITEM_IMAGES["class"],
        "system": {
            "identifier": cls.key.replace(" ", "-"),
            "levels": cls.level,
            "hitDice": f"d{cls.hit_die}",
            "hitDiceUsed": cls.hit_dice_used,
            "spellcasting": {
                "progression": cls.caster_type.value,
                "ability": ability.abbreviation if ability else "",
            },
        },
    }


def _feat_item(name: str, description: str, feat_type: str, requirements: str) -> dict[str, Any]:
    return {
        "_id": generate_foundry_id(),
        "name": name,
        "type": "feat",
        "img": ITEM_IMAGES["feat"],
        "system": {
            "description": {"value": description},
            "type": {"value": feat_type, "subtype": ""},
            "requirements": requirements,
        },
    }


def _feature_items(processed: ProcessedCharacter) -> list[dict[str, Any]]:
    features = processed.features
    if features is None:
        return []
    items = [
        _feat_item(f.name, f.description, "class", f.source_label) for f in features.class_features
    ]
    items.extend(
        _feat_item(t.name, t.description, "race", t.source_label) for t in features.racial_traits
    )
    items.extend(_feat_item(f.name, f.description, "feat", f.category) for f in features.feats)
    return items


# =============================================================================
# Actor
# =============================================================================


def _class_items(processed: ProcessedCharacter) -> list[dict[str, Any]]:
    return [_class_item(cls) for cls in processed.classes]


SYSTEM_SECTIONS: dict[str, Callable[[ProcessedCharacter], dict[str, Any]]] = {
    "abilities": _abilities,
    "attributes": _attributes,
    "skills": _skills,
    "traits": _traits,
    "currency": _currency,
    "details": _details,
    "spells": _spells,
}
"""Key under ``system`` -> block builder."""

ITEM_SECTIONS: dict[str, Callable[[ProcessedCharacter], list[dict[str, Any]]]] = {
    "inventory": _inventory_items,
    "classes": _class_items,
    "features": _feature_items,
}
"""Embedded item group -> builder, in output order."""


def build_section(
    name: str,
    builder: Callable[[ProcessedCharacter], T],
    fallback: T,
    processed: ProcessedCharacter,
    section_errors: dict[str, str],
) -> T:
    """Run one actor section builder inside its error boundary.

    Args:
        name: Section key recorded in section_errors.
        builder: Section builder.
        fallback: Value used when the builder raises.
        processed: Processed character.
        section_errors: Collects section key -> failure message.

    Returns:
        The builder's result, or the fallback.
    """
    try:
        return builder(processed)
    except ProcessingError as exc:
        logger.warning("Actor section unavailable", section=name, error=exc.message)
        section_errors[name] = exc.message
    except Exception as exc:
        logger.exception("Actor section failed", section=name)
        section_errors[name] = str(exc)
    return fallback


def format_foundry_actor(
    processed: ProcessedCharacter,
    section_errors: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build a Foundry VTT dnd5e character actor.

    A ``system`` block whose builder raises is written empty and an item
    group whose builder raises contributes no items; either way the
    failure is recorded under ``system.<block>`` or ``items.<group>``.

    Args:
        processed: Processed character.
        section_errors: Collects section key -> failure message.

    Returns:
        Actor document ready for JSON serialization.
    """
    errors = section_errors if section_errors is not None else {}
    character = processed.character
    avatar = character.decorations.avatar_url if character.decorations else None

    system = {
        key: build_section(f"system.{key}", builder, {}, processed, errors)
        for key, builder in SYSTEM_SECTIONS.items()
    }
    items: list[dict[str, Any]] = []
    for group, builder in ITEM_SECTIONS.items():
        items.extend(build_section(f"items.{group}", builder, [], processed, errors))

    actor = {
        "name": character.display_name,
        "type": "character",
        "img": avatar or FOUNDRY_DEFAULT_IMAGE,
        "system": system,
        "items": items,
        "effects": [],
        "flags": {"ddb-converter": {"characterId": character.id}},
    }

    logger.info(
        "Foundry actor generated",
        items=len(items),
        classes=len(processed.classes),
        failed_sections=sorted(errors),
    )
    return actor


def serialize_foundry_actor(actor: dict[str, Any]) -> str:
    """Serialize an actor document as indented JSON."""
    return json.dumps(actor, indent=2)


__all__ = [
    "FORMAT_NAME",
    "WEAPON_PROPERTY_CODES",
    "generate_foundry_id",
    "SYSTEM_SECTIONS",
    "ITEM_SECTIONS",
    "build_section",
    "format_foundry_actor",
    "serialize_foundry_actor",
]
