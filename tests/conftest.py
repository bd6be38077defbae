"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the D&D Beyond character converter test suite. Character fixtures are
raw D&D Beyond payloads (camelCase, as returned by the character service)
so every test exercises the same boundary validation as production.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest


if TYPE_CHECKING:
    from collections.abc import Callable, Generator


FIGHTER_ID = 151483095


def make_stats(
    strength: int = 10,
    dexterity: int = 10,
    constitution: int = 10,
    intelligence: int = 10,
    wisdom: int = 10,
    charisma: int = 10,
) -> list[dict[str, int]]:
    """Build a D&D Beyond stats array (stat ids 1-6)."""
    values = (strength, dexterity, constitution, intelligence, wisdom, charisma)
    return [{"id": index, "value": value} for index, value in enumerate(values, start=1)]


def make_class(
    name: str,
    level: int,
    *,
    hit_dice: int | None = None,
    spellcasting_ability_id: int | None = None,
    subclass: str | None = None,
    features: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build one entry of a character's classes list."""
    entry: dict[str, Any] = {
        "level": level,
        "hitDiceUsed": 0,
        "definition": {
            "name": name,
            "hitDice": hit_dice,
            "canCastSpells": spellcasting_ability_id is not None,
            "spellCastingAbilityId": spellcasting_ability_id,
            "classFeatures": features or [],
        },
    }
    if subclass:
        entry["subclassDefinition"] = {"name": subclass, "classFeatures": []}
    return entry


def make_character(**overrides: Any) -> dict[str, Any]:
    """Build a minimal character payload, overriding any top-level key."""
    payload: dict[str, Any] = {
        "id": 1,
        "name": "Test Character",
        "stats": make_stats(),
        "classes": [],
        "inventory": [],
        "modifiers": {"race": [], "class": [], "background": [], "feat": [], "item": []},
        "feats": [],
    }
    payload.update(overrides)
    return payload


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from ddb_converter.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_logging_config() -> Generator[None, None, None]:
    """Restore structlog defaults after each test."""
    from ddb_converter.core.logging import reset_logging

    yield
    reset_logging()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "DDB_CONVERTER_DEBUG": "true",
        "DDB_CONVERTER_LOG_LEVEL": "DEBUG",
        "DDB_CONVERTER_FETCH_MAX_RETRIES": "5",
        "DDB_CONVERTER_CONVERSION_DEFAULT_FORMAT": "foundry_vtt",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def fast_fetch_settings() -> Any:
    """FetchSettings with three attempts and no backoff delay."""
    from ddb_converter.core.config import FetchSettings

    return FetchSettings(
        max_retries=3,
        retry_backoff_seconds=0,
        retry_backoff_max_seconds=0,
    )


# =============================================================================
# Character Payload Fixtures
# =============================================================================


@pytest.fixture
def fighter_inventory() -> list[dict[str, Any]]:
    """Weapons, armor, and a backpack holding bolts and rations.

    Returns:
        Inventory list in D&D Beyond order.
    """
    return [
        {
            "id": 1001,
            "containerEntityId": FIGHTER_ID,
            "quantity": 1,
            "equipped": True,
            "definition": {
                "name": "Longsword",
                "filterType": "Weapon",
                "weight": 3,
                "cost": 15,
                "attackType": 1,
                "damage": {"diceCount": 1, "diceValue": 8, "diceString": "1d8"},
                "damageType": "Slashing",
                "properties": [{"name": "Versatile"}],
            },
        },
        {
            "id": 1002,
            "containerEntityId": FIGHTER_ID,
            "quantity": 2,
            "definition": {
                "name": "Handaxe",
                "filterType": "Weapon",
                "weight": 2,
                "attackType": 1,
                "damage": {"diceString": "1d6"},
                "damageType": "Slashing",
                "properties": [{"name": "Light"}, {"name": "Thrown"}],
            },
        },
        {
            "id": 1003,
            "containerEntityId": FIGHTER_ID,
            "quantity": 1,
            "definition": {
                "name": "Light Crossbow",
                "filterType": "Weapon",
                "weight": 5,
                "attackType": 2,
                "damage": {"diceString": "1d8"},
                "damageType": "Piercing",
                "properties": [
                    {"name": "Ammunition"},
                    {"name": "Loading"},
                    {"name": "Two-Handed"},
                ],
            },
        },
        {
            "id": 1004,
            "containerEntityId": FIGHTER_ID,
            "quantity": 1,
            "definition": {
                "name": "Backpack",
                "filterType": "Other Gear",
                "isContainer": True,
                "weight": 5,
            },
        },
        {
            "id": 1005,
            "containerEntityId": 1004,
            "quantity": 20,
            "definition": {
                "name": "Crossbow Bolts (20)",
                "filterType": "Other Gear",
                "subType": "Ammunition",
                "weight": 1.5,
                "bundleSize": 20,
            },
        },
        {
            "id": 1006,
            "containerEntityId": 1004,
            "quantity": 5,
            "definition": {
                "name": "Rations (1 day)",
                "filterType": "Other Gear",
                "isConsumable": True,
                "weight": 2,
            },
        },
        {
            "id": 1007,
            "containerEntityId": FIGHTER_ID,
            "quantity": 1,
            "equipped": True,
            "definition": {
                "name": "Chain Mail",
                "filterType": "Armor",
                "weight": 55,
                "cost": 75,
            },
        },
    ]


@pytest.fixture
def fighter_payload(fighter_inventory: list[dict[str, Any]]) -> dict[str, Any]:
    """Provide a level 4 mountain dwarf Champion fighter with two feats.

    Ability scores after racial bonuses: STR 17, DEX 14, CON 16, INT 10,
    WIS 12, CHA 8. The bonusStats array double-counts the racial bonuses
    and must be ignored.

    Returns:
        Character payload.
    """
    return {
        "id": FIGHTER_ID,
        "name": "Thorin",
        "gender": "Male",
        "faith": "Moradin",
        "age": 120,
        "hair": "Black",
        "eyes": "Brown",
        "skin": "Tan",
        "height": "4'5\"",
        "weight": 180,
        "alignmentId": 1,
        "currentXp": 2700,
        "baseHitPoints": 34,
        "bonusHitPoints": None,
        "overrideHitPoints": None,
        "removedHitPoints": 5,
        "temporaryHitPoints": 0,
        "armorClass": 18,
        "stats": make_stats(15, 14, 14, 10, 12, 8),
        "bonusStats": [{"id": 1, "value": 2}, {"id": 3, "value": 2}],
        "overrideStats": [{"id": n, "value": None} for n in range(1, 7)],
        "classes": [
            {
                "id": 1,
                "level": 4,
                "isStartingClass": True,
                "hitDiceUsed": 1,
                "definition": {
                    "id": 2,
                    "name": "Fighter",
                    "hitDice": 10,
                    "canCastSpells": False,
                    "classFeatures": [
                        {
                            "id": 10,
                            "name": "Fighting Style",
                            "description": "<p>You adopt a <strong>style</strong>.</p>",
                            "requiredLevel": 1,
                        },
                        {"id": 11, "name": "Second Wind", "requiredLevel": 1},
                        {"id": 12, "name": "Action Surge", "requiredLevel": 2},
                        {"id": 13, "name": "Extra Attack", "requiredLevel": 5},
                        {"id": 14, "name": "Proficiencies", "requiredLevel": 1},
                    ],
                },
                "subclassDefinition": {
                    "id": 3,
                    "name": "Champion",
                    "classFeatures": [
                        {"id": 20, "name": "Improved Critical", "requiredLevel": 3},
                    ],
                },
            }
        ],
        "race": {
            "fullName": "Mountain Dwarf",
            "baseRaceName": "Dwarf",
            "isSubRace": True,
            "sizeId": 4,
            "weightSpeeds": {"normal": {"walk": 25}},
            "racialTraits": [
                {"definition": {"id": 100, "name": "Darkvision"}},
                {
                    "definition": {
                        "id": 101,
                        "name": "Dwarven Resilience",
                        "description": "<p>Advantage against poison.</p>",
                    }
                },
                {"definition": {"id": 102, "name": "Stonecunning"}},
            ],
        },
        "background": {"definition": {"id": 5, "name": "Soldier"}},
        "modifiers": {
            "race": [
                {"type": "bonus", "subType": "strength-score", "fixedValue": 2, "isGranted": True},
                {
                    "type": "bonus",
                    "subType": "constitution-score",
                    "fixedValue": 2,
                    "isGranted": True,
                },
                {"type": "language", "subType": "common", "isGranted": True},
                {"type": "language", "subType": "dwarvish", "isGranted": True},
            ],
            "class": [
                {"type": "proficiency", "subType": "strength-saving-throws", "isGranted": True},
                {
                    "type": "proficiency",
                    "subType": "constitution-saving-throws",
                    "isGranted": True,
                },
                {"type": "proficiency", "subType": "athletics", "isGranted": True},
                {"type": "proficiency", "subType": "perception", "isGranted": True},
                {"type": "proficiency", "subType": "martial-weapons", "isGranted": True},
                {"type": "proficiency", "subType": "longsword", "isGranted": True},
                {"type": "proficiency", "subType": "heavy-armor", "isGranted": True},
            ],
            "background": [
                {"type": "proficiency", "subType": "intimidation", "isGranted": True},
                {"type": "language", "subType": "choose-a-language", "isGranted": True},
            ],
            "feat": [],
            "item": [],
        },
        "feats": [
            {
                "componentTypeId": 1088085227,
                "definition": {
                    "id": 1789101,
                    "name": "Alert",
                    "description": "<p>Always on the lookout for danger.</p>",
                    "categories": [{"tagName": "Origin"}],
                },
            },
            {
                "componentTypeId": 1088085227,
                "definition": {
                    "id": 1789200,
                    "name": "Weapon Mastery",
                    "description": "<p>Master two weapons.</p>",
                    "categories": [{"tagName": "General"}],
                },
            },
        ],
        "currencies": {"pp": 1, "gp": 25, "ep": 0, "sp": 3, "cp": 7},
        "traits": {
            "personalityTraits": "Stubborn",
            "ideals": "Honor",
            "bonds": "Clan",
            "flaws": "Greed",
        },
        "notes": {
            "allies": "The Iron Company",
            "backstory": "Exiled from the mountain.",
        },
        "decorations": {"avatarUrl": "https://example.com/thorin.png"},
        "inventory": fighter_inventory,
    }


@pytest.fixture
def multiclass_caster_payload() -> dict[str, Any]:
    """Provide a Wizard 3 / Cleric 3 character (caster level 6).

    Returns:
        Character payload.
    """
    return make_character(
        id=2002,
        name="Elara",
        stats=make_stats(8, 14, 12, 16, 15, 10),
        classes=[
            make_class("Wizard", 3, hit_dice=6, spellcasting_ability_id=4),
            make_class("Cleric", 3, hit_dice=8, spellcasting_ability_id=5),
        ],
    )


@pytest.fixture
def warlock_payload() -> dict[str, Any]:
    """Provide a level 3 warlock.

    Returns:
        Character payload.
    """
    return make_character(
        id=3003,
        name="Morwen",
        stats=make_stats(8, 14, 12, 10, 10, 16),
        classes=[make_class("Warlock", 3, hit_dice=8, spellcasting_ability_id=6)],
    )


@pytest.fixture
def goliath_payload() -> dict[str, Any]:
    """Provide a STR 15 goliath (Powerful Build).

    Returns:
        Character payload.
    """
    return make_character(
        id=4004,
        name="Kavaki",
        stats=make_stats(strength=15),
        classes=[make_class("Fighter", 1, hit_dice=10)],
        race={"fullName": "Goliath", "baseRaceName": "Goliath", "sizeId": 4},
    )


@pytest.fixture
def monk_payload() -> dict[str, Any]:
    """Provide a level 5 monk with DEX 16 and WIS 14.

    Returns:
        Character payload.
    """
    return make_character(
        id=5005,
        name="Lin",
        stats=make_stats(10, 16, 12, 10, 14, 8),
        armorClass=13,
        classes=[make_class("Monk", 5, hit_dice=8)],
        inventory=[
            {
                "id": 501,
                "containerEntityId": 5005,
                "quantity": 1,
                "definition": {
                    "name": "Quarterstaff",
                    "filterType": "Weapon",
                    "weight": 4,
                    "damage": {"diceString": "1d6"},
                    "damageType": "Bludgeoning",
                    "properties": [{"name": "Versatile"}],
                },
            }
        ],
    )


@pytest.fixture
def barbarian_payload() -> dict[str, Any]:
    """Provide a level 2 barbarian with DEX 14 and CON 16.

    Returns:
        Character payload.
    """
    return make_character(
        id=6006,
        name="Grok",
        stats=make_stats(16, 14, 16, 8, 10, 8),
        armorClass=12,
        classes=[make_class("Barbarian", 2, hit_dice=12)],
    )


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def build_character() -> Callable[..., Any]:
    """Factory that validates a minimal payload with top-level overrides.

    Returns:
        Callable taking make_character keyword overrides.
    """
    from ddb_converter.models.character import DdbCharacter

    def _build(**overrides: Any) -> DdbCharacter:
        return DdbCharacter.model_validate(make_character(**overrides))

    return _build


@pytest.fixture
def fighter(fighter_payload: dict[str, Any]) -> Any:
    """Validated fighter character."""
    from ddb_converter.models.character import DdbCharacter

    return DdbCharacter.model_validate(fighter_payload)


@pytest.fixture
def converter() -> Any:
    """CharacterConverter with default settings and flags."""
    from ddb_converter.converter import CharacterConverter

    return CharacterConverter()


@pytest.fixture
def processed_fighter(converter: Any, fighter: Any) -> Any:
    """Fighter run through every rules engine."""
    return converter.process_character(fighter)
