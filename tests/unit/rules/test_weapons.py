"""Tests for weapon entries and the weaponlist."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any

from ddb_converter.core.constants import UNARMED_STRIKE_ITEM_ID
from ddb_converter.models.character import DdbCharacter, DdbItem
from ddb_converter.models.enums import Ability, DamageType, WeaponType
from ddb_converter.models.inventory import NestedInventory
from ddb_converter.rules.inventory import InventoryProcessor
from ddb_converter.rules.weapons import (
    build_weapon_entries,
    find_ammunition,
    generate_weapon_xml,
    infer_weapon_properties,
    magic_bonus,
    resolve_weapon_damage,
    resolve_weapon_properties,
    resolve_weapon_type,
)


def _weapon(**definition: Any) -> DdbItem:
    return DdbItem.model_validate(
        {"id": 1, "definition": {"filterType": "Weapon", **definition}}
    )


def _nested(character: DdbCharacter) -> NestedInventory:
    return InventoryProcessor().build_nested_structure(character.inventory, character.id)


class TestResolveWeaponData:
    """Tests for property, damage, and attack form lookups."""

    def test_behavior_properties_win(self) -> None:
        """Test weapon behaviour properties come before definition properties."""
        item = _weapon(
            name="Odd Blade",
            weaponBehaviors=[{"properties": [{"name": "Finesse"}]}],
            properties=[{"name": "Heavy"}],
        )

        assert resolve_weapon_properties(item) == ["Finesse"]

    def test_name_inference_is_last_resort(self) -> None:
        """Test name keywords are used only without structured properties."""
        assert resolve_weapon_properties(_weapon(name="Dagger")) == ["Light", "Finesse", "Thrown"]
        assert resolve_weapon_properties(_weapon(name="Dagger", properties=["Heavy"])) == ["Heavy"]

    def test_infer_weapon_properties(self) -> None:
        """Test the keyword table."""
        assert infer_weapon_properties("Heavy Crossbow") == ["Ranged", "Two-handed"]
        assert infer_weapon_properties("Club") == []

    def test_damage_from_definition(self) -> None:
        """Test dice and type from structured data."""
        item = _weapon(name="Morningstar", damage={"diceString": "1d8"}, damageTypeId=2)

        assert resolve_weapon_damage(item) == ("1d8", DamageType.PIERCING)

    def test_damage_from_dice_parts(self) -> None:
        """Test dice notation built from count and value."""
        item = _weapon(name="Maul", damage={"diceCount": 2, "diceValue": 6}, damageType="Bludgeoning")

        assert resolve_weapon_damage(item) == ("2d6", DamageType.BLUDGEONING)

    def test_damage_fallbacks(self) -> None:
        """Test the name table, then 1d6 slashing."""
        assert resolve_weapon_damage(_weapon(name="Rusty Dagger")) == ("1d4", DamageType.PIERCING)
        assert resolve_weapon_damage(_weapon(name="Strange Stick")) == ("1d6", DamageType.SLASHING)

    def test_weapon_type(self) -> None:
        """Test thrown beats ranged, and attackType 2 is ranged."""
        spear = _weapon(name="Spear", properties=["Thrown", "Versatile"])
        bow = _weapon(name="Longbow", attackType=2)
        sword = _weapon(name="Longsword", attackType=1, properties=["Versatile"])

        assert resolve_weapon_type(spear, resolve_weapon_properties(spear)) is WeaponType.THROWN
        assert resolve_weapon_type(bow, []) is WeaponType.RANGED
        assert resolve_weapon_type(sword, ["Versatile"]) is WeaponType.MELEE

    def test_magic_bonus(self) -> None:
        """Test granted magic bonus modifiers are summed."""
        item = _weapon(
            name="Longsword +1",
            grantedModifiers=[{"type": "bonus", "subType": "magic", "value": 1}],
        )

        assert magic_bonus(item) == 1
        assert magic_bonus(_weapon(name="Longsword")) == 0


class TestFindAmmunition:
    """Tests for ammunition linkage."""

    def test_crossbow_matches_bolts(self, fighter: DdbCharacter) -> None:
        """Test crossbows link to bolts, not arrows."""
        ammo = find_ammunition("Light Crossbow", fighter.inventory)

        assert ammo is not None
        assert ammo.name == "Crossbow Bolts (20)"

    def test_bow_without_arrows(self, fighter: DdbCharacter) -> None:
        """Test no match when the right ammunition is missing."""
        assert find_ammunition("Longbow", fighter.inventory) is None
        assert find_ammunition("Longsword", fighter.inventory) is None


class TestBuildWeaponEntries:
    """Tests for build_weapon_entries."""

    def test_fighter_entries(self, fighter: DdbCharacter) -> None:
        """Test row order, thrown melee forms, and ammunition counts."""
        entries = build_weapon_entries(_nested(fighter))

        assert [(e.name, e.weapon_type) for e in entries] == [
            ("Longsword", WeaponType.MELEE),
            ("Handaxe", WeaponType.THROWN),
            ("Light Crossbow", WeaponType.RANGED),
            ("Handaxe", WeaponType.MELEE),
        ]
        longsword, thrown_axe, crossbow, melee_axe = entries
        assert longsword.damage_dice == "1d8"
        assert longsword.damage_type is DamageType.SLASHING
        assert longsword.inventory_index == 1
        assert thrown_axe.max_ammo == 2
        assert crossbow.max_ammo == 20
        assert crossbow.attack_stat is Ability.DEX
        assert melee_axe.max_ammo is None
        assert melee_axe.item_id == thrown_axe.item_id == 1002
        assert melee_axe.inventory_index == 2

    def test_monk_unarmed_strike_last(self, monk_payload: dict[str, Any]) -> None:
        """Test a monk gets an unlinked Unarmed Strike row at the end."""
        monk = DdbCharacter.model_validate(monk_payload)

        entries = build_weapon_entries(_nested(monk), is_monk=True)

        assert [e.name for e in entries] == ["Quarterstaff", "Unarmed Strike"]
        unarmed = entries[-1]
        assert unarmed.item_id == UNARMED_STRIKE_ITEM_ID
        assert unarmed.linked_shortcut is False
        assert unarmed.damage_type is DamageType.BLUDGEONING

    def test_non_weapons_ignored(self) -> None:
        """Test armor and gear produce no rows."""
        nested = NestedInventory(
            root_items=[DdbItem.model_validate({"id": 1, "definition": {"filterType": "Armor"}})]
        )

        assert build_weapon_entries(nested) == []


class TestGenerateWeaponXml:
    """Tests for the weaponlist fragment."""

    def test_fighter_weaponlist(self, fighter: DdbCharacter) -> None:
        """Test shortcut links, types, and max ammo."""
        xml = generate_weapon_xml(build_weapon_entries(_nested(fighter)))

        records = list(ET.fromstring(xml))

        assert len(records) == 4
        assert records[0].findtext("shortcut/recordname") == "....inventorylist.id-00001"
        assert records[0].findtext("shortcut/class") == "item"
        assert records[0].findtext("damagelist/id-00001/dice") == "1d8"
        assert records[1].findtext("type") == "2"
        assert records[1].findtext("maxammo") == "2"
        assert records[2].findtext("type") == "1"
        assert records[2].findtext("attackstat") == "dexterity"
        assert records[3].findtext("shortcut/recordname") == "....inventorylist.id-00002"
        assert records[3].find("maxammo") is None

    def test_unarmed_strike_has_no_shortcut(self, monk_payload: dict[str, Any]) -> None:
        """Test the synthetic row does not link to the inventory."""
        monk = DdbCharacter.model_validate(monk_payload)
        xml = generate_weapon_xml(build_weapon_entries(_nested(monk), is_monk=True))

        records = list(ET.fromstring(xml))

        assert records[-1].findtext("name") == "Unarmed Strike"
        assert records[-1].find("shortcut") is None
