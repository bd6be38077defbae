"""Tests for the Foundry VTT actor formatter."""

from __future__ import annotations

import json
import re
from typing import Any

import pytest

from ddb_converter.converter import CharacterConverter
from ddb_converter.core.exceptions import ProcessingError
from ddb_converter.export.foundry import (
    ITEM_SECTIONS,
    SYSTEM_SECTIONS,
    format_foundry_actor,
    generate_foundry_id,
    serialize_foundry_actor,
)
from ddb_converter.models.character import DdbCharacter
from ddb_converter.models.conversion import ProcessedCharacter


FOUNDRY_ID = re.compile(r"^[A-Za-z0-9]{16}$")


def _items_by_name(actor: dict[str, Any]) -> dict[str, dict[str, Any]]:
    return {item["name"]: item for item in actor["items"]}


class TestGenerateFoundryId:
    """Tests for generate_foundry_id."""

    def test_format(self) -> None:
        """Test ids are 16 alphanumeric characters."""
        assert all(FOUNDRY_ID.match(generate_foundry_id()) for _ in range(50))

    def test_random(self) -> None:
        """Test ids do not repeat."""
        assert len({generate_foundry_id() for _ in range(100)}) == 100


class TestActorSystem:
    """Tests for the actor's system data."""

    def test_top_level(self, processed_fighter: ProcessedCharacter) -> None:
        """Test the actor envelope."""
        actor = format_foundry_actor(processed_fighter)

        assert actor["name"] == "Thorin"
        assert actor["type"] == "character"
        assert actor["img"] == "https://example.com/thorin.png"
        assert actor["effects"] == []
        assert actor["flags"] == {"ddb-converter": {"characterId": 151483095}}

    def test_abilities_and_skills(self, processed_fighter: ProcessedCharacter) -> None:
        """Test ability totals, save proficiency, and skill multipliers."""
        system = format_foundry_actor(processed_fighter)["system"]

        assert system["abilities"]["str"] == {"value": 17, "proficient": 1}
        assert system["abilities"]["cha"] == {"value": 8, "proficient": 0}
        assert system["skills"]["ath"] == {"value": 1, "ability": "str"}
        assert system["skills"]["ste"] == {"value": 0, "ability": "dex"}
        assert len(system["skills"]) == 18

    def test_attributes(self, processed_fighter: ProcessedCharacter) -> None:
        """Test armor class, hit points, and speed."""
        attributes = format_foundry_actor(processed_fighter)["system"]["attributes"]

        assert attributes["ac"] == {"calc": "flat", "flat": 18}
        assert attributes["hp"] == {"value": 41, "max": 46, "temp": 0}
        assert attributes["movement"]["walk"] == 25

    def test_details_currency_and_languages(self, processed_fighter: ProcessedCharacter) -> None:
        """Test the details, currency, and traits blocks."""
        system = format_foundry_actor(processed_fighter)["system"]

        assert system["currency"] == {"pp": 1, "gp": 25, "ep": 0, "sp": 3, "cp": 7}
        assert system["traits"]["languages"] == {"value": ["common", "dwarvish"], "custom": ""}
        details = system["details"]
        assert details["race"] == "Mountain Dwarf"
        assert details["background"] == "Soldier"
        assert details["alignment"] == "Lawful Good"
        assert details["level"] == 4
        assert details["xp"] == {"value": 2700}
        assert (details["trait"], details["ideal"], details["bond"], details["flaw"]) == (
            "Stubborn",
            "Honor",
            "Clan",
            "Greed",
        )
        assert details["biography"]["value"] == "Exiled from the mountain."

    def test_spell_slots(
        self,
        processed_fighter: ProcessedCharacter,
        converter: CharacterConverter,
        multiclass_caster_payload: dict[str, Any],
        warlock_payload: dict[str, Any],
    ) -> None:
        """Test spell and pact slot blocks."""
        fighter_spells = format_foundry_actor(processed_fighter)["system"]["spells"]
        caster = converter.process_character(DdbCharacter.model_validate(multiclass_caster_payload))
        warlock = converter.process_character(DdbCharacter.model_validate(warlock_payload))

        caster_spells = format_foundry_actor(caster)["system"]["spells"]
        warlock_spells = format_foundry_actor(warlock)["system"]["spells"]

        assert fighter_spells["spell1"] == {"value": 0, "max": 0}
        assert fighter_spells["pact"] == {"value": 0, "max": 0, "level": 0}
        assert caster_spells["spell3"] == {"value": 3, "max": 3}
        assert caster_spells["spell4"] == {"value": 0, "max": 0}
        assert warlock_spells["pact"] == {"value": 2, "max": 2, "level": 2}

    def test_default_image(self, converter: CharacterConverter) -> None:
        """Test the placeholder portrait."""
        processed = converter.process_character(DdbCharacter.model_validate({"id": 9}))

        assert format_foundry_actor(processed)["img"] == "icons/svg/mystery-man.svg"


class TestActorItems:
    """Tests for embedded items."""

    def test_item_counts_and_ids(self, processed_fighter: ProcessedCharacter) -> None:
        """Test inventory, class, and feature items all get unique ids."""
        actor = format_foundry_actor(processed_fighter)

        types = [item["type"] for item in actor["items"]]
        ids = [item["_id"] for item in actor["items"]]

        assert len(actor["items"]) == 16
        assert types.count("class") == 1
        assert types.count("feat") == 8
        assert all(FOUNDRY_ID.match(i) for i in ids)
        assert len(set(ids)) == len(ids)

    def test_inventory_types_and_containers(self, processed_fighter: ProcessedCharacter) -> None:
        """Test item types and container links."""
        items = _items_by_name(format_foundry_actor(processed_fighter))

        backpack = items["Backpack"]
        assert backpack["type"] == "container"
        assert backpack["system"]["container"] is None
        assert items["Crossbow Bolts (20)"]["system"]["container"] == backpack["_id"]
        assert items["Rations (1 day)"]["system"]["container"] == backpack["_id"]
        assert items["Rations (1 day)"]["type"] == "consumable"
        assert items["Crossbow Bolts (20)"]["type"] == "loot"
        assert items["Chain Mail"]["type"] == "equipment"
        assert items["Chain Mail"]["system"]["price"] == {"value": 75, "denomination": "gp"}
        assert items["Rations (1 day)"]["system"]["quantity"] == 5

    def test_weapon_system(self, processed_fighter: ProcessedCharacter) -> None:
        """Test weapon action types, damage parts, and property codes."""
        items = _items_by_name(format_foundry_actor(processed_fighter))

        longsword = items["Longsword"]["system"]
        crossbow = items["Light Crossbow"]["system"]

        assert items["Longsword"]["type"] == "weapon"
        assert longsword["actionType"] == "mwak"
        assert longsword["damage"]["base"] == {
            "number": 1,
            "denomination": 8,
            "types": ["slashing"],
            "bonus": "",
        }
        assert longsword["properties"] == ["ver"]
        assert longsword["equipped"] is True
        assert items["Handaxe"]["system"]["properties"] == ["lgt", "thr"]
        assert crossbow["actionType"] == "rwak"
        assert crossbow["properties"] == ["amm", "lod", "two"]
        assert crossbow["magicalBonus"] is None

    def test_magic_weapon(self, build_character: Any, converter: CharacterConverter) -> None:
        """Test magic bonuses add the mgc property."""
        character = build_character(
            inventory=[
                {
                    "id": 1,
                    "definition": {
                        "name": "Longsword +1",
                        "filterType": "Weapon",
                        "properties": ["Versatile"],
                        "grantedModifiers": [{"type": "bonus", "subType": "magic", "value": 1}],
                    },
                }
            ]
        )

        actor = format_foundry_actor(converter.process_character(character))
        system = actor["items"][0]["system"]

        assert system["properties"] == ["ver", "mgc"]
        assert system["magicalBonus"] == 1

    def test_class_and_feat_items(self, processed_fighter: ProcessedCharacter) -> None:
        """Test class levels and feature item types."""
        actor = format_foundry_actor(processed_fighter)
        items = _items_by_name(actor)

        fighter_class = items["Fighter"]["system"]
        assert fighter_class["levels"] == 4
        assert fighter_class["hitDice"] == "d10"
        assert fighter_class["identifier"] == "fighter"
        assert fighter_class["spellcasting"] == {"progression": "none", "ability": ""}

        assert items["Improved Critical"]["system"]["requirements"] == "Fighter (Champion)"
        assert items["Improved Critical"]["system"]["type"]["value"] == "class"
        assert items["Stonecunning"]["system"]["type"]["value"] == "race"
        assert items["Alert"]["system"]["type"]["value"] == "feat"
        assert items["Alert"]["system"]["requirements"] == "Origin"

    def test_missing_engines(self, processed_fighter: ProcessedCharacter) -> None:
        """Test an actor is still built when engines produced nothing."""
        processed = processed_fighter.model_copy(
            update={
                "inventory": None,
                "features": None,
                "languages": None,
                "spell_slots": None,
                "proficiencies": None,
            }
        )

        actor = format_foundry_actor(processed)

        assert [item["type"] for item in actor["items"]] == ["class"]
        assert actor["system"]["traits"]["languages"] == {"value": [], "custom": ""}
        assert actor["system"]["abilities"]["str"]["proficient"] == 0
        assert actor["system"]["skills"]["ath"]["value"] == 0


class TestSectionBoundaries:
    """Tests for per-section error isolation in the actor."""

    def test_failing_system_block_written_empty(
        self,
        processed_fighter: ProcessedCharacter,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test a raising block is emptied and the rest of the actor survives."""

        def boom(processed: ProcessedCharacter) -> dict[str, Any]:
            raise KeyError("languages")

        monkeypatch.setitem(SYSTEM_SECTIONS, "traits", boom)
        errors: dict[str, str] = {}

        actor = format_foundry_actor(processed_fighter, errors)

        assert actor["system"]["traits"] == {}
        assert actor["system"]["abilities"]["str"]["value"] == 17
        assert len(actor["items"]) == 16
        assert list(errors) == ["system.traits"]
        assert "languages" in errors["system.traits"]

    def test_failing_item_group_dropped(
        self,
        processed_fighter: ProcessedCharacter,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test a raising item group contributes no items."""

        def boom(processed: ProcessedCharacter) -> list[dict[str, Any]]:
            raise ProcessingError("feature data unavailable", section="features")

        monkeypatch.setitem(ITEM_SECTIONS, "features", boom)
        errors: dict[str, str] = {}

        actor = format_foundry_actor(processed_fighter, errors)

        assert [i["type"] for i in actor["items"]].count("feat") == 0
        assert "Fighter" in _items_by_name(actor)
        assert errors == {"items.features": "feature data unavailable"}

    def test_errors_optional(
        self,
        processed_fighter: ProcessedCharacter,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test callers that pass no error dict still get an actor."""

        def boom(processed: ProcessedCharacter) -> dict[str, Any]:
            raise ValueError("bad spell data")

        monkeypatch.setitem(SYSTEM_SECTIONS, "spells", boom)

        actor = format_foundry_actor(processed_fighter)

        assert actor["system"]["spells"] == {}

    def test_conversion_reports_failed_section(
        self,
        converter: CharacterConverter,
        fighter_payload: dict[str, Any],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test a failing actor section becomes a warning, not a failed conversion."""

        def boom(processed: ProcessedCharacter) -> list[dict[str, Any]]:
            raise ValueError("bad inventory data")

        monkeypatch.setitem(ITEM_SECTIONS, "inventory", boom)

        result = converter.convert_character_data(fighter_payload, output_format="foundry_vtt")

        assert result.success is True
        assert result.section_errors == {"items.inventory": "bad inventory data"}
        assert result.warnings == ["items.inventory: bad inventory data"]
        actor = json.loads(result.output or "")
        assert "Longsword" not in _items_by_name(actor)
        assert "Fighter" in _items_by_name(actor)


class TestSerialize:
    """Tests for serialize_foundry_actor."""

    def test_json_round_trip(self, processed_fighter: ProcessedCharacter) -> None:
        """Test the output is indented JSON of the actor."""
        actor = format_foundry_actor(processed_fighter)

        output = serialize_foundry_actor(actor)

        assert json.loads(output) == actor
        assert output.startswith('{\n  "name": "Thorin"')
