"""Tests for skill, saving throw, and equipment proficiencies."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Callable
from typing import Any

from ddb_converter.models.character import DdbCharacter
from ddb_converter.models.enums import Ability, ProficiencyLevel, Skill
from ddb_converter.rules.proficiencies import (
    compute_other_proficiencies,
    compute_saving_throws,
    compute_skill_proficiencies,
    generate_proficiency_xml,
    generate_skill_xml,
    process_proficiencies,
    proficiency_display_name,
)


def _modifier(type_: str, sub_type: str, **extra: Any) -> dict[str, Any]:
    return {"type": type_, "subType": sub_type, "isGranted": True, **extra}


class TestSkillProficiencies:
    """Tests for compute_skill_proficiencies."""

    def test_fighter_skills(self, fighter: DdbCharacter) -> None:
        """Test class and background skills across buckets."""
        skills = compute_skill_proficiencies(fighter)

        assert set(skills) == set(Skill)
        assert skills[Skill.ATHLETICS] is ProficiencyLevel.PROFICIENT
        assert skills[Skill.PERCEPTION] is ProficiencyLevel.PROFICIENT
        assert skills[Skill.INTIMIDATION] is ProficiencyLevel.PROFICIENT
        assert skills[Skill.STEALTH] is ProficiencyLevel.NONE

    def test_expertise_and_half_proficiency(
        self,
        build_character: Callable[..., DdbCharacter],
    ) -> None:
        """Test expertise wins and Jack of All Trades fills the gaps."""
        character = build_character(
            modifiers={
                "class": [
                    _modifier("proficiency", "sleight-of-hand"),
                    _modifier("expertise", "sleight-of-hand"),
                    _modifier("proficiency", "stealth"),
                    _modifier("half-proficiency", "ability-checks"),
                ]
            }
        )

        skills = compute_skill_proficiencies(character)

        assert skills[Skill.SLEIGHT_OF_HAND] is ProficiencyLevel.EXPERTISE
        assert skills[Skill.STEALTH] is ProficiencyLevel.PROFICIENT
        assert skills[Skill.ARCANA] is ProficiencyLevel.HALF


class TestSavingThrows:
    """Tests for compute_saving_throws."""

    def test_fighter(self, fighter: DdbCharacter) -> None:
        """Test Fighter saving throws."""
        assert compute_saving_throws(fighter) == [Ability.STR, Ability.CON]

    def test_ability_order(self, build_character: Callable[..., DdbCharacter]) -> None:
        """Test results follow ability order regardless of grant order."""
        character = build_character(
            modifiers={
                "class": [
                    _modifier("proficiency", "charisma-saving-throws"),
                    _modifier("proficiency", "dexterity-saving-throws"),
                    _modifier("bonus", "wisdom-saving-throws"),
                ]
            }
        )

        assert compute_saving_throws(character) == [Ability.DEX, Ability.CHA]


class TestOtherProficiencies:
    """Tests for compute_other_proficiencies."""

    def test_fighter(self, fighter: DdbCharacter) -> None:
        """Test skills and saves are excluded and longsword folds into martial."""
        assert compute_other_proficiencies(fighter) == ["Martial Weapons", "Heavy Armor"]

    def test_names_and_placeholders(self, build_character: Callable[..., DdbCharacter]) -> None:
        """Test display names, duplicates, and choice placeholders."""
        character = build_character(
            modifiers={
                "race": [
                    _modifier("proficiency", "crossbow-light"),
                    _modifier("proficiency", "choose-a-tool"),
                    _modifier("proficiency", "smiths-tools"),
                ],
                "background": [
                    _modifier("proficiency", "smiths-tools"),
                    _modifier("proficiency", "dice-set", friendlySubtypeName="Dice Set"),
                ],
            }
        )

        assert compute_other_proficiencies(character) == [
            "Crossbow, light",
            "Smith's tools",
            "Dice Set",
        ]

    def test_simple_weapons_category(self, build_character: Callable[..., DdbCharacter]) -> None:
        """Test specific simple weapons are dropped with the category present."""
        character = build_character(
            modifiers={
                "class": [
                    _modifier("proficiency", "dagger"),
                    _modifier("proficiency", "simple-weapons"),
                    _modifier("proficiency", "rapier"),
                ]
            }
        )

        assert compute_other_proficiencies(character) == ["Simple Weapons", "Rapier"]

    def test_display_name_fallbacks(self) -> None:
        """Test the table, then the friendly name, then capitalization."""
        assert proficiency_display_name("war-pick") == "War pick"
        assert proficiency_display_name("disguise-kit", "Disguise Kit") == "Disguise Kit"
        assert proficiency_display_name("disguise-kit") == "Disguise kit"


class TestProficiencyXml:
    """Tests for the skilllist and proficiencylist fragments."""

    def test_skilllist(self, fighter: DdbCharacter) -> None:
        """Test one record per skill with stat and prof."""
        root = ET.fromstring(generate_skill_xml(process_proficiencies(fighter)))

        records = {r.findtext("name"): r for r in root}

        assert len(root) == len(Skill) == 18
        assert records["Athletics"].findtext("prof") == "1"
        assert records["Athletics"].findtext("stat") == "strength"
        assert records["Sleight of Hand"].findtext("stat") == "dexterity"
        assert records["Stealth"].findtext("prof") == "0"
        assert records["Stealth"].findtext("misc") == "0"

    def test_proficiencylist(self, fighter: DdbCharacter) -> None:
        """Test one record per proficiency."""
        root = ET.fromstring(generate_proficiency_xml(process_proficiencies(fighter)))

        assert root.tag == "proficiencylist"
        assert [r.findtext("name") for r in root] == ["Martial Weapons", "Heavy Armor"]
