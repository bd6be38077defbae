"""Skill, saving throw, and equipment proficiencies.

A skill is proficient when any bucket holds a ``proficiency`` modifier for
it and has expertise when one holds an ``expertise`` modifier. A
``half-proficiency`` modifier for ability checks (Jack of All Trades) marks
every skill that is otherwise unproficient as half proficient.
"""

from __future__ import annotations

from ddb_converter.core.logging import get_logger
from ddb_converter.export.xml_writer import XmlWriter, fg_id
from ddb_converter.models.character import DdbCharacter
from ddb_converter.models.enums import Ability, ProficiencyLevel, Skill
from ddb_converter.models.features import ProcessedProficiencies


logger = get_logger(__name__)

PROFICIENCY_XML_DEPTH = 2

SIMPLE_WEAPONS: frozenset[str] = frozenset(
    {
        "club",
        "dagger",
        "dart",
        "javelin",
        "light-hammer",
        "mace",
        "quarterstaff",
        "sickle",
        "spear",
        "crossbow-light",
        "shortbow",
        "sling",
    }
)

MARTIAL_WEAPONS: frozenset[str] = frozenset(
    {
        "battleaxe",
        "flail",
        "glaive",
        "greataxe",
        "greatsword",
        "halberd",
        "lance",
        "longsword",
        "maul",
        "morningstar",
        "pike",
        "rapier",
        "scimitar",
        "shortsword",
        "trident",
        "war-pick",
        "warhammer",
        "whip",
        "blowgun",
        "crossbow-hand",
        "crossbow-heavy",
        "longbow",
        "net",
    }
)

PROFICIENCY_NAMES: dict[str, str] = {
    "simple-weapons": "Simple Weapons",
    "martial-weapons": "Martial Weapons",
    "light-hammer": "Light hammer",
    "crossbow-light": "Crossbow, light",
    "crossbow-hand": "Crossbow, hand",
    "crossbow-heavy": "Crossbow, heavy",
    "war-pick": "War pick",
    "light-armor": "Light Armor",
    "medium-armor": "Medium Armor",
    "heavy-armor": "Heavy Armor",
    "shields": "Shields",
    "thieves-tools": "Thieves' tools",
    "alchemists-supplies": "Alchemist's supplies",
    "brewers-supplies": "Brewer's supplies",
    "calligraphers-supplies": "Calligrapher's supplies",
    "carpenters-tools": "Carpenter's tools",
    "cartographers-tools": "Cartographer's tools",
    "cobblers-tools": "Cobbler's tools",
    "cooks-utensils": "Cook's utensils",
    "glassblowers-tools": "Glassblower's tools",
    "jewelers-tools": "Jeweler's tools",
    "leatherworkers-tools": "Leatherworker's tools",
    "masons-tools": "Mason's tools",
    "painters-supplies": "Painter's supplies",
    "potters-tools": "Potter's tools",
    "smiths-tools": "Smith's tools",
    "tinkers-tools": "Tinker's tools",
    "weavers-tools": "Weaver's tools",
    "woodcarvers-tools": "Woodcarver's tools",
    "navigators-tools": "Navigator's tools",
    "poisoners-kit": "Poisoner's kit",
    "vehicles-land": "Vehicles (land)",
    "vehicles-water": "Vehicles (water)",
}
"""D&D Beyond subType -> sheet name, for names plain title-casing gets wrong."""


def _skill_from_sub_type(sub_type: str | None) -> Skill | None:
    if not sub_type:
        return None
    try:
        return Skill(sub_type.lower().replace("-", "_"))
    except ValueError:
        return None


def _saving_throw_ability(sub_type: str | None) -> Ability | None:
    if not sub_type or not sub_type.endswith("-saving-throws"):
        return None
    try:
        return Ability(sub_type.removesuffix("-saving-throws"))
    except ValueError:
        return None


def proficiency_display_name(sub_type: str, friendly_name: str | None = None) -> str:
    """Sheet name for a non-skill proficiency.

    Example:
        >>> proficiency_display_name("crossbow-light")
        'Crossbow, light'
    """
    if sub_type in PROFICIENCY_NAMES:
        return PROFICIENCY_NAMES[sub_type]
    if friendly_name:
        return friendly_name
    return sub_type.replace("-", " ").capitalize()


def compute_skill_proficiencies(character: DdbCharacter) -> dict[Skill, ProficiencyLevel]:
    """Proficiency level of every skill.

    Args:
        character: Validated character.

    Returns:
        Every Skill mapped to its level.
    """
    proficient: set[Skill] = set()
    expertise: set[Skill] = set()
    half = False

    for _, modifier in character.modifiers.iter_all():
        if modifier.type == "half-proficiency" and modifier.sub_type == "ability-checks":
            half = True
            continue
        skill = _skill_from_sub_type(modifier.sub_type)
        if skill is None:
            continue
        if modifier.type == "proficiency":
            proficient.add(skill)
        elif modifier.type == "expertise":
            expertise.add(skill)

    levels: dict[Skill, ProficiencyLevel] = {}
    for skill in Skill:
        if skill in expertise:
            levels[skill] = ProficiencyLevel.EXPERTISE
        elif skill in proficient:
            levels[skill] = ProficiencyLevel.PROFICIENT
        elif half:
            levels[skill] = ProficiencyLevel.HALF
        else:
            levels[skill] = ProficiencyLevel.NONE
    return levels


def compute_saving_throws(character: DdbCharacter) -> list[Ability]:
    """Abilities with saving throw proficiency, in ability order."""
    granted = {
        _saving_throw_ability(modifier.sub_type)
        for _, modifier in character.modifiers.iter_all()
        if modifier.type == "proficiency"
    }
    return [ability for ability in Ability if ability in granted]


def compute_other_proficiencies(character: DdbCharacter) -> list[str]:
    """Armor, weapon, and tool proficiencies.

    Skills, saving throws, and "choose a ..." placeholders are excluded.
    Duplicates are dropped, and specific simple or martial weapons are
    dropped when the whole category is known.
    """
    seen: list[str] = []
    names: dict[str, str] = {}
    for _, modifier in character.modifiers.iter_all():
        if modifier.type != "proficiency" or not modifier.sub_type:
            continue
        sub_type = modifier.sub_type.lower()
        if _skill_from_sub_type(sub_type) or _saving_throw_ability(sub_type):
            continue
        if sub_type.startswith(("choose-a", "select-a")):
            continue
        if sub_type in names:
            continue
        seen.append(sub_type)
        names[sub_type] = proficiency_display_name(sub_type, modifier.friendly_subtype_name)

    if "simple-weapons" in names:
        seen = [s for s in seen if s not in SIMPLE_WEAPONS]
    if "martial-weapons" in names:
        seen = [s for s in seen if s not in MARTIAL_WEAPONS]
    return [names[s] for s in seen]


def process_proficiencies(character: DdbCharacter) -> ProcessedProficiencies:
    """Compute skills, saving throws, and other proficiencies."""
    result = ProcessedProficiencies(
        skills=compute_skill_proficiencies(character),
        saving_throws=compute_saving_throws(character),
        proficiencies=compute_other_proficiencies(character),
    )
    logger.debug(
        "Proficiencies processed",
        proficient_skills=[s.value for s, lvl in result.skills.items() if lvl],
        saving_throws=[a.value for a in result.saving_throws],
        proficiencies=len(result.proficiencies),
    )
    return result


def generate_skill_xml(
    processed: ProcessedProficiencies,
    *,
    depth: int = PROFICIENCY_XML_DEPTH,
    sanitize: bool = True,
) -> str:
    """Render the skilllist fragment, one record per skill."""
    writer = XmlWriter(depth, sanitize=sanitize)
    writer.open("skilllist")
    for index, skill in enumerate(Skill, start=1):
        writer.open(fg_id(index))
        writer.number("misc", 0)
        writer.string("name", skill.display_name)
        writer.string("stat", skill.ability.value)
        writer.number("prof", int(processed.skills.get(skill, ProficiencyLevel.NONE)))
        writer.close()
    writer.close("skilllist")
    return writer.render()


def generate_proficiency_xml(
    processed: ProcessedProficiencies,
    *,
    depth: int = PROFICIENCY_XML_DEPTH,
    sanitize: bool = True,
) -> str:
    """Render the proficiencylist fragment."""
    writer = XmlWriter(depth, sanitize=sanitize)
    writer.open("proficiencylist")
    for index, name in enumerate(processed.proficiencies, start=1):
        writer.open(fg_id(index))
        writer.string("name", name)
        writer.close()
    writer.close("proficiencylist")
    return writer.render()


__all__ = [
    "SIMPLE_WEAPONS",
    "MARTIAL_WEAPONS",
    "PROFICIENCY_NAMES",
    "proficiency_display_name",
    "compute_skill_proficiencies",
    "compute_saving_throws",
    "compute_other_proficiencies",
    "process_proficiencies",
    "generate_skill_xml",
    "generate_proficiency_xml",
]
