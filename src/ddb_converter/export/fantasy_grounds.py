"""Fantasy Grounds character document assembly.

The document is one ``<root><character>`` element holding the scalar
character details followed by the sheet sections in a fixed order. Every
section is rendered inside its own error boundary: a failure is logged,
recorded in the returned section errors, and replaced by an XML comment so
that the rest of the sheet still imports. Sections whose engine was
switched off by a feature flag are replaced by a "disabled by feature
flag" comment.

Example:
    >>> xml, section_errors = generate_fantasy_grounds_xml(processed)
    >>> section_errors
    {}
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Callable

from ddb_converter.core.constants import (
    DEFAULT_ARMOR_CLASS,
    DEFAULT_SANITIZE_MAX_LENGTH,
    FG_ROOT_ATTRIBUTES,
)
from ddb_converter.core.exceptions import ExportError, ProcessingError
from ddb_converter.core.flags import FeatureFlag
from ddb_converter.core.logging import get_logger
from ddb_converter.export.sanitizer import escape_xml_text, sanitize_for_xml
from ddb_converter.export.xml_writer import XmlWriter, fg_id
from ddb_converter.models.conversion import ProcessedCharacter
from ddb_converter.models.enums import Ability, Alignment, CasterType
from ddb_converter.models.progression import get_proficiency_bonus, get_xp_for_next_level
from ddb_converter.rules.features import generate_feat_xml, generate_feature_xml, generate_trait_xml
from ddb_converter.rules.languages import generate_language_xml
from ddb_converter.rules.proficiencies import generate_proficiency_xml, generate_skill_xml
from ddb_converter.rules.spell_slots import primary_spellcasting_ability
from ddb_converter.rules.vitals import (
    calculate_armor_class,
    calculate_max_hit_points,
    unarmored_defense_ability,
)
from ddb_converter.rules.weapons import generate_weapon_xml


logger = get_logger(__name__)

FORMAT_NAME = "fantasy_grounds"

SECTION_DEPTH = 2

SECTION_ORDER: tuple[str, ...] = (
    "abilities",
    "classes",
    "coins",
    "hp",
    "defenses",
    "encumbrance",
    "featlist",
    "featurelist",
    "inventorylist",
    "languagelist",
    "powergrouplist",
    "skilllist",
    "proficiencylist",
    "traitlist",
    "weaponlist",
    "powermeta",
)

SECTION_LABELS: dict[str, str] = {
    "details": "Character details",
    "abilities": "Abilities",
    "classes": "Classes",
    "coins": "Coins",
    "hp": "Hit points",
    "defenses": "Defenses",
    "encumbrance": "Encumbrance",
    "featlist": "Feats",
    "featurelist": "Features",
    "inventorylist": "Inventory",
    "languagelist": "Languages",
    "powergrouplist": "Spell slots",
    "skilllist": "Skills",
    "proficiencylist": "Proficiencies",
    "traitlist": "Traits",
    "weaponlist": "Weapons",
    "powermeta": "Spell slot meta",
}

SECTION_FLAGS: dict[str, FeatureFlag] = {
    "encumbrance": FeatureFlag.ENCUMBRANCE_CALCULATOR,
    "featlist": FeatureFlag.FEATURE_PROCESSOR,
    "featurelist": FeatureFlag.FEATURE_PROCESSOR,
    "traitlist": FeatureFlag.FEATURE_PROCESSOR,
    "inventorylist": FeatureFlag.INVENTORY_PROCESSOR,
    "weaponlist": FeatureFlag.INVENTORY_PROCESSOR,
    "powergrouplist": FeatureFlag.SPELL_SLOT_CALCULATOR,
    "powermeta": FeatureFlag.SPELL_SLOT_CALCULATOR,
}
"""Sheet section -> engine flag that gates it."""

SECTION_INPUTS: dict[str, tuple[str, ...]] = {
    "classes": ("classes",),
    "featurelist": ("classes",),
    "inventorylist": ("inventory",),
    "weaponlist": ("inventory",),
    "featlist": ("feats",),
    "traitlist": ("racial_traits",),
}
"""Sheet section -> payload lists whose malformed entries it loses."""

SIZE_NAMES: dict[int, str] = {
    2: "Tiny",
    3: "Small",
    4: "Medium",
    5: "Large",
    6: "Huge",
    7: "Gargantuan",
}
"""D&D Beyond race sizeId -> size name."""

DEFAULT_SIZE = "Medium"

COIN_SLOTS: tuple[tuple[str, str], ...] = (
    ("pp", "PP"),
    ("gp", "GP"),
    ("ep", "EP"),
    ("sp", "SP"),
    ("cp", "CP"),
)

NOTE_FIELDS: tuple[tuple[str, str], ...] = (
    ("allies", "Allies"),
    ("personal_possessions", "Personal Possessions"),
    ("other_holdings", "Other Holdings"),
    ("organizations", "Organizations"),
    ("enemies", "Enemies"),
    ("backstory", "Backstory"),
    ("other_notes", "Other Notes"),
)

SPELL_LEVEL_NAMES: dict[int, str] = {
    1: "1st Level Spells",
    2: "2nd Level Spells",
    3: "3rd Level Spells",
    4: "4th Level Spells",
    5: "5th Level Spells",
    6: "6th Level Spells",
    7: "7th Level Spells",
    8: "8th Level Spells",
    9: "9th Level Spells",
}


def _record_link(name: str | None) -> str:
    return (name or "unknown").lower().replace(" ", "")


def _require(processed: ProcessedCharacter, value: object, section: str, engine: str) -> None:
    """Raise ProcessingError when an engine produced no result for a section."""
    if value is None:
        reason = processed.section_errors.get(engine, "no result")
        raise ProcessingError(f"{engine} unavailable: {reason}", section=section)


class FantasyGroundsWriter:
    """Renders a processed character as a Fantasy Grounds character sheet.

    Attributes:
        sanitize: Run string values through the full sanitizer.
        max_length: Truncation length for sanitized strings.
        validate: Check the assembled document for well-formedness.
    """

    def __init__(
        self,
        *,
        sanitize: bool = True,
        max_length: int = DEFAULT_SANITIZE_MAX_LENGTH,
        validate: bool = True,
    ) -> None:
        self.sanitize = sanitize
        self.max_length = max_length
        self.validate = validate
        self._builders: dict[str, Callable[[ProcessedCharacter], str]] = {
            "details": self.build_details,
            "abilities": self.build_abilities,
            "classes": self.build_classes,
            "coins": self.build_coins,
            "hp": self.build_hp,
            "defenses": self.build_defenses,
            "encumbrance": self.build_encumbrance,
            "featlist": self.build_featlist,
            "featurelist": self.build_featurelist,
            "inventorylist": self.build_inventorylist,
            "languagelist": self.build_languagelist,
            "powergrouplist": self.build_powergrouplist,
            "skilllist": self.build_skilllist,
            "proficiencylist": self.build_proficiencylist,
            "traitlist": self.build_traitlist,
            "weaponlist": self.build_weaponlist,
            "powermeta": self.build_powermeta,
        }

    def _writer(self) -> XmlWriter:
        return XmlWriter(SECTION_DEPTH, sanitize=self.sanitize, max_length=self.max_length)

    def _comment(self, text: str) -> str:
        writer = self._writer()
        writer.comment(text)
        return writer.render()

    # =========================================================================
    # Document
    # =========================================================================

    def render_section(
        self,
        name: str,
        processed: ProcessedCharacter,
        section_errors: dict[str, str],
    ) -> str:
        """Render one section inside its error boundary.

        Args:
            name: Section name (a SECTION_ORDER entry or "details").
            processed: Processed character.
            section_errors: Collects section name -> failure message.

        Returns:
            The section fragment, preceded by a comment when malformed
            entries were skipped, or a placeholder comment.
        """
        label = SECTION_LABELS[name]
        flag = SECTION_FLAGS.get(name)
        if flag is not None and str(flag) in processed.disabled_sections:
            return self._comment(f"{label} disabled by feature flag")

        try:
            fragment = self._builders[name](processed)
        except ProcessingError as exc:
            logger.warning("Section unavailable", section=name, error=exc.message)
            section_errors[name] = exc.message
        except Exception as exc:
            logger.exception("Section generation failed", section=name)
            section_errors[name] = str(exc)
        else:
            skipped = sum(
                len(processed.character.rejected_entries.get(key, []))
                for key in SECTION_INPUTS.get(name, ())
            )
            if not skipped:
                return fragment
            noun = "entry" if skipped == 1 else "entries"
            note = self._comment(f"{label}: {skipped} malformed {noun} skipped")
            return f"{note}\n{fragment}" if fragment else note
        return self._comment(f"{label} generation failed")

    def render(self, processed: ProcessedCharacter) -> tuple[str, dict[str, str]]:
        """Assemble the full document.

        Args:
            processed: Processed character.

        Returns:
            Tuple of (XML document, section name -> failure message).

        Raises:
            ExportError: If validation is on and the document is not well-formed.
        """
        section_errors: dict[str, str] = {}
        attributes = " ".join(f'{key}="{value}"' for key, value in FG_ROOT_ATTRIBUTES.items())

        parts = [
            '<?xml version="1.0" encoding="utf-8"?>',
            f"<root {attributes}>",
            "\t<character>",
            self.render_section("details", processed, section_errors),
        ]
        parts.extend(
            self.render_section(name, processed, section_errors) for name in SECTION_ORDER
        )
        parts.extend(["\t</character>", "</root>", ""])
        document = "\n".join(parts)

        if self.validate:
            validate_xml(document)

        logger.info(
            "Fantasy Grounds document generated",
            sections=len(SECTION_ORDER),
            failed_sections=sorted(section_errors),
            size=len(document),
        )
        return document, section_errors

    # =========================================================================
    # Character Details
    # =========================================================================

    def _notes_text(self, processed: ProcessedCharacter) -> str:
        character = processed.character
        lines = [f"D&D Beyond Character ID: {character.id}"]
        if character.notes is not None:
            for field, label in NOTE_FIELDS:
                value = getattr(character.notes, field)
                if value:
                    lines.append(f"{label}: {value.strip()}")
        return "\n".join(lines)

    def build_details(self, processed: ProcessedCharacter) -> str:
        """Scalar character fields that precede the sections."""
        character = processed.character
        traits = character.traits
        race = character.race
        level = character.total_level
        writer = self._writer()

        if character.hair:
            appearance = (
                f"Hair: {character.hair}, Eyes: {character.eyes or ''}, Skin: {character.skin or ''}"
            )
        else:
            appearance = traits.appearance if traits and traits.appearance else ""

        alignment = Alignment.from_ddb_id(character.alignment_id)
        size = SIZE_NAMES.get(race.size_id, DEFAULT_SIZE) if race and race.size_id else DEFAULT_SIZE
        race_name = race.display_name if race else "Unknown"
        background_name = character.background.name if character.background else None

        writer.string("name", character.display_name)
        writer.string("gender", character.gender or "")
        writer.string("deity", character.faith or "")
        writer.string("age", character.age if character.age is not None else "")
        writer.string("appearance", appearance)
        writer.string("height", character.height if character.height is not None else "")
        writer.string("weight", character.weight if character.weight is not None else "")
        writer.string("size", size)
        writer.string("alignment", alignment.display_name if alignment else "None Selected")
        writer.string("bonds", traits.bonds if traits and traits.bonds else "")
        writer.string("flaws", traits.flaws if traits and traits.flaws else "")
        writer.string("ideals", traits.ideals if traits and traits.ideals else "")
        writer.string(
            "personalitytraits",
            traits.personality_traits if traits and traits.personality_traits else "",
        )
        writer.string("race", race_name)
        writer.window_reference(
            "racelink", "reference_race", f"reference.race.{_record_link(race_name)}@*"
        )
        writer.string("background", background_name or "")
        writer.window_reference(
            "backgroundlink",
            "reference_background",
            f"reference.background.{_record_link(background_name)}@*",
        )
        writer.number("level", level)
        writer.number("profbonus", get_proficiency_bonus(level))
        notes_text = self._notes_text(processed)
        if self.sanitize:
            notes = sanitize_for_xml(notes_text, max_length=self.max_length, allow_newlines=True)
        else:
            notes = escape_xml_text(notes_text)
        writer.leaf("notes", notes, "string")
        writer.number("perception", 0)
        writer.number("perceptionmodifier", 0)
        writer.number("exp", character.current_xp)
        writer.number("expneeded", get_xp_for_next_level(level) or 0)
        return writer.render()

    # =========================================================================
    # Abilities, Classes, Coins, Hit Points, Defenses
    # =========================================================================

    def build_abilities(self, processed: ProcessedCharacter) -> str:
        """Six ability blocks with score, bonus, and save proficiency."""
        saves = set(processed.proficiencies.saving_throws) if processed.proficiencies else set()
        writer = self._writer()
        writer.open("abilities")
        for ability in Ability:
            score = processed.abilities[ability]
            writer.open(ability.value)
            writer.number("bonus", score.modifier)
            writer.number("save", score.modifier)
            writer.number("savemodifier", 0)
            writer.number("saveprof", 1 if ability in saves else 0)
            writer.number("score", score.total)
            writer.close(ability.value)
        writer.close("abilities")
        return writer.render()

    def build_classes(self, processed: ProcessedCharacter) -> str:
        """One record per class with hit dice and a class link."""
        writer = self._writer()
        writer.open("classes")
        for index, cls in enumerate(processed.classes, start=1):
            writer.open(fg_id(index))
            writer.number("casterpactmagic", 1 if cls.caster_type is CasterType.PACT else 0)
            writer.dice("hddie", f"d{cls.hit_die}")
            writer.number("hdused", cls.hit_dice_used)
            writer.number("level", cls.level)
            writer.string("name", cls.name)
            writer.window_reference(
                "shortcut", "reference_class", f"reference.class.{cls.key}@*"
            )
            writer.close()
        writer.close("classes")
        return writer.render()

    def build_coins(self, processed: ProcessedCharacter) -> str:
        """Five coin slots (PP, GP, EP, SP, CP) and an empty sixth slot."""
        currencies = processed.character.currencies
        writer = self._writer()
        writer.open("coins")
        for slot, (key, name) in enumerate(COIN_SLOTS, start=1):
            writer.open(f"slot{slot}")
            writer.number("amount", getattr(currencies, key) if currencies else 0)
            writer.string("name", name)
            writer.close()
        writer.open("slot6")
        writer.number("amount", 0)
        writer.close("slot6")
        writer.close("coins")
        return writer.render()

    def build_hp(self, processed: ProcessedCharacter) -> str:
        """Hit point total, wounds, and temporary hit points."""
        character = processed.character
        total = calculate_max_hit_points(character, processed.abilities)
        writer = self._writer()
        writer.open("hp")
        writer.number("total", total)
        writer.number("wounds", character.removed_hit_points)
        writer.number("temporary", character.temporary_hit_points)
        writer.number("deathsavefail", 0)
        writer.number("deathsavesuccess", 0)
        writer.close("hp")
        return writer.render()

    def build_defenses(self, processed: ProcessedCharacter) -> str:
        """Armor class broken into Fantasy Grounds AC components.

        Barbarian and Monk Unarmored Defense are recomputed from ability
        modifiers; every other character keeps the armorClass field.
        """
        character = processed.character
        abilities = processed.abilities
        dex = abilities.modifier(Ability.DEX)
        total = calculate_armor_class(character, abilities)
        unarmored = unarmored_defense_ability(character)
        writer = self._writer()
        writer.open("defenses")
        writer.open("ac")

        if unarmored is Ability.CON:
            writer.number("armor", 0)
            writer.number("disstealth", 0)
            writer.number("misc", 0)
            writer.number("prof", 0)
            writer.number("shield", 0)
            writer.string("stat2", Ability.CON.value)
        elif unarmored is Ability.WIS:
            writer.number("armor", DEFAULT_ARMOR_CLASS)
            writer.number("misc", abilities.modifier(Ability.WIS))
            writer.number("prof", 0)
            writer.number("shield", 0)
            writer.number("stat", dex)
            writer.string("stat2", Ability.DEX.value)
        else:
            writer.number("armor", max(0, total - dex))
            writer.number("misc", 0)
            writer.number("prof", 0)
            writer.number("shield", 0)
            writer.number("stat", dex)
            writer.string("stat2", Ability.DEX.value)
        writer.number("temporary", 0)
        writer.number("total", total)

        writer.close("ac")
        writer.close("defenses")
        return writer.render()

    # =========================================================================
    # Engine Sections
    # =========================================================================

    def build_encumbrance(self, processed: ProcessedCharacter) -> str:
        """Load and the variant encumbrance thresholds."""
        _require(processed, processed.encumbrance, "encumbrance", "encumbrance")
        result = processed.encumbrance
        capacity = result.carrying_capacity
        writer = self._writer()
        writer.open("encumbrance")
        writer.number("encumbered", capacity.normal // 3)
        writer.number("encumberedheavy", capacity.normal * 2 // 3)
        writer.number("liftpushdrag", capacity.push)
        writer.number("load", round(result.total_weight))
        writer.number("max", capacity.normal)
        writer.close("encumbrance")
        return writer.render()

    def build_featlist(self, processed: ProcessedCharacter) -> str:
        _require(processed, processed.features, "featlist", "features")
        return generate_feat_xml(processed.features.feats, sanitize=self.sanitize)

    def build_featurelist(self, processed: ProcessedCharacter) -> str:
        _require(processed, processed.features, "featurelist", "features")
        return generate_feature_xml(processed.features.class_features, sanitize=self.sanitize)

    def build_traitlist(self, processed: ProcessedCharacter) -> str:
        _require(processed, processed.features, "traitlist", "features")
        return generate_trait_xml(processed.features.racial_traits, sanitize=self.sanitize)

    def build_inventorylist(self, processed: ProcessedCharacter) -> str:
        _require(processed, processed.inventory, "inventorylist", "inventory")
        return processed.inventory.xml

    def build_weaponlist(self, processed: ProcessedCharacter) -> str:
        _require(processed, processed.weapons, "weaponlist", "weapons")
        return generate_weapon_xml(processed.weapons, sanitize=self.sanitize)

    def build_languagelist(self, processed: ProcessedCharacter) -> str:
        _require(processed, processed.languages, "languagelist", "languages")
        return generate_language_xml(processed.languages, sanitize=self.sanitize)

    def build_skilllist(self, processed: ProcessedCharacter) -> str:
        _require(processed, processed.proficiencies, "skilllist", "proficiencies")
        return generate_skill_xml(processed.proficiencies, sanitize=self.sanitize)

    def build_proficiencylist(self, processed: ProcessedCharacter) -> str:
        _require(processed, processed.proficiencies, "proficiencylist", "proficiencies")
        return generate_proficiency_xml(processed.proficiencies, sanitize=self.sanitize)

    def build_powergrouplist(self, processed: ProcessedCharacter) -> str:
        """Spell groups: one memorized group per slot level, then Pact Magic.

        The memorized groups use the spellcasting ability of the highest
        level casting class; the Pact Magic group uses the Warlock's.
        """
        _require(processed, processed.spell_slots, "powergrouplist", "spell_slots")
        slots = processed.spell_slots
        writer = self._writer()
        writer.open("powergrouplist")

        if not slots.has_spell_slots and not slots.has_pact_magic:
            writer.comment("Character has no spell slots")

        group = 0
        if slots.has_spell_slots:
            pool_classes = [
                c
                for c in processed.classes
                if c.caster_type not in (CasterType.NONE, CasterType.PACT)
            ]
            stat = primary_spellcasting_ability(pool_classes)
            for level, count in sorted(slots.spell_slots.items()):
                if count <= 0:
                    continue
                group += 1
                writer.open(fg_id(group))
                writer.string("castertype", "memorized")
                writer.string("name", SPELL_LEVEL_NAMES[level])
                writer.string("stat", stat.value if stat else "")
                writer.open("powers")
                writer.comment(f"Spell slots: {count}")
                writer.close("powers")
                writer.close()

        if slots.has_pact_magic:
            warlocks = [c for c in processed.classes if c.caster_type is CasterType.PACT]
            stat = primary_spellcasting_ability(warlocks) or Ability.CHA
            group += 1
            writer.open(fg_id(group))
            writer.string("castertype", "pact")
            writer.string("name", "Pact Magic")
            writer.string("stat", stat.value)
            writer.open("powers")
            writer.comment("Warlock spells")
            writer.close("powers")
            writer.close()

        writer.close("powergrouplist")
        return writer.render()

    def build_powermeta(self, processed: ProcessedCharacter) -> str:
        """Slot maxima: pactmagicslots1-9 followed by spellslots1-9."""
        _require(processed, processed.spell_slots, "powermeta", "spell_slots")
        slots = processed.spell_slots
        writer = self._writer()
        writer.open("powermeta")
        for prefix, counts in (
            ("pactmagicslots", slots.pact_magic_slots),
            ("spellslots", slots.spell_slots),
        ):
            for level in range(1, 10):
                writer.open(f"{prefix}{level}")
                writer.number("max", counts.get(level, 0))
                writer.close()
        writer.close("powermeta")
        return writer.render()


def validate_xml(document: str) -> None:
    """Check that a document is well-formed XML.

    Raises:
        ExportError: If the document does not parse.
    """
    try:
        ET.fromstring(document.encode("utf-8"))
    except ET.ParseError as exc:
        logger.error("Generated XML is not well-formed", error=str(exc))
        raise ExportError(
            "Generated Fantasy Grounds XML is not well-formed",
            format_name=FORMAT_NAME,
            details={"parse_error": str(exc)},
        ) from exc


def generate_fantasy_grounds_xml(
    processed: ProcessedCharacter,
    *,
    sanitize: bool = True,
    max_length: int = DEFAULT_SANITIZE_MAX_LENGTH,
    validate: bool = True,
) -> tuple[str, dict[str, str]]:
    """Render a processed character as a Fantasy Grounds document.

    Args:
        processed: Processed character.
        sanitize: Run string values through the full sanitizer.
        max_length: Truncation length for sanitized strings.
        validate: Check the assembled document for well-formedness.

    Returns:
        Tuple of (XML document, section name -> failure message).
    """
    writer = FantasyGroundsWriter(sanitize=sanitize, max_length=max_length, validate=validate)
    return writer.render(processed)


__all__ = [
    "FORMAT_NAME",
    "SECTION_ORDER",
    "SECTION_FLAGS",
    "SECTION_INPUTS",
    "SIZE_NAMES",
    "FantasyGroundsWriter",
    "validate_xml",
    "generate_fantasy_grounds_xml",
]
