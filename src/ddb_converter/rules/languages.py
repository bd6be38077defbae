"""Granted languages and unresolved language choices.

Languages arrive as ``type == "language"`` modifiers in every modifier
bucket. Placeholder grants such as "choose-a-language" are kept apart as
choices and never listed as languages; only granted modifiers count, once
per language.
"""

from __future__ import annotations

from typing import NamedTuple

from ddb_converter.core.logging import get_logger
from ddb_converter.export.xml_writer import XmlWriter, fg_id
from ddb_converter.models.character import DdbCharacter
from ddb_converter.models.features import Language, LanguageChoice, ProcessedLanguages


logger = get_logger(__name__)

LANGUAGE_XML_DEPTH = 2


class LanguageInfo(NamedTuple):
    """Display name and Foundry VTT language code."""

    display_name: str
    foundry_key: str | None


LANGUAGES: dict[str, LanguageInfo] = {
    # Standard
    "common": LanguageInfo("Common", "common"),
    "common-sign-language": LanguageInfo("Common Sign Language", "common"),
    "dwarvish": LanguageInfo("Dwarvish", "dwarvish"),
    "elvish": LanguageInfo("Elvish", "elvish"),
    "giant": LanguageInfo("Giant", "giant"),
    "gnomish": LanguageInfo("Gnomish", "gnomish"),
    "goblin": LanguageInfo("Goblin", "goblin"),
    "halfling": LanguageInfo("Halfling", "halfling"),
    "orc": LanguageInfo("Orc", "orc"),
    # Exotic
    "abyssal": LanguageInfo("Abyssal", "abyssal"),
    "celestial": LanguageInfo("Celestial", "celestial"),
    "draconic": LanguageInfo("Draconic", "draconic"),
    "deep-speech": LanguageInfo("Deep Speech", "deep"),
    "infernal": LanguageInfo("Infernal", "infernal"),
    "primordial": LanguageInfo("Primordial", "primordial"),
    "sylvan": LanguageInfo("Sylvan", "sylvan"),
    "undercommon": LanguageInfo("Undercommon", "undercommon"),
    # Primordial dialects
    "aquan": LanguageInfo("Aquan", "primordial"),
    "auran": LanguageInfo("Auran", "primordial"),
    "ignan": LanguageInfo("Ignan", "primordial"),
    "terran": LanguageInfo("Terran", "primordial"),
    # Secret and regional
    "thieves-cant": LanguageInfo("Thieves' Cant", "cant"),
    "druidic": LanguageInfo("Druidic", "druidic"),
    "aarakocra": LanguageInfo("Aarakocra", None),
    "gith": LanguageInfo("Gith", None),
    "githyanki": LanguageInfo("Githyanki", None),
    "githzerai": LanguageInfo("Githzerai", None),
    "sphinx": LanguageInfo("Sphinx", None),
}

CHOICE_SUB_TYPES: frozenset[str] = frozenset(
    {
        "choose-a-language",
        "choose-a-standard-language",
        "select-a-language",
        "select-a-standard-language",
        "additional-language",
        "choose-language",
        "language-choice",
    }
)


def is_language_choice(sub_type: str) -> bool:
    """Whether a language subType is a placeholder for a player choice."""
    return sub_type.lower() in CHOICE_SUB_TYPES


def language_display_name(sub_type: str) -> str:
    """Sheet name for a language subType.

    Example:
        >>> language_display_name("deep-speech")
        'Deep Speech'
        >>> language_display_name("old-tongue")
        'Old Tongue'
    """
    info = LANGUAGES.get(sub_type.lower())
    if info is not None:
        return info.display_name
    return sub_type.replace("-", " ").title()


def language_foundry_key(sub_type: str) -> str | None:
    """Foundry VTT language code, or None for languages Foundry lacks."""
    info = LANGUAGES.get(sub_type.lower())
    return info.foundry_key if info else None


def process_languages(character: DdbCharacter) -> ProcessedLanguages:
    """Extract languages and language choices from every modifier bucket.

    Args:
        character: Validated character.

    Returns:
        ProcessedLanguages with languages sorted by name.
    """
    languages: dict[str, Language] = {}
    choices: list[LanguageChoice] = []
    skipped: list[str] = []

    for bucket, modifier in character.modifiers.iter_all():
        if modifier.type != "language" or not modifier.sub_type:
            continue
        sub_type = modifier.sub_type.lower()

        if is_language_choice(sub_type):
            choices.append(
                LanguageChoice(
                    sub_type=sub_type,
                    source=bucket,
                    description=modifier.friendly_subtype_name,
                )
            )
            continue

        if not modifier.is_granted or sub_type in languages:
            skipped.append(sub_type)
            continue

        languages[sub_type] = Language(
            name=language_display_name(sub_type),
            sub_type=sub_type,
            source=bucket,
            foundry_key=language_foundry_key(sub_type),
        )

    result = ProcessedLanguages(
        languages=sorted(languages.values(), key=lambda lang: lang.name),
        choices=choices,
        skipped=skipped,
    )
    logger.debug(
        "Languages processed",
        languages=[lang.name for lang in result.languages],
        choices=len(choices),
        skipped=len(skipped),
    )
    return result


def foundry_languages(processed: ProcessedLanguages) -> dict[str, object]:
    """Foundry VTT traits.languages value.

    Example:
        {"value": ["common", "dwarvish"], "custom": "Gith"}
    """
    codes: list[str] = []
    custom: list[str] = []
    for language in processed.languages:
        if language.foundry_key:
            if language.foundry_key not in codes:
                codes.append(language.foundry_key)
        else:
            custom.append(language.name)
    return {"value": codes, "custom": "; ".join(custom)}


def generate_language_xml(
    processed: ProcessedLanguages,
    *,
    depth: int = LANGUAGE_XML_DEPTH,
    sanitize: bool = True,
) -> str:
    """Render the languagelist fragment."""
    writer = XmlWriter(depth, sanitize=sanitize)
    writer.open("languagelist")
    for index, language in enumerate(processed.languages, start=1):
        writer.open(fg_id(index))
        writer.string("name", language.name)
        writer.close()
    writer.close("languagelist")
    return writer.render()


__all__ = [
    "LanguageInfo",
    "LANGUAGES",
    "CHOICE_SUB_TYPES",
    "is_language_choice",
    "language_display_name",
    "language_foundry_key",
    "process_languages",
    "foundry_languages",
    "generate_language_xml",
]
