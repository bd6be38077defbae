"""Class features, racial traits, and feats.

Features are collected from every class entry, deduplicated by id, filtered
against a small exclusion list and the class level, and classified as
passive, active, resource, or spell. Racial traits drop a denylist of
traits the sheet already represents elsewhere (size, speed, darkvision,
languages, ...). Feats are tagged with their first category (Origin,
General, Fighting Style, Epic Boon).

Feat mechanics come from two independent sources:

- ``FEAT_MECHANICS_BY_ID``: structured, keyed by the D&D Beyond feat
  definition id.
- ``infer_feat_mechanics_from_name``: a best-effort keyword heuristic,
  consulted only when the structured lookup has nothing.
"""

from __future__ import annotations

from typing import Any

from ddb_converter.core.constants import FEAT_ID_OFFSET, TRAIT_ID_OFFSET
from ddb_converter.core.logging import get_logger
from ddb_converter.export.sanitizer import html_to_text
from ddb_converter.export.xml_writer import XmlWriter, fg_id
from ddb_converter.models.character import DdbCharacter, DdbClassFeature, DdbRacialTrait
from ddb_converter.models.enums import FeatureType, TraitType
from ddb_converter.models.features import (
    ClassFeature,
    Feat,
    FeatureOptions,
    FeatureUsage,
    MechanicsSource,
    ProcessedFeatures,
    RacialTrait,
)


logger = get_logger(__name__)

FEATURE_XML_DEPTH = 2

# =============================================================================
# Classification Tables
# =============================================================================

EXCLUDED_FEATURES: tuple[str, ...] = (
    "proficiencies",
    "ability score increase",
    "core sorcerer traits",
    "metamagic options",
)
"""Substrings (lowercase) of feature names never listed as features."""

HIDDEN_TRAITS: frozenset[str] = frozenset(
    {
        "Ability Score Increase",
        "Ability Score Increases",
        "Age",
        "Alignment",
        "Size",
        "Speed",
        "Darkvision",
        "Superior Darkvision",
        "Dwarven Combat Training",
        "Tool Proficiency",
        "Languages",
        "Dwarven Toughness",
        "Cantrip",
        "Extra Language",
        "Dwarven Armor Training",
        "Skill Versatility",
        "Elven Lineage",
        "Creature Type",
        "Elven Lineage Spells",
        "Weapon Mastery",
        "Criminal Ability Score Improvements",
        "Hero's Journey Boon",
        "Dark Bargain",
        "Core Barbarian Traits",
        "Core Rogue Traits",
        "Core Wizard Traits",
        "Core Monk Traits",
    }
)
"""Racial traits (exact names) shown elsewhere on the sheet."""

CLASS_FEATURE_TYPES: dict[str, dict[str, FeatureType]] = {
    "barbarian": {
        "rage": FeatureType.RESOURCE,
        "reckless attack": FeatureType.ACTIVE,
        "unarmored defense": FeatureType.PASSIVE,
        "danger sense": FeatureType.PASSIVE,
    },
    "fighter": {
        "second wind": FeatureType.RESOURCE,
        "action surge": FeatureType.RESOURCE,
        "indomitable": FeatureType.RESOURCE,
        "fighting style": FeatureType.PASSIVE,
    },
    "ranger": {
        "spellcasting": FeatureType.SPELL,
        "primeval awareness": FeatureType.ACTIVE,
        "hide in plain sight": FeatureType.ACTIVE,
        "vanish": FeatureType.ACTIVE,
    },
    "rogue": {
        "cunning action": FeatureType.ACTIVE,
        "stroke of luck": FeatureType.RESOURCE,
        "sneak attack": FeatureType.PASSIVE,
    },
}
"""Class -> lowercase feature name -> type, checked before the keyword rule."""

FEATURE_USAGE: dict[str, dict[str, FeatureUsage]] = {
    "barbarian": {"rage": FeatureUsage(recharge_on="long_rest")},
    "fighter": {
        "action surge": FeatureUsage(recharge_on="short_rest"),
        "second wind": FeatureUsage(recharge_on="short_rest"),
    },
}

FEAT_MECHANICS_BY_ID: dict[int, dict[str, Any]] = {
    1789101: {"initiative": True},  # Alert (2024)
}
"""Structured feat mechanics keyed by D&D Beyond feat definition id."""

FEAT_NAME_KEYWORDS: tuple[tuple[str, dict[str, Any]], ...] = (
    ("alert", {"initiative": True}),
    ("tough", {"hp_bonus_per_level": 2}),
    ("mobile", {"speed_bonus": 10}),
    ("observant", {"passive_bonus": 5}),
    ("lucky", {"luck_points": 3}),
    ("resilient", {"saving_throw_proficiency": True}),
)


def classify_feature(name: str, class_name: str) -> FeatureType:
    """Classify a class feature.

    Example:
        >>> classify_feature("Action Surge", "Fighter")
        <FeatureType.RESOURCE: 'resource'>
        >>> classify_feature("Extra Attack", "Paladin")
        <FeatureType.ACTIVE: 'active'>
    """
    lowered = name.lower()
    table = CLASS_FEATURE_TYPES.get(class_name.lower(), {})
    if lowered in table:
        return table[lowered]
    if "spellcasting" in lowered:
        return FeatureType.SPELL
    if "rage" in lowered or "action surge" in lowered:
        return FeatureType.RESOURCE
    if "attack" in lowered or "maneuver" in lowered:
        return FeatureType.ACTIVE
    return FeatureType.PASSIVE


def feature_usage(name: str, class_name: str) -> FeatureUsage | None:
    """Recharge information for limited-use features."""
    return FEATURE_USAGE.get(class_name.lower(), {}).get(name.lower())


def classify_trait(name: str) -> TraitType:
    """Classify a racial trait by name keywords."""
    lowered = name.lower()
    if "proficiency" in lowered or "training" in lowered:
        return TraitType.PROFICIENCY
    if "spell" in lowered or "cantrip" in lowered:
        return TraitType.SPELL
    if "breath" in lowered or "endurance" in lowered:
        return TraitType.ACTIVE
    return TraitType.PASSIVE


def is_excluded_feature(name: str) -> bool:
    """Whether a feature name matches the exclusion list."""
    lowered = name.lower()
    return any(excluded in lowered for excluded in EXCLUDED_FEATURES)


def infer_feat_mechanics_from_name(name: str) -> dict[str, Any]:
    """Best-effort feat mechanics from name keywords.

    This is a heuristic, not an authoritative rules mapping.

    Example:
        >>> infer_feat_mechanics_from_name("Mobile")
        {'speed_bonus': 10}
    """
    lowered = name.lower()
    for keyword, mechanics in FEAT_NAME_KEYWORDS:
        if keyword in lowered:
            return dict(mechanics)
    return {}


def resolve_feat_mechanics(feat_id: int | None, name: str) -> tuple[dict[str, Any], MechanicsSource]:
    """Feat mechanics and the path that produced them; structured data wins."""
    if feat_id is not None and feat_id in FEAT_MECHANICS_BY_ID:
        return dict(FEAT_MECHANICS_BY_ID[feat_id]), "structured"
    inferred = infer_feat_mechanics_from_name(name)
    if inferred:
        return inferred, "heuristic"
    return {}, "none"


# =============================================================================
# Processor
# =============================================================================


class FeatureProcessor:
    """Classifies class features, racial traits, and feats for one character."""

    def __init__(self, options: FeatureOptions | None = None, *, debug: bool = False) -> None:
        self.options = options or FeatureOptions()
        self.debug = debug

    def _description(self, raw: str | None) -> str:
        return html_to_text(raw) if self.options.include_descriptions else ""

    def process_class_features(self, character: DdbCharacter) -> list[ClassFeature]:
        """Collect class and subclass features from every class entry."""
        features: list[ClassFeature] = []
        seen: set[int] = set()

        for ddb_class in character.classes:
            class_name = ddb_class.name
            subclass_name = ddb_class.subclass_name

            sources: list[tuple[list[DdbClassFeature], str | None]] = []
            if ddb_class.definition:
                sources.append((ddb_class.definition.class_features, None))
            if self.options.include_subclass_features and ddb_class.subclass_definition:
                sources.append((ddb_class.subclass_definition.class_features, subclass_name))
            sources.append((ddb_class.class_features, None))
            sources.append((ddb_class.granted_class_features, None))

            for raw_features, source_subclass in sources:
                for raw in raw_features:
                    if not raw.name:
                        continue
                    if raw.id is not None and raw.id in seen:
                        continue
                    if is_excluded_feature(raw.name):
                        continue
                    required_level = raw.required_level or 1
                    if self.options.filter_by_level and required_level > ddb_class.level:
                        continue
                    if required_level > self.options.max_level:
                        continue
                    if raw.id is not None:
                        seen.add(raw.id)

                    features.append(
                        ClassFeature(
                            id=raw.id,
                            name=raw.name,
                            description=self._description(raw.description),
                            class_name=class_name,
                            subclass_name=source_subclass,
                            required_level=required_level,
                            type=classify_feature(raw.name, class_name),
                            usage=feature_usage(raw.name, class_name),
                        )
                    )
        return features

    def process_racial_traits(self, character: DdbCharacter) -> list[RacialTrait]:
        """Collect visible racial traits; subrace traits replace same-named race traits."""
        race = character.race
        if race is None:
            return []

        race_name = race.display_name
        subrace_name = race.subrace_definition.name if race.subrace_definition else None
        base_source = "subrace" if race.is_sub_race else "race"

        candidates: list[tuple[DdbRacialTrait, str]] = [
            (trait, base_source) for trait in race.racial_traits
        ]
        if race.subrace_definition:
            candidates.extend((trait, "subrace") for trait in race.subrace_definition.racial_traits)

        by_name: dict[str, RacialTrait] = {}
        seen_ids: set[int] = set()
        for raw, source in candidates:
            if not raw.name or raw.name in HIDDEN_TRAITS or is_excluded_feature(raw.name):
                continue
            if raw.id is not None and raw.id in seen_ids:
                continue
            existing = by_name.get(raw.name)
            if existing is not None and not (source == "subrace" and existing.source == "race"):
                continue
            if raw.id is not None:
                seen_ids.add(raw.id)

            by_name[raw.name] = RacialTrait(
                id=raw.id,
                name=raw.name,
                description=self._description(raw.description),
                race_name=race_name,
                subrace_name=subrace_name if source == "subrace" else None,
                source=source,
                type=classify_trait(raw.name),
            )

        return sorted(by_name.values(), key=lambda t: (t.source != "subrace", t.name))

    def process_feats(self, character: DdbCharacter) -> list[Feat]:
        """Tag feats with their category and resolve mechanics.

        Feats without a definition or without categories are skipped.
        """
        feats: list[Feat] = []
        for entry in character.feats:
            definition = entry.definition
            if definition is None or not definition.name:
                continue
            category = next((c.tag_name for c in definition.categories if c.tag_name), None)
            if category is None:
                logger.debug("Skipping feat without category", feat=definition.name)
                continue

            mechanics, mechanics_source = resolve_feat_mechanics(definition.id, definition.name)
            feats.append(
                Feat(
                    id=definition.id,
                    name=definition.name,
                    description=self._description(definition.description),
                    category=category,
                    type=category.lower(),
                    is_repeatable=definition.is_repeatable,
                    mechanics=mechanics,
                    mechanics_source=mechanics_source,
                )
            )
        return feats

    def process(self, character: DdbCharacter) -> ProcessedFeatures:
        """Process features, traits, and feats according to the options.

        Args:
            character: Validated character.

        Returns:
            ProcessedFeatures with grouped views and debug counts.
        """
        class_features = self.process_class_features(character)
        racial_traits = (
            self.process_racial_traits(character) if self.options.include_racial_traits else []
        )
        feats = self.process_feats(character) if self.options.include_feats else []

        features_by_class: dict[str, list[ClassFeature]] = {}
        for feature in class_features:
            key = feature.class_name.lower()
            if feature.subclass_name:
                key = f"{key} ({feature.subclass_name.lower()})"
            features_by_class.setdefault(key, []).append(feature)

        traits_by_race: dict[str, list[RacialTrait]] = {}
        for trait in racial_traits:
            traits_by_race.setdefault(trait.source_label.lower(), []).append(trait)

        feats_by_category: dict[str, list[Feat]] = {}
        for feat in feats:
            feats_by_category.setdefault(feat.type, []).append(feat)

        debug_info = {
            "processing_method": "multiclass" if len(character.classes) > 1 else "single_class",
            "class_breakdown": [
                {
                    "class_name": c.name,
                    "level": c.level,
                    "subclass": c.subclass_name,
                    "feature_count": sum(1 for f in class_features if f.class_name == c.name),
                }
                for c in character.classes
            ],
            "race_breakdown": {
                "race_name": character.race.display_name if character.race else None,
                "trait_count": len(racial_traits),
            },
            "feat_breakdown": {
                "total_feats": len(feats),
                "origin_feats": len(feats_by_category.get("origin", [])),
                "general_feats": len(feats_by_category.get("general", [])),
            },
        }

        if self.debug:
            logger.debug(
                "Features processed",
                class_features=len(class_features),
                racial_traits=len(racial_traits),
                feats=len(feats),
            )

        return ProcessedFeatures(
            class_features=class_features,
            racial_traits=racial_traits,
            feats=feats,
            features_by_class=features_by_class,
            traits_by_race=traits_by_race,
            feats_by_category=feats_by_category,
            debug_info=debug_info,
        )


def process_character_features(
    character: DdbCharacter,
    options: FeatureOptions | None = None,
) -> ProcessedFeatures:
    """Process features with a one-off FeatureProcessor."""
    return FeatureProcessor(options).process(character)


# =============================================================================
# XML
# =============================================================================


def _write_entry(
    writer: XmlWriter,
    record_id: int,
    name: str,
    description: str,
    source: str,
) -> None:
    writer.open(fg_id(record_id))
    writer.number("locked", 1)
    writer.string("name", name)
    writer.formatted_text("text", description)
    writer.string("source", source)
    writer.close()


def generate_feature_xml(
    features: list[ClassFeature],
    *,
    depth: int = FEATURE_XML_DEPTH,
    sanitize: bool = True,
) -> str:
    """Render the featurelist fragment (ids start at 1)."""
    writer = XmlWriter(depth, sanitize=sanitize)
    writer.open("featurelist")
    for index, feature in enumerate(features):
        _write_entry(writer, index + 1, feature.name, feature.description, feature.source_label)
    writer.close("featurelist")
    return writer.render()


def generate_trait_xml(
    traits: list[RacialTrait],
    *,
    depth: int = FEATURE_XML_DEPTH,
    sanitize: bool = True,
) -> str:
    """Render the traitlist fragment (ids start at 1000)."""
    writer = XmlWriter(depth, sanitize=sanitize)
    writer.open("traitlist")
    for index, trait in enumerate(traits):
        _write_entry(writer, index + TRAIT_ID_OFFSET, trait.name, trait.description, trait.source_label)
    writer.close("traitlist")
    return writer.render()


def generate_feat_xml(
    feats: list[Feat],
    *,
    depth: int = FEATURE_XML_DEPTH,
    sanitize: bool = True,
) -> str:
    """Render the featlist fragment (ids start at 2000, source is the category)."""
    writer = XmlWriter(depth, sanitize=sanitize)
    writer.open("featlist")
    for index, feat in enumerate(feats):
        _write_entry(writer, index + FEAT_ID_OFFSET, feat.name, feat.description, feat.category)
    writer.close("featlist")
    return writer.render()


__all__ = [
    "EXCLUDED_FEATURES",
    "HIDDEN_TRAITS",
    "CLASS_FEATURE_TYPES",
    "FEAT_MECHANICS_BY_ID",
    "classify_feature",
    "feature_usage",
    "classify_trait",
    "is_excluded_feature",
    "infer_feat_mechanics_from_name",
    "resolve_feat_mechanics",
    "FeatureProcessor",
    "process_character_features",
    "generate_feature_xml",
    "generate_trait_xml",
    "generate_feat_xml",
]
