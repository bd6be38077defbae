"""Pydantic V2 schemas for D&D Beyond character JSON.

The D&D Beyond character service returns a large, loosely-typed document
in which almost any field may be missing or null. These models describe
the subset the converter reads. Every field is optional with a safe
default, unknown keys are ignored, and camelCase keys are accepted
alongside snake_case names, so the payload is validated once at the
boundary and the rules engines can rely on attribute access.

Example:
    >>> character = DdbCharacter.model_validate(payload)
    >>> character.total_level
    4
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ValidationError,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


def _default_if_none(default: Any) -> BeforeValidator:
    """Build a validator that replaces an explicit null with a default."""
    return BeforeValidator(lambda value: default if value is None else value)


_EMPTY_LIST = BeforeValidator(lambda value: [] if value is None else value)
_EMPTY_DICT = BeforeValidator(lambda value: {} if value is None else value)


def _property_names(value: Any) -> list[str]:
    """Reduce a D&D Beyond property list ([{name: ...}] or [str]) to names."""
    if not value:
        return []
    names: list[str] = []
    for entry in value:
        if isinstance(entry, dict):
            name = entry.get("name")
        else:
            name = entry
        if isinstance(name, str) and name:
            names.append(name)
    return names


def _unwrap_definition(data: Any) -> Any:
    """Flatten {definition: {...}} wrappers into a single mapping."""
    if isinstance(data, dict) and isinstance(data.get("definition"), dict):
        return {**data, **data["definition"]}
    return data


class DdbModel(BaseModel):
    """Base model for D&D Beyond payload fragments."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# Ability Scores & Modifiers
# =============================================================================


class DdbStat(DdbModel):
    """One entry of stats, bonusStats, or overrideStats."""

    id: int | None = None
    value: int | None = None


class DdbModifier(DdbModel):
    """A granted modifier (bonus, proficiency, language, ...)."""

    type: str | None = None
    sub_type: str | None = None
    fixed_value: Any = None
    value: Any = None
    is_granted: Annotated[bool, _default_if_none(False)] = False
    friendly_type_name: str | None = None
    friendly_subtype_name: str | None = None
    entity_id: int | None = None
    component_id: int | None = None


MODIFIER_BUCKETS: tuple[str, ...] = ("race", "class", "background", "feat", "item")
"""Modifier buckets scanned for bonuses, in precedence-free order."""


class DdbModifiers(DdbModel):
    """Modifiers grouped by the source that granted them."""

    race: Annotated[list[DdbModifier], _EMPTY_LIST] = Field(default_factory=list)
    class_: Annotated[list[DdbModifier], _EMPTY_LIST] = Field(
        default_factory=list,
        alias="class",
    )
    background: Annotated[list[DdbModifier], _EMPTY_LIST] = Field(default_factory=list)
    feat: Annotated[list[DdbModifier], _EMPTY_LIST] = Field(default_factory=list)
    item: Annotated[list[DdbModifier], _EMPTY_LIST] = Field(default_factory=list)

    def bucket(self, name: str) -> list[DdbModifier]:
        """Get one bucket by its payload key ('race', 'class', ...)."""
        return self.class_ if name == "class" else getattr(self, name)

    def iter_all(self) -> Iterator[tuple[str, DdbModifier]]:
        """Yield (bucket name, modifier) for every modifier in every bucket."""
        for name in MODIFIER_BUCKETS:
            for modifier in self.bucket(name):
                yield name, modifier


# =============================================================================
# Classes & Features
# =============================================================================


class DdbClassFeature(DdbModel):
    """A class or subclass feature, flattened out of its definition wrapper."""

    id: int | None = None
    name: str | None = None
    description: str | None = None
    snippet: str | None = None
    required_level: int | None = None

    @model_validator(mode="before")
    @classmethod
    def unwrap_definition(cls, data: Any) -> Any:
        """Accept both flat features and {definition: {...}} entries."""
        return _unwrap_definition(data)


class DdbClassDefinition(DdbModel):
    """Class definition block of a classes[] entry."""

    id: int | None = None
    name: str | None = None
    hit_dice: int | None = Field(
        default=None,
        validation_alias=AliasChoices("hitDice", "hitDie", "hit_dice"),
    )
    can_cast_spells: Annotated[bool, _default_if_none(False)] = False
    spell_casting_ability_id: int | None = None
    class_features: Annotated[list[DdbClassFeature], _EMPTY_LIST] = Field(default_factory=list)


class DdbSubclassDefinition(DdbModel):
    """Subclass definition block of a classes[] entry."""

    id: int | None = None
    name: str | None = None
    class_features: Annotated[list[DdbClassFeature], _EMPTY_LIST] = Field(default_factory=list)


class DdbClass(DdbModel):
    """One class the character has levels in."""

    id: int | None = None
    level: Annotated[int, _default_if_none(1)] = 1
    is_starting_class: Annotated[bool, _default_if_none(False)] = False
    hit_dice_used: Annotated[int, _default_if_none(0)] = 0
    definition: DdbClassDefinition | None = None
    subclass_definition: DdbSubclassDefinition | None = None
    class_features: Annotated[list[DdbClassFeature], _EMPTY_LIST] = Field(default_factory=list)
    granted_class_features: Annotated[list[DdbClassFeature], _EMPTY_LIST] = Field(
        default_factory=list,
    )

    @property
    def name(self) -> str:
        """Class name, or 'Unknown' when the definition is missing."""
        if self.definition and self.definition.name:
            return self.definition.name
        return "Unknown"

    @property
    def subclass_name(self) -> str | None:
        """Subclass name, if one has been chosen."""
        if self.subclass_definition and self.subclass_definition.name:
            return self.subclass_definition.name
        return None


# =============================================================================
# Race & Background
# =============================================================================


class DdbRacialTrait(DdbModel):
    """A racial trait, flattened out of its definition wrapper."""

    id: int | None = None
    name: str | None = None
    description: str | None = None
    snippet: str | None = None

    @model_validator(mode="before")
    @classmethod
    def unwrap_definition(cls, data: Any) -> Any:
        """Accept both flat traits and {definition: {...}} entries."""
        return _unwrap_definition(data)


class DdbSubraceDefinition(DdbModel):
    """Subrace definition carrying its own racial traits."""

    name: str | None = None
    racial_traits: Annotated[list[DdbRacialTrait], _EMPTY_LIST] = Field(default_factory=list)


class DdbRace(DdbModel):
    """Race (species) block."""

    full_name: str | None = None
    base_race_name: str | None = None
    base_name: str | None = None
    sub_race_short_name: str | None = None
    is_sub_race: Annotated[bool, _default_if_none(False)] = False
    size_id: int | None = None
    weight_speeds: Annotated[dict[str, Any], _EMPTY_DICT] = Field(default_factory=dict)
    racial_traits: Annotated[list[DdbRacialTrait], _EMPTY_LIST] = Field(default_factory=list)
    subrace_definition: DdbSubraceDefinition | None = None

    @property
    def display_name(self) -> str:
        """Race name as shown on the sheet."""
        return self.full_name or self.base_race_name or self.base_name or "Unknown Race"

    @property
    def walk_speed(self) -> int:
        """Base walking speed in feet, defaulting to 30."""
        normal = self.weight_speeds.get("normal") or {}
        walk = normal.get("walk") if isinstance(normal, dict) else None
        return walk if isinstance(walk, int) and walk > 0 else 30


class DdbDefinitionRef(DdbModel):
    """A minimal {id, name, description} definition."""

    id: int | None = None
    name: str | None = None
    description: str | None = None


class DdbBackground(DdbModel):
    """Background block."""

    definition: DdbDefinitionRef | None = None

    @property
    def name(self) -> str | None:
        """Background name, if any."""
        return self.definition.name if self.definition else None


# =============================================================================
# Feats
# =============================================================================


class DdbFeatCategory(DdbModel):
    """Category tag attached to a feat definition (Origin, General, ...)."""

    tag_name: str | None = None


class DdbFeatDefinition(DdbModel):
    """Feat definition."""

    id: int | None = None
    name: str | None = None
    description: str | None = None
    snippet: str | None = None
    is_repeatable: Annotated[bool, _default_if_none(False)] = False
    categories: Annotated[list[DdbFeatCategory], _EMPTY_LIST] = Field(default_factory=list)


class DdbFeat(DdbModel):
    """Entry of the character's feats[] list."""

    component_type_id: int | None = None
    component_id: int | None = None
    definition: DdbFeatDefinition | None = None


# =============================================================================
# Inventory
# =============================================================================


class DdbDice(DdbModel):
    """Dice expression as stored by D&D Beyond."""

    dice_count: int | None = None
    dice_value: int | None = None
    dice_multiplier: int | None = None
    fixed_value: int | None = None
    dice_string: str | None = None

    @property
    def notation(self) -> str | None:
        """Dice notation such as '1d8', if the expression has dice."""
        if self.dice_string:
            return self.dice_string
        if self.dice_count and self.dice_value:
            return f"{self.dice_count}d{self.dice_value}"
        return None


class DdbWeaponBehavior(DdbModel):
    """Weapon behaviour block (attack form) of an item definition."""

    properties: list[str] = Field(default_factory=list)
    damage: DdbDice | None = None
    damage_type: str | None = None
    damage_type_id: int | None = None

    @field_validator("properties", mode="before")
    @classmethod
    def coerce_property_names(cls, value: Any) -> list[str]:
        """Accept property objects or plain names."""
        return _property_names(value)


class DdbItemDefinition(DdbModel):
    """Item definition (shared by every copy of the item)."""

    id: int | None = None
    name: str | None = None
    description: str | None = None
    type: str | None = None
    filter_type: str | None = None
    sub_type: str | None = None
    weight: Annotated[float, _default_if_none(0.0)] = 0.0
    weight_multiplier: Annotated[float, _default_if_none(1.0)] = 1.0
    bundle_size: Annotated[int, _default_if_none(1)] = 1
    is_container: Annotated[bool, _default_if_none(False)] = False
    is_consumable: Annotated[bool, _default_if_none(False)] = False
    magic: Annotated[bool, _default_if_none(False)] = False
    rarity: str | None = None
    cost: float | None = None
    damage: DdbDice | None = None
    damage_type: str | None = None
    damage_type_id: int | None = None
    attack_type: int | None = None
    range: int | None = None
    long_range: int | None = None
    properties: list[str] = Field(default_factory=list)
    weapon_behaviors: Annotated[list[DdbWeaponBehavior], _EMPTY_LIST] = Field(
        default_factory=list,
    )
    granted_modifiers: Annotated[list[DdbModifier], _EMPTY_LIST] = Field(default_factory=list)

    @field_validator("properties", mode="before")
    @classmethod
    def coerce_property_names(cls, value: Any) -> list[str]:
        """Accept property objects or plain names."""
        return _property_names(value)


class DdbItem(DdbModel):
    """One inventory entry."""

    id: int | None = None
    entity_type_id: int | None = None
    definition: DdbItemDefinition | None = None
    quantity: Annotated[int, _default_if_none(1)] = 1
    equipped: Annotated[bool, _default_if_none(False)] = False
    is_attuned: Annotated[bool, _default_if_none(False)] = False
    container_entity_id: int | None = None
    custom_weight: float | None = None

    @property
    def name(self) -> str:
        """Item name, or 'Unknown Item' when the definition is missing."""
        if self.definition and self.definition.name:
            return self.definition.name
        return "Unknown Item"

    @property
    def unit_weight(self) -> float:
        """Weight of a single unit, honoring custom weight and bundle size."""
        if self.custom_weight is not None:
            return self.custom_weight
        if self.definition is None:
            return 0.0
        bundle = self.definition.bundle_size or 1
        return self.definition.weight / bundle

    @property
    def is_container(self) -> bool:
        """Whether this item can hold other items."""
        return bool(self.definition and self.definition.is_container)

    @property
    def weight_multiplier(self) -> float:
        """Multiplier applied to the weight of this container's contents."""
        if self.definition is None:
            return 1.0
        return self.definition.weight_multiplier


# =============================================================================
# Descriptive Blocks
# =============================================================================


class DdbCurrencies(DdbModel):
    """Coin purse."""

    pp: Annotated[int, _default_if_none(0)] = 0
    gp: Annotated[int, _default_if_none(0)] = 0
    ep: Annotated[int, _default_if_none(0)] = 0
    sp: Annotated[int, _default_if_none(0)] = 0
    cp: Annotated[int, _default_if_none(0)] = 0


class DdbTraits(DdbModel):
    """Personality block."""

    personality_traits: str | None = None
    ideals: str | None = None
    bonds: str | None = None
    flaws: str | None = None
    appearance: str | None = None


class DdbNotes(DdbModel):
    """Free-text notes block."""

    allies: str | None = None
    personal_possessions: str | None = None
    other_holdings: str | None = None
    organizations: str | None = None
    enemies: str | None = None
    backstory: str | None = None
    other_notes: str | None = None


class DdbDecorations(DdbModel):
    """Portrait and theme settings."""

    avatar_url: str | None = None


# =============================================================================
# Entry Screening
# =============================================================================


def _entry_label(index: int, entry: Any) -> str:
    name = None
    if isinstance(entry, dict):
        definition = entry.get("definition")
        if isinstance(definition, dict):
            name = definition.get("name")
        name = name or entry.get("name")
    return f"entry {index} ({name})" if isinstance(name, str) and name else f"entry {index}"


def _screen_entries(
    entries: Any,
    model: type[DdbModel],
    bucket: str,
    rejected: dict[str, list[str]],
) -> Any:
    """Validate list entries one at a time, dropping the ones that fail.

    Args:
        entries: Raw list from the payload (anything else is passed through).
        model: Model each entry must validate as.
        bucket: Name the rejections are recorded under.
        rejected: Collects bucket -> rejection messages.

    Returns:
        The validated entries, in order, without the rejected ones.
    """
    if not isinstance(entries, list):
        return entries
    kept: list[DdbModel] = []
    for index, entry in enumerate(entries):
        try:
            kept.append(model.model_validate(entry))
        except ValidationError as exc:
            error = exc.errors()[0]
            location = ".".join(str(part) for part in error["loc"]) or "entry"
            rejected.setdefault(bucket, []).append(
                f"{_entry_label(index, entry)}: {location}: {error['msg']}"
            )
    return kept


# =============================================================================
# Character
# =============================================================================


_SCREENED_LISTS: dict[str, type[DdbModel]] = {
    "classes": DdbClass,
    "inventory": DdbItem,
    "feats": DdbFeat,
}
"""Top-level payload lists validated entry by entry."""


class DdbCharacter(DdbModel):
    """A D&D Beyond character document.

    Attributes:
        id: D&D Beyond character id.
        name: Character name.
        stats: Base ability scores (stat ids 1-6).
        bonus_stats: Legacy precomputed bonuses; ignored by the ability engine.
        override_stats: Scores that replace base + bonus entirely.
        classes: Classes and levels (multiclassing supported).
        race: Race block with racial traits.
        inventory: Flat inventory list; containment is by container_entity_id.
        modifiers: Granted modifiers grouped by source.
        feats: Feats taken by the character.
        rejected_entries: List name -> descriptions of entries dropped as malformed.
    """

    id: int | str | None = None
    name: str | None = None
    gender: str | None = None
    faith: str | None = None
    age: int | str | None = None
    hair: str | None = None
    eyes: str | None = None
    skin: str | None = None
    height: int | str | None = None
    weight: int | float | str | None = None
    alignment_id: int | None = None
    current_xp: Annotated[int, _default_if_none(0)] = 0
    base_hit_points: Annotated[int, _default_if_none(0)] = 0
    bonus_hit_points: int | None = None
    override_hit_points: int | None = None
    removed_hit_points: Annotated[int, _default_if_none(0)] = 0
    temporary_hit_points: Annotated[int, _default_if_none(0)] = 0
    armor_class: int | None = None

    stats: Annotated[list[DdbStat], _EMPTY_LIST] = Field(default_factory=list)
    bonus_stats: Annotated[list[DdbStat], _EMPTY_LIST] = Field(default_factory=list)
    override_stats: Annotated[list[DdbStat], _EMPTY_LIST] = Field(default_factory=list)

    classes: Annotated[list[DdbClass], _EMPTY_LIST] = Field(default_factory=list)
    race: DdbRace | None = None
    background: DdbBackground | None = None
    inventory: Annotated[list[DdbItem], _EMPTY_LIST] = Field(default_factory=list)
    modifiers: Annotated[DdbModifiers, _EMPTY_DICT] = Field(default_factory=DdbModifiers)
    feats: Annotated[list[DdbFeat], _EMPTY_LIST] = Field(default_factory=list)

    currencies: DdbCurrencies | None = None
    traits: DdbTraits | None = None
    notes: DdbNotes | None = None
    decorations: DdbDecorations | None = None

    rejected_entries: dict[str, list[str]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def screen_list_entries(cls, data: Any) -> Any:
        """Drop malformed classes, inventory items, feats, and racial traits.

        One bad entry costs only that entry: it is removed and described in
        rejected_entries under its list name, and the rest of the character
        still validates.
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)
        data.pop("rejectedEntries", None)
        rejected: dict[str, list[str]] = {}
        for key, model in _SCREENED_LISTS.items():
            if key in data:
                data[key] = _screen_entries(data[key], model, key, rejected)

        race = data.get("race")
        if isinstance(race, dict):
            race = dict(race)
            for key in ("racialTraits", "racial_traits"):
                if key in race:
                    race[key] = _screen_entries(
                        race[key], DdbRacialTrait, "racial_traits", rejected
                    )
            data["race"] = race

        data["rejected_entries"] = rejected
        return data

    @property
    def display_name(self) -> str:
        """Character name, or a placeholder when unnamed."""
        return self.name or "Unknown Character"

    @property
    def total_level(self) -> int:
        """Sum of class levels; 1 for a character without classes."""
        return sum(c.level for c in self.classes) or 1

    def has_class(self, class_name: str) -> bool:
        """Check for levels in a class (case-insensitive)."""
        wanted = class_name.lower()
        return any(c.name.lower() == wanted for c in self.classes)

    @property
    def primary_class(self) -> DdbClass | None:
        """Starting class if flagged, otherwise the first class listed."""
        for cls in self.classes:
            if cls.is_starting_class:
                return cls
        return self.classes[0] if self.classes else None


__all__ = [
    "DdbModel",
    "DdbStat",
    "DdbModifier",
    "MODIFIER_BUCKETS",
    "DdbModifiers",
    "DdbClassFeature",
    "DdbClassDefinition",
    "DdbSubclassDefinition",
    "DdbClass",
    "DdbRacialTrait",
    "DdbSubraceDefinition",
    "DdbRace",
    "DdbDefinitionRef",
    "DdbBackground",
    "DdbFeatCategory",
    "DdbFeatDefinition",
    "DdbFeat",
    "DdbDice",
    "DdbWeaponBehavior",
    "DdbItemDefinition",
    "DdbItem",
    "DdbCurrencies",
    "DdbTraits",
    "DdbNotes",
    "DdbDecorations",
    "DdbCharacter",
]
