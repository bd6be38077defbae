"""Rules engines for the D&D Beyond character converter.

Each engine is a pure function (or a small processor class) over the
validated character and earlier engines' results; none of them hold state
between conversions.

Submodules:
    abilities: Ability score aggregation from modifiers
    spell_slots: Caster classification and spell slot tables
    encumbrance: Carrying capacity and encumbrance tiers
    inventory: Container nesting and the inventorylist
    weapons: Weapon entries, ammunition linkage, the weaponlist
    features: Class features, racial traits, and feats
    languages: Granted languages and language choices
    proficiencies: Skill, saving throw, and equipment proficiencies
    vitals: Hit points and armor class

Example:
    >>> from ddb_converter.rules import compute_ability_scores, calculate_spell_slots
    >>> abilities = compute_ability_scores(character)
    >>> abilities.modifier(Ability.DEX)
    3
"""

from __future__ import annotations

# =============================================================================
# Ability Scores
# =============================================================================
from ddb_converter.rules.abilities import (
    calculate_modifier,
    collect_ability_bonuses,
    compute_ability_scores,
    compute_legacy_ability_scores,
    parse_bonus_value,
)

# =============================================================================
# Spellcasting
# =============================================================================
from ddb_converter.rules.spell_slots import (
    build_character_class,
    calculate_spell_slots,
    classify_caster_type,
    primary_spellcasting_ability,
)

# =============================================================================
# Encumbrance
# =============================================================================
from ddb_converter.rules.encumbrance import (
    calculate_carrying_capacity,
    calculate_encumbrance,
    calculate_inventory_weight,
    classify_encumbrance,
    has_powerful_build,
)

# =============================================================================
# Inventory & Weapons
# =============================================================================
from ddb_converter.rules.inventory import InventoryProcessor, process_inventory
from ddb_converter.rules.weapons import (
    build_weapon_entries,
    generate_weapon_xml,
    infer_weapon_properties,
    resolve_weapon_properties,
)

# =============================================================================
# Features, Languages & Proficiencies
# =============================================================================
from ddb_converter.rules.features import (
    FeatureProcessor,
    generate_feat_xml,
    generate_feature_xml,
    generate_trait_xml,
    infer_feat_mechanics_from_name,
    process_character_features,
)
from ddb_converter.rules.languages import (
    foundry_languages,
    generate_language_xml,
    process_languages,
)
from ddb_converter.rules.proficiencies import (
    generate_proficiency_xml,
    generate_skill_xml,
    process_proficiencies,
)

# =============================================================================
# Hit Points & Armor Class
# =============================================================================
from ddb_converter.rules.vitals import (
    calculate_armor_class,
    calculate_max_hit_points,
    current_hit_points,
)


__all__ = [
    # Ability scores
    "calculate_modifier",
    "parse_bonus_value",
    "collect_ability_bonuses",
    "compute_ability_scores",
    "compute_legacy_ability_scores",
    # Spellcasting
    "classify_caster_type",
    "build_character_class",
    "calculate_spell_slots",
    "primary_spellcasting_ability",
    # Encumbrance
    "has_powerful_build",
    "calculate_carrying_capacity",
    "calculate_inventory_weight",
    "classify_encumbrance",
    "calculate_encumbrance",
    # Inventory & weapons
    "InventoryProcessor",
    "process_inventory",
    "build_weapon_entries",
    "generate_weapon_xml",
    "infer_weapon_properties",
    "resolve_weapon_properties",
    # Features
    "FeatureProcessor",
    "process_character_features",
    "infer_feat_mechanics_from_name",
    "generate_feature_xml",
    "generate_trait_xml",
    "generate_feat_xml",
    # Languages & proficiencies
    "process_languages",
    "foundry_languages",
    "generate_language_xml",
    "process_proficiencies",
    "generate_skill_xml",
    "generate_proficiency_xml",
    # Hit points & armor class
    "calculate_max_hit_points",
    "current_hit_points",
    "calculate_armor_class",
]
