"""Application-wide constants for the D&D Beyond character converter.

This module defines the fixed values shared across the pipeline: upstream
endpoints, D&D 5E rules constants, and the Fantasy Grounds / Foundry VTT
compatibility values that downstream applications depend on.
"""

from __future__ import annotations

# =============================================================================
# D&D Beyond Character Service
# =============================================================================

DDB_CHARACTER_API_URL = "https://character-service.dndbeyond.com/character/v5/character/"
"""Public character endpoint; the numeric character id is appended."""

DDB_CHARACTER_URL_PATTERN = r"dndbeyond\.com/characters/(\d+)"
"""Pattern used to pull the character id out of a sharing URL."""

# =============================================================================
# D&D 5E Rules Constants
# =============================================================================

DEFAULT_ABILITY_SCORE = 10
"""Ability score assumed when the source data has no value."""

MIN_CHARACTER_LEVEL = 1
"""Minimum character level."""

MAX_CHARACTER_LEVEL = 20
"""Maximum character level in D&D 5E."""

DEFAULT_ARMOR_CLASS = 10
"""Armor class of an unarmored creature with no Dexterity modifier."""

# =============================================================================
# Carrying Capacity (Strength multiples)
# =============================================================================

ENCUMBERED_MULTIPLIER = 5
"""Carried weight above STR x 5 makes a character encumbered."""

HEAVILY_ENCUMBERED_MULTIPLIER = 10
"""Carried weight above STR x 10 makes a character heavily encumbered."""

CARRYING_CAPACITY_MULTIPLIER = 15
"""Normal carrying capacity is STR x 15."""

PUSH_DRAG_LIFT_MULTIPLIER = 30
"""Push, drag, and lift limit is STR x 30."""

POWERFUL_BUILD_MULTIPLIER = 2
"""Powerful Build counts the character as one size larger."""

# =============================================================================
# Output Compatibility
# =============================================================================

DEFAULT_SANITIZE_MAX_LENGTH = 1000
"""Default maximum length of a sanitized text value."""

TRAIT_ID_OFFSET = 1000
"""First numeric id used for traitlist entries."""

FEAT_ID_OFFSET = 2000
"""First numeric id used for featlist entries."""

UNARMED_STRIKE_ITEM_ID = 999999
"""Synthetic inventory id for a monk's Unarmed Strike weapon entry."""

FG_ROOT_ATTRIBUTES = {
    "version": "4.7",
    "dataversion": "20241002",
    "release": "8.1|CoreRPG:7",
}
"""Attributes of the Fantasy Grounds <root> element."""

FOUNDRY_DEFAULT_IMAGE = "icons/svg/mystery-man.svg"
"""Foundry VTT placeholder portrait."""

FOUNDRY_ID_LENGTH = 16
"""Length of a Foundry VTT document id."""


__all__ = [
    # D&D Beyond
    "DDB_CHARACTER_API_URL",
    "DDB_CHARACTER_URL_PATTERN",
    # Rules
    "DEFAULT_ABILITY_SCORE",
    "MIN_CHARACTER_LEVEL",
    "MAX_CHARACTER_LEVEL",
    "DEFAULT_ARMOR_CLASS",
    # Carrying capacity
    "ENCUMBERED_MULTIPLIER",
    "HEAVILY_ENCUMBERED_MULTIPLIER",
    "CARRYING_CAPACITY_MULTIPLIER",
    "PUSH_DRAG_LIFT_MULTIPLIER",
    "POWERFUL_BUILD_MULTIPLIER",
    # Output
    "DEFAULT_SANITIZE_MAX_LENGTH",
    "TRAIT_ID_OFFSET",
    "FEAT_ID_OFFSET",
    "UNARMED_STRIKE_ITEM_ID",
    "FG_ROOT_ATTRIBUTES",
    "FOUNDRY_DEFAULT_IMAGE",
    "FOUNDRY_ID_LENGTH",
]
