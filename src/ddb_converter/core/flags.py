"""Feature flags for the conversion pipeline.

Flags gate whole processing engines (so a misbehaving engine can be
switched off without a release) and raise the log detail of individual
engines. A FeatureFlags instance is immutable and is passed explicitly to
the converter; precedence is per-call overrides, then settings, then the
defaults below.

Example:
    >>> flags = FeatureFlags().with_overrides(weaponlist_debug=True)
    >>> flags.is_enabled(FeatureFlag.WEAPONLIST_DEBUG)
    True
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from ddb_converter.core.logging import get_logger


if TYPE_CHECKING:
    from ddb_converter.core.config import Settings


logger = get_logger(__name__)


class FeatureFlag(StrEnum):
    """Known feature flag names."""

    ABILITY_SCORE_PROCESSOR = "ability_score_processor"
    SPELL_SLOT_CALCULATOR = "spell_slot_calculator"
    INVENTORY_PROCESSOR = "inventory_processor"
    ENCUMBRANCE_CALCULATOR = "encumbrance_calculator"
    FEATURE_PROCESSOR = "feature_processor"
    STRING_SANITIZER_SERVICE = "string_sanitizer_service"

    ABILITY_SCORE_PROCESSOR_DEBUG = "ability_score_processor_debug"
    SPELL_SLOT_CALCULATOR_DEBUG = "spell_slot_calculator_debug"
    INVENTORY_PROCESSOR_DEBUG = "inventory_processor_debug"
    ENCUMBRANCE_CALCULATOR_DEBUG = "encumbrance_calculator_debug"
    FEATURE_PROCESSOR_DEBUG = "feature_processor_debug"
    WEAPONLIST_DEBUG = "weaponlist_debug"


DEFAULT_FEATURE_FLAGS: dict[str, bool] = {
    FeatureFlag.ABILITY_SCORE_PROCESSOR: True,
    FeatureFlag.SPELL_SLOT_CALCULATOR: True,
    FeatureFlag.INVENTORY_PROCESSOR: True,
    FeatureFlag.ENCUMBRANCE_CALCULATOR: True,
    FeatureFlag.FEATURE_PROCESSOR: True,
    FeatureFlag.STRING_SANITIZER_SERVICE: True,
    FeatureFlag.ABILITY_SCORE_PROCESSOR_DEBUG: False,
    FeatureFlag.SPELL_SLOT_CALCULATOR_DEBUG: False,
    FeatureFlag.INVENTORY_PROCESSOR_DEBUG: False,
    FeatureFlag.ENCUMBRANCE_CALCULATOR_DEBUG: False,
    FeatureFlag.FEATURE_PROCESSOR_DEBUG: False,
    FeatureFlag.WEAPONLIST_DEBUG: False,
}


class FeatureFlags(BaseModel):
    """Immutable feature flag set.

    Attributes:
        overrides: Flag values that take precedence over the defaults.
    """

    model_config = ConfigDict(frozen=True)

    overrides: dict[str, bool] = Field(default_factory=dict)

    def is_enabled(self, flag: str) -> bool:
        """Check whether a flag is on.

        Unknown flags are reported and treated as disabled.

        Args:
            flag: Flag name.

        Returns:
            The overridden value, else the default value.
        """
        key = str(flag)
        if key in self.overrides:
            return self.overrides[key]
        if key in DEFAULT_FEATURE_FLAGS:
            return DEFAULT_FEATURE_FLAGS[key]
        logger.warning("Unknown feature flag", flag=key)
        return False

    def with_overrides(self, **overrides: bool) -> FeatureFlags:
        """Return a new flag set with additional overrides applied."""
        return FeatureFlags(overrides={**self.overrides, **overrides})

    def snapshot(self) -> dict[str, bool]:
        """Resolve every known flag plus any extra overrides."""
        resolved = {str(name): value for name, value in DEFAULT_FEATURE_FLAGS.items()}
        resolved.update(self.overrides)
        return resolved

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> FeatureFlags:
        """Build a flag set from the feature_flags mapping in settings.

        Args:
            settings: Settings to read; the cached settings when omitted.

        Returns:
            A FeatureFlags instance carrying the configured overrides.
        """
        if settings is None:
            from ddb_converter.core.config import get_settings

            settings = get_settings()
        return cls(overrides=dict(settings.feature_flags))


__all__ = [
    "FeatureFlag",
    "DEFAULT_FEATURE_FLAGS",
    "FeatureFlags",
]
