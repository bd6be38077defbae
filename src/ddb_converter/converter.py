"""Conversion facade.

CharacterConverter ties the pipeline together: validate the character JSON,
run the rules engines once, and hand the ProcessedCharacter to the
requested output formatter. Engines are gated by feature flags and are
isolated from one another, so one failing engine costs only the sections
that depend on it.

Example:
    >>> converter = CharacterConverter()
    >>> result = converter.convert_from_dndbeyond("151483095")
    >>> result.success, result.character_name
    (True, 'Thorin')
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError

from ddb_converter.core.config import Settings, get_settings
from ddb_converter.core.exceptions import (
    CharacterDataError,
    ExportError,
    FetchError,
    InvalidCharacterIdError,
)
from ddb_converter.core.flags import FeatureFlag, FeatureFlags
from ddb_converter.core.logging import (
    bind_context,
    clear_context,
    configure_from_settings,
    get_logger,
)
from ddb_converter.export.fantasy_grounds import generate_fantasy_grounds_xml
from ddb_converter.export.foundry import format_foundry_actor, serialize_foundry_actor
from ddb_converter.export.generic_json import format_generic_json, serialize_generic_json
from ddb_converter.fetch.client import CharacterFetcher
from ddb_converter.models.character import DdbCharacter
from ddb_converter.models.conversion import ConversionResult, OutputFormatName, ProcessedCharacter
from ddb_converter.models.enums import Ability
from ddb_converter.models.features import FeatureOptions
from ddb_converter.models.inventory import ProcessedInventory, WeaponEntry
from ddb_converter.models.results import (
    AbilityScoreResult,
    CharacterClass,
    EncumbranceResult,
    StrengthProfile,
)
from ddb_converter.rules.abilities import compute_ability_scores, compute_legacy_ability_scores
from ddb_converter.rules.encumbrance import calculate_encumbrance, has_powerful_build
from ddb_converter.rules.features import FeatureProcessor
from ddb_converter.rules.inventory import InventoryProcessor
from ddb_converter.rules.languages import process_languages
from ddb_converter.rules.proficiencies import process_proficiencies
from ddb_converter.rules.spell_slots import build_character_class, calculate_spell_slots
from ddb_converter.rules.weapons import build_weapon_entries


logger = get_logger(__name__)

T = TypeVar("T")

OUTPUT_FORMATS: tuple[str, ...] = ("fantasy_grounds", "foundry_vtt", "generic_json")

REJECTED_ENTRY_SECTIONS: dict[str, str] = {
    "classes": "classes",
    "inventory": "inventory",
    "feats": "features",
    "racial_traits": "features",
}
"""Payload list -> engine whose section_errors entry reports its dropped entries."""


def rejected_entry_errors(character: DdbCharacter) -> dict[str, str]:
    """Describe the entries dropped while validating a character.

    Args:
        character: Validated character.

    Returns:
        Engine name -> message, ready to seed section_errors.
    """
    errors: dict[str, str] = {}
    for bucket, messages in character.rejected_entries.items():
        if not messages:
            continue
        section = REJECTED_ENTRY_SECTIONS.get(bucket, bucket)
        noun = "entry" if len(messages) == 1 else "entries"
        note = f"skipped {len(messages)} malformed {bucket} {noun}: {'; '.join(messages)}"
        errors[section] = f"{errors[section]}; {note}" if section in errors else note
        logger.warning("Malformed entries skipped", bucket=bucket, entries=messages)
    return errors


class CharacterConverter:
    """Converts D&D Beyond characters to virtual tabletop formats.

    Attributes:
        settings: Application settings.
        flags: Feature flags gating the rules engines.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        flags: FeatureFlags | None = None,
        fetcher: CharacterFetcher | None = None,
    ) -> None:
        """Initialize the converter.

        Logging is configured from the settings unless
        ``settings.manage_logging`` is off.

        Args:
            settings: Settings to use; the cached settings when omitted.
            flags: Feature flags; built from settings when omitted.
            fetcher: Character-service client; created on first use when omitted.
        """
        self.settings = settings or get_settings()
        if self.settings.manage_logging:
            configure_from_settings(self.settings)
        self.flags = flags or FeatureFlags.from_settings(self.settings)
        self._fetcher = fetcher

    @property
    def fetcher(self) -> CharacterFetcher:
        """Character-service client."""
        if self._fetcher is None:
            self._fetcher = CharacterFetcher(self.settings.fetch)
        return self._fetcher

    # =========================================================================
    # Processing
    # =========================================================================

    def _debug(self, flag: FeatureFlag) -> bool:
        return self.flags.is_enabled(flag)

    def _run(
        self,
        section: str,
        errors: dict[str, str],
        func: Callable[..., T],
        *args: Any,
        **kwargs: Any,
    ) -> T | None:
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            logger.exception("Engine failed", section=section)
            errors[section] = str(exc)
            return None

    def _abilities(self, character: DdbCharacter, errors: dict[str, str]) -> AbilityScoreResult:
        if not self.flags.is_enabled(FeatureFlag.ABILITY_SCORE_PROCESSOR):
            return compute_legacy_ability_scores(character)
        abilities = self._run(
            "abilities",
            errors,
            compute_ability_scores,
            character,
            debug=self._debug(FeatureFlag.ABILITY_SCORE_PROCESSOR_DEBUG),
        )
        return abilities or compute_legacy_ability_scores(character)

    def _classes(self, character: DdbCharacter, errors: dict[str, str]) -> list[CharacterClass]:
        classes = []
        for ddb_class in character.classes:
            cls = self._run("classes", errors, build_character_class, ddb_class)
            if cls is not None:
                classes.append(cls)
        return classes

    def _encumbrance(
        self,
        character: DdbCharacter,
        abilities: AbilityScoreResult,
    ) -> EncumbranceResult:
        strength = StrengthProfile(
            score=abilities.total(Ability.STR),
            powerful_build=has_powerful_build(character),
        )
        return calculate_encumbrance(
            strength,
            character.inventory,
            debug=self._debug(FeatureFlag.ENCUMBRANCE_CALCULATOR_DEBUG),
        )

    def _weapons(self, character: DdbCharacter, inventory: ProcessedInventory) -> list[WeaponEntry]:
        entries = build_weapon_entries(
            inventory.nested_structure,
            is_monk=character.has_class("monk"),
        )
        if self._debug(FeatureFlag.WEAPONLIST_DEBUG):
            logger.debug(
                "Weapon list built",
                weapons=[
                    {
                        "name": e.name,
                        "type": e.weapon_type.name,
                        "ammo": e.max_ammo,
                        "shortcut": e.linked_shortcut,
                    }
                    for e in entries
                ],
            )
        return entries

    def process_character(self, character: DdbCharacter) -> ProcessedCharacter:
        """Run every enabled rules engine over a character.

        An engine that raises is logged and its result left as None, with
        the failure recorded in section_errors; engines switched off by a
        feature flag are listed in disabled_sections by flag name.
        Entries dropped as malformed during validation are reported in
        section_errors under the engine that would have used them.

        Args:
            character: Validated character.

        Returns:
            ProcessedCharacter shared by both output formatters.
        """
        flags = self.flags
        errors = rejected_entry_errors(character)
        disabled = [
            str(flag)
            for flag in (
                FeatureFlag.ABILITY_SCORE_PROCESSOR,
                FeatureFlag.SPELL_SLOT_CALCULATOR,
                FeatureFlag.INVENTORY_PROCESSOR,
                FeatureFlag.ENCUMBRANCE_CALCULATOR,
                FeatureFlag.FEATURE_PROCESSOR,
                FeatureFlag.STRING_SANITIZER_SERVICE,
            )
            if not flags.is_enabled(flag)
        ]

        abilities = self._abilities(character, errors)
        classes = self._classes(character, errors)

        spell_slots = None
        if flags.is_enabled(FeatureFlag.SPELL_SLOT_CALCULATOR):
            spell_slots = self._run(
                "spell_slots",
                errors,
                calculate_spell_slots,
                classes,
                debug=self._debug(FeatureFlag.SPELL_SLOT_CALCULATOR_DEBUG),
            )

        inventory = None
        weapons = None
        if flags.is_enabled(FeatureFlag.INVENTORY_PROCESSOR):
            processor = InventoryProcessor(
                debug=self._debug(FeatureFlag.INVENTORY_PROCESSOR_DEBUG),
                sanitize=flags.is_enabled(FeatureFlag.STRING_SANITIZER_SERVICE),
            )
            inventory = self._run(
                "inventory",
                errors,
                processor.process,
                character.inventory,
                character.id,
            )
            if inventory is not None:
                weapons = self._run("weapons", errors, self._weapons, character, inventory)

        encumbrance = None
        if flags.is_enabled(FeatureFlag.ENCUMBRANCE_CALCULATOR):
            encumbrance = self._run(
                "encumbrance",
                errors,
                self._encumbrance,
                character,
                abilities,
            )

        features = None
        if flags.is_enabled(FeatureFlag.FEATURE_PROCESSOR):
            options = FeatureOptions(
                include_descriptions=self.settings.conversion.include_descriptions,
            )
            feature_processor = FeatureProcessor(
                options,
                debug=self._debug(FeatureFlag.FEATURE_PROCESSOR_DEBUG),
            )
            features = self._run("features", errors, feature_processor.process, character)

        processed = ProcessedCharacter(
            character=character,
            abilities=abilities,
            classes=classes,
            spell_slots=spell_slots,
            encumbrance=encumbrance,
            inventory=inventory,
            weapons=weapons,
            features=features,
            languages=self._run("languages", errors, process_languages, character),
            proficiencies=self._run("proficiencies", errors, process_proficiencies, character),
            section_errors=errors,
            disabled_sections=disabled,
        )
        logger.info(
            "Character processed",
            classes=[c.key for c in classes],
            failed_engines=sorted(errors),
            disabled_engines=disabled,
        )
        return processed

    # =========================================================================
    # Conversion
    # =========================================================================

    def _render(
        self,
        processed: ProcessedCharacter,
        output_format: OutputFormatName,
    ) -> tuple[str, dict[str, str]]:
        conversion = self.settings.conversion
        if output_format == "foundry_vtt":
            section_errors: dict[str, str] = {}
            actor = format_foundry_actor(processed, section_errors)
            return serialize_foundry_actor(actor), section_errors
        if output_format == "generic_json":
            document = format_generic_json(processed, include_raw=conversion.include_raw_data)
            return serialize_generic_json(document, validate=conversion.validate_output), {}

        return generate_fantasy_grounds_xml(
            processed,
            sanitize=self.flags.is_enabled(FeatureFlag.STRING_SANITIZER_SERVICE),
            max_length=conversion.description_max_length,
            validate=conversion.validate_output,
        )

    def convert_character_data(
        self,
        data: Any,
        *,
        output_format: OutputFormatName | None = None,
    ) -> ConversionResult:
        """Convert character JSON that is already in hand.

        Args:
            data: D&D Beyond character object (the ``data`` member of the API
                response).
            output_format: "fantasy_grounds", "foundry_vtt" or "generic_json";
                the configured default when omitted.

        Returns:
            ConversionResult. Invalid input and export failures are reported
            with success=False rather than raised.
        """
        output_format = output_format or self.settings.conversion.default_format
        if output_format not in OUTPUT_FORMATS:
            return ConversionResult(
                success=False,
                error=f"Unsupported output format: {output_format}",
            )

        try:
            character = DdbCharacter.model_validate(data)
        except PydanticValidationError as exc:
            error = CharacterDataError(
                f"Invalid character data: {exc.error_count()} validation error(s)",
                field_name="character",
                details={"errors": [e["msg"] for e in exc.errors()]},
            )
            logger.warning("Character data rejected", error=str(error))
            return ConversionResult(success=False, format=output_format, error=error.message)

        character_id = str(character.id) if character.id is not None else None
        bind_context(character_id=character_id, output_format=output_format)
        try:
            logger.info("Conversion started", name=character.display_name)
            processed = self.process_character(character)
            output, format_errors = self._render(processed, output_format)
        except ExportError as exc:
            logger.error("Export failed", error=str(exc))
            return ConversionResult(
                success=False,
                format=output_format,
                character_name=character.display_name,
                character_id=character_id,
                error=exc.message,
            )
        except Exception as exc:
            logger.exception("Conversion failed")
            return ConversionResult(
                success=False,
                format=output_format,
                character_name=character.display_name,
                character_id=character_id,
                error=f"Conversion failed: {exc}",
            )
        finally:
            clear_context()

        section_errors = {**processed.section_errors, **format_errors}
        warnings = [f"{name} disabled by feature flag" for name in processed.disabled_sections]
        warnings.extend(f"{name}: {message}" for name, message in section_errors.items())

        logger.info(
            "Conversion completed",
            character_id=character_id,
            output_format=output_format,
            warnings=len(warnings),
        )
        return ConversionResult(
            success=True,
            output=output,
            format=output_format,
            character_name=character.display_name,
            character_id=character_id,
            warnings=warnings,
            section_errors=section_errors,
        )

    def convert_from_dndbeyond(
        self,
        character_id: str | int,
        *,
        output_format: OutputFormatName | None = None,
    ) -> ConversionResult:
        """Fetch a public character and convert it.

        Args:
            character_id: Character id or sharing URL.
            output_format: "fantasy_grounds", "foundry_vtt" or "generic_json".

        Returns:
            ConversionResult; fetch failures are reported with success=False
            and the user-facing message.
        """
        fmt = output_format or self.settings.conversion.default_format
        try:
            data = self.fetcher.fetch_character(character_id)
        except InvalidCharacterIdError as exc:
            return ConversionResult(success=False, format=fmt, error=exc.message)
        except FetchError as exc:
            return ConversionResult(
                success=False,
                format=fmt,
                character_id=exc.character_id,
                error=exc.user_message,
            )
        return self.convert_character_data(data, output_format=fmt)


def convert_character(
    data: Any,
    *,
    output_format: OutputFormatName = "fantasy_grounds",
) -> ConversionResult:
    """Convert character JSON with a default CharacterConverter."""
    return CharacterConverter().convert_character_data(data, output_format=output_format)


__all__ = [
    "OUTPUT_FORMATS",
    "REJECTED_ENTRY_SECTIONS",
    "CharacterConverter",
    "rejected_entry_errors",
    "convert_character",
]
