"""ddb-converter - D&D Beyond character converter.

Converts D&D Beyond character JSON into Fantasy Grounds character XML and
Foundry VTT actor JSON.

PIPELINE:
- Character JSON is validated into pydantic models at the boundary
- Rules engines run once per character (abilities, spell slots,
  encumbrance, inventory, weapons, features, languages, proficiencies)
- Formatters render the processed character; a failing section degrades
  to a placeholder instead of failing the document

Example:
    >>> from ddb_converter import CharacterConverter, configure_logging
    >>>
    >>> configure_logging(level="INFO")
    >>> converter = CharacterConverter()
    >>>
    >>> # Fetch a public character and convert it
    >>> result = converter.convert_from_dndbeyond("151483095")
    >>> open("thorin.xml", "w").write(result.output)
    >>>
    >>> # Or convert JSON already in hand
    >>> result = converter.convert_character_data(data, output_format="foundry_vtt")

Modules:
    core: Configuration, logging, feature flags, and exceptions.
    models: Input schema, engine result schemas, and progression tables.
    rules: Rules engines.
    export: Sanitizer, XML writer, and the two output formatters.
    fetch: D&D Beyond character-service client.
    converter: Conversion facade.
"""

from __future__ import annotations

# Core
from ddb_converter.core.config import Settings, get_settings
from ddb_converter.core.exceptions import DdbConverterError
from ddb_converter.core.flags import FeatureFlag, FeatureFlags
from ddb_converter.core.logging import configure_from_settings, configure_logging, get_logger

# Models
from ddb_converter.models.character import DdbCharacter
from ddb_converter.models.conversion import ConversionResult, ProcessedCharacter

# Conversion
from ddb_converter.converter import CharacterConverter, convert_character
from ddb_converter.fetch.client import CharacterFetcher, validate_character_id


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "DdbConverterError",
    "Settings",
    "get_settings",
    "FeatureFlag",
    "FeatureFlags",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    # Models
    "DdbCharacter",
    "ProcessedCharacter",
    "ConversionResult",
    # Conversion
    "CharacterConverter",
    "convert_character",
    "CharacterFetcher",
    "validate_character_id",
]
