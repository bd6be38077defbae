"""Output encoding for the D&D Beyond character converter.

Submodules:
    sanitizer: Text sanitization and escaping for XML
    xml_writer: Typed Fantasy Grounds XML fragment writer
    fantasy_grounds: Fantasy Grounds character document assembly
    foundry: Foundry VTT actor formatter
    generic_json: Generic JSON dump of a processed character

The formatter modules depend on the rules engines, which themselves use
the sanitizer and writer, so only the leaf modules are re-exported here.
Import the formatters from their modules:

Example:
    >>> from ddb_converter.export.fantasy_grounds import generate_fantasy_grounds_xml
    >>> from ddb_converter.export.foundry import format_foundry_actor
"""

from __future__ import annotations

from ddb_converter.export.sanitizer import (
    encode_text,
    escape_xml_attribute,
    escape_xml_text,
    html_to_text,
    sanitize_for_xml,
    strip_html,
)
from ddb_converter.export.xml_writer import XmlWriter, fg_id, format_number


__all__ = [
    "sanitize_for_xml",
    "escape_xml_text",
    "escape_xml_attribute",
    "encode_text",
    "strip_html",
    "html_to_text",
    "XmlWriter",
    "fg_id",
    "format_number",
]
