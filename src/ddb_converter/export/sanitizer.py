"""Text sanitization for safe embedding in XML documents.

sanitize_for_xml is the single gate every free-text value passes through
before it is written into a Fantasy Grounds document. The steps run in a
fixed order:

1. Strip script protocols (javascript:, vbscript:, data:) and inline
   event-handler assignments (onclick=...).
2. Replace newlines and tabs with spaces unless explicitly allowed.
3. Strip control characters.
4. Encode & first, then < > " ' = /.
5. Trim, then truncate to max_length without splitting an entity.

Ampersands that already start one of the entities produced in step 4 are
left alone, so sanitizing sanitized text is a no-op.

Example:
    >>> sanitize_for_xml("<script>a&b</script>")
    '&lt;script&gt;a&amp;b&lt;&#x2F;script&gt;'
"""

from __future__ import annotations

import re
from html import unescape
from typing import Any

from ddb_converter.core.constants import DEFAULT_SANITIZE_MAX_LENGTH


_DANGEROUS_PROTOCOLS = re.compile(r"(?:javascript|vbscript|data)\s*:", re.IGNORECASE)
_EVENT_HANDLERS = re.compile(r"\bon\w+\s*=", re.IGNORECASE)
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE_RUN = re.compile(r"\s+")
_BARE_AMPERSAND = re.compile(r"&(?!(?:amp|lt|gt|quot|#39|#x3D|#x2F);)")
_PARTIAL_ENTITY = re.compile(r"&[#\w]*$")

_ENTITY_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#39;"),
    ("=", "&#x3D;"),
    ("/", "&#x2F;"),
)

_HTML_TAG = re.compile(r"<[^>]+>")
_PARAGRAPH_BREAK = re.compile(r"</p>\s*<p[^>]*>", re.IGNORECASE)
_PARAGRAPH_TAG = re.compile(r"</?p[^>]*>", re.IGNORECASE)
_LINE_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)
_STRONG = re.compile(r"<strong[^>]*>(.*?)</strong>", re.IGNORECASE | re.DOTALL)
_EMPHASIS = re.compile(r"<em[^>]*>(.*?)</em>", re.IGNORECASE | re.DOTALL)
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def _strip_until_stable(patterns: list[re.Pattern[str]], text: str) -> str:
    """Remove every match, repeating while removal exposes new matches."""
    while True:
        stripped = text
        for pattern in patterns:
            stripped = pattern.sub("", stripped)
        if stripped == text:
            return stripped
        text = stripped


def sanitize_for_xml(
    value: Any,
    *,
    max_length: int = DEFAULT_SANITIZE_MAX_LENGTH,
    allow_newlines: bool = False,
    allow_tabs: bool = False,
    preserve_spaces: bool = True,
    remove_event_handlers: bool = True,
    remove_dangerous_protocols: bool = True,
) -> str:
    """Make a value safe to embed as XML text.

    Args:
        value: Any value; non-strings are converted with str().
        max_length: Maximum length of the result.
        allow_newlines: Keep newlines instead of replacing them with spaces.
        allow_tabs: Keep tabs instead of replacing them with spaces.
        preserve_spaces: Keep runs of spaces; when False they collapse to one.
        remove_event_handlers: Strip onXxx= assignments.
        remove_dangerous_protocols: Strip javascript:, vbscript:, and data:.

    Returns:
        Encoded text, at most max_length characters.
    """
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    if not text:
        return ""

    patterns: list[re.Pattern[str]] = []
    if remove_dangerous_protocols:
        patterns.append(_DANGEROUS_PROTOCOLS)
    if remove_event_handlers:
        patterns.append(_EVENT_HANDLERS)
    if patterns:
        text = _strip_until_stable(patterns, text)

    if not allow_newlines:
        text = text.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    if not allow_tabs:
        text = text.replace("\t", " ")
    if not preserve_spaces:
        text = _WHITESPACE_RUN.sub(" ", text)

    text = _CONTROL_CHARS.sub("", text)

    text = _BARE_AMPERSAND.sub("&amp;", text)
    for raw, entity in _ENTITY_REPLACEMENTS:
        text = text.replace(raw, entity)

    text = text.strip()
    if len(text) > max_length:
        text = _PARTIAL_ENTITY.sub("", text[:max_length]).rstrip()
    return text


def escape_xml_text(value: Any) -> str:
    """Minimal XML escaping (&, <, >) without any other sanitization."""
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def escape_xml_attribute(value: Any) -> str:
    """Escape a value for use inside a double- or single-quoted attribute."""
    return escape_xml_text(value).replace('"', "&quot;").replace("'", "&#39;")


def encode_text(
    value: Any,
    *,
    sanitize: bool = True,
    max_length: int = DEFAULT_SANITIZE_MAX_LENGTH,
) -> str:
    """Encode a text node, with full sanitization or minimal escaping.

    Args:
        value: Value to encode.
        sanitize: Use sanitize_for_xml; otherwise only escape markup.
        max_length: Truncation length when sanitizing.

    Returns:
        Encoded text.
    """
    if sanitize:
        return sanitize_for_xml(value, max_length=max_length)
    return escape_xml_text(value)


def strip_html(value: str | None) -> str:
    """Remove HTML tags and decode character references."""
    if not value:
        return ""
    return unescape(_HTML_TAG.sub("", value)).strip()


def html_to_text(value: str | None) -> str:
    """Convert a D&D Beyond HTML description to lightly formatted plain text.

    Paragraph breaks become blank lines, <br> becomes a newline, strong and
    em become **bold** and *italic*, and other tags are dropped.

    Example:
        >>> html_to_text("<p><strong>Keen.</strong> You see.</p><p>Far.</p>")
        '**Keen.** You see.\\n\\nFar.'
    """
    if not value:
        return ""
    text = value.replace("\r\n", "\n").replace("\r", "\n")
    text = _PARAGRAPH_BREAK.sub("\n\n", text)
    text = _PARAGRAPH_TAG.sub("", text)
    text = _LINE_BREAK.sub("\n", text)
    text = _STRONG.sub(r"**\1**", text)
    text = _EMPHASIS.sub(r"*\1*", text)
    text = _HTML_TAG.sub("", text)
    text = unescape(text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


__all__ = [
    "sanitize_for_xml",
    "escape_xml_text",
    "escape_xml_attribute",
    "encode_text",
    "strip_html",
    "html_to_text",
]
