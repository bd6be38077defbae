"""Small writer for Fantasy Grounds XML fragments.

Fantasy Grounds character files are a fixed schema of typed leaf elements
(``<name type="string">``, ``<score type="number">``) inside numbered
``<id-NNNNN>`` records. Fragments are produced as indented text so that
each section can be generated, and fail, independently before the document
is assembled and checked for well-formedness.

Example:
    >>> writer = XmlWriter(depth=1)
    >>> writer.open("coins")
    >>> writer.number("amount", 3)
    >>> writer.close("coins")
    >>> print(writer.render())
    \t<coins>
    \t\t<amount type="number">3</amount>
    \t</coins>
"""

from __future__ import annotations

from typing import Any

from ddb_converter.core.constants import DEFAULT_SANITIZE_MAX_LENGTH
from ddb_converter.export.sanitizer import encode_text, escape_xml_attribute, escape_xml_text


INDENT = "\t"


def fg_id(index: int) -> str:
    """Fantasy Grounds record tag for a numeric id.

    Example:
        >>> fg_id(7)
        'id-00007'
    """
    return f"id-{index:05d}"


def format_number(value: Any) -> str:
    """Render a number the way Fantasy Grounds stores it.

    Integral values drop the decimal part; other floats keep up to two
    decimal places. None renders as 0.

    Example:
        >>> format_number(3.0), format_number(0.25), format_number(None)
        ('3', '0.25', '0')
    """
    if value is None or isinstance(value, bool):
        return str(int(bool(value)))
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{value:.2f}".rstrip("0").rstrip(".")
    return str(value)


class XmlWriter:
    """Accumulates indented XML lines.

    Attributes:
        depth: Current indentation depth.
        sanitize: Whether string leaves go through the full sanitizer.
        max_length: Truncation length for sanitized strings.
    """

    def __init__(
        self,
        depth: int = 0,
        *,
        sanitize: bool = True,
        max_length: int = DEFAULT_SANITIZE_MAX_LENGTH,
    ) -> None:
        self.depth = depth
        self.sanitize = sanitize
        self.max_length = max_length
        self._lines: list[str] = []
        self._open: list[str] = []

    def _write(self, line: str) -> None:
        self._lines.append(f"{INDENT * self.depth}{line}")

    def open(self, tag: str, **attributes: Any) -> None:
        """Open an element and indent its children."""
        attrs = "".join(
            f' {name}="{escape_xml_attribute(value)}"' for name, value in attributes.items()
        )
        self._write(f"<{tag}{attrs}>")
        self._open.append(tag)
        self.depth += 1

    def close(self, tag: str | None = None) -> None:
        """Close the innermost open element.

        Raises:
            ValueError: If tag does not match the innermost open element.
        """
        expected = self._open.pop()
        if tag is not None and tag != expected:
            raise ValueError(f"Closing <{tag}> while <{expected}> is open")
        self.depth -= 1
        self._write(f"</{expected}>")

    def leaf(self, tag: str, value: Any, type_: str | None = None) -> None:
        """Write a leaf whose value is already encoded."""
        type_attr = f' type="{type_}"' if type_ else ""
        self._write(f"<{tag}{type_attr}>{value}</{tag}>")

    def string(self, tag: str, value: Any) -> None:
        """Write a ``type="string"`` leaf, encoding the value."""
        text = encode_text(value, sanitize=self.sanitize, max_length=self.max_length)
        self.leaf(tag, text, "string")

    def number(self, tag: str, value: Any) -> None:
        """Write a ``type="number"`` leaf."""
        self.leaf(tag, format_number(value), "number")

    def dice(self, tag: str, value: str) -> None:
        """Write a ``type="dice"`` leaf."""
        self.leaf(tag, escape_xml_text(value), "dice")

    def formatted_text(self, tag: str, value: Any) -> None:
        """Write a ``type="formattedtext"`` leaf holding one paragraph."""
        text = encode_text(value, sanitize=self.sanitize, max_length=self.max_length)
        self.open(tag, type="formattedtext")
        self.leaf("p", text)
        self.close(tag)

    def window_reference(self, tag: str, window_class: str, record_name: str) -> None:
        """Write a ``type="windowreference"`` link."""
        self.open(tag, type="windowreference")
        self.leaf("class", escape_xml_text(window_class))
        self.leaf("recordname", escape_xml_text(record_name))
        self.close(tag)

    def comment(self, text: str) -> None:
        """Write an XML comment; '--' is not allowed inside comments."""
        self._write(f"<!-- {text.replace('--', '- -')} -->")

    def empty(self, tag: str, type_: str | None = None) -> None:
        """Write an empty element."""
        type_attr = f' type="{type_}"' if type_ else ""
        self._write(f"<{tag}{type_attr} />")

    def extend(self, fragment: str) -> None:
        """Append a pre-rendered fragment verbatim."""
        if fragment:
            self._lines.append(fragment.rstrip("\n"))

    def render(self) -> str:
        """Join the written lines.

        Raises:
            ValueError: If an element is still open.
        """
        if self._open:
            raise ValueError(f"Unclosed elements: {', '.join(self._open)}")
        return "\n".join(self._lines)


__all__ = [
    "INDENT",
    "fg_id",
    "format_number",
    "XmlWriter",
]
