"""
Checks for strings that end up as XML character data or attribute values.

XML 1.0 allows tab, newline and carriage return but no other C0 control
characters, no lone surrogates and neither U+FFFE nor U+FFFF. lxml refuses
such strings at serialization time, long after the value was set, so every
setter that stores text checks it here first.
"""

import re

from .errors import ValidationError

# Characters outside the XML 1.0 Char production
XML_ILLEGAL_CHARACTERS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff￾￿]")


def find_illegal_character(text: str) -> int | None:
    """Return the index of the first character XML cannot carry, or None."""
    match = XML_ILLEGAL_CHARACTERS.search(text)
    return match.start() if match else None


def check_xml_text(value: str, op: str, field: str) -> str:
    """Return ``value`` unchanged if it can be written as XML text.

    Raises:
        ValidationError: If ``value`` is not a string or holds a character
            outside the XML 1.0 Char production
    """
    if not isinstance(value, str):
        raise ValidationError("text must be a string", op=op, field=field, value=value)
    index = find_illegal_character(value)
    if index is not None:
        raise ValidationError(
            f"character U+{ord(value[index]):04X} at index {index} cannot be written to XML",
            op=op,
            field=field,
            value=value,
        )
    return value
