"""
Header and Footer model classes.

Headers and footers in OOXML are stored in separate XML parts
(word/header1.xml, word/footer1.xml, ...) and are linked from a section's
sectPr through relationships of the main document part. Each part has its
own relationship table for the images and hyperlinks placed inside it.
"""

from __future__ import annotations

from enum import Enum

from .blocks import BlockContainer, PartContext


class HeaderFooterType(Enum):
    """Types of headers and footers in Word documents.

    Word supports three types of headers/footers per section:
    - DEFAULT: Used on all pages except first (if first is different) and even pages
    - FIRST: Used on the first page of the section (if enabled)
    - EVEN: Used on even-numbered pages (if different from odd)
    """

    DEFAULT = "default"
    FIRST = "first"
    EVEN = "even"


class _HeaderFooterPart(BlockContainer):
    """Shared behaviour of headers and footers."""

    root_tag = ""

    def __init__(self, context: PartContext, kind: HeaderFooterType, rel_id: str) -> None:
        """Initialize a header or footer part.

        Args:
            context: Part context naming the header/footer part
            kind: Which pages of the section it applies to
            rel_id: Relationship ID in the main document part's table
        """
        self._init_blocks(context)
        self.kind = kind
        self.rel_id = rel_id
        # Root namespace declarations and attributes of an opened part
        self._nsmap: dict[str | None, str] | None = None
        self._attributes: dict[str, str] = {}

    @property
    def type(self) -> str:
        """The header/footer type as a string: 'default', 'first' or 'even'."""
        return self.kind.value

    def __repr__(self) -> str:
        preview = self.text[:40]
        return f"<{type(self).__name__} {self.kind.value} {self.part_name} text={preview!r}>"


class Header(_HeaderFooterPart):
    """A header part (w:hdr root element).

    Example:
        >>> header = doc.sections[0].add_header()
        >>> header.add_paragraph("Confidential")
    """

    root_tag = "hdr"


class Footer(_HeaderFooterPart):
    """A footer part (w:ftr root element)."""

    root_tag = "ftr"
