"""
Style and formatting model classes.

Formatting values are stored in OOXML's own integer units: half-points
for font sizes and twips for indents and spacing. ``None`` always means
"not set here", so a value can be inherited from a parent style.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


class StyleType(Enum):
    """Types of styles in Word documents.

    Attributes:
        PARAGRAPH: Applied to whole paragraphs (includes both paragraph
            and character formatting)
        CHARACTER: Applied to runs of text within paragraphs
        TABLE: Applied to tables
        NUMBERING: Applied to numbered/bulleted lists
    """

    PARAGRAPH = "paragraph"
    CHARACTER = "character"
    TABLE = "table"
    NUMBERING = "numbering"


class _Formatting:
    """Shared behaviour of the formatting dataclasses.

    ``extras`` holds property elements the model does not understand, kept
    verbatim so that they survive a read-modify-write cycle.
    """

    def _values(self) -> list[tuple[str, Any]]:
        return [(f.name, getattr(self, f.name)) for f in fields(self) if f.name != "extras"]  # type: ignore[arg-type]

    def is_empty(self) -> bool:
        """Return True if no property is set and no extra element is kept."""
        return all(value is None for _, value in self._values()) and not self.extras  # type: ignore[attr-defined]

    def merged_with(self, override: Any) -> Any:
        """Return a copy where every property set on ``override`` wins."""
        result = copy.copy(self)
        for name, value in override._values():
            if value is not None:
                setattr(result, name, value)
        result.extras = list(self.extras) + list(override.extras)  # type: ignore[attr-defined]
        return result

    def copy(self) -> Any:
        result = copy.copy(self)
        result.extras = [copy.deepcopy(e) for e in self.extras]  # type: ignore[attr-defined]
        return result


@dataclass(eq=False)
class RunFormatting(_Formatting):
    """Character-level formatting properties.

    Attributes:
        font_name: Font family name (e.g., "Arial")
        font_size: Font size in half-points (24 = 12pt)
        bold: Whether text is bold
        italic: Whether text is italic
        underline: OOXML underline value ("single", "double", "none", ...)
        strike: Whether text has strikethrough
        color: Text color as "RRGGBB" or "auto"
        highlight: Highlight color name (e.g., "yellow")
        style: Character style ID
        superscript: Whether text is superscript
        subscript: Whether text is subscript
        small_caps: Whether text is in small capitals
        all_caps: Whether text is in all capitals

    Example:
        >>> fmt = RunFormatting(bold=True, font_size=28, color="FF0000")
        >>> fmt.bold
        True
    """

    font_name: str | None = None
    font_size: int | None = None
    bold: bool | None = None
    italic: bool | None = None
    underline: str | None = None
    strike: bool | None = None
    color: str | None = None
    highlight: str | None = None
    style: str | None = None
    superscript: bool | None = None
    subscript: bool | None = None
    small_caps: bool | None = None
    all_caps: bool | None = None
    extras: list[Any] = field(default_factory=list, repr=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RunFormatting):
            return NotImplemented
        return self._values() == other._values()


@dataclass(eq=False)
class ParagraphFormatting(_Formatting):
    """Paragraph-level formatting properties.

    Attributes:
        alignment: OOXML justification ("left", "center", "right", "both", ...)
        indent_left: Left indent in twips
        indent_right: Right indent in twips
        indent_first_line: First line indent in twips
        indent_hanging: Hanging indent in twips
        spacing_before: Space before the paragraph in twips
        spacing_after: Space after the paragraph in twips
        line_spacing: Line spacing value (240ths of a line when
            line_rule is "auto", twips otherwise)
        line_rule: "auto", "exact" or "atLeast"
        keep_next: Keep paragraph with next paragraph on same page
        keep_lines: Keep all lines of paragraph on same page
        page_break_before: Start the paragraph on a new page
        outline_level: Heading outline level (0-9)
    """

    alignment: str | None = None
    indent_left: int | None = None
    indent_right: int | None = None
    indent_first_line: int | None = None
    indent_hanging: int | None = None
    spacing_before: int | None = None
    spacing_after: int | None = None
    line_spacing: int | None = None
    line_rule: str | None = None
    keep_next: bool | None = None
    keep_lines: bool | None = None
    page_break_before: bool | None = None
    outline_level: int | None = None
    extras: list[Any] = field(default_factory=list, repr=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParagraphFormatting):
            return NotImplemented
        return self._values() == other._values()


@dataclass
class EffectiveProperties:
    """Result of resolving a style's basedOn chain."""

    run: RunFormatting = field(default_factory=RunFormatting)
    paragraph: ParagraphFormatting = field(default_factory=ParagraphFormatting)


@dataclass
class Style:
    """Represents a Word document style.

    Attributes:
        style_id: Internal style identifier used in document references
            (e.g., "Heading1")
        name: Display name shown in Word's UI (e.g., "heading 1")
        style_type: Type of style (paragraph, character, table, numbering)
        based_on: style_id of parent style to inherit from
        next_style: style_id of style to apply after pressing Enter
        linked_style: style_id of linked style
        run_formatting: Character formatting properties
        paragraph_formatting: Paragraph formatting properties
        ui_priority: Sort order in Word's style gallery
        quick_format: Whether style appears in Quick Style gallery
        semi_hidden: Whether style is hidden from UI
        unhide_when_used: Whether to unhide style when first used
        is_default: Whether this is the default style of its type
        custom: Whether this is a user-defined (w:customStyle) style

    Example:
        >>> style = Style(
        ...     style_id="MyStyle",
        ...     name="My Style",
        ...     style_type=StyleType.PARAGRAPH,
        ...     based_on="Normal",
        ...     run_formatting=RunFormatting(bold=True),
        ... )
    """

    style_id: str
    name: str
    style_type: StyleType = StyleType.PARAGRAPH
    based_on: str | None = None
    next_style: str | None = None
    linked_style: str | None = None
    run_formatting: RunFormatting = field(default_factory=RunFormatting)
    paragraph_formatting: ParagraphFormatting = field(default_factory=ParagraphFormatting)
    ui_priority: int | None = None
    quick_format: bool = False
    semi_hidden: bool = False
    unhide_when_used: bool = False
    is_default: bool = False
    custom: bool = False
    extras: list[Any] = field(default_factory=list, repr=False, compare=False)

    def __repr__(self) -> str:
        """String representation of the style."""
        return f"<Style style_id={self.style_id!r} name={self.name!r} type={self.style_type.value}>"
