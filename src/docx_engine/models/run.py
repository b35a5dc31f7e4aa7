"""
Run model: a span of content sharing one set of character formatting.

A run carries exactly one payload: text, a field, an inline image or a
break. Text may contain tab and newline characters, which are written as
w:tab and w:br.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..constants import MAX_EMU, MAX_FONT_SIZE, MIN_FONT_SIZE
from ..errors import ValidationError
from ..xml_text import check_xml_text
from .field import Field
from .style import RunFormatting

if TYPE_CHECKING:
    from .paragraph import Hyperlink, Paragraph

logger = logging.getLogger(__name__)

COLOR_PATTERN = re.compile(r"^(auto|[0-9A-Fa-f]{6})$")

HIGHLIGHT_COLORS = {
    "black", "blue", "cyan", "darkBlue", "darkCyan", "darkGray", "darkGreen", "darkMagenta",
    "darkRed", "darkYellow", "green", "lightGray", "magenta", "none", "red", "white", "yellow",
}  # fmt: skip

UNDERLINE_VALUES = {
    "single", "words", "double", "thick", "dotted", "dottedHeavy", "dash", "dashedHeavy",
    "dashLong", "dashLongHeavy", "dotDash", "dashDotHeavy", "dotDotDash", "dashDotDotHeavy",
    "wave", "wavyHeavy", "wavyDouble", "none",
}  # fmt: skip


class BreakType(Enum):
    """Break characters a run can carry."""

    LINE = "textWrapping"
    PAGE = "page"
    COLUMN = "column"


class RunKind(Enum):
    TEXT = "text"
    FIELD = "field"
    IMAGE = "image"
    BREAK = "break"


@dataclass
class InlineImage:
    """A picture placed inline with text.

    Attributes:
        media_id: ID of the asset in the document's MediaManager
        rel_id: Image relationship ID in the part that shows the picture
        width_emu: Displayed width in EMUs
        height_emu: Displayed height in EMUs
        drawing_id: Document-unique wp:docPr ID
        name: Picture name shown in Word's selection pane
        description: Alternative text
    """

    media_id: int
    rel_id: str
    width_emu: int
    height_emu: int
    drawing_id: int
    name: str = "Picture"
    description: str = ""
    # w:drawing read from an opened file; re-emitted with the fields above patched in
    source: Any = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        for attr in ("width_emu", "height_emu"):
            value = getattr(self, attr)
            if not isinstance(value, int) or not 1 <= value <= MAX_EMU:
                raise ValidationError(
                    f"image extent must be an integer between 1 and {MAX_EMU} EMU",
                    op="InlineImage",
                    field=attr,
                    value=value,
                )


def normalize_color(value: str | None) -> str | None:
    """Validate a color and return it as "RRGGBB" (upper case) or "auto"."""
    if value is None:
        return None
    candidate = value[1:] if value.startswith("#") else value
    if not COLOR_PATTERN.match(candidate):
        raise ValidationError(
            "color must be 'auto' or six hex digits", op="set_color", field="color", value=value
        )
    return candidate if candidate == "auto" else candidate.upper()


def check_font_size(value: int | None) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            "font size must be an integer number of half-points",
            op="set_font_size",
            field="font_size",
            value=value,
        )
    if not MIN_FONT_SIZE <= value <= MAX_FONT_SIZE:
        raise ValidationError(
            f"font size must be between {MIN_FONT_SIZE} and {MAX_FONT_SIZE} half-points",
            op="set_font_size",
            field="font_size",
            value=value,
        )
    return value


def normalize_underline(value: bool | str | None) -> str | None:
    if value is None:
        return None
    if value is True:
        return "single"
    if value is False:
        return "none"
    if value not in UNDERLINE_VALUES:
        raise ValidationError(
            "unknown underline style", op="set_underline", field="underline", value=value
        )
    return value


def check_highlight(value: str | None) -> str | None:
    if value is not None and value not in HIGHLIGHT_COLORS:
        raise ValidationError(
            "unknown highlight color", op="set_highlight", field="highlight", value=value
        )
    return value


class Run:
    """A run of content with character formatting.

    Example:
        >>> run = Run("Hello", bold=True)
        >>> run.text
        'Hello'
        >>> run.bold
        True
    """

    def __init__(
        self,
        text: str = "",
        *,
        field: Field | None = None,
        image: InlineImage | None = None,
        break_type: BreakType | None = None,
        formatting: RunFormatting | None = None,
        **properties: Any,
    ) -> None:
        payloads = [bool(text), field is not None, image is not None, break_type is not None]
        if sum(payloads) > 1:
            raise ValidationError(
                "a run carries exactly one of text, field, image or break",
                op="Run",
                field="payload",
            )
        self._text = check_xml_text(text or "", "Run", "text")
        self._field = field
        self._image = image
        self._break_type = break_type
        self._formatting = formatting if formatting is not None else RunFormatting()
        self._owner: Paragraph | Hyperlink | None = None
        self._attributes: dict[str, str] = {}
        for name, value in properties.items():
            if name not in _PROPERTY_NAMES:
                raise TypeError(f"Run() got an unexpected keyword argument {name!r}")
            setattr(self, name, value)

    # -------------------------------------------------------------------------
    # Payload
    # -------------------------------------------------------------------------

    @property
    def kind(self) -> RunKind:
        if self._field is not None:
            return RunKind.FIELD
        if self._image is not None:
            return RunKind.IMAGE
        if self._break_type is not None:
            return RunKind.BREAK
        return RunKind.TEXT

    @property
    def text(self) -> str:
        """Text of the run; a field contributes its cached result."""
        if self._field is not None:
            return self._field.result
        if self._break_type is BreakType.LINE:
            return "\n"
        return self._text

    @text.setter
    def text(self, value: str) -> None:
        if self.kind is not RunKind.TEXT:
            raise ValidationError(
                f"cannot set text on a {self.kind.value} run", op="set_text", field="text", value=value
            )
        self._text = check_xml_text(value, "set_text", "text")

    @property
    def field(self) -> Field | None:
        return self._field

    @field.setter
    def field(self, value: Field | None) -> None:
        if value is not None and (self._text or self._image or self._break_type):
            raise ValidationError(
                "text and field payloads are mutually exclusive", op="set_field", field="field"
            )
        self._field = value

    @property
    def image(self) -> InlineImage | None:
        return self._image

    @property
    def break_type(self) -> BreakType | None:
        return self._break_type

    @property
    def owner(self) -> Paragraph | Hyperlink | None:
        """The paragraph or hyperlink this run belongs to."""
        return self._owner

    # -------------------------------------------------------------------------
    # Formatting
    # -------------------------------------------------------------------------

    @property
    def formatting(self) -> RunFormatting:
        return self._formatting

    @formatting.setter
    def formatting(self, value: RunFormatting) -> None:
        check_font_size(value.font_size)
        normalize_color(value.color)
        self._formatting = value

    @property
    def bold(self) -> bool | None:
        return self._formatting.bold

    @bold.setter
    def bold(self, value: bool | None) -> None:
        self._formatting.bold = value

    @property
    def italic(self) -> bool | None:
        return self._formatting.italic

    @italic.setter
    def italic(self, value: bool | None) -> None:
        self._formatting.italic = value

    @property
    def underline(self) -> str | None:
        return self._formatting.underline

    @underline.setter
    def underline(self, value: bool | str | None) -> None:
        self._formatting.underline = normalize_underline(value)

    @property
    def strike(self) -> bool | None:
        return self._formatting.strike

    @strike.setter
    def strike(self, value: bool | None) -> None:
        self._formatting.strike = value

    @property
    def font_name(self) -> str | None:
        return self._formatting.font_name

    @font_name.setter
    def font_name(self, value: str | None) -> None:
        if value is not None and not value.strip():
            raise ValidationError("font name must not be blank", op="set_font_name", field="font_name")
        self._formatting.font_name = value

    @property
    def font_size(self) -> int | None:
        """Font size in half-points (24 = 12pt)."""
        return self._formatting.font_size

    @font_size.setter
    def font_size(self, value: int | None) -> None:
        self._formatting.font_size = check_font_size(value)

    @property
    def color(self) -> str | None:
        return self._formatting.color

    @color.setter
    def color(self, value: str | None) -> None:
        self._formatting.color = normalize_color(value)

    @property
    def highlight(self) -> str | None:
        return self._formatting.highlight

    @highlight.setter
    def highlight(self, value: str | None) -> None:
        self._formatting.highlight = check_highlight(value)

    @property
    def style(self) -> str | None:
        """Character style ID (w:rStyle)."""
        return self._formatting.style

    @style.setter
    def style(self, value: str | None) -> None:
        if value is not None and not value:
            raise ValidationError("style ID must not be empty", op="set_style", field="style")
        self._formatting.style = value

    @property
    def superscript(self) -> bool | None:
        return self._formatting.superscript

    @superscript.setter
    def superscript(self, value: bool | None) -> None:
        self._formatting.superscript = value
        if value:
            self._formatting.subscript = None

    @property
    def subscript(self) -> bool | None:
        return self._formatting.subscript

    @subscript.setter
    def subscript(self, value: bool | None) -> None:
        self._formatting.subscript = value
        if value:
            self._formatting.superscript = None

    @property
    def small_caps(self) -> bool | None:
        return self._formatting.small_caps

    @small_caps.setter
    def small_caps(self, value: bool | None) -> None:
        self._formatting.small_caps = value

    @property
    def all_caps(self) -> bool | None:
        return self._formatting.all_caps

    @all_caps.setter
    def all_caps(self, value: bool | None) -> None:
        self._formatting.all_caps = value

    def __repr__(self) -> str:
        if self.kind is RunKind.TEXT:
            return f"<Run text={self._text!r}>"
        return f"<Run {self.kind.value}>"


_PROPERTY_NAMES = {
    "bold", "italic", "underline", "strike", "font_name", "font_size", "color", "highlight",
    "style", "superscript", "subscript", "small_caps", "all_caps",
}  # fmt: skip
