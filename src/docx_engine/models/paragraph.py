"""
Paragraph model, plus the hyperlink and bookmark wrappers that live in
paragraph content.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from lxml import etree

from ..constants import ALIGNMENT_ALIASES, ALIGNMENT_VALUES, MAX_EMU, MAX_TWIPS, RelationshipTypes
from ..errors import ValidationError
from ..ids import BOOKMARK, DRAWING
from ..xml_text import check_xml_text
from .field import Field, FieldPayload
from .opaque import OpaqueNode
from .run import BreakType, InlineImage, Run
from .style import ParagraphFormatting, RunFormatting

if TYPE_CHECKING:
    from .blocks import PartContext

logger = logging.getLogger(__name__)


@dataclass
class Bookmark:
    """A named bookmark around a paragraph's whole content."""

    bookmark_id: int
    name: str


class Hyperlink:
    """A hyperlink around one or more runs.

    External links point through an ``hyperlink`` relationship (r:id) of
    the paragraph's part; internal links name a bookmark (w:anchor).

    Attributes:
        rel_id: Relationship ID for external links
        url: Target URL for external links
        anchor: Bookmark name for internal links
    """

    def __init__(
        self, rel_id: str | None = None, url: str | None = None, anchor: str | None = None
    ) -> None:
        self.rel_id = rel_id
        self.url = url
        self.anchor = anchor
        self._content: list[Run | OpaqueNode] = []
        self._attributes: dict[str, str] = {}
        self._paragraph: Paragraph | None = None

    @property
    def content(self) -> list[Run | OpaqueNode]:
        return list(self._content)

    @property
    def runs(self) -> list[Run]:
        return [item for item in self._content if isinstance(item, Run)]

    @property
    def text(self) -> str:
        return "".join(item.text for item in self._content)

    def add_run(self, text: str = "", **properties: Any) -> Run:
        run = Run(text, **properties)
        self.append(run)
        return run

    def append(self, item: Run | OpaqueNode) -> None:
        if isinstance(item, Run):
            if item.owner is not None:
                raise ValidationError(
                    "run already belongs to another paragraph", op="append_run", field="run"
                )
            item._owner = self
        self._content.append(item)

    def __repr__(self) -> str:
        return f"<Hyperlink url={self.url!r} anchor={self.anchor!r} text={self.text!r}>"


ParagraphContent = Union[Run, Hyperlink, OpaqueNode]


def _check_twips(op: str, name: str, value: int | None, minimum: int) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not minimum <= value <= MAX_TWIPS:
        raise ValidationError(
            f"{name} must be an integer between {minimum} and {MAX_TWIPS} twips",
            op=op,
            field=name,
            value=value,
        )
    return value


class Paragraph:
    """A paragraph: formatting plus an ordered list of content it exclusively owns.

    Paragraphs are created through ``add_paragraph`` on a document, section,
    header, footer or table cell.

    Example:
        >>> para = doc.add_paragraph(style="Heading1")
        >>> para.add_run("Introduction", bold=True)
        >>> para.text
        'Introduction'
    """

    def __init__(self, context: PartContext, style: str | None = None) -> None:
        self._context = context
        self._content: list[ParagraphContent] = []
        self._style: str | None = None
        self._formatting = ParagraphFormatting()
        self._bookmark: Bookmark | None = None
        self._attributes: dict[str, str] = {}
        self.style = style

    # -------------------------------------------------------------------------
    # Style and formatting
    # -------------------------------------------------------------------------

    @property
    def style(self) -> str | None:
        """Paragraph style ID (w:pStyle), or None for the default style."""
        return self._style

    @style.setter
    def style(self, value: str | None) -> None:
        if value is not None and (not isinstance(value, str) or not value.strip()):
            raise ValidationError(
                "style ID must be a non-empty string", op="set_style", field="style", value=value
            )
        self._style = value
        if value is not None:
            logger.debug(f"Applied paragraph style {value}")

    @property
    def formatting(self) -> ParagraphFormatting:
        return self._formatting

    @formatting.setter
    def formatting(self, value: ParagraphFormatting) -> None:
        self._formatting = value

    @property
    def alignment(self) -> str | None:
        return self._formatting.alignment

    @alignment.setter
    def alignment(self, value: str | None) -> None:
        if value is not None:
            value = ALIGNMENT_ALIASES.get(value, value)
            if value not in ALIGNMENT_VALUES:
                raise ValidationError(
                    "unknown alignment", op="set_alignment", field="alignment", value=value
                )
        self._formatting.alignment = value

    def set_indent(
        self,
        left: int | None = None,
        right: int | None = None,
        first_line: int | None = None,
        hanging: int | None = None,
    ) -> None:
        """Set indentation in twips (1440 = one inch).

        Raises:
            ValidationError: If a value is outside +/-31680 twips, or both
                first_line and hanging are given
        """
        if first_line is not None and hanging is not None:
            raise ValidationError(
                "first_line and hanging are mutually exclusive", op="set_indent", field="first_line"
            )
        fmt = self._formatting
        fmt.indent_left = _check_twips("set_indent", "left", left, -MAX_TWIPS)
        fmt.indent_right = _check_twips("set_indent", "right", right, -MAX_TWIPS)
        fmt.indent_first_line = _check_twips("set_indent", "first_line", first_line, 0)
        fmt.indent_hanging = _check_twips("set_indent", "hanging", hanging, 0)

    def set_spacing(
        self,
        before: int | None = None,
        after: int | None = None,
        line: int | None = None,
        line_rule: str = "auto",
    ) -> None:
        """Set paragraph spacing in twips; ``line`` is in 240ths of a line for "auto".

        Raises:
            ValidationError: If a value is outside 0..31680 or the rule is unknown
        """
        if line_rule not in ("auto", "exact", "atLeast"):
            raise ValidationError(
                "unknown line rule", op="set_spacing", field="line_rule", value=line_rule
            )
        fmt = self._formatting
        fmt.spacing_before = _check_twips("set_spacing", "before", before, 0)
        fmt.spacing_after = _check_twips("set_spacing", "after", after, 0)
        fmt.line_spacing = _check_twips("set_spacing", "line", line, 0)
        fmt.line_rule = line_rule if line is not None else None

    # -------------------------------------------------------------------------
    # Content
    # -------------------------------------------------------------------------

    @property
    def context(self) -> PartContext:
        return self._context

    @property
    def content(self) -> list[ParagraphContent]:
        return list(self._content)

    @property
    def runs(self) -> list[Run]:
        """Runs owned directly by the paragraph (not inside hyperlinks)."""
        return [item for item in self._content if isinstance(item, Run)]

    @property
    def hyperlinks(self) -> list[Hyperlink]:
        return [item for item in self._content if isinstance(item, Hyperlink)]

    @property
    def fields(self) -> list[Field]:
        return [run.field for run in self.runs if run.field is not None]

    @property
    def images(self) -> list[InlineImage]:
        return [run.image for run in self.runs if run.image is not None]

    @property
    def bookmark(self) -> Bookmark | None:
        return self._bookmark

    @property
    def text(self) -> str:
        """Text of all content, with fields contributing their cached result."""
        return "".join(item.text for item in self._content)

    @text.setter
    def text(self, value: str) -> None:
        """Replace all content with a single run, keeping paragraph formatting."""
        self.clear()
        if value:
            self.add_run(value)

    def clear(self) -> None:
        for item in self._content:
            if isinstance(item, Run):
                item._owner = None
        self._content = []

    def append_run(self, run: Run) -> Run:
        """Attach an existing, unowned run.

        Raises:
            ValidationError: If the run already belongs to a paragraph
        """
        if run.owner is not None:
            raise ValidationError(
                "run already belongs to another paragraph", op="append_run", field="run"
            )
        run._owner = self
        self._content.append(run)
        return run

    def remove_run(self, run: Run) -> None:
        for index, item in enumerate(self._content):
            if item is run:
                del self._content[index]
                run._owner = None
                return
        raise ValidationError("run does not belong to this paragraph", op="remove_run")

    def add_run(self, text: str = "", **properties: Any) -> Run:
        """Append a text run.

        Args:
            text: Run text (tabs and newlines are kept)
            **properties: Formatting such as bold=True, font_size=24,
                color="FF0000", underline="double"

        Returns:
            The new Run
        """
        return self.append_run(Run(text, **properties))

    def add_field(
        self,
        field: Field | FieldPayload,
        formatting: RunFormatting | None = None,
    ) -> Run:
        """Append a field run (page number, TOC, ...).

        Args:
            field: A Field, or a bare payload which gets an empty result
            formatting: Character formatting applied to all five field runs
        """
        if not isinstance(field, Field):
            field = Field(field)
        return self.append_run(Run(field=field, formatting=formatting))

    def add_image(
        self,
        data: bytes,
        filename: str,
        width_emu: int,
        height_emu: int,
        description: str = "",
        name: str | None = None,
    ) -> Run:
        """Embed an image and place it inline.

        Args:
            data: Raw image bytes (png, jpeg, gif, bmp, tiff, emf, wmf, svg)
            filename: Original file name
            width_emu: Displayed width in EMUs (914400 per inch)
            height_emu: Displayed height in EMUs
            description: Alternative text

        Raises:
            ValidationError: If the format is unsupported or the size is invalid
        """
        for attr, value in (("width_emu", width_emu), ("height_emu", height_emu)):
            if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= MAX_EMU:
                raise ValidationError(
                    f"image extent must be an integer between 1 and {MAX_EMU} EMU",
                    op="add_image",
                    field=attr,
                    value=value,
                )
        check_xml_text(description, "add_image", "description")
        if name is not None:
            check_xml_text(name, "add_image", "name")

        media_id, rel_id = self._context.media.embed(data, filename, self._context.part_name)
        drawing_id = self._context.ids.next_id(DRAWING)
        image = InlineImage(
            media_id=media_id,
            rel_id=rel_id,
            width_emu=width_emu,
            height_emu=height_emu,
            drawing_id=drawing_id,
            name=name or f"Picture {drawing_id}",
            description=description,
        )
        return self.append_run(Run(image=image))

    def add_hyperlink(
        self, url: str | None = None, text: str = "", anchor: str | None = None
    ) -> Hyperlink:
        """Append a hyperlink to an external URL or to a bookmark.

        The run gets the built-in "Hyperlink" character style.

        Raises:
            ValidationError: If neither url nor anchor is given
        """
        if not url and not anchor:
            raise ValidationError("hyperlink needs a url or an anchor", op="add_hyperlink", field="url")
        for attr, value in (("url", url), ("anchor", anchor), ("text", text)):
            if value is not None:
                check_xml_text(value, "add_hyperlink", attr)

        rel_id = None
        if url:
            rel_id = self._context.relationships.register(
                self._context.part_name, url, RelationshipTypes.HYPERLINK, external=True
            )
        hyperlink = Hyperlink(rel_id=rel_id, url=url, anchor=anchor)
        self._context.styles.ensure_style("Hyperlink")
        hyperlink.add_run(text or url or anchor or "", style="Hyperlink")
        hyperlink._paragraph = self
        self._content.append(hyperlink)
        return hyperlink

    def add_bookmark(self, name: str) -> Bookmark:
        """Wrap the paragraph's content in a named bookmark.

        The ID comes from the document's shared bookmark counter.

        Raises:
            ValidationError: If the name is empty or a bookmark already exists
        """
        if not name or not name.strip():
            raise ValidationError("bookmark name must not be empty", op="add_bookmark", field="name")
        check_xml_text(name, "add_bookmark", "name")
        if self._bookmark is not None:
            raise ValidationError(
                "paragraph already has a bookmark", op="add_bookmark", field="name", value=name
            )
        self._bookmark = Bookmark(self._context.ids.next_id(BOOKMARK), name)
        return self._bookmark

    def remove_bookmark(self) -> None:
        self._bookmark = None

    def add_break(self, break_type: BreakType = BreakType.PAGE) -> Run:
        return self.append_run(Run(break_type=break_type))

    def add_raw(self, element: etree._Element) -> OpaqueNode:
        """Append an inline XML element the model does not understand, kept verbatim."""
        node = OpaqueNode(element)
        self._content.append(node)
        return node

    def _append_content(self, item: ParagraphContent) -> None:
        if isinstance(item, Run):
            self.append_run(item)
        else:
            if isinstance(item, Hyperlink):
                item._paragraph = self
            self._content.append(item)

    def _set_bookmark(self, bookmark: Bookmark) -> None:
        self._bookmark = bookmark

    def __repr__(self) -> str:
        text = self.text
        preview = text[:40] + "..." if len(text) > 40 else text
        return f"<Paragraph style={self._style!r} text={preview!r}>"
