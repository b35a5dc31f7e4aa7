"""
Pre-save checks of the document graph.

The validator walks every section, header, footer and table cell and
stops at the first problem it finds. It never repairs anything; the error
names the operation, the field and the offending value so the caller can
fix the call that produced it.

Checks:
1. Table grids (each row covers exactly the table's columns, merges stay
   inside the grid)
2. Fields (instruction and cached result present)
3. Relationship references (images, hyperlinks, header/footer links and
   r:* attributes inside opaque XML resolve in the owning part)
4. Numeric ranges (font sizes, twips measures, columns, image extents)
5. Bookmark IDs unique across the document
6. Style basedOn chains end at a root style (no cycle, no missing parent)
7. Every string bound for XML text or attributes holds only XML 1.0
   characters
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

from lxml import etree

from .constants import MAX_COLUMNS, MAX_EMU, MAX_FONT_SIZE, MAX_TWIPS, MIN_COLUMNS, MIN_FONT_SIZE
from .errors import RelationshipError, ValidationError
from .models.opaque import OpaqueNode, relationship_references
from .models.paragraph import Hyperlink, Paragraph
from .models.run import Run
from .models.style import ParagraphFormatting, RunFormatting
from .models.table import Table
from .xml_text import check_xml_text

if TYPE_CHECKING:
    from .document import Document
    from .models.blocks import Block
    from .models.section import Section

logger = logging.getLogger(__name__)

OP = "validate"


def _check_range(field: str, value: int | None, minimum: int, maximum: int) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or not minimum <= value <= maximum:
        raise ValidationError(
            f"{field} must be an integer between {minimum} and {maximum}",
            op=OP,
            field=field,
            value=value,
        )


def check_run_formatting(formatting: RunFormatting, where: str = "run") -> None:
    _check_range(f"{where}.font_size", formatting.font_size, MIN_FONT_SIZE, MAX_FONT_SIZE)


def check_paragraph_formatting(formatting: ParagraphFormatting, where: str = "paragraph") -> None:
    """Check the twips measures and outline level of paragraph formatting."""
    for name in ("indent_left", "indent_right", "indent_first_line", "indent_hanging"):
        _check_range(f"{where}.{name}", getattr(formatting, name), -MAX_TWIPS, MAX_TWIPS)
    for name in ("spacing_before", "spacing_after", "line_spacing"):
        _check_range(f"{where}.{name}", getattr(formatting, name), 0, MAX_TWIPS)
    _check_range(f"{where}.outline_level", formatting.outline_level, 0, 9)


class DocumentValidator:
    """Check a document before it is written.

    Example:
        >>> DocumentValidator(doc).validate()  # raises on the first problem
    """

    def __init__(self, document: Document) -> None:
        self._document = document
        self._bookmark_ids: dict[int, str] = {}

    def validate(self) -> None:
        """Run every check.

        Raises:
            ValidationError: On a range, table-grid, field or bookmark problem
            RelationshipError: On a reference missing from its part's
                relationship table
        """
        doc = self._document
        self._bookmark_ids = {}

        for style in doc.styles:
            check_xml_text(style.style_id, OP, "style_id")
            check_xml_text(style.name, OP, f"style[{style.style_id}].name")
            check_run_formatting(style.run_formatting, where=f"style[{style.style_id}]")
            check_paragraph_formatting(style.paragraph_formatting, where=f"style[{style.style_id}]")
        doc.styles.check_chains(OP)

        for prop in dataclasses.fields(doc.core_properties):
            value = getattr(doc.core_properties, prop.name)
            if isinstance(value, str):
                check_xml_text(value, OP, f"core_properties.{prop.name}")

        for element in doc._root_extras:
            self._check_references(doc.main_part, relationship_references(element))

        for index, section in enumerate(doc.sections):
            self._check_section(index, section)
            self._check_blocks(section.part_name, section.blocks)

        for part in doc.header_footer_parts():
            self._check_blocks(part.part_name, part.blocks)

        logger.debug(f"Validated document ({len(doc.sections)} sections)")

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------

    def _check_reference(self, part_name: str, rel_id: str | None, field: str) -> None:
        if not rel_id:
            raise RelationshipError("empty relationship reference", op=OP, field=field, value=part_name)
        if not self._document.relationships.has(part_name, rel_id):
            raise RelationshipError(
                f"relationship is not registered in part '{part_name}'",
                op=OP,
                field=field,
                value=rel_id,
            )

    def _check_references(self, part_name: str, rel_ids: list[str]) -> None:
        for rel_id in rel_ids:
            self._check_reference(part_name, rel_id, "r:id")

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def _check_section(self, index: int, section: Section) -> None:
        where = f"section[{index}]"
        _check_range(f"{where}.page_width", section.page_size.width, 1, MAX_TWIPS)
        _check_range(f"{where}.page_height", section.page_size.height, 1, MAX_TWIPS)
        margins = section.margins
        for name in ("top", "right", "bottom", "left", "header", "footer", "gutter"):
            _check_range(f"{where}.margin_{name}", getattr(margins, name), -MAX_TWIPS, MAX_TWIPS)
        _check_range(f"{where}.columns", section.columns, MIN_COLUMNS, MAX_COLUMNS)
        _check_range(f"{where}.column_spacing", section.column_spacing, 0, MAX_TWIPS)

        for part in [*section.headers.values(), *section.footers.values()]:
            self._check_reference(section.part_name, part.rel_id, f"{where}.{part.root_tag}Reference")
        for element in section._extras:
            self._check_references(section.part_name, relationship_references(element))

    # -------------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------------

    def _check_blocks(self, part_name: str, blocks: list[Block]) -> None:
        for block in blocks:
            if isinstance(block, Paragraph):
                self._check_paragraph(part_name, block)
            elif isinstance(block, Table):
                self._check_table(part_name, block)
            elif isinstance(block, OpaqueNode):
                self._check_references(part_name, block.relationship_ids())

    def _check_paragraph(self, part_name: str, paragraph: Paragraph) -> None:
        check_paragraph_formatting(paragraph.formatting)
        for extra in paragraph.formatting.extras:
            self._check_references(part_name, relationship_references(extra))

        bookmark = paragraph.bookmark
        if bookmark is not None:
            check_xml_text(bookmark.name, OP, "bookmark.name")
            if bookmark.bookmark_id in self._bookmark_ids:
                raise ValidationError(
                    f"bookmark ID already used by '{self._bookmark_ids[bookmark.bookmark_id]}'",
                    op=OP,
                    field="bookmark_id",
                    value=bookmark.bookmark_id,
                )
            self._bookmark_ids[bookmark.bookmark_id] = bookmark.name

        for item in paragraph.content:
            if isinstance(item, Hyperlink):
                self._check_hyperlink(part_name, item)
            else:
                self._check_inline(part_name, item)

    def _check_hyperlink(self, part_name: str, hyperlink: Hyperlink) -> None:
        if hyperlink.rel_id is not None or hyperlink.url is not None:
            self._check_reference(part_name, hyperlink.rel_id, "hyperlink")
        for name in ("url", "anchor"):
            value = getattr(hyperlink, name)
            if value is not None:
                check_xml_text(value, OP, f"hyperlink.{name}")
        for item in hyperlink.content:
            self._check_inline(part_name, item)

    def _check_inline(self, part_name: str, item: Run | OpaqueNode) -> None:
        if isinstance(item, OpaqueNode):
            self._check_references(part_name, item.relationship_ids())
            return

        check_run_formatting(item.formatting)
        for extra in item.formatting.extras:
            self._check_references(part_name, relationship_references(extra))
        check_xml_text(item._text, OP, "text")

        field = item.field
        if field is not None:
            instruction = field.instruction
            if not instruction or not instruction.strip():
                raise ValidationError("field instruction is empty", op=OP, field="instruction", value=instruction)
            check_xml_text(instruction, OP, "instruction")
            check_xml_text(field.result, OP, "result")

        image = item.image
        if image is not None:
            check_xml_text(image.name, OP, "image.name")
            check_xml_text(image.description, OP, "image.description")
            self._check_reference(part_name, image.rel_id, "image")
            _check_range("image.width_emu", image.width_emu, 1, MAX_EMU)
            _check_range("image.height_emu", image.height_emu, 1, MAX_EMU)
            if isinstance(image.source, etree._Element):
                # A read drawing may carry more references than the blip we patch
                references = [ref for ref in relationship_references(image.source) if ref != image.rel_id]
                self._check_references(part_name, references)

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def _check_table(self, part_name: str, table: Table) -> None:
        columns = table.column_count
        _check_range("table.width", table.width, 0, MAX_TWIPS)
        column_widths = table.column_widths
        if column_widths is not None:
            if len(column_widths) != columns:
                raise ValidationError(
                    "one grid width per column is required",
                    op=OP,
                    field="column_widths",
                    value=column_widths,
                )
            for width in column_widths:
                _check_range("table.column_width", width, 0, MAX_TWIPS)
        for element in table._extras:
            self._check_references(part_name, relationship_references(element))

        for row in table.rows:
            _check_range(f"row[{row.index}].height", row.height, 0, MAX_TWIPS)
            for element in row._extras:
                self._check_references(part_name, relationship_references(element))
            cells = row.cells
            if len(cells) != columns:
                raise ValidationError(
                    f"row has {len(cells)} cells for {columns} grid columns",
                    op=OP,
                    field=f"row[{row.index}]",
                    value=len(cells),
                )
            spanned = 0
            for cell in cells:
                origin = cell.merge_origin
                if (
                    origin.column_index + origin.colspan > columns
                    or origin.row_index + origin.rowspan > table.row_count
                ):
                    raise ValidationError(
                        "merged cell extends beyond the table grid",
                        op=OP,
                        field=f"cell[{origin.row_index},{origin.column_index}]",
                        value=(origin.colspan, origin.rowspan),
                    )
                if cell.is_covered:
                    inside = (
                        origin.row_index <= row.index < origin.row_index + origin.rowspan
                        and origin.column_index <= cell.column_index < origin.column_index + origin.colspan
                    )
                    if not inside:
                        raise ValidationError(
                            "covered cell lies outside its merge",
                            op=OP,
                            field=f"cell[{row.index},{cell.column_index}]",
                        )
                    if cell.is_absorbed:
                        if cell.blocks:
                            raise ValidationError(
                                "content in a cell covered by a horizontal merge would be lost",
                                op=OP,
                                field=f"cell[{row.index},{cell.column_index}]",
                                value=len(cell.blocks),
                            )
                        continue
                spanned += origin.colspan
                _check_range(f"cell[{row.index},{cell.column_index}].width", cell.width, 0, MAX_TWIPS)
            if spanned != columns:
                raise ValidationError(
                    f"row cells span {spanned} of {columns} grid columns",
                    op=OP,
                    field=f"row[{row.index}]",
                    value=spanned,
                )

        for cell in table.iter_cells():
            for element in cell._extras:
                self._check_references(part_name, relationship_references(element))
            self._check_blocks(part_name, cell.blocks)
