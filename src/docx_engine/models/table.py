"""
Table, row and cell models.

A table is a full grid: every (row, column) position has a TableCell even
when it is covered by a merge. Merges are recorded as (colspan, rowspan)
on the top-left cell; covered cells point back at that origin cell.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

from ..constants import DEFAULT_CONTENT_WIDTH, MAX_TABLE_ROWS, MAX_TWIPS
from ..errors import NotFoundError, ValidationError
from .blocks import BlockContainer, PartContext
from .run import normalize_color

if TYPE_CHECKING:
    from .paragraph import Paragraph

logger = logging.getLogger(__name__)

VERTICAL_ALIGNMENTS = ("top", "center", "bottom")
TABLE_ALIGNMENTS = ("left", "center", "right", "start", "end")
HEIGHT_RULES = ("auto", "atLeast", "exact")


def _check_width(op: str, value: int | None) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_TWIPS:
        raise ValidationError(
            f"width must be an integer between 0 and {MAX_TWIPS} twips", op=op, field="width", value=value
        )
    return value


class TableCell(BlockContainer):
    """A table cell owning its own blocks (paragraphs, nested tables, opaque XML).

    Attributes:
        width: Preferred width in twips, or None to derive it from the grid
        width_type: w:tcW type ("dxa", "pct", "auto")
        shading: Background fill as "RRGGBB", or None
        vertical_alignment: "top", "center" or "bottom", or None
    """

    def __init__(self, table: Table, row_index: int, column_index: int) -> None:
        self._init_blocks(table.context)
        self._table = table
        self._row_index = row_index
        self._column_index = column_index
        self._colspan = 1
        self._rowspan = 1
        self._origin: TableCell | None = None
        self._width: int | None = None
        self.width_type = "dxa"
        self._shading: str | None = None
        self._vertical_alignment: str | None = None
        self._extras: list = []
        self._attributes: dict[str, str] = {}

    @property
    def table(self) -> Table:
        return self._table

    @property
    def row_index(self) -> int:
        return self._row_index

    @property
    def column_index(self) -> int:
        return self._column_index

    @property
    def colspan(self) -> int:
        return self._colspan

    @property
    def rowspan(self) -> int:
        return self._rowspan

    @property
    def is_covered(self) -> bool:
        """True if this cell lies inside another cell's merge."""
        return self._origin is not None

    @property
    def is_absorbed(self) -> bool:
        """True if the cell is covered horizontally and has no w:tc of its own.

        Only the first column of a merge is written; the other columns are
        folded into its w:gridSpan, so anything they hold is never saved.
        """
        origin = self._origin
        return origin is not None and (
            origin._row_index == self._row_index or origin._column_index != self._column_index
        )

    def _check_accepts_blocks(self, op: str) -> None:
        if self.is_absorbed:
            raise ValidationError(
                "cell is covered by a horizontal merge and cannot hold content",
                op=op,
                field="cell",
                value=(self._row_index, self._column_index),
            )

    @property
    def merge_origin(self) -> TableCell:
        """The top-left cell of the merge containing this cell (itself if unmerged)."""
        return self._origin if self._origin is not None else self

    @property
    def width(self) -> int | None:
        return self._width

    @width.setter
    def width(self, value: int | None) -> None:
        self._width = _check_width("set_cell_width", value)

    @property
    def shading(self) -> str | None:
        return self._shading

    @shading.setter
    def shading(self, value: str | None) -> None:
        self._shading = normalize_color(value)

    @property
    def vertical_alignment(self) -> str | None:
        return self._vertical_alignment

    @vertical_alignment.setter
    def vertical_alignment(self, value: str | None) -> None:
        if value is not None and value not in VERTICAL_ALIGNMENTS:
            raise ValidationError(
                "unknown vertical alignment",
                op="set_vertical_alignment",
                field="vertical_alignment",
                value=value,
            )
        self._vertical_alignment = value

    @property
    def text(self) -> str:
        return "\n".join(paragraph.text for paragraph in self.paragraphs)

    @text.setter
    def text(self, value: str) -> None:
        """Replace the cell's content with a single paragraph."""
        self._check_accepts_blocks("set_text")
        self._blocks = []
        self.add_paragraph(value)

    def _covered_positions(self, colspan: int, rowspan: int) -> list[tuple[int, int]]:
        return [
            (r, c)
            for r in range(self._row_index, self._row_index + rowspan)
            for c in range(self._column_index, self._column_index + colspan)
            if (r, c) != (self._row_index, self._column_index)
        ]

    def merge(self, colspan: int = 1, rowspan: int = 1) -> TableCell:
        """Merge this cell with its neighbours to the right and below.

        Content of the covered cells moves into this cell.

        Args:
            colspan: Number of grid columns the merged cell spans
            rowspan: Number of rows the merged cell spans

        Returns:
            This cell (the merge origin)

        Raises:
            ValidationError: If the merge leaves the grid, starts on a
                covered cell or overlaps another merge
        """
        for name, value in (("colspan", colspan), ("rowspan", rowspan)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValidationError(
                    f"{name} must be a positive integer", op="merge", field=name, value=value
                )
        if self.is_covered:
            raise ValidationError(
                "cell is covered by another merge",
                op="merge",
                field="cell",
                value=(self._row_index, self._column_index),
            )
        if (
            self._row_index + rowspan > self._table.row_count
            or self._column_index + colspan > self._table.column_count
        ):
            raise ValidationError(
                "merge extends beyond the table grid",
                op="merge",
                field="span",
                value=(colspan, rowspan),
            )

        positions = self._covered_positions(colspan, rowspan)
        for r, c in positions:
            cell = self._table.cell(r, c)
            if (cell.is_covered and cell._origin is not self) or cell._colspan > 1 or cell._rowspan > 1:
                raise ValidationError(
                    "merge overlaps another merged cell", op="merge", field="cell", value=(r, c)
                )

        self.unmerge()
        for r, c in positions:
            cell = self._table.cell(r, c)
            cell._origin = self
            for block in cell._blocks:
                if getattr(block, "text", "") or not hasattr(block, "text"):
                    self._blocks.append(block)
            cell._blocks = []
        self._colspan = colspan
        self._rowspan = rowspan
        logger.debug(
            f"Merged cell ({self._row_index}, {self._column_index}) colspan={colspan} rowspan={rowspan}"
        )
        return self

    def unmerge(self) -> None:
        """Split a merged cell back into single cells (content stays here)."""
        for r, c in self._covered_positions(self._colspan, self._rowspan):
            self._table.cell(r, c)._origin = None
        self._colspan = 1
        self._rowspan = 1

    def _set_span(self, colspan: int, rowspan: int) -> None:
        """Record a span read from an existing document."""
        for r, c in self._covered_positions(colspan, rowspan):
            self._table.cell(r, c)._origin = self
        self._colspan = colspan
        self._rowspan = rowspan

    def __repr__(self) -> str:
        return f"<TableCell ({self._row_index}, {self._column_index}) text={self.text!r}>"


class TableRow:
    """A row of a table.

    Attributes:
        height: Row height in twips, or None
        height_rule: "auto", "atLeast" or "exact"
        is_header: Repeat the row at the top of each page
    """

    def __init__(self, table: Table, index: int) -> None:
        self._table = table
        self._index = index
        self._cells = [TableCell(table, index, col) for col in range(table.column_count)]
        self._height: int | None = None
        self.height_rule: str | None = None
        self.is_header: bool | None = None
        self._extras: list = []
        self._attributes: dict[str, str] = {}

    @property
    def index(self) -> int:
        return self._index

    @property
    def cells(self) -> list[TableCell]:
        return list(self._cells)

    def cell(self, index: int) -> TableCell:
        """Return the cell at a grid column.

        Raises:
            NotFoundError: If the column does not exist
        """
        if not 0 <= index < len(self._cells):
            raise NotFoundError("no such column", op="cell", field="column", value=index)
        return self._cells[index]

    @property
    def height(self) -> int | None:
        return self._height

    @height.setter
    def height(self, value: int | None) -> None:
        if value is not None and (
            isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_TWIPS
        ):
            raise ValidationError(
                f"row height must be between 0 and {MAX_TWIPS} twips",
                op="set_row_height",
                field="height",
                value=value,
            )
        self._height = value

    def __repr__(self) -> str:
        return f"<TableRow {self._index} cells={len(self._cells)}>"


class Table:
    """A table: grid, rows and table-level properties.

    Example:
        >>> table = doc.add_table(2, 2)
        >>> table.cell(1, 1).text = "X"
        >>> table.row(1).cell(1).paragraphs[0].text
        'X'

    Attributes:
        width: Preferred table width in twips, or None for automatic
        width_type: w:tblW type ("auto", "dxa", "pct")
        alignment: Table justification ("left", "center", "right"), or None
        column_widths: Grid column widths in twips, or None to split the
            default text width evenly
    """

    def __init__(self, context: PartContext, rows: int, cols: int, style: str | None = None) -> None:
        if rows < 1 or cols < 1:
            raise ValidationError(
                "a table needs at least one row and one column",
                op="Table",
                field="size",
                value=(rows, cols),
            )
        self._context = context
        self._column_count = cols
        self._rows: list[TableRow] = []
        self._style: str | None = None
        self.style = style
        self._width: int | None = None
        self.width_type = "auto"
        self._alignment: str | None = None
        self._column_widths: list[int] | None = None
        # w:tblLook value written when the table properties carry none
        self.look: str | None = "04A0"
        self._extras: list = []
        self._attributes: dict[str, str] = {}
        for index in range(rows):
            self._rows.append(TableRow(self, index))

    @property
    def context(self) -> PartContext:
        return self._context

    @property
    def style(self) -> str | None:
        """Table style ID (w:tblStyle)."""
        return self._style

    @style.setter
    def style(self, value: str | None) -> None:
        if value is not None and (not isinstance(value, str) or not value.strip()):
            raise ValidationError("style ID must be a non-empty string", op="set_style", field="style")
        self._style = value

    @property
    def width(self) -> int | None:
        return self._width

    @width.setter
    def width(self, value: int | None) -> None:
        self._width = _check_width("set_table_width", value)
        self.width_type = "auto" if value is None else "dxa"

    @property
    def alignment(self) -> str | None:
        return self._alignment

    @alignment.setter
    def alignment(self, value: str | None) -> None:
        if value is not None and value not in TABLE_ALIGNMENTS:
            raise ValidationError(
                "unknown table alignment", op="set_alignment", field="alignment", value=value
            )
        self._alignment = value

    @property
    def column_widths(self) -> list[int] | None:
        return list(self._column_widths) if self._column_widths is not None else None

    @column_widths.setter
    def column_widths(self, value: list[int] | None) -> None:
        if value is not None:
            if len(value) != self._column_count:
                raise ValidationError(
                    "one width per grid column is required",
                    op="set_column_widths",
                    field="column_widths",
                    value=value,
                )
            for width in value:
                _check_width("set_column_widths", width)
            value = list(value)
        self._column_widths = value

    def effective_column_widths(self) -> list[int]:
        """Grid column widths in twips, splitting the available width evenly if unset."""
        if self._column_widths is not None:
            return list(self._column_widths)
        total = self._width if self._width else DEFAULT_CONTENT_WIDTH
        base = total // self._column_count
        return [base] * self._column_count

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_count(self) -> int:
        return self._column_count

    @property
    def rows(self) -> list[TableRow]:
        return list(self._rows)

    def row(self, index: int) -> TableRow:
        """Return a row by index.

        Raises:
            NotFoundError: If the row does not exist
        """
        if not 0 <= index < len(self._rows):
            raise NotFoundError("no such row", op="row", field="row", value=index)
        return self._rows[index]

    def cell(self, row: int, col: int) -> TableCell:
        return self.row(row).cell(col)

    def add_row(self) -> TableRow:
        """Append an empty row."""
        if len(self._rows) >= MAX_TABLE_ROWS:
            raise ValidationError(
                f"a table holds at most {MAX_TABLE_ROWS} rows", op="add_row", field="rows"
            )
        row = TableRow(self, len(self._rows))
        self._rows.append(row)
        return row

    def iter_cells(self) -> Iterator[TableCell]:
        for row in self._rows:
            yield from row._cells

    @property
    def paragraphs(self) -> list[Paragraph]:
        """Every paragraph in the table's cells, row by row."""
        result = []
        for cell in self.iter_cells():
            result.extend(cell.paragraphs)
        return result

    @property
    def text(self) -> str:
        return "\n".join(cell.text for cell in self.iter_cells() if not cell.is_covered)

    def __repr__(self) -> str:
        return f"<Table {self.row_count}x{self._column_count}>"
