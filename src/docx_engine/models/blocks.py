"""
Shared plumbing for objects that hold an ordered sequence of blocks.

The document body (per section), headers, footers and table cells all own
a list of Paragraph | Table | OpaqueNode blocks. ``PartContext`` tells the
blocks which package part they will be written to and gives them the
document's managers, so images, hyperlinks and bookmarks register their
IDs and relationships in the right place.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from lxml import etree

from ..constants import MAX_TABLE_COLUMNS, MAX_TABLE_ROWS
from ..errors import ValidationError
from .opaque import OpaqueNode

if TYPE_CHECKING:
    from ..ids import IDManager
    from ..media import MediaManager
    from ..relationships import RelationshipRegistry
    from ..styles import StyleManager
    from .paragraph import Paragraph
    from .table import Table

    Block = Union[Paragraph, Table, OpaqueNode]


@dataclass
class PartContext:
    """The package part a block belongs to, plus the owning document's managers."""

    part_name: str
    ids: IDManager
    relationships: RelationshipRegistry
    media: MediaManager
    styles: StyleManager


class BlockContainer:
    """Mixin for objects owning an ordered list of blocks."""

    _blocks: list[Block]
    _context: PartContext

    def _init_blocks(self, context: PartContext) -> None:
        self._blocks = []
        self._context = context

    @property
    def context(self) -> PartContext:
        return self._context

    def _check_accepts_blocks(self, op: str) -> None:
        """Raise if blocks added here would not be written (see TableCell)."""

    @property
    def part_name(self) -> str:
        return self._context.part_name

    @property
    def blocks(self) -> list[Block]:
        """Blocks in document order (a copy; use the add/remove methods to mutate)."""
        return list(self._blocks)

    @property
    def paragraphs(self) -> list[Paragraph]:
        from .paragraph import Paragraph

        return [block for block in self._blocks if isinstance(block, Paragraph)]

    @property
    def tables(self) -> list[Table]:
        from .table import Table

        return [block for block in self._blocks if isinstance(block, Table)]

    def add_paragraph(self, text: str | None = None, style: str | None = None) -> Paragraph:
        """Append a paragraph.

        Args:
            text: Initial text, placed in a single run
            style: Paragraph style ID

        Returns:
            The new Paragraph
        """
        from .paragraph import Paragraph

        self._check_accepts_blocks("add_paragraph")
        paragraph = Paragraph(self._context, style=style)
        if text:
            paragraph.add_run(text)
        self._blocks.append(paragraph)
        return paragraph

    def add_table(self, rows: int, cols: int, style: str | None = None) -> Table:
        """Append a table of ``rows`` x ``cols`` empty cells.

        Raises:
            ValidationError: If the dimensions are outside 1..1000 rows or
                1..63 columns
        """
        from .table import Table

        self._check_accepts_blocks("add_table")
        if not isinstance(rows, int) or not 1 <= rows <= MAX_TABLE_ROWS:
            raise ValidationError(
                f"rows must be between 1 and {MAX_TABLE_ROWS}", op="add_table", field="rows", value=rows
            )
        if not isinstance(cols, int) or not 1 <= cols <= MAX_TABLE_COLUMNS:
            raise ValidationError(
                f"cols must be between 1 and {MAX_TABLE_COLUMNS}",
                op="add_table",
                field="cols",
                value=cols,
            )
        table = Table(self._context, rows, cols, style=style)
        self._blocks.append(table)
        return table

    def add_raw_block(self, element: etree._Element) -> OpaqueNode:
        """Append an XML element the model does not understand, kept verbatim."""
        self._check_accepts_blocks("add_raw_block")
        node = OpaqueNode(element)
        self._blocks.append(node)
        return node

    def remove_block(self, block: Block) -> None:
        for index, existing in enumerate(self._blocks):
            if existing is block:
                del self._blocks[index]
                return
        raise ValidationError("block does not belong to this container", op="remove_block")

    def _append_block(self, block: Block) -> None:
        self._blocks.append(block)

    def iter_blocks(self) -> Iterator[Block]:
        """Walk every block, descending into table cells."""
        from .table import Table

        for block in self._blocks:
            yield block
            if isinstance(block, Table):
                for cell in block.iter_cells():
                    yield from cell.iter_blocks()

    @property
    def text(self) -> str:
        """Text of the container's paragraphs, one per line."""
        return "\n".join(paragraph.text for paragraph in self.paragraphs)
