"""
Section model: page setup, columns, break type and the section's
headers and footers.

Each section owns the body blocks that belong to it. The document's body is
the concatenation of its sections' blocks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum

from ..constants import (
    MAX_COLUMNS,
    MAX_TWIPS,
    MIN_COLUMNS,
    RelationshipTypes,
)
from ..errors import NotFoundError, ValidationError
from ..ids import FOOTER, HEADER
from ..relationships import relative_target
from .blocks import BlockContainer, PartContext
from .header_footer import Footer, Header, HeaderFooterType

logger = logging.getLogger(__name__)


class Orientation(Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class SectionBreakType(Enum):
    """How the section starts relative to the previous one (w:type)."""

    NEXT_PAGE = "nextPage"
    CONTINUOUS = "continuous"
    EVEN_PAGE = "evenPage"
    ODD_PAGE = "oddPage"
    NEXT_COLUMN = "nextColumn"


@dataclass(frozen=True)
class PageSize:
    """Page dimensions in twips."""

    width: int
    height: int

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= MAX_TWIPS:
                raise ValidationError(
                    f"page {name} must be between 1 and {MAX_TWIPS} twips",
                    op="PageSize",
                    field=name,
                    value=value,
                )

    def swapped(self) -> PageSize:
        return PageSize(self.height, self.width)


PageSize.LETTER = PageSize(12240, 15840)  # type: ignore[attr-defined]
PageSize.LEGAL = PageSize(12240, 20160)  # type: ignore[attr-defined]
PageSize.A4 = PageSize(11906, 16838)  # type: ignore[attr-defined]


@dataclass(frozen=True)
class Margins:
    """Page margins and header/footer distances in twips (1" margins by default)."""

    top: int = 1440
    right: int = 1440
    bottom: int = 1440
    left: int = 1440
    header: int = 720
    footer: int = 720
    gutter: int = 0

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if (
                isinstance(value, bool)
                or not isinstance(value, int)
                or not -MAX_TWIPS <= value <= MAX_TWIPS
            ):
                raise ValidationError(
                    f"margin must be within +/-{MAX_TWIPS} twips",
                    op="Margins",
                    field=item.name,
                    value=value,
                )


class Section(BlockContainer):
    """A document section.

    Attributes:
        title_page: Explicit "different first page" flag read from w:titlePg.
            A FIRST header or footer turns the flag on regardless.
        column_spacing: Space between text columns in twips
    """

    def __init__(
        self,
        context: PartContext,
        break_type: SectionBreakType = SectionBreakType.NEXT_PAGE,
        page_size: PageSize | None = None,
        margins: Margins | None = None,
        orientation: Orientation | None = None,
        columns: int = 1,
    ) -> None:
        self._init_blocks(context)
        self._break_type = SectionBreakType.NEXT_PAGE
        self._page_size: PageSize = PageSize.LETTER  # type: ignore[attr-defined]
        self._margins = Margins()
        self._orientation = Orientation.PORTRAIT
        self._columns = 1
        self.column_spacing: int | None = 720
        self.title_page = False
        self._headers: dict[HeaderFooterType, Header] = {}
        self._footers: dict[HeaderFooterType, Footer] = {}
        self._extras: list = []
        self._attributes: dict[str, str] = {}
        # Unmodeled attributes of w:pgSz, w:pgMar and w:cols, keyed by local name
        self._child_attributes: dict[str, dict[str, str]] = {}

        self.break_type = break_type
        if page_size is not None:
            self.page_size = page_size
        if margins is not None:
            self.margins = margins
        if orientation is not None:
            self.orientation = orientation
        self.columns = columns

    # -------------------------------------------------------------------------
    # Page setup
    # -------------------------------------------------------------------------

    @property
    def break_type(self) -> SectionBreakType:
        return self._break_type

    @break_type.setter
    def break_type(self, value: SectionBreakType) -> None:
        if not isinstance(value, SectionBreakType):
            raise ValidationError(
                "break type must be a SectionBreakType", op="set_break_type", field="break_type", value=value
            )
        self._break_type = value

    @property
    def page_size(self) -> PageSize:
        """Page dimensions as laid out (width > height in landscape)."""
        return self._page_size

    @page_size.setter
    def page_size(self, value: PageSize) -> None:
        if not isinstance(value, PageSize):
            raise ValidationError("page size must be a PageSize", op="set_page_size", field="page_size")
        self._page_size = value

    @property
    def margins(self) -> Margins:
        return self._margins

    @margins.setter
    def margins(self, value: Margins) -> None:
        if not isinstance(value, Margins):
            raise ValidationError("margins must be a Margins instance", op="set_margins", field="margins")
        self._margins = value

    @property
    def orientation(self) -> Orientation:
        return self._orientation

    @orientation.setter
    def orientation(self, value: Orientation) -> None:
        """Set the orientation, swapping width and height to match."""
        if not isinstance(value, Orientation):
            raise ValidationError(
                "orientation must be an Orientation", op="set_orientation", field="orientation", value=value
            )
        width, height = self._page_size.width, self._page_size.height
        if (value is Orientation.LANDSCAPE and width < height) or (
            value is Orientation.PORTRAIT and width > height
        ):
            self._page_size = self._page_size.swapped()
        self._orientation = value

    @property
    def columns(self) -> int:
        return self._columns

    @columns.setter
    def columns(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or not MIN_COLUMNS <= value <= MAX_COLUMNS:
            raise ValidationError(
                f"columns must be between {MIN_COLUMNS} and {MAX_COLUMNS}",
                op="set_columns",
                field="columns",
                value=value,
            )
        self._columns = value

    # -------------------------------------------------------------------------
    # Headers and footers
    # -------------------------------------------------------------------------

    @property
    def headers(self) -> dict[HeaderFooterType, Header]:
        return dict(self._headers)

    @property
    def footers(self) -> dict[HeaderFooterType, Footer]:
        return dict(self._footers)

    @property
    def has_title_page(self) -> bool:
        """True when w:titlePg must be written for this section."""
        return (
            self.title_page
            or HeaderFooterType.FIRST in self._headers
            or HeaderFooterType.FIRST in self._footers
        )

    def _new_part_context(self, prefix: str, number: int) -> PartContext:
        part_name = f"word/{prefix}{number}.xml"
        ctx = self._context
        ctx.relationships.add_part(part_name)
        return PartContext(part_name, ctx.ids, ctx.relationships, ctx.media, ctx.styles)

    def add_header(self, kind: HeaderFooterType = HeaderFooterType.DEFAULT) -> Header:
        """Create (or return the existing) header of the given kind.

        The header lives in a new word/headerN.xml part linked from the
        main document part.
        """
        if kind in self._headers:
            return self._headers[kind]
        ctx = self._context
        context = self._new_part_context("header", ctx.ids.next_id(HEADER))
        rel_id = ctx.relationships.register(
            ctx.part_name, relative_target(ctx.part_name, context.part_name), RelationshipTypes.HEADER
        )
        header = Header(context, kind, rel_id)
        self._headers[kind] = header
        logger.debug(f"Added {kind.value} header {context.part_name} ({rel_id})")
        return header

    def add_footer(self, kind: HeaderFooterType = HeaderFooterType.DEFAULT) -> Footer:
        """Create (or return the existing) footer of the given kind."""
        if kind in self._footers:
            return self._footers[kind]
        ctx = self._context
        context = self._new_part_context("footer", ctx.ids.next_id(FOOTER))
        rel_id = ctx.relationships.register(
            ctx.part_name, relative_target(ctx.part_name, context.part_name), RelationshipTypes.FOOTER
        )
        footer = Footer(context, kind, rel_id)
        self._footers[kind] = footer
        logger.debug(f"Added {kind.value} footer {context.part_name} ({rel_id})")
        return footer

    def header(self, kind: HeaderFooterType = HeaderFooterType.DEFAULT) -> Header:
        """Return the header of the given kind.

        Raises:
            NotFoundError: If the section has no such header
        """
        try:
            return self._headers[kind]
        except KeyError as e:
            raise NotFoundError("section has no such header", op="header", field="kind", value=kind.value) from e

    def footer(self, kind: HeaderFooterType = HeaderFooterType.DEFAULT) -> Footer:
        """Return the footer of the given kind.

        Raises:
            NotFoundError: If the section has no such footer
        """
        try:
            return self._footers[kind]
        except KeyError as e:
            raise NotFoundError("section has no such footer", op="footer", field="kind", value=kind.value) from e

    def link_header(self, header: Header, kind: HeaderFooterType | None = None) -> None:
        """Attach an existing header part (shared between sections of an opened file)."""
        self._headers[kind or header.kind] = header

    def link_footer(self, footer: Footer, kind: HeaderFooterType | None = None) -> None:
        self._footers[kind or footer.kind] = footer

    def __repr__(self) -> str:
        return (
            f"<Section {self._break_type.value} {self._page_size.width}x{self._page_size.height} "
            f"columns={self._columns} blocks={len(self._blocks)}>"
        )
