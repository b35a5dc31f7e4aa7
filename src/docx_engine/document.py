"""
Document class: the root of the document graph and the public entry points
``create_document`` and ``open_document``.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from lxml import etree

from .constants import (
    APP_PROPERTIES_PART,
    CORE_PROPERTIES_PART,
    DOCUMENT_PART,
    PACKAGE_PART,
    SETTINGS_PART,
    STYLES_PART,
    ContentTypes,
    RelationshipTypes,
)
from .content_types import ContentTypeManifest
from .errors import NotFoundError
from .ids import IDManager
from .media import MediaManager
from .models.blocks import PartContext
from .models.core_properties import CoreProperties
from .models.header_footer import Footer, Header
from .models.opaque import OpaqueNode
from .models.paragraph import Paragraph
from .models.section import Margins, Orientation, PageSize, Section, SectionBreakType
from .models.table import Table
from .options import DocumentOptions
from .relationships import RelationshipRegistry
from .styles import StyleManager
from .templates import STATIC_PARTS

if TYPE_CHECKING:
    from .models.blocks import Block

logger = logging.getLogger(__name__)


class Document:
    """A word-processing document.

    Documents are created with :func:`create_document` or read with
    :func:`open_document`. Each document owns its own ID counters,
    relationship tables, media and styles; nothing is shared between
    documents.

    Example:
        >>> doc = create_document()
        >>> doc.add_paragraph("Hello", style="Heading1")
        >>> doc.save("hello.docx")
    """

    def __init__(self, options: DocumentOptions | None = None) -> None:
        self.options = options or DocumentOptions()
        self._ids = IDManager()
        self._relationships = RelationshipRegistry(self._ids)
        self._media = MediaManager(self._ids, self._relationships, dedup=self.options.dedup_media)
        self._styles = StyleManager(self.options.default_font, self.options.default_font_size)
        self._core_properties = CoreProperties(
            creator=self.options.creator, last_modified_by=self.options.creator
        )
        self._sections: list[Section] = []

        # Part names; an opened package may use different ones
        self._main_part = DOCUMENT_PART
        self._main_content_type = ContentTypes.DOCUMENT
        self._styles_part = STYLES_PART
        self._settings_part = SETTINGS_PART
        self._core_part = CORE_PROPERTIES_PART
        self._app_part = APP_PROPERTIES_PART

        # Preserved from an opened package
        self._root_nsmap: dict[str | None, str] | None = None
        self._root_attributes: dict[str, str] = {}
        self._root_extras: list[etree._Element] = []
        self._body_attributes: dict[str, str] = {}
        self._settings: etree._Element | None = None
        self._passthrough: dict[str, bytes] = {}
        self._content_types = ContentTypeManifest()

        self._relationships.add_part(PACKAGE_PART)
        self._relationships.add_part(self._main_part)

    # -------------------------------------------------------------------------
    # Construction helpers
    # -------------------------------------------------------------------------

    def _populate_new(self) -> None:
        """Set up the parts and relationships of a brand-new document."""
        registry = self._relationships
        registry.register(PACKAGE_PART, self._main_part, RelationshipTypes.OFFICE_DOCUMENT)
        registry.register(PACKAGE_PART, self._core_part, RelationshipTypes.CORE_PROPERTIES)
        registry.register(PACKAGE_PART, self._app_part, RelationshipTypes.EXTENDED_PROPERTIES)
        registry.register(self._main_part, "styles.xml", RelationshipTypes.STYLES)
        registry.register(self._main_part, "settings.xml", RelationshipTypes.SETTINGS)
        for part_name, target, rel_type, content_type, data in STATIC_PARTS:
            registry.register(self._main_part, target, rel_type)
            self._passthrough[part_name] = data
            self._content_types.add_override(part_name, content_type)

        section = Section(
            self.context(), page_size=self.options.page_size, margins=self.options.margins
        )
        self._sections.append(section)

    def context(self, part_name: str | None = None) -> PartContext:
        """Return the context blocks of ``part_name`` (default: the main part) are built with."""
        return PartContext(
            part_name or self._main_part,
            self._ids,
            self._relationships,
            self._media,
            self._styles,
        )

    # -------------------------------------------------------------------------
    # Managers
    # -------------------------------------------------------------------------

    @property
    def ids(self) -> IDManager:
        return self._ids

    @property
    def relationships(self) -> RelationshipRegistry:
        return self._relationships

    @property
    def media(self) -> MediaManager:
        return self._media

    @property
    def styles(self) -> StyleManager:
        return self._styles

    @property
    def core_properties(self) -> CoreProperties:
        return self._core_properties

    @property
    def main_part(self) -> str:
        return self._main_part

    @property
    def passthrough_parts(self) -> list[str]:
        """Names of package parts kept verbatim from an opened file."""
        return list(self._passthrough)

    # -------------------------------------------------------------------------
    # Content
    # -------------------------------------------------------------------------

    @property
    def sections(self) -> list[Section]:
        return list(self._sections)

    @property
    def blocks(self) -> list[Block]:
        """Top-level body blocks of all sections, in document order."""
        result: list[Block] = []
        for section in self._sections:
            result.extend(section.blocks)
        return result

    @property
    def paragraphs(self) -> list[Paragraph]:
        return [block for block in self.blocks if isinstance(block, Paragraph)]

    @property
    def tables(self) -> list[Table]:
        return [block for block in self.blocks if isinstance(block, Table)]

    @property
    def text(self) -> str:
        """Plain text of the body paragraphs, one per line."""
        return "\n".join(paragraph.text for paragraph in self.paragraphs)

    def add_paragraph(self, text: str | None = None, style: str | None = None) -> Paragraph:
        """Append a paragraph to the last section.

        Args:
            text: Initial text
            style: Paragraph style ID (e.g., "Heading1")
        """
        return self._sections[-1].add_paragraph(text, style=style)

    def add_table(self, rows: int, cols: int, style: str | None = None) -> Table:
        """Append a ``rows`` x ``cols`` table to the last section."""
        return self._sections[-1].add_table(rows, cols, style=style)

    def add_raw_block(self, element: etree._Element) -> OpaqueNode:
        """Append a block-level XML element that is kept verbatim."""
        return self._sections[-1].add_raw_block(element)

    def add_section(
        self,
        break_type: SectionBreakType = SectionBreakType.NEXT_PAGE,
        orientation: Orientation | None = None,
        page_size: PageSize | None = None,
        margins: Margins | None = None,
        columns: int | None = None,
    ) -> Section:
        """End the current section and start a new one.

        Page setup not given here is copied from the previous section.

        Returns:
            The new (now last) section
        """
        previous = self._sections[-1]
        section = Section(
            self.context(),
            break_type=break_type,
            page_size=page_size or previous.page_size,
            margins=margins or previous.margins,
            columns=columns if columns is not None else previous.columns,
        )
        if page_size is None:
            section._orientation = previous.orientation
        if orientation is not None:
            section.orientation = orientation
        self._sections.append(section)
        logger.debug(f"Added section {len(self._sections)} ({break_type.value})")
        return section

    def section_of(self, block: Block) -> Section:
        """Return the section a top-level block belongs to.

        Raises:
            NotFoundError: If the block is not in the body
        """
        for section in self._sections:
            if any(existing is block for existing in section._blocks):
                return section
        raise NotFoundError("block is not part of the document body", op="section_of")

    def remove_block(self, block: Block) -> None:
        self.section_of(block).remove_block(block)

    def header_footer_parts(self) -> list[Header | Footer]:
        """Every distinct header and footer used by the sections."""
        seen: dict[str, Header | Footer] = {}
        for section in self._sections:
            for part in [*section.headers.values(), *section.footers.values()]:
                seen.setdefault(part.part_name, part)
        return list(seen.values())

    # -------------------------------------------------------------------------
    # Validation and output
    # -------------------------------------------------------------------------

    def validate(self) -> None:
        """Check the document graph.

        Raises:
            ValidationError: On range, table-grid, field or bookmark problems
            RelationshipError: On a dangling relationship reference
        """
        from .validation import DocumentValidator

        DocumentValidator(self).validate()

    def save(self, target: str | Path | BinaryIO) -> None:
        """Validate and write the document as a .docx package.

        Args:
            target: File path or writable binary stream

        Raises:
            ValidationError: If validation fails; nothing is written
        """
        from .writer import PackageWriter

        if self.options.validate_on_save:
            self.validate()
        PackageWriter(self).write(target)

    def to_bytes(self) -> bytes:
        """Validate and return the .docx package as bytes."""
        buffer = io.BytesIO()
        self.save(buffer)
        return buffer.getvalue()

    def __repr__(self) -> str:
        return (
            f"<Document sections={len(self._sections)} paragraphs={len(self.paragraphs)} "
            f"tables={len(self.tables)}>"
        )


def create_document(options: DocumentOptions | None = None) -> Document:
    """Create an empty document with one Letter-size, portrait section.

    Args:
        options: Defaults for fonts, page setup and saving

    Returns:
        A new Document
    """
    document = Document(options)
    document._populate_new()
    return document


def open_document(source: str | Path | bytes | BinaryIO) -> Document:
    """Read a .docx package into a Document.

    Args:
        source: File path, raw bytes or binary stream

    Raises:
        PackageError: If the source is not a readable ZIP archive
        StructureError: If required parts are missing
        ParseError: If an XML part is malformed
    """
    from .package import Package
    from .reader import DocumentReader

    package = Package.open(source)
    return DocumentReader(package).read()
