"""
docx_engine - Create, read and write OOXML word-processing documents.

This package builds .docx files from a document model (sections,
paragraphs, runs, tables, fields, headers and footers), reads existing
files back into that model and writes them again without losing the XML it
does not understand.

Example:
    >>> from docx_engine import create_document, open_document
    >>> doc = create_document()
    >>> doc.add_paragraph().add_run("Hello", bold=True)
    >>> doc.save("hello.docx")
    >>> open_document("hello.docx").paragraphs[0].runs[0].bold
    True
"""

__version__ = "0.1.0"
__all__ = [
    "Document",
    "DocumentOptions",
    "create_document",
    "open_document",
    "DocumentValidator",
    # Managers
    "IDManager",
    "RelationshipRegistry",
    "MediaManager",
    "StyleManager",
    # Model
    "Section",
    "SectionBreakType",
    "Orientation",
    "PageSize",
    "Margins",
    "Header",
    "Footer",
    "HeaderFooterType",
    "Paragraph",
    "Hyperlink",
    "Bookmark",
    "Run",
    "BreakType",
    "InlineImage",
    "Table",
    "TableRow",
    "TableCell",
    "Field",
    "FieldKind",
    "PageNumberField",
    "PageCountField",
    "TOCField",
    "HyperlinkField",
    "StyleRefField",
    "CustomField",
    "OpaqueNode",
    "Style",
    "StyleType",
    "RunFormatting",
    "ParagraphFormatting",
    "EffectiveProperties",
    "CoreProperties",
    # Errors
    "DocxEngineError",
    "ValidationError",
    "StructureError",
    "ParseError",
    "PackageError",
    "RelationshipError",
    "NotFoundError",
]

from .document import Document, create_document, open_document
from .errors import (
    DocxEngineError,
    NotFoundError,
    PackageError,
    ParseError,
    RelationshipError,
    StructureError,
    ValidationError,
)
from .ids import IDManager
from .media import MediaManager
from .models.core_properties import CoreProperties
from .models.field import (
    CustomField,
    Field,
    FieldKind,
    HyperlinkField,
    PageCountField,
    PageNumberField,
    StyleRefField,
    TOCField,
)
from .models.header_footer import Footer, Header, HeaderFooterType
from .models.opaque import OpaqueNode
from .models.paragraph import Bookmark, Hyperlink, Paragraph
from .models.run import BreakType, InlineImage, Run
from .models.section import Margins, Orientation, PageSize, Section, SectionBreakType
from .models.style import EffectiveProperties, ParagraphFormatting, RunFormatting, Style, StyleType
from .models.table import Table, TableCell, TableRow
from .options import DocumentOptions
from .relationships import RelationshipRegistry
from .styles import StyleManager
from .validation import DocumentValidator
