"""
Centralized constants for OOXML namespaces, part names and other magic values.

Import from here so that namespace URIs, relationship types, content types
and legal value ranges stay consistent across the serializer, the reader and
the validator.
"""

# =============================================================================
# Word Processing Namespaces
# =============================================================================

# Main WordprocessingML namespace (Word 2007+)
WORD_NAMESPACE = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"

# Word version-specific namespaces
W14_NAMESPACE = "http://schemas.microsoft.com/office/word/2010/wordml"  # Word 2010
W15_NAMESPACE = "http://schemas.microsoft.com/office/word/2012/wordml"  # Word 2012


# =============================================================================
# DrawingML Namespaces
# =============================================================================

# DrawingML main namespace
A_NAMESPACE = "http://schemas.openxmlformats.org/drawingml/2006/main"

# Drawing picture namespace
PIC_NAMESPACE = "http://schemas.openxmlformats.org/drawingml/2006/picture"

# Word Processing Drawing namespace (inline/anchor positioning)
WP_NAMESPACE = "http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing"


# =============================================================================
# Package and Relationship Namespaces
# =============================================================================

PACKAGE_RELATIONSHIPS_NAMESPACE = "http://schemas.openxmlformats.org/package/2006/relationships"
CONTENT_TYPES_NAMESPACE = "http://schemas.openxmlformats.org/package/2006/content-types"

OFFICE_RELATIONSHIPS_NAMESPACE = (
    "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
)

# Markup Compatibility namespace
MC_NAMESPACE = "http://schemas.openxmlformats.org/markup-compatibility/2006"

# XML namespace (xml:space)
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


# =============================================================================
# Document Properties Namespaces
# =============================================================================

CP_NAMESPACE = "http://schemas.openxmlformats.org/package/2006/metadata/core-properties"
DC_NAMESPACE = "http://purl.org/dc/elements/1.1/"
DCTERMS_NAMESPACE = "http://purl.org/dc/terms/"
DCMITYPE_NAMESPACE = "http://purl.org/dc/dcmitype/"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
EXTENDED_PROPERTIES_NAMESPACE = (
    "http://schemas.openxmlformats.org/officeDocument/2006/extended-properties"
)
VT_NAMESPACE = "http://schemas.openxmlformats.org/officeDocument/2006/docPropsVTypes"


# =============================================================================
# Namespace Maps
# =============================================================================

# Namespace map for the root of document, header and footer parts
NSMAP_DOCUMENT = {
    "w": WORD_NAMESPACE,
    "r": OFFICE_RELATIONSHIPS_NAMESPACE,
    "wp": WP_NAMESPACE,
    "a": A_NAMESPACE,
    "pic": PIC_NAMESPACE,
    "mc": MC_NAMESPACE,
    "w14": W14_NAMESPACE,
}

# Namespace map for styles.xml and settings.xml
NSMAP_PARTS = {
    "w": WORD_NAMESPACE,
    "r": OFFICE_RELATIONSHIPS_NAMESPACE,
    "mc": MC_NAMESPACE,
}

# DrawingML namespace map
NSMAP_DRAWING = {
    "wp": WP_NAMESPACE,
    "a": A_NAMESPACE,
    "pic": PIC_NAMESPACE,
    "r": OFFICE_RELATIONSHIPS_NAMESPACE,
}

NSMAP_CORE_PROPERTIES = {
    "cp": CP_NAMESPACE,
    "dc": DC_NAMESPACE,
    "dcterms": DCTERMS_NAMESPACE,
    "dcmitype": DCMITYPE_NAMESPACE,
    "xsi": XSI_NAMESPACE,
}

NSMAP_EXTENDED_PROPERTIES = {
    None: EXTENDED_PROPERTIES_NAMESPACE,
    "vt": VT_NAMESPACE,
}


# =============================================================================
# Part Names
# =============================================================================

# The package itself is the source of the root relationships (_rels/.rels)
PACKAGE_PART = ""

CONTENT_TYPES_PART = "[Content_Types].xml"
ROOT_RELS_PART = "_rels/.rels"
DOCUMENT_PART = "word/document.xml"
STYLES_PART = "word/styles.xml"
SETTINGS_PART = "word/settings.xml"
WEB_SETTINGS_PART = "word/webSettings.xml"
FONT_TABLE_PART = "word/fontTable.xml"
THEME_PART = "word/theme/theme1.xml"
CORE_PROPERTIES_PART = "docProps/core.xml"
APP_PROPERTIES_PART = "docProps/app.xml"
MEDIA_DIRECTORY = "word/media"


class RelationshipTypes:
    """Common OOXML relationship type URIs."""

    OFFICE_DOCUMENT = (
        "http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument"
    )
    CORE_PROPERTIES = (
        "http://schemas.openxmlformats.org/package/2006/relationships/metadata/core-properties"
    )
    EXTENDED_PROPERTIES = (
        "http://schemas.openxmlformats.org/officeDocument/2006/relationships/extended-properties"
    )
    STYLES = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/styles"
    SETTINGS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/settings"
    WEB_SETTINGS = (
        "http://schemas.openxmlformats.org/officeDocument/2006/relationships/webSettings"
    )
    FONT_TABLE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/fontTable"
    THEME = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/theme"
    NUMBERING = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/numbering"
    FOOTNOTES = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/footnotes"
    ENDNOTES = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/endnotes"
    COMMENTS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/comments"
    HEADER = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/header"
    FOOTER = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/footer"
    IMAGE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/image"
    HYPERLINK = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/hyperlink"


class ContentTypes:
    """Common OOXML content types."""

    RELATIONSHIPS = "application/vnd.openxmlformats-package.relationships+xml"
    XML = "application/xml"
    DOCUMENT = "application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"
    STYLES = "application/vnd.openxmlformats-officedocument.wordprocessingml.styles+xml"
    SETTINGS = "application/vnd.openxmlformats-officedocument.wordprocessingml.settings+xml"
    WEB_SETTINGS = "application/vnd.openxmlformats-officedocument.wordprocessingml.webSettings+xml"
    FONT_TABLE = "application/vnd.openxmlformats-officedocument.wordprocessingml.fontTable+xml"
    THEME = "application/vnd.openxmlformats-officedocument.theme+xml"
    HEADER = "application/vnd.openxmlformats-officedocument.wordprocessingml.header+xml"
    FOOTER = "application/vnd.openxmlformats-officedocument.wordprocessingml.footer+xml"
    CORE_PROPERTIES = "application/vnd.openxmlformats-package.core-properties+xml"
    EXTENDED_PROPERTIES = "application/vnd.openxmlformats-officedocument.extended-properties+xml"


# =============================================================================
# Legal Value Ranges
# =============================================================================

# Font size in half-points (1pt .. 1638pt)
MIN_FONT_SIZE = 2
MAX_FONT_SIZE = 3276

# Largest twips measure Word accepts for page dimensions, indents and spacing
MAX_TWIPS = 31680

# Section text columns
MIN_COLUMNS = 1
MAX_COLUMNS = 10

# Table dimensions accepted when creating tables
MAX_TABLE_COLUMNS = 63
MAX_TABLE_ROWS = 1000

# Largest extent DrawingML accepts (ST_PositiveCoordinate)
MAX_EMU = 27273042316900

# Default run properties for new documents
DEFAULT_FONT = "Calibri"
DEFAULT_FONT_SIZE = 22

# Width of the text area on a Letter page with 1" margins (6.5")
DEFAULT_CONTENT_WIDTH = 9360

# w:rsidR stamped on the empty paragraph written to hold an interior w:sectPr
# when a section does not end with a paragraph of its own
SECTION_CARRIER_RSID = "00DC0E5C"

# Paragraph justification values (ST_Jc) and friendly aliases accepted by setters
ALIGNMENT_VALUES = {
    "left", "start", "center", "right", "end", "both", "distribute", "mediumKashida",
    "highKashida", "lowKashida", "thaiDistribute", "numTab",
}  # fmt: skip
ALIGNMENT_ALIASES = {"justify": "both", "justified": "both"}


# =============================================================================
# Helper Functions
# =============================================================================


def w(tag: str) -> str:
    """Create a fully qualified Word namespace tag.

    Args:
        tag: Tag name without namespace prefix (e.g., "p", "r", "t")

    Returns:
        Fully qualified tag (e.g., "{http://...wordprocessingml/2006/main}p")

    Example:
        >>> w("p")
        '{http://schemas.openxmlformats.org/wordprocessingml/2006/main}p'
    """
    return f"{{{WORD_NAMESPACE}}}{tag}"


def a(tag: str) -> str:
    """Create a fully qualified DrawingML main namespace tag."""
    return f"{{{A_NAMESPACE}}}{tag}"


def pic(tag: str) -> str:
    """Create a fully qualified DrawingML picture namespace tag."""
    return f"{{{PIC_NAMESPACE}}}{tag}"


def wp(tag: str) -> str:
    """Create a fully qualified Word Processing Drawing namespace tag."""
    return f"{{{WP_NAMESPACE}}}{tag}"


def r(tag: str) -> str:
    """Create a fully qualified Office Relationships namespace tag.

    Args:
        tag: Tag name without namespace prefix (e.g., "embed", "id")

    Returns:
        Fully qualified tag with relationship namespace
    """
    return f"{{{OFFICE_RELATIONSHIPS_NAMESPACE}}}{tag}"


def mc(tag: str) -> str:
    """Create a fully qualified Markup Compatibility namespace tag."""
    return f"{{{MC_NAMESPACE}}}{tag}"


def xml(tag: str) -> str:
    """Create a fully qualified XML namespace tag (e.g., xml:space)."""
    return f"{{{XML_NAMESPACE}}}{tag}"


def local_name(tag: object) -> str:
    """Return the local part of a Clark-notation tag.

    Comments and processing instructions have a non-string tag; they
    map to an empty name.
    """
    if not isinstance(tag, str):
        return ""
    return tag.rpartition("}")[2]


def namespace_of(tag: object) -> str:
    """Return the namespace URI of a Clark-notation tag, or an empty string."""
    if not isinstance(tag, str) or not tag.startswith("{"):
        return ""
    return tag[1:].partition("}")[0]
