"""
StyleManager class for managing the style catalogue of a document.

The manager starts with Word's common built-in styles and can load the
styles of an opened word/styles.xml. It validates basedOn chains, resolves
inherited formatting and serializes the whole catalogue back to w:styles.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator

from lxml import etree

from .constants import (
    DEFAULT_FONT,
    DEFAULT_FONT_SIZE,
    NSMAP_PARTS,
    WORD_NAMESPACE,
    local_name,
    namespace_of,
    w,
)
from .errors import NotFoundError, ParseError, ValidationError
from .formatting import (
    STYLE_ORDER,
    paragraph_formatting_to_element,
    parse_paragraph_formatting,
    parse_run_formatting,
    run_formatting_to_element,
    sort_children,
)
from .models.style import (
    EffectiveProperties,
    ParagraphFormatting,
    RunFormatting,
    Style,
    StyleType,
)
from .xml_text import check_xml_text

logger = logging.getLogger(__name__)

# (name, uiPriority, qFormat, semiHidden/unhideWhenUsed) entries of w:latentStyles
_LATENT_STYLES = (
    ("Normal", 0, True, False),
    ("heading 1", 9, True, False),
    *((f"heading {level}", 9, True, True) for level in range(2, 10)),
    *((f"toc {level}", 39, False, True) for level in range(1, 10)),
    ("caption", 35, True, True),
    ("Title", 10, True, False),
    ("Default Paragraph Font", 1, False, True),
    ("Subtitle", 11, True, False),
    ("Hyperlink", 99, False, True),
    ("Strong", 22, True, False),
    ("Emphasis", 20, True, False),
    ("Table Grid", 39, False, False),
    ("List Paragraph", 34, True, False),
    ("Quote", 29, True, False),
    ("TOC Heading", 39, True, True),
)

# Built-in heading sizes in half-points
_HEADING_SIZES = {1: 32, 2: 26, 3: 24, 4: 24, 5: 22, 6: 22}


def _table_normal_properties() -> etree._Element:
    tbl_pr = etree.Element(w("tblPr"))
    etree.SubElement(tbl_pr, w("tblInd"), {w("w"): "0", w("type"): "dxa"})
    margins = etree.SubElement(tbl_pr, w("tblCellMar"))
    for side, width in (("top", "0"), ("left", "108"), ("bottom", "0"), ("right", "108")):
        etree.SubElement(margins, w(side), {w("w"): width, w("type"): "dxa"})
    return tbl_pr


def _table_grid_properties() -> etree._Element:
    tbl_pr = etree.Element(w("tblPr"))
    borders = etree.SubElement(tbl_pr, w("tblBorders"))
    for side in ("top", "left", "bottom", "right", "insideH", "insideV"):
        etree.SubElement(
            borders,
            w(side),
            {w("val"): "single", w("sz"): "4", w("space"): "0", w("color"): "auto"},
        )
    return tbl_pr


def builtin_styles() -> list[Style]:
    """Return fresh copies of the built-in styles every new document starts with."""
    styles = [
        Style(
            style_id="Normal",
            name="Normal",
            quick_format=True,
            is_default=True,
        ),
        Style(
            style_id="DefaultParagraphFont",
            name="Default Paragraph Font",
            style_type=StyleType.CHARACTER,
            ui_priority=1,
            semi_hidden=True,
            unhide_when_used=True,
            is_default=True,
        ),
    ]
    for level, size in _HEADING_SIZES.items():
        styles.append(
            Style(
                style_id=f"Heading{level}",
                name=f"heading {level}",
                based_on="Normal",
                next_style="Normal",
                ui_priority=9,
                quick_format=True,
                unhide_when_used=level > 1,
                run_formatting=RunFormatting(
                    font_name="Calibri Light", font_size=size, bold=level <= 5, color="2F5496"
                ),
                paragraph_formatting=ParagraphFormatting(
                    keep_next=True,
                    keep_lines=True,
                    spacing_before=240 if level == 1 else 40,
                    spacing_after=0,
                    outline_level=level - 1,
                ),
            )
        )
    styles.extend(
        [
            Style(
                style_id="Title",
                name="Title",
                based_on="Normal",
                next_style="Normal",
                ui_priority=10,
                quick_format=True,
                run_formatting=RunFormatting(font_name="Calibri Light", font_size=56),
                paragraph_formatting=ParagraphFormatting(spacing_after=0, line_spacing=240, line_rule="auto"),
            ),
            Style(
                style_id="Subtitle",
                name="Subtitle",
                based_on="Normal",
                next_style="Normal",
                ui_priority=11,
                quick_format=True,
                run_formatting=RunFormatting(color="5A5A5A"),
                paragraph_formatting=ParagraphFormatting(spacing_after=160),
            ),
            Style(
                style_id="Quote",
                name="Quote",
                based_on="Normal",
                next_style="Normal",
                ui_priority=29,
                quick_format=True,
                run_formatting=RunFormatting(italic=True, color="404040"),
                paragraph_formatting=ParagraphFormatting(
                    alignment="center", indent_left=864, indent_right=864, spacing_before=200
                ),
            ),
            Style(
                style_id="ListParagraph",
                name="List Paragraph",
                based_on="Normal",
                ui_priority=34,
                quick_format=True,
                paragraph_formatting=ParagraphFormatting(indent_left=720),
            ),
            Style(
                style_id="Caption",
                name="caption",
                based_on="Normal",
                next_style="Normal",
                ui_priority=35,
                quick_format=True,
                unhide_when_used=True,
                run_formatting=RunFormatting(italic=True, color="44546A", font_size=18),
                paragraph_formatting=ParagraphFormatting(spacing_after=200, line_spacing=240, line_rule="auto"),
            ),
            Style(
                style_id="TOCHeading",
                name="TOC Heading",
                based_on="Heading1",
                next_style="Normal",
                ui_priority=39,
                quick_format=True,
                unhide_when_used=True,
                paragraph_formatting=ParagraphFormatting(outline_level=9),
            ),
        ]
    )
    for level in range(1, 4):
        styles.append(
            Style(
                style_id=f"TOC{level}",
                name=f"toc {level}",
                based_on="Normal",
                next_style="Normal",
                ui_priority=39,
                unhide_when_used=True,
                paragraph_formatting=ParagraphFormatting(
                    spacing_after=100, indent_left=(level - 1) * 220 or None
                ),
            )
        )
    styles.extend(
        [
            Style(
                style_id="Header",
                name="header",
                based_on="Normal",
                ui_priority=99,
                unhide_when_used=True,
                paragraph_formatting=ParagraphFormatting(spacing_after=0, line_spacing=240, line_rule="auto"),
            ),
            Style(
                style_id="Footer",
                name="footer",
                based_on="Normal",
                ui_priority=99,
                unhide_when_used=True,
                paragraph_formatting=ParagraphFormatting(spacing_after=0, line_spacing=240, line_rule="auto"),
            ),
            Style(
                style_id="Hyperlink",
                name="Hyperlink",
                style_type=StyleType.CHARACTER,
                based_on="DefaultParagraphFont",
                ui_priority=99,
                unhide_when_used=True,
                run_formatting=RunFormatting(color="0563C1", underline="single"),
            ),
            Style(
                style_id="TableNormal",
                name="Normal Table",
                style_type=StyleType.TABLE,
                ui_priority=99,
                semi_hidden=True,
                unhide_when_used=True,
                is_default=True,
                extras=[_table_normal_properties()],
            ),
            Style(
                style_id="TableGrid",
                name="Table Grid",
                style_type=StyleType.TABLE,
                based_on="TableNormal",
                ui_priority=39,
                paragraph_formatting=ParagraphFormatting(spacing_after=0, line_spacing=240, line_rule="auto"),
                extras=[_table_grid_properties()],
            ),
        ]
    )
    return styles


BUILTIN_STYLE_IDS = tuple(style.style_id for style in builtin_styles())


class StyleManager:
    """Registry of the styles of one document.

    Example:
        >>> styles = doc.styles
        >>> styles.add_style(Style("MyStyle", "My Style", based_on="Normal",
        ...                        run_formatting=RunFormatting(bold=True)))
        >>> styles.resolve("MyStyle").run.bold
        True

    Attributes:
        default_font: Font written to w:docDefaults for new documents
        default_font_size: Size (half-points) written to w:docDefaults
    """

    def __init__(self, default_font: str = DEFAULT_FONT, default_font_size: int = DEFAULT_FONT_SIZE) -> None:
        self.default_font = default_font
        self.default_font_size = default_font_size
        self._styles: dict[str, Style] = {style.style_id: style for style in builtin_styles()}
        # Preserved from an opened styles.xml
        self._nsmap: dict[str | None, str] | None = None
        self._attributes: dict[str, str] = {}
        self._doc_defaults: etree._Element | None = None
        self._latent_styles: etree._Element | None = None
        self._other_children: list[etree._Element] = []

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def get_style(self, style_id: str) -> Style:
        """Get a style by its ID.

        Raises:
            NotFoundError: If no style has this ID
        """
        try:
            return self._styles[style_id]
        except KeyError as e:
            raise NotFoundError("style not found", op="get_style", field="style_id", value=style_id) from e

    def get(self, style_id: str) -> Style | None:
        """Get a style by its ID, or None."""
        return self._styles.get(style_id)

    def get_by_name(self, name: str) -> Style | None:
        """Get a style by its display name (case-insensitive, like Word)."""
        name_lower = name.lower()
        for style in self._styles.values():
            if style.name.lower() == name_lower:
                return style
        return None

    def list(self, style_type: StyleType | None = None, include_hidden: bool = True) -> list[Style]:
        """List styles, optionally filtered by type and visibility."""
        result = []
        for style in self._styles.values():
            if style_type is not None and style.style_type != style_type:
                continue
            if not include_hidden and style.semi_hidden:
                continue
            result.append(style)
        return result

    def __contains__(self, style_id: object) -> bool:
        return style_id in self._styles

    def __iter__(self) -> Iterator[Style]:
        return iter(self._styles.values())

    def __len__(self) -> int:
        return len(self._styles)

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def _check_style(self, style: Style, op: str) -> None:
        if not isinstance(style, Style):
            raise ValidationError("expected a Style", op=op, field="style")
        if not isinstance(style.style_id, str) or not style.style_id.strip():
            raise ValidationError("style ID cannot be empty", op=op, field="style_id", value=style.style_id)
        if not style.name:
            raise ValidationError("style name cannot be empty", op=op, field="name", value=style.style_id)
        check_xml_text(style.style_id, op, "style_id")
        check_xml_text(style.name, op, "name")

    def _check_chain(self, style: Style, op: str) -> None:
        """Walk the basedOn chain of ``style`` as if it were registered.

        Raises:
            ValidationError: On a missing ancestor or a cycle
        """
        pool = dict(self._styles)
        pool[style.style_id] = style
        visited = {style.style_id}
        current = style.based_on
        while current is not None:
            if current not in pool:
                raise ValidationError(
                    "basedOn references a missing style", op=op, field="based_on", value=current
                )
            if current in visited or len(visited) > len(pool):
                raise ValidationError(
                    "basedOn chain contains a cycle", op=op, field="based_on", value=style.style_id
                )
            visited.add(current)
            current = pool[current].based_on

    def check_chains(self, op: str = "validate") -> None:
        """Check that every registered style's basedOn chain ends at a root.

        Raises:
            ValidationError: On a missing ancestor or a cycle
        """
        for style in self._styles.values():
            self._check_chain(style, op)

    def add_style(self, style: Style) -> Style:
        """Register a new style.

        Raises:
            ValidationError: On a duplicate ID, a missing basedOn ancestor
                or a basedOn cycle
        """
        self._check_style(style, "add_style")
        if style.style_id in self._styles:
            raise ValidationError(
                "style already exists", op="add_style", field="style_id", value=style.style_id
            )
        self._check_chain(style, "add_style")
        self._styles[style.style_id] = style
        logger.debug(f"Added style {style.style_id}")
        return style

    def replace_style(self, style: Style) -> Style:
        """Register ``style``, replacing any style with the same ID (e.g. a built-in)."""
        self._check_style(style, "replace_style")
        self._check_chain(style, "replace_style")
        self._styles[style.style_id] = style
        logger.debug(f"Replaced style {style.style_id}")
        return style

    def ensure_style(self, style_id: str) -> bool:
        """Make sure a built-in style is present, adding it (and its ancestors) if missing.

        Returns:
            True if the style was added

        Raises:
            NotFoundError: If the style is absent and not a built-in
        """
        if style_id in self._styles:
            return False
        builtins = {style.style_id: style for style in builtin_styles()}
        if style_id not in builtins:
            raise NotFoundError("style not found", op="ensure_style", field="style_id", value=style_id)
        style = builtins[style_id]
        if style.based_on is not None:
            self.ensure_style(style.based_on)
        self._styles[style_id] = style
        logger.debug(f"Restored built-in style {style_id}")
        return True

    def remove_style(self, style_id: str) -> None:
        """Remove a style that no other style is based on."""
        self.get_style(style_id)
        children = [s.style_id for s in self._styles.values() if s.based_on == style_id]
        if children:
            raise ValidationError(
                "other styles are based on this style", op="remove_style", field="style_id", value=children
            )
        del self._styles[style_id]

    # -------------------------------------------------------------------------
    # Inheritance
    # -------------------------------------------------------------------------

    def resolve(self, style_id: str) -> EffectiveProperties:
        """Resolve the formatting a style applies, following its basedOn chain.

        The chain is merged from the root ancestor down to ``style_id``; the
        leaf-most property that is set wins.

        Raises:
            NotFoundError: If the style does not exist
        """
        chain = [self.get_style(style_id)]
        visited = {style_id}
        parent = chain[0].based_on
        while parent is not None and parent in self._styles and parent not in visited:
            visited.add(parent)
            chain.append(self._styles[parent])
            parent = self._styles[parent].based_on
        if parent is not None and parent not in visited:
            logger.warning(f"Style {style_id} inherits from missing style {parent}")

        run = RunFormatting()
        paragraph = ParagraphFormatting()
        for style in reversed(chain):
            run = run.merged_with(style.run_formatting)
            paragraph = paragraph.merged_with(style.paragraph_formatting)
        return EffectiveProperties(run=run, paragraph=paragraph)

    # -------------------------------------------------------------------------
    # XML conversion
    # -------------------------------------------------------------------------

    def _style_to_element(self, style: Style) -> etree._Element:
        """Convert a Style object to a w:style XML element."""
        style_elem = etree.Element(w("style"))
        style_elem.set(w("type"), style.style_type.value)
        if style.is_default:
            style_elem.set(w("default"), "1")
        if style.custom:
            style_elem.set(w("customStyle"), "1")
        style_elem.set(w("styleId"), style.style_id)

        etree.SubElement(style_elem, w("name")).set(w("val"), style.name)
        if style.based_on:
            etree.SubElement(style_elem, w("basedOn")).set(w("val"), style.based_on)
        if style.next_style:
            etree.SubElement(style_elem, w("next")).set(w("val"), style.next_style)
        if style.linked_style:
            etree.SubElement(style_elem, w("link")).set(w("val"), style.linked_style)
        if style.ui_priority is not None:
            etree.SubElement(style_elem, w("uiPriority")).set(w("val"), str(style.ui_priority))
        if style.semi_hidden:
            etree.SubElement(style_elem, w("semiHidden"))
        if style.unhide_when_used:
            etree.SubElement(style_elem, w("unhideWhenUsed"))
        if style.quick_format:
            etree.SubElement(style_elem, w("qFormat"))

        ppr = paragraph_formatting_to_element(style.paragraph_formatting)
        if ppr is not None:
            style_elem.append(ppr)
        rpr = run_formatting_to_element(style.run_formatting)
        if rpr is not None:
            style_elem.append(rpr)
        for extra in style.extras:
            style_elem.append(copy.deepcopy(extra))

        return sort_children(style_elem, STYLE_ORDER)

    def _doc_defaults_element(self) -> etree._Element:
        doc_defaults = etree.Element(w("docDefaults"))
        rpr = etree.SubElement(etree.SubElement(doc_defaults, w("rPrDefault")), w("rPr"))
        fonts = etree.SubElement(rpr, w("rFonts"))
        for attr in ("ascii", "eastAsia", "hAnsi", "cs"):
            fonts.set(w(attr), self.default_font)
        etree.SubElement(rpr, w("sz")).set(w("val"), str(self.default_font_size))
        etree.SubElement(rpr, w("szCs")).set(w("val"), str(self.default_font_size))
        lang = etree.SubElement(rpr, w("lang"))
        lang.set(w("val"), "en-US")
        lang.set(w("eastAsia"), "en-US")
        lang.set(w("bidi"), "ar-SA")

        ppr = etree.SubElement(etree.SubElement(doc_defaults, w("pPrDefault")), w("pPr"))
        spacing = etree.SubElement(ppr, w("spacing"))
        spacing.set(w("after"), "160")
        spacing.set(w("line"), "259")
        spacing.set(w("lineRule"), "auto")
        return doc_defaults

    def _latent_styles_element(self) -> etree._Element:
        latent = etree.Element(w("latentStyles"))
        latent.set(w("defLockedState"), "0")
        latent.set(w("defUIPriority"), "99")
        latent.set(w("defSemiHidden"), "0")
        latent.set(w("defUnhideWhenUsed"), "0")
        latent.set(w("defQFormat"), "0")
        latent.set(w("count"), "376")
        for name, priority, quick, hidden in _LATENT_STYLES:
            exception = etree.SubElement(latent, w("lsdException"))
            exception.set(w("name"), name)
            if hidden:
                exception.set(w("semiHidden"), "1")
                exception.set(w("unhideWhenUsed"), "1")
            exception.set(w("uiPriority"), str(priority))
            if quick:
                exception.set(w("qFormat"), "1")
        return latent

    def to_element(self) -> etree._Element:
        """Build the w:styles root for word/styles.xml."""
        root = etree.Element(w("styles"), nsmap=self._nsmap or NSMAP_PARTS)
        for key, value in self._attributes.items():
            root.set(key, value)
        if self._doc_defaults is not None:
            root.append(copy.deepcopy(self._doc_defaults))
        else:
            root.append(self._doc_defaults_element())
        if self._latent_styles is not None:
            root.append(copy.deepcopy(self._latent_styles))
        else:
            root.append(self._latent_styles_element())
        for style in self._styles.values():
            root.append(self._style_to_element(style))
        for child in self._other_children:
            root.append(copy.deepcopy(child))
        return root

    def _element_to_style(self, element: etree._Element) -> Style | None:
        """Convert a w:style XML element to a Style object.

        Unmodeled children (w:aliases, w:tblPr, w:tblStylePr, ...) are kept
        in ``Style.extras``.
        """
        style_id = element.get(w("styleId"))
        if not style_id:
            logger.warning("Skipping style element without styleId attribute")
            return None

        style_type_str = element.get(w("type"), "paragraph")
        try:
            style_type = StyleType(style_type_str)
        except ValueError:
            logger.warning(f"Unknown style type '{style_type_str}' for {style_id}")
            style_type = StyleType.PARAGRAPH

        style = Style(
            style_id=style_id,
            name=style_id,
            style_type=style_type,
            is_default=element.get(w("default")) in ("1", "true", "on"),
            custom=element.get(w("customStyle")) in ("1", "true", "on"),
        )
        for child in element:
            name = local_name(child.tag)
            if namespace_of(child.tag) != WORD_NAMESPACE:
                style.extras.append(copy.deepcopy(child))
            elif name == "name":
                style.name = child.get(w("val"), style_id)
            elif name == "basedOn":
                style.based_on = child.get(w("val"))
            elif name == "next":
                style.next_style = child.get(w("val"))
            elif name == "link":
                style.linked_style = child.get(w("val"))
            elif name == "uiPriority":
                try:
                    style.ui_priority = int(child.get(w("val"), "99"))
                except ValueError:
                    style.ui_priority = 99
            elif name == "qFormat":
                style.quick_format = True
            elif name == "semiHidden":
                style.semi_hidden = True
            elif name == "unhideWhenUsed":
                style.unhide_when_used = True
            elif name == "rPr":
                style.run_formatting = parse_run_formatting(child)
            elif name == "pPr":
                _, style.paragraph_formatting, _ = parse_paragraph_formatting(child)
            else:
                style.extras.append(copy.deepcopy(child))
        return style

    def load(self, root: etree._Element) -> None:
        """Replace the catalogue with the styles of an opened word/styles.xml."""
        self._styles.clear()
        self._nsmap = dict(root.nsmap)
        self._attributes = dict(root.attrib)
        self._doc_defaults = None
        self._latent_styles = None
        self._other_children = []

        for child in root:
            name = local_name(child.tag)
            is_word = namespace_of(child.tag) == WORD_NAMESPACE
            if is_word and name == "docDefaults":
                self._doc_defaults = copy.deepcopy(child)
            elif is_word and name == "latentStyles":
                self._latent_styles = copy.deepcopy(child)
            elif is_word and name == "style":
                style = self._element_to_style(child)
                if style is not None:
                    self._styles[style.style_id] = style
                    logger.debug(f"Parsed style: {style.style_id}")
            elif isinstance(child.tag, str):
                self._other_children.append(copy.deepcopy(child))

        if self._doc_defaults is None:
            # Keep the opened document's look: no docDefaults means Word's own defaults
            self._doc_defaults = etree.Element(w("docDefaults"))
        try:
            self.check_chains("open")
        except ValidationError as e:
            raise ParseError(e.message, op="open", field=e.field, value=e.value) from e
