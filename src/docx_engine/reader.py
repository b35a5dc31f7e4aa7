"""
DocumentReader: rebuilds a Document graph from an opened Package.

Paragraphs, runs (text, tabs, breaks, fields, inline pictures), hyperlinks,
whole-paragraph bookmarks, tables, sections, headers and footers become live
objects. Any element the model cannot represent exactly is kept as an
OpaqueNode, and package parts the model does not own are carried through as
raw bytes, so an open/save cycle does not lose content.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable

from lxml import etree

from .constants import (
    APP_PROPERTIES_PART,
    CONTENT_TYPES_PART,
    CORE_PROPERTIES_PART,
    DOCUMENT_PART,
    MAX_COLUMNS,
    MAX_EMU,
    MAX_TABLE_COLUMNS,
    MAX_TABLE_ROWS,
    MAX_TWIPS,
    MIN_COLUMNS,
    PACKAGE_PART,
    SECTION_CARRIER_RSID,
    SETTINGS_PART,
    STYLES_PART,
    WORD_NAMESPACE,
    ContentTypes,
    RelationshipTypes,
    a,
    local_name,
    namespace_of,
    r,
    w,
    wp,
)
from .document import Document
from .errors import StructureError
from .formatting import parse_bool, parse_int, parse_paragraph_formatting, parse_run_formatting
from .ids import BOOKMARK, DRAWING, FOOTER, HEADER
from .models.blocks import BlockContainer, PartContext
from .models.core_properties import CoreProperties
from .models.field import Field, parse_instruction
from .models.header_footer import Footer, Header, HeaderFooterType
from .models.opaque import OpaqueNode
from .models.paragraph import Bookmark, Hyperlink, Paragraph
from .models.run import BreakType, InlineImage, Run
from .models.section import Margins, Orientation, PageSize, Section, SectionBreakType
from .models.table import HEIGHT_RULES, TABLE_ALIGNMENTS, VERTICAL_ALIGNMENTS, Table, TableCell, TableRow
from .package import Package
from .relationships import rels_part_name, relative_target, resolve_target

logger = logging.getLogger(__name__)

_PART_NUMBER = re.compile(r"(\d+)\.xml$")
_HEX_COLOR = re.compile(r"^[0-9A-Fa-f]{6}$")
_TRUE_VALUES = ("true", "1", "on")

# Run children that carry no content of their own
_IGNORED_RUN_CHILDREN = {"rPr", "lastRenderedPageBreak"}

Append = Callable[[object], None]


def _is_w(elem: etree._Element, name: str) -> bool:
    return isinstance(elem.tag, str) and namespace_of(elem.tag) == WORD_NAMESPACE and local_name(elem.tag) == name


def _rpr_key(run_elem: etree._Element) -> bytes:
    rpr = run_elem.find(w("rPr"))
    return etree.tostring(rpr) if rpr is not None else b""


def _twips(value: str | None, minimum: int) -> int | None:
    number = parse_int(value)
    if number is None or not minimum <= number <= MAX_TWIPS:
        return None
    return number


class _PendingField:
    """Collects the runs of a complex field from ``begin`` to the matching ``end``.

    The field becomes a single field Run only when it is a plain
    instruction/result pair whose runs share one set of formatting; anything
    more elaborate (nested fields, pictures or bookmarks inside the result,
    form-field data) is written back verbatim.
    """

    def __init__(self, first_run: etree._Element) -> None:
        self.elements: list[etree._Element] = []
        self.depth = 0
        self.instruction = ""
        self.result = ""
        self.in_result = False
        self.dirty = False
        self.broken = False
        self.done = False
        self.first_run = first_run
        self._rpr = _rpr_key(first_run)

    def feed(self, elem: etree._Element) -> None:
        self.elements.append(elem)
        if not _is_w(elem, "r"):
            self.broken = True
            return
        if _rpr_key(elem) != self._rpr:
            self.broken = True
        for child in elem:
            name = local_name(child.tag)
            if not isinstance(child.tag, str) or namespace_of(child.tag) != WORD_NAMESPACE:
                self.broken = True
            elif name in _IGNORED_RUN_CHILDREN:
                continue
            elif self.done:
                # Content after the closing fldChar in the same run
                self.broken = True
            elif name == "fldChar":
                self._field_char(child)
            elif self.depth != 1:
                self.broken = True
            elif name == "instrText" and not self.in_result:
                self.instruction += child.text or ""
            elif name == "t" and self.in_result:
                self.result += child.text or ""
            elif name == "tab" and self.in_result:
                self.result += "\t"
            elif name == "br" and self.in_result and not child.attrib:
                self.result += "\n"
            else:
                self.broken = True

    def _field_char(self, elem: etree._Element) -> None:
        if len(elem) or set(elem.attrib) - {w("fldCharType"), w("dirty")}:
            self.broken = True
        kind = elem.get(w("fldCharType"))
        if kind == "begin":
            self.depth += 1
            if self.depth == 1:
                self.dirty = (elem.get(w("dirty")) or "").lower() in _TRUE_VALUES
            else:
                self.broken = True
        elif kind == "separate":
            if self.depth == 1:
                if self.in_result:
                    self.broken = True
                self.in_result = True
        elif kind == "end":
            self.depth -= 1
            if self.depth <= 0:
                self.done = True
        else:
            self.broken = True

    def finish(self) -> list[Run | OpaqueNode]:
        instruction = self.instruction.strip()
        if not self.done or self.broken or not instruction or self.depth < 0:
            return [OpaqueNode(elem) for elem in self.elements]
        field = Field(parse_instruction(instruction), result=self.result, dirty=self.dirty)
        run = Run(field=field, formatting=parse_run_formatting(self.first_run.find(w("rPr"))))
        run._attributes = dict(self.first_run.attrib)
        return [run]


class DocumentReader:
    """Build a Document from a Package.

    Example:
        >>> document = DocumentReader(Package.open("report.docx")).read()
    """

    def __init__(self, package: Package) -> None:
        self._package = package
        self._document = Document()
        self._headers: dict[str, Header | Footer] = {}
        self._consumed: set[str] = {CONTENT_TYPES_PART}
        self._parsed: list[etree._Element] = []

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def read(self) -> Document:
        """Reconstruct the document.

        Raises:
            ParseError: If a part is malformed
            StructureError: If the main part has no w:body
        """
        package = self._package
        doc = self._document
        main_part = package.main_part_name
        registry = doc.relationships

        doc._content_types = package.content_types
        if main_part != DOCUMENT_PART:
            registry.remove_part(DOCUMENT_PART)
            registry.add_part(main_part)
        doc._main_part = main_part
        doc._main_content_type = package.content_types.override_for(main_part) or ContentTypes.DOCUMENT

        registry.load(PACKAGE_PART, package.root_relationships)
        self._consumed.update({main_part, rels_part_name(PACKAGE_PART)})
        self._load_part_relationships(main_part)

        self._read_package_properties()
        self._read_styles_and_settings()
        self._read_main_part()
        self._reseed_ids()
        self._collect_passthrough()
        logger.debug(
            f"Read document: {len(doc.sections)} section(s), {len(doc.blocks)} block(s), "
            f"{len(doc.media)} media asset(s), {len(doc._passthrough)} preserved part(s)"
        )
        return doc

    # -------------------------------------------------------------------------
    # Relationships, media and metadata parts
    # -------------------------------------------------------------------------

    def _load_part_relationships(self, part_name: str) -> None:
        """Load a part's .rels (if any) and register the images it references."""
        registry = self._document.relationships
        rels_name = rels_part_name(part_name)
        root = self._package.get_part(rels_name)
        table = registry.add_part(part_name)
        if root is not None:
            registry.load(part_name, root)
            self._consumed.add(rels_name)

        for relationship in table.find(RelationshipTypes.IMAGE):
            if relationship.external:
                continue
            path = resolve_target(part_name, relationship.target)
            if not self._package.part_exists(path):
                logger.warning(f"Image relationship {relationship.rel_id} of {part_name} targets missing {path}")
                continue
            asset = self._document.media.register_existing(
                path, self._package.get_bytes(path), self._package.content_types.content_type_for(path)
            )
            self._document.media.bind(asset.media_id, part_name, relationship.rel_id)
            self._consumed.add(path)

    def _target_of(self, part_name: str, rel_type: str) -> str | None:
        table = self._document.relationships.table(part_name)
        for relationship in table.find(rel_type):
            if not relationship.external:
                return resolve_target(part_name, relationship.target)
        return None

    def _ensure_relationship(self, part_name: str, target_part: str, rel_type: str) -> None:
        self._document.relationships.register(part_name, relative_target(part_name, target_part), rel_type)

    def _read_package_properties(self) -> None:
        doc = self._document
        core_part = self._target_of(PACKAGE_PART, RelationshipTypes.CORE_PROPERTIES)
        if core_part is None:
            core_part = CORE_PROPERTIES_PART
            self._ensure_relationship(PACKAGE_PART, core_part, RelationshipTypes.CORE_PROPERTIES)
        doc._core_part = core_part
        root = self._package.get_part(core_part)
        doc._core_properties = CoreProperties.from_element(root) if root is not None else CoreProperties()
        self._consumed.add(core_part)

        app_part = self._target_of(PACKAGE_PART, RelationshipTypes.EXTENDED_PROPERTIES)
        if app_part is None:
            app_part = APP_PROPERTIES_PART
            self._ensure_relationship(PACKAGE_PART, app_part, RelationshipTypes.EXTENDED_PROPERTIES)
        if self._package.part_exists(app_part):
            # Statistics are regenerated on save; the part still has to be well-formed
            self._package.get_part(app_part)
        doc._app_part = app_part
        self._consumed.add(app_part)

    def _read_styles_and_settings(self) -> None:
        doc = self._document
        main_part = doc._main_part

        styles_part = self._target_of(main_part, RelationshipTypes.STYLES)
        if styles_part is None:
            styles_part = STYLES_PART
            self._ensure_relationship(main_part, styles_part, RelationshipTypes.STYLES)
        root = self._package.get_part(styles_part)
        if root is not None:
            doc.styles.load(root)
        doc._styles_part = styles_part
        self._consumed.add(styles_part)

        settings_part = self._target_of(main_part, RelationshipTypes.SETTINGS)
        if settings_part is None:
            settings_part = SETTINGS_PART
            self._ensure_relationship(main_part, settings_part, RelationshipTypes.SETTINGS)
        doc._settings = self._package.get_part(settings_part)
        doc._settings_part = settings_part
        self._consumed.add(settings_part)

    # -------------------------------------------------------------------------
    # Main part and sections
    # -------------------------------------------------------------------------

    def _read_main_part(self) -> None:
        doc = self._document
        root = self._package.get_part(doc._main_part)
        self._parsed.append(root)
        body = root.find(w("body"))
        if body is None:
            raise StructureError("main document part has no w:body", op="open", field=doc._main_part)

        doc._root_nsmap = dict(root.nsmap)
        doc._root_attributes = dict(root.attrib)
        doc._root_extras = [child for child in root if child is not body]
        doc._body_attributes = dict(body.attrib)

        context = doc.context()
        section = Section(context)
        final_sect_pr = None
        for child in body:
            if _is_w(child, "sectPr"):
                final_sect_pr = child
                continue
            if _is_w(child, "p"):
                paragraph, sect_pr = self._read_paragraph(child, context)
                if sect_pr is None:
                    section._append_block(paragraph)
                    continue
                blocks = section._blocks
                is_carrier = self._is_carrier(paragraph, child) and not (
                    blocks and isinstance(blocks[-1], Paragraph)
                )
                if not is_carrier:
                    section._append_block(paragraph)
                self._configure_section(section, sect_pr)
                doc._sections.append(section)
                section = Section(context)
                continue
            section._append_block(self._read_block(child, context))

        if final_sect_pr is not None:
            self._configure_section(section, final_sect_pr)
        else:
            logger.warning("Body has no final w:sectPr; using default page setup")
        doc._sections.append(section)

    @staticmethod
    def _is_carrier(paragraph: Paragraph, elem: etree._Element) -> bool:
        """True for the empty paragraph written only to hold a w:sectPr.

        Only paragraphs stamped with the carrier rsid qualify; an empty
        paragraph written by anyone else stays part of the section.
        """
        ppr = elem.find(w("pPr"))
        return (
            not paragraph.content
            and paragraph.bookmark is None
            and paragraph.style is None
            and paragraph._attributes == {w("rsidR"): SECTION_CARRIER_RSID}
            and ppr is not None
            and len(ppr) == 1
            and len(elem) == 1
        )

    def _configure_section(self, section: Section, sect_pr: etree._Element) -> None:
        section._attributes = dict(sect_pr.attrib)
        main_part = self._document._main_part
        defaults = Margins()

        for child in sect_pr:
            name = local_name(child.tag)
            if not isinstance(child.tag, str) or namespace_of(child.tag) != WORD_NAMESPACE:
                section._extras.append(child)
            elif name in ("headerReference", "footerReference"):
                if not self._link_header_footer(section, child, main_part):
                    section._extras.append(child)
            elif name == "type":
                try:
                    section.break_type = SectionBreakType(child.get(w("val")))
                except ValueError:
                    section._extras.append(child)
            elif name == "pgSz":
                width = _twips(child.get(w("w")), 1)
                height = _twips(child.get(w("h")), 1)
                if width is None or height is None:
                    logger.warning("Page size is missing or out of range; using Letter")
                else:
                    section.page_size = PageSize(width, height)
                if child.get(w("orient")) == "landscape":
                    section._orientation = Orientation.LANDSCAPE
                section._child_attributes["pgSz"] = {
                    key: value for key, value in child.attrib.items() if key not in (w("w"), w("h"), w("orient"))
                }
            elif name == "pgMar":
                values = {}
                for item in ("top", "right", "bottom", "left", "header", "footer", "gutter"):
                    value = _twips(child.get(w(item)), -MAX_TWIPS)
                    values[item] = value if value is not None else getattr(defaults, item)
                section.margins = Margins(**values)
                section._child_attributes["pgMar"] = {
                    key: value
                    for key, value in child.attrib.items()
                    if not (namespace_of(key) == WORD_NAMESPACE and local_name(key) in values)
                }
            elif name == "cols":
                num = parse_int(child.get(w("num")))
                if len(child) or (num is not None and not MIN_COLUMNS <= num <= MAX_COLUMNS):
                    section._extras.append(child)
                    continue
                section.columns = num or 1
                section.column_spacing = _twips(child.get(w("space")), 0)
                section._child_attributes["cols"] = {
                    key: value for key, value in child.attrib.items() if key not in (w("num"), w("space"))
                }
            elif name == "titlePg":
                section.title_page = bool(parse_bool(sect_pr, "titlePg"))
            else:
                section._extras.append(child)

        if sect_pr.find(w("cols")) is None:
            section.column_spacing = None

    def _link_header_footer(self, section: Section, ref: etree._Element, main_part: str) -> bool:
        is_header = local_name(ref.tag) == "headerReference"
        rel_id = ref.get(r("id"))
        try:
            kind = HeaderFooterType(ref.get(w("type"), "default"))
        except ValueError:
            return False
        existing = section.headers if is_header else section.footers
        registry = self._document.relationships
        if kind in existing or not rel_id or not registry.has(main_part, rel_id):
            logger.warning(f"Keeping unresolved {local_name(ref.tag)} {rel_id!r} as is")
            return False
        relationship = registry.get(main_part, rel_id)
        part_name = resolve_target(main_part, relationship.target)
        if relationship.external or not self._package.part_exists(part_name):
            logger.warning(f"{local_name(ref.tag)} {rel_id} targets missing part {part_name}")
            return False

        part = self._headers.get(part_name)
        if part is None:
            part = self._read_header_footer(part_name, kind, rel_id, is_header)
            if part is None:
                return False
        elif isinstance(part, Header) != is_header:
            return False
        if is_header:
            section.link_header(part, kind)
        else:
            section.link_footer(part, kind)
        return True

    def _read_header_footer(
        self, part_name: str, kind: HeaderFooterType, rel_id: str, is_header: bool
    ) -> Header | Footer | None:
        root = self._package.get_part(part_name)
        if not _is_w(root, "hdr" if is_header else "ftr"):
            logger.warning(f"{part_name} is not a {'header' if is_header else 'footer'} part")
            return None
        self._parsed.append(root)
        self._load_part_relationships(part_name)
        context = self._document.context(part_name)
        part: Header | Footer = (Header if is_header else Footer)(context, kind, rel_id)
        part._nsmap = dict(root.nsmap)
        part._attributes = dict(root.attrib)
        self._read_blocks(root, part, context)
        self._headers[part_name] = part
        self._consumed.add(part_name)
        logger.debug(f"Read {part_name} ({len(part.blocks)} block(s))")
        return part

    # -------------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------------

    def _read_blocks(self, parent: etree._Element, container: BlockContainer, context: PartContext) -> None:
        for child in parent:
            if _is_w(child, "p"):
                paragraph, sect_pr = self._read_paragraph(child, context)
                if sect_pr is not None:
                    # A section break outside the body cannot be modeled
                    container._append_block(OpaqueNode(child))
                else:
                    container._append_block(paragraph)
            elif _is_w(child, "tcPr"):
                continue
            else:
                container._append_block(self._read_block(child, context))

    def _read_block(self, elem: etree._Element, context: PartContext) -> Table | OpaqueNode:
        if _is_w(elem, "tbl"):
            table = self._read_table(elem, context)
            if table is not None:
                return table
            logger.debug("Keeping irregular table as raw XML")
        return OpaqueNode(elem)

    # -------------------------------------------------------------------------
    # Paragraphs and runs
    # -------------------------------------------------------------------------

    def _read_paragraph(
        self, elem: etree._Element, context: PartContext
    ) -> tuple[Paragraph, etree._Element | None]:
        paragraph = Paragraph(context)
        paragraph._attributes = dict(elem.attrib)
        style_id, formatting, sect_pr = parse_paragraph_formatting(elem.find(w("pPr")))
        if style_id:
            paragraph.style = style_id
        paragraph.formatting = formatting

        children = [child for child in elem if not _is_w(child, "pPr")]
        bookmark = self._whole_paragraph_bookmark(children)
        if bookmark is not None:
            paragraph._set_bookmark(bookmark)
            children = children[1:-1]

        self._read_inline(children, paragraph._append_content, context, allow_hyperlinks=True)
        return paragraph, sect_pr

    @staticmethod
    def _whole_paragraph_bookmark(children: list[etree._Element]) -> Bookmark | None:
        if len(children) < 2:
            return None
        start, end = children[0], children[-1]
        if not (_is_w(start, "bookmarkStart") and _is_w(end, "bookmarkEnd")):
            return None
        if set(start.attrib) != {w("id"), w("name")} or set(end.attrib) != {w("id")}:
            return None
        bookmark_id = parse_int(start.get(w("id")))
        if bookmark_id is None or start.get(w("id")) != end.get(w("id")) or not start.get(w("name")):
            return None
        for child in children[1:-1]:
            if (_is_w(child, "bookmarkStart") or _is_w(child, "bookmarkEnd")) and child.get(w("id")) == start.get(
                w("id")
            ):
                return None
        return Bookmark(bookmark_id, start.get(w("name")))

    def _read_inline(
        self,
        children: Iterable[etree._Element],
        append: Append,
        context: PartContext,
        allow_hyperlinks: bool,
    ) -> None:
        """Read paragraph (or hyperlink) content, folding complex fields into field runs."""
        pending: _PendingField | None = None
        for child in children:
            if pending is not None:
                pending.feed(child)
                if pending.done:
                    for item in pending.finish():
                        append(item)
                    pending = None
                continue

            if _is_w(child, "r"):
                if child.find(w("fldChar")) is not None or child.find(w("instrText")) is not None:
                    first = next((c for c in child if local_name(c.tag) in ("fldChar", "instrText")), None)
                    if _is_w(first, "fldChar") and first.get(w("fldCharType")) == "begin":
                        pending = _PendingField(child)
                        pending.feed(child)
                        if pending.done:
                            for item in pending.finish():
                                append(item)
                            pending = None
                    else:
                        append(OpaqueNode(child))
                    continue
                for item in self._read_run(child, context):
                    append(item)
            elif _is_w(child, "hyperlink") and allow_hyperlinks:
                append(self._read_hyperlink(child, context))
            elif _is_w(child, "fldSimple"):
                append(self._read_simple_field(child))
            else:
                append(OpaqueNode(child))

        if pending is not None:
            # Field continues past this paragraph (e.g., a table of contents)
            for elem in pending.elements:
                append(OpaqueNode(elem))

    def _read_run(self, elem: etree._Element, context: PartContext) -> list[Run | OpaqueNode]:
        """Read a w:r into one or more runs; a run the model cannot express stays raw."""
        rpr = elem.find(w("rPr"))
        pieces: list[tuple[str, object]] = []
        text = ""
        for child in elem:
            if not isinstance(child.tag, str) or namespace_of(child.tag) != WORD_NAMESPACE:
                return [OpaqueNode(elem)]
            name = local_name(child.tag)
            if name in _IGNORED_RUN_CHILDREN:
                continue
            if name == "t":
                text += child.text or ""
            elif name == "tab" and not child.attrib:
                text += "\t"
            elif name == "br" and set(child.attrib) <= {w("type")}:
                br_type = child.get(w("type"), BreakType.LINE.value)
                if br_type == BreakType.LINE.value:
                    text += "\n"
                    continue
                if text:
                    pieces.append(("text", text))
                    text = ""
                try:
                    pieces.append(("break", BreakType(br_type)))
                except ValueError:
                    return [OpaqueNode(elem)]
            elif name == "drawing":
                image = self._read_inline_image(child, context)
                if image is None:
                    return [OpaqueNode(elem)]
                if text:
                    pieces.append(("text", text))
                    text = ""
                pieces.append(("image", image))
            else:
                return [OpaqueNode(elem)]
        if text or not pieces:
            pieces.append(("text", text))

        runs: list[Run | OpaqueNode] = []
        for kind, payload in pieces:
            formatting = parse_run_formatting(rpr)
            if kind == "text":
                run = Run(payload, formatting=formatting)
            elif kind == "break":
                run = Run(break_type=payload, formatting=formatting)
            else:
                run = Run(image=payload, formatting=formatting)
            run._attributes = dict(elem.attrib)
            runs.append(run)
        return runs

    def _read_inline_image(self, drawing: etree._Element, context: PartContext) -> InlineImage | None:
        inline = drawing.find(wp("inline"))
        if inline is None or len(drawing) != 1:
            return None
        extent = inline.find(wp("extent"))
        doc_pr = inline.find(wp("docPr"))
        blips = list(drawing.iter(a("blip")))
        if extent is None or doc_pr is None or len(blips) != 1:
            return None
        rel_id = blips[0].get(r("embed"))
        width = parse_int(extent.get("cx"))
        height = parse_int(extent.get("cy"))
        drawing_id = parse_int(doc_pr.get("id"))
        if not rel_id or width is None or height is None or drawing_id is None:
            return None
        if not (1 <= width <= MAX_EMU and 1 <= height <= MAX_EMU):
            return None

        registry = self._document.relationships
        if not registry.has(context.part_name, rel_id):
            return None
        relationship = registry.get(context.part_name, rel_id)
        if relationship.external:
            return None
        asset = self._document.media.by_path(resolve_target(context.part_name, relationship.target))
        if asset is None:
            return None
        return InlineImage(
            media_id=asset.media_id,
            rel_id=rel_id,
            width_emu=width,
            height_emu=height,
            drawing_id=drawing_id,
            name=doc_pr.get("name", ""),
            description=doc_pr.get("descr", ""),
            source=drawing,
        )

    def _read_hyperlink(self, elem: etree._Element, context: PartContext) -> Hyperlink:
        rel_id = elem.get(r("id"))
        url = None
        registry = self._document.relationships
        if rel_id and registry.has(context.part_name, rel_id):
            url = registry.get(context.part_name, rel_id).target
        elif rel_id:
            logger.warning(f"Hyperlink {rel_id} has no relationship in {context.part_name}")
        hyperlink = Hyperlink(rel_id=rel_id, url=url, anchor=elem.get(w("anchor")))
        hyperlink._attributes = {
            key: value for key, value in elem.attrib.items() if key not in (r("id"), w("anchor"))
        }
        self._read_inline(list(elem), hyperlink.append, context, allow_hyperlinks=False)
        return hyperlink

    def _read_simple_field(self, elem: etree._Element) -> Run | OpaqueNode:
        """Turn a w:fldSimple into a field run when its result is plain text."""
        instruction = (elem.get(w("instr")) or "").strip()
        runs = list(elem)
        if not instruction or set(elem.attrib) - {w("instr"), w("dirty")}:
            return OpaqueNode(elem)
        if any(not _is_w(run, "r") for run in runs) or len({_rpr_key(run) for run in runs}) > 1:
            return OpaqueNode(elem)
        result = ""
        for run in runs:
            for child in run:
                if _is_w(child, "t"):
                    result += child.text or ""
                elif _is_w(child, "tab"):
                    result += "\t"
                elif not (_is_w(child, "rPr") or _is_w(child, "lastRenderedPageBreak")):
                    return OpaqueNode(elem)
        dirty = (elem.get(w("dirty")) or "").lower() in _TRUE_VALUES
        formatting = parse_run_formatting(runs[0].find(w("rPr")) if runs else None)
        return Run(field=Field(parse_instruction(instruction), result=result, dirty=dirty), formatting=formatting)

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def _read_table(self, elem: etree._Element, context: PartContext) -> Table | None:
        """Read a w:tbl, or return None when the table does not form a regular grid."""
        grid = elem.find(w("tblGrid"))
        rows = elem.findall(w("tr"))
        if grid is None or not rows or len(rows) > MAX_TABLE_ROWS:
            return None
        widths = [_twips(col.get(w("w")), 0) for col in grid.findall(w("gridCol"))]
        if not widths or len(widths) > MAX_TABLE_COLUMNS or any(width is None for width in widths):
            return None
        for child in elem:
            if not (_is_w(child, "tblPr") or _is_w(child, "tblGrid") or _is_w(child, "tr")):
                return None

        # Lay out every row first: (tc element, grid column, colspan, vMerge value)
        layout: list[list[tuple[etree._Element, int, int, str | None]]] = []
        for tr in rows:
            trpr = tr.find(w("trPr"))
            if trpr is not None and (trpr.find(w("gridBefore")) is not None or trpr.find(w("gridAfter")) is not None):
                return None
            cells = []
            column = 0
            for child in tr:
                if _is_w(child, "trPr") or _is_w(child, "tblPrEx"):
                    if _is_w(child, "tblPrEx"):
                        return None
                    continue
                if not _is_w(child, "tc"):
                    return None
                tcpr = child.find(w("tcPr"))
                span = 1
                vmerge = None
                if tcpr is not None:
                    if tcpr.find(w("hMerge")) is not None:
                        return None
                    span_elem = tcpr.find(w("gridSpan"))
                    if span_elem is not None:
                        span = parse_int(span_elem.get(w("val"))) or 0
                    vmerge_elem = tcpr.find(w("vMerge"))
                    if vmerge_elem is not None:
                        vmerge = vmerge_elem.get(w("val"), "continue")
                if span < 1:
                    return None
                cells.append((child, column, span, vmerge))
                column += span
            if column != len(widths):
                return None
            layout.append(cells)

        table = Table(context, len(rows), len(widths))
        table.column_widths = widths
        table.look = None
        table._attributes = dict(elem.attrib)
        self._read_table_properties(table, elem.find(w("tblPr")))

        # Vertical merges still open: start column -> [origin cell, colspan, rowspan]
        open_merges: dict[int, list] = {}
        spans: list[list] = []
        for row_index, (tr, cells) in enumerate(zip(rows, layout)):
            row = table.row(row_index)
            row._attributes = dict(tr.attrib)
            self._read_row_properties(row, tr.find(w("trPr")))

            continued = set()
            for tc, column, span, vmerge in cells:
                self._read_cell(table.cell(row_index, column), tc, context)
                if vmerge == "continue":
                    merge = open_merges.get(column)
                    if merge is None or merge[1] != span:
                        return None
                    merge[2] += 1
                    continued.add(column)

            for column in [column for column in open_merges if column not in continued]:
                spans.append(open_merges.pop(column))
            for _, column, span, vmerge in cells:
                origin = table.cell(row_index, column)
                if vmerge == "restart":
                    open_merges[column] = [origin, span, 1]
                elif vmerge is None and span > 1:
                    spans.append([origin, span, 1])
        spans.extend(open_merges.values())

        for origin, colspan, rowspan in spans:
            if colspan > 1 or rowspan > 1:
                origin._set_span(colspan, rowspan)
        return table

    def _read_table_properties(self, table: Table, tblpr: etree._Element | None) -> None:
        if tblpr is None:
            return
        for child in tblpr:
            name = local_name(child.tag)
            if not _is_w(child, name):
                table._extras.append(child)
            elif name == "tblStyle" and child.get(w("val")):
                table.style = child.get(w("val"))
            elif name == "tblW":
                width = _twips(child.get(w("w")), 0)
                kind = child.get(w("type"))
                plain = set(child.attrib) == {w("w"), w("type")}
                if plain and kind == "dxa" and width:
                    table.width = width
                elif not (plain and kind == "auto" and width == 0):
                    table._extras.append(child)
            elif name == "jc" and child.get(w("val")) in TABLE_ALIGNMENTS:
                table.alignment = child.get(w("val"))
            else:
                table._extras.append(child)

    def _read_row_properties(self, row: TableRow, trpr: etree._Element | None) -> None:
        if trpr is None:
            return
        for child in trpr:
            name = local_name(child.tag)
            if not _is_w(child, name):
                row._extras.append(child)
            elif name == "trHeight" and set(child.attrib) <= {w("val"), w("hRule")}:
                height = _twips(child.get(w("val")), 0)
                rule = child.get(w("hRule"))
                if height is None or (rule is not None and rule not in HEIGHT_RULES):
                    row._extras.append(child)
                else:
                    row.height = height
                    row.height_rule = rule
            elif name == "tblHeader" and set(child.attrib) <= {w("val")}:
                row.is_header = parse_bool(trpr, "tblHeader")
            else:
                row._extras.append(child)

    def _read_cell(self, cell: TableCell, tc: etree._Element, context: PartContext) -> None:
        cell._attributes = dict(tc.attrib)
        tcpr = tc.find(w("tcPr"))
        if tcpr is not None:
            for child in tcpr:
                name = local_name(child.tag)
                if not _is_w(child, name):
                    cell._extras.append(child)
                elif name in ("gridSpan", "vMerge"):
                    continue
                elif name == "tcW" and child.get(w("type")) == "dxa" and set(child.attrib) == {w("w"), w("type")}:
                    width = _twips(child.get(w("w")), 0)
                    if width is None:
                        cell._extras.append(child)
                    else:
                        cell.width = width
                elif name == "shd" and self._is_plain_shading(child):
                    cell.shading = child.get(w("fill"))
                elif name == "vAlign" and child.get(w("val")) in VERTICAL_ALIGNMENTS:
                    cell.vertical_alignment = child.get(w("val"))
                else:
                    cell._extras.append(child)
        self._read_blocks(tc, cell, context)

    @staticmethod
    def _is_plain_shading(shd: etree._Element) -> bool:
        return (
            set(shd.attrib) == {w("val"), w("color"), w("fill")}
            and shd.get(w("val")) == "clear"
            and shd.get(w("color")) == "auto"
            and bool(_HEX_COLOR.match(shd.get(w("fill"), "")))
            and shd.get(w("fill")) == shd.get(w("fill"), "").upper()
        )

    # -------------------------------------------------------------------------
    # IDs and passthrough parts
    # -------------------------------------------------------------------------

    def _reseed_ids(self) -> None:
        """Raise every counter past the largest ID already present."""
        ids = self._document.ids
        roots = list(self._parsed)
        for part_name in self._package.part_names():
            if part_name in self._consumed or not part_name.endswith(".xml"):
                continue
            if part_name.startswith("word/"):
                roots.append(self._package.get_part(part_name))

        max_bookmark = 0
        max_drawing = 0
        for root in roots:
            for start in root.iter(w("bookmarkStart")):
                max_bookmark = max(max_bookmark, parse_int(start.get(w("id"))) or 0)
            for doc_pr in root.iter(wp("docPr")):
                max_drawing = max(max_drawing, parse_int(doc_pr.get("id")) or 0)
        ids.initialize_from(BOOKMARK, max_bookmark)
        ids.initialize_from(DRAWING, max_drawing)

        for part_name in self._package.part_names():
            directory, _, filename = part_name.rpartition("/")
            if directory != "word":
                continue
            match = _PART_NUMBER.search(filename)
            if match and filename.startswith("header"):
                ids.initialize_from(HEADER, int(match.group(1)))
            elif match and filename.startswith("footer"):
                ids.initialize_from(FOOTER, int(match.group(1)))

    def _collect_passthrough(self) -> None:
        doc = self._document
        for part_name in self._package.part_names():
            if part_name in self._consumed:
                continue
            doc._passthrough[part_name] = self._package.get_bytes(part_name)
            logger.debug(f"Preserving unmodeled part {part_name}")

