"""
Conversion of the document graph into lxml element trees.

DocumentSerializer produces one tree per XML part. Formatting containers
are only emitted when something is set, children follow schema order and
section properties are placed the way Word expects: interior sections in
the pPr of their last paragraph, the final section at the end of w:body.
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING

from lxml import etree

from .constants import (
    EXTENDED_PROPERTIES_NAMESPACE,
    NSMAP_DOCUMENT,
    NSMAP_DRAWING,
    NSMAP_EXTENDED_PROPERTIES,
    NSMAP_PARTS,
    PIC_NAMESPACE,
    SECTION_CARRIER_RSID,
    WORD_NAMESPACE,
    a,
    local_name,
    namespace_of,
    pic,
    r,
    w,
    wp,
    xml,
)
from .formatting import (
    SECTPR_ORDER,
    TBLPR_ORDER,
    TCPR_ORDER,
    TRPR_ORDER,
    paragraph_formatting_to_element,
    run_formatting_to_element,
    sort_children,
)
from .models.header_footer import Footer, Header, HeaderFooterType
from .models.opaque import OpaqueNode
from .models.paragraph import Hyperlink, Paragraph
from .models.run import BreakType, InlineImage, Run
from .models.section import Orientation, Section
from .models.table import Table, TableCell, TableRow

if TYPE_CHECKING:
    from .document import Document
    from .models.blocks import Block

logger = logging.getLogger(__name__)

# CT_Settings children that follow w:evenAndOddHeaders
_SETTINGS_AFTER_EVEN_ODD = {
    "bookFoldRevPrinting", "bookFoldPrinting", "bookFoldPrintingSheets",
    "drawingGridHorizontalSpacing", "drawingGridVerticalSpacing",
    "displayHorizontalDrawingGridEvery", "displayVerticalDrawingGridEvery",
    "doNotUseMarginsForDrawingGridOrigin", "drawingGridHorizontalOrigin",
    "drawingGridVerticalOrigin", "doNotShadeFormData", "noPunctuationKerning",
    "characterSpacingControl", "printTwoOnOne", "strictFirstAndLastChars", "noLineBreaksAfter",
    "noLineBreaksBefore", "savePreviewPicture", "doNotValidateAgainstSchema", "saveInvalidXml",
    "ignoreMixedContent", "alwaysShowPlaceholderText", "doNotDemarcateInvalidXml",
    "saveXmlDataOnly", "useXSLTWhenSaving", "saveThroughXslt", "showXMLTags",
    "alwaysMergeEmptyNamespace", "updateFields", "hdrShapeDefaults", "footnotePr", "endnotePr",
    "compat", "docVars", "rsids", "mathPr", "attachedSchema", "themeFontLang",
    "clrSchemeMapping", "doNotIncludeSubdocsInStats", "doNotAutoCompressPictures",
    "forceUpgrade", "captions", "readModeInkLockDown", "smartTagType", "schemaLibrary",
    "shapeDefaults", "doNotEmbedSmartTags", "decimalSymbol", "listSeparator",
}  # fmt: skip


def _needs_preserve(text: str) -> bool:
    return text != text.strip() or "  " in text


def _text_element(parent: etree._Element, tag: str, text: str) -> etree._Element:
    elem = etree.SubElement(parent, w(tag))
    elem.text = text
    if _needs_preserve(text):
        elem.set(xml("space"), "preserve")
    return elem


def _has_extra(extras: list, name: str) -> bool:
    return any(
        namespace_of(extra.tag) == WORD_NAMESPACE and local_name(extra.tag) == name for extra in extras
    )


def _set_attributes(elem: etree._Element, attributes: dict[str, str]) -> None:
    for key, value in attributes.items():
        elem.set(key, value)


class DocumentSerializer:
    """Build the XML parts of a Document.

    Example:
        >>> serializer = DocumentSerializer(doc)
        >>> body_xml = etree.tostring(serializer.document_element())
    """

    def __init__(self, document: Document) -> None:
        self._document = document

    # -------------------------------------------------------------------------
    # Part roots
    # -------------------------------------------------------------------------

    def _part_root(
        self, tag: str, nsmap: dict | None, attributes: dict[str, str]
    ) -> etree._Element:
        root = etree.Element(w(tag), nsmap=nsmap or NSMAP_DOCUMENT)
        _set_attributes(root, attributes)
        return root

    def document_element(self) -> etree._Element:
        """Build the w:document root of the main document part."""
        doc = self._document
        root = self._part_root("document", doc._root_nsmap, doc._root_attributes)
        for extra in doc._root_extras:
            root.append(copy.deepcopy(extra))
        body = etree.SubElement(root, w("body"))
        _set_attributes(body, doc._body_attributes)

        sections = doc.sections
        for index, section in enumerate(sections):
            sect_pr = self.section_properties_element(section)
            blocks = section.blocks
            if index == len(sections) - 1:
                self._append_blocks(body, blocks)
                body.append(sect_pr)
                continue
            if blocks and isinstance(blocks[-1], Paragraph):
                self._append_blocks(body, blocks[:-1])
                body.append(self.paragraph_element(blocks[-1], section_properties=sect_pr))
            else:
                # Carrier paragraph for a section that ends with a table or is empty
                self._append_blocks(body, blocks)
                carrier = etree.SubElement(body, w("p"))
                carrier.set(w("rsidR"), SECTION_CARRIER_RSID)
                etree.SubElement(carrier, w("pPr")).append(sect_pr)
        return root

    def _header_footer_element(self, part: Header | Footer) -> etree._Element:
        root = self._part_root(part.root_tag, part._nsmap, part._attributes)
        blocks = part.blocks
        self._append_blocks(root, blocks)
        if not blocks or isinstance(blocks[-1], Table):
            etree.SubElement(root, w("p"))
        return root

    def header_element(self, header: Header) -> etree._Element:
        return self._header_footer_element(header)

    def footer_element(self, footer: Footer) -> etree._Element:
        return self._header_footer_element(footer)

    def styles_element(self) -> etree._Element:
        return self._document.styles.to_element()

    def settings_element(self) -> etree._Element:
        """Build word/settings.xml, keeping an opened file's settings."""
        doc = self._document
        if doc._settings is not None:
            root = copy.deepcopy(doc._settings)
        else:
            root = etree.Element(w("settings"), nsmap=NSMAP_PARTS)
            etree.SubElement(root, w("zoom")).set(w("percent"), "100")
            etree.SubElement(root, w("defaultTabStop")).set(w("val"), "720")
            etree.SubElement(root, w("characterSpacingControl")).set(w("val"), "doNotCompress")
            compat = etree.SubElement(root, w("compat"))
            setting = etree.SubElement(compat, w("compatSetting"))
            setting.set(w("name"), "compatibilityMode")
            setting.set(w("uri"), "http://schemas.microsoft.com/office/word")
            setting.set(w("val"), "15")

        needs_even_odd = any(
            HeaderFooterType.EVEN in section.headers or HeaderFooterType.EVEN in section.footers
            for section in doc.sections
        )
        if needs_even_odd and root.find(w("evenAndOddHeaders")) is None:
            flag = etree.Element(w("evenAndOddHeaders"))
            for index, child in enumerate(root):
                if namespace_of(child.tag) != WORD_NAMESPACE or local_name(child.tag) in _SETTINGS_AFTER_EVEN_ODD:
                    root.insert(index, flag)
                    break
            else:
                root.append(flag)
        return root

    def core_properties_element(self) -> etree._Element:
        return self._document.core_properties.to_element()

    def app_properties_element(self) -> etree._Element:
        """Build docProps/app.xml with statistics of the current content."""
        doc = self._document
        text = doc.text
        words = len(text.split())
        characters = len(text.replace(" ", "").replace("\n", ""))
        paragraphs = sum(1 for paragraph in doc.paragraphs if paragraph.text)

        root = etree.Element(f"{{{EXTENDED_PROPERTIES_NAMESPACE}}}Properties", nsmap=NSMAP_EXTENDED_PROPERTIES)

        def add(name: str, value: str) -> None:
            etree.SubElement(root, f"{{{EXTENDED_PROPERTIES_NAMESPACE}}}{name}").text = value

        add("Template", "Normal.dotm")
        add("TotalTime", "0")
        add("Pages", "1")
        add("Words", str(words))
        add("Characters", str(characters))
        add("Application", doc.options.application)
        add("DocSecurity", "0")
        add("Lines", str(max(1, len(doc.paragraphs))))
        add("Paragraphs", str(paragraphs))
        add("ScaleCrop", "false")
        add("LinksUpToDate", "false")
        add("CharactersWithSpaces", str(len(text.replace("\n", ""))))
        add("SharedDoc", "false")
        add("HyperlinksChanged", "false")
        add("AppVersion", "16.0000")
        return root

    # -------------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------------

    def _append_blocks(self, parent: etree._Element, blocks: list[Block]) -> None:
        for block in blocks:
            if isinstance(block, Paragraph):
                parent.append(self.paragraph_element(block))
            elif isinstance(block, Table):
                parent.append(self.table_element(block))
            elif isinstance(block, OpaqueNode):
                parent.append(block.to_element())
            else:
                raise TypeError(f"cannot serialize block {block!r}")

    def paragraph_element(
        self, paragraph: Paragraph, section_properties: etree._Element | None = None
    ) -> etree._Element:
        """Build a w:p element."""
        p = etree.Element(w("p"))
        _set_attributes(p, paragraph._attributes)

        ppr = paragraph_formatting_to_element(
            paragraph.formatting, style_id=paragraph.style, section_properties=section_properties
        )
        if ppr is not None:
            p.append(ppr)

        bookmark = paragraph.bookmark
        if bookmark is not None:
            start = etree.SubElement(p, w("bookmarkStart"))
            start.set(w("id"), str(bookmark.bookmark_id))
            start.set(w("name"), bookmark.name)

        for item in paragraph.content:
            if isinstance(item, Run):
                p.extend(self.run_elements(item))
            elif isinstance(item, Hyperlink):
                p.append(self.hyperlink_element(item))
            else:
                p.append(item.to_element())

        if bookmark is not None:
            etree.SubElement(p, w("bookmarkEnd")).set(w("id"), str(bookmark.bookmark_id))
        return p

    def hyperlink_element(self, hyperlink: Hyperlink) -> etree._Element:
        elem = etree.Element(w("hyperlink"))
        _set_attributes(elem, hyperlink._attributes)
        if hyperlink.rel_id:
            elem.set(r("id"), hyperlink.rel_id)
        if hyperlink.anchor:
            elem.set(w("anchor"), hyperlink.anchor)
        for item in hyperlink.content:
            if isinstance(item, Run):
                elem.extend(self.run_elements(item))
            else:
                elem.append(item.to_element())
        return elem

    # -------------------------------------------------------------------------
    # Runs
    # -------------------------------------------------------------------------

    def _run_shell(self, run: Run) -> etree._Element:
        elem = etree.Element(w("r"))
        _set_attributes(elem, run._attributes)
        rpr = run_formatting_to_element(run.formatting)
        if rpr is not None:
            elem.append(rpr)
        return elem

    def run_elements(self, run: Run) -> list[etree._Element]:
        """Build the w:r element(s) for a run; a field yields five runs."""
        if run.field is not None:
            return self._field_runs(run)

        elem = self._run_shell(run)
        if run.image is not None:
            elem.append(self.drawing_element(run.image))
        elif run.break_type is not None:
            br = etree.SubElement(elem, w("br"))
            if run.break_type is not BreakType.LINE:
                br.set(w("type"), run.break_type.value)
        else:
            self._append_text(elem, run.text)
        return [elem]

    def _append_text(self, elem: etree._Element, text: str) -> None:
        """Write text as w:t, turning tabs into w:tab and newlines into w:br."""
        buffer = ""
        for char in text:
            if char in "\t\n":
                if buffer:
                    _text_element(elem, "t", buffer)
                    buffer = ""
                etree.SubElement(elem, w("tab" if char == "\t" else "br"))
            else:
                buffer += char
        if buffer:
            _text_element(elem, "t", buffer)

    def _field_runs(self, run: Run) -> list[etree._Element]:
        """Emit begin / instruction / separate / result / end runs."""
        field = run.field
        begin = self._run_shell(run)
        char = etree.SubElement(begin, w("fldChar"))
        char.set(w("fldCharType"), "begin")
        if field.dirty:
            char.set(w("dirty"), "true")

        instr = self._run_shell(run)
        instr_text = etree.SubElement(instr, w("instrText"))
        instr_text.set(xml("space"), "preserve")
        instr_text.text = f" {field.instruction} "

        separate = self._run_shell(run)
        etree.SubElement(separate, w("fldChar")).set(w("fldCharType"), "separate")

        result = self._run_shell(run)
        if field.result:
            self._append_text(result, field.result)
        else:
            etree.SubElement(result, w("t"))

        end = self._run_shell(run)
        etree.SubElement(end, w("fldChar")).set(w("fldCharType"), "end")
        return [begin, instr, separate, result, end]

    def drawing_element(self, image: InlineImage) -> etree._Element:
        """Build the w:drawing element for an inline picture."""
        if image.source is not None:
            return self._patched_drawing(image)

        drawing = etree.Element(w("drawing"))
        inline = etree.SubElement(
            drawing,
            wp("inline"),
            nsmap=NSMAP_DRAWING,
            attrib={"distT": "0", "distB": "0", "distL": "0", "distR": "0"},
        )
        etree.SubElement(inline, wp("extent"), attrib={"cx": str(image.width_emu), "cy": str(image.height_emu)})
        etree.SubElement(inline, wp("effectExtent"), attrib={"l": "0", "t": "0", "r": "0", "b": "0"})

        doc_pr_attrib = {"id": str(image.drawing_id), "name": image.name}
        if image.description:
            doc_pr_attrib["descr"] = image.description
        etree.SubElement(inline, wp("docPr"), attrib=doc_pr_attrib)

        cnv_frame_pr = etree.SubElement(inline, wp("cNvGraphicFramePr"))
        etree.SubElement(cnv_frame_pr, a("graphicFrameLocks"), attrib={"noChangeAspect": "1"})

        graphic = etree.SubElement(inline, a("graphic"))
        graphic_data = etree.SubElement(graphic, a("graphicData"), attrib={"uri": PIC_NAMESPACE})
        pic_elem = etree.SubElement(graphic_data, pic("pic"))

        nv_pic_pr = etree.SubElement(pic_elem, pic("nvPicPr"))
        etree.SubElement(nv_pic_pr, pic("cNvPr"), attrib={"id": str(image.drawing_id), "name": image.name})
        cnv_pic_pr = etree.SubElement(nv_pic_pr, pic("cNvPicPr"))
        etree.SubElement(cnv_pic_pr, a("picLocks"), attrib={"noChangeAspect": "1"})

        blip_fill = etree.SubElement(pic_elem, pic("blipFill"))
        etree.SubElement(blip_fill, a("blip"), attrib={r("embed"): image.rel_id})
        stretch = etree.SubElement(blip_fill, a("stretch"))
        etree.SubElement(stretch, a("fillRect"))

        sp_pr = etree.SubElement(pic_elem, pic("spPr"))
        xfrm = etree.SubElement(sp_pr, a("xfrm"))
        etree.SubElement(xfrm, a("off"), attrib={"x": "0", "y": "0"})
        etree.SubElement(xfrm, a("ext"), attrib={"cx": str(image.width_emu), "cy": str(image.height_emu)})
        prst_geom = etree.SubElement(sp_pr, a("prstGeom"), attrib={"prst": "rect"})
        etree.SubElement(prst_geom, a("avLst"))
        return drawing

    def _patched_drawing(self, image: InlineImage) -> etree._Element:
        drawing = copy.deepcopy(image.source)
        inline = drawing.find(wp("inline"))
        extent = inline.find(wp("extent"))
        extent.set("cx", str(image.width_emu))
        extent.set("cy", str(image.height_emu))
        doc_pr = inline.find(wp("docPr"))
        doc_pr.set("id", str(image.drawing_id))
        doc_pr.set("name", image.name)
        if image.description:
            doc_pr.set("descr", image.description)
        elif "descr" in doc_pr.attrib:
            del doc_pr.attrib["descr"]
        blip = drawing.find(f".//{a('blip')}")
        blip.set(r("embed"), image.rel_id)
        ext = drawing.find(f".//{pic('spPr')}/{a('xfrm')}/{a('ext')}")
        if ext is not None:
            ext.set("cx", str(image.width_emu))
            ext.set("cy", str(image.height_emu))
        return drawing

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def table_element(self, table: Table) -> etree._Element:
        """Build a w:tbl element."""
        tbl = etree.Element(w("tbl"))
        _set_attributes(tbl, table._attributes)

        tbl_pr = etree.SubElement(tbl, w("tblPr"))
        if table.style:
            etree.SubElement(tbl_pr, w("tblStyle")).set(w("val"), table.style)
        if not _has_extra(table._extras, "tblW"):
            tbl_w = etree.SubElement(tbl_pr, w("tblW"))
            tbl_w.set(w("w"), str(table.width or 0))
            tbl_w.set(w("type"), table.width_type if table.width else "auto")
        if table.alignment:
            etree.SubElement(tbl_pr, w("jc")).set(w("val"), table.alignment)
        for extra in table._extras:
            tbl_pr.append(copy.deepcopy(extra))
        if table.look and not _has_extra(table._extras, "tblLook"):
            look = etree.SubElement(tbl_pr, w("tblLook"))
            look.set(w("val"), table.look)
            flags = int(table.look, 16)
            for name, bit in (
                ("firstRow", 0x20),
                ("lastRow", 0x40),
                ("firstColumn", 0x80),
                ("lastColumn", 0x100),
                ("noHBand", 0x200),
                ("noVBand", 0x400),
            ):
                look.set(w(name), "1" if flags & bit else "0")
        sort_children(tbl_pr, TBLPR_ORDER)

        grid = etree.SubElement(tbl, w("tblGrid"))
        widths = table.effective_column_widths()
        for width in widths:
            etree.SubElement(grid, w("gridCol")).set(w("w"), str(width))

        for row in table.rows:
            tbl.append(self._row_element(table, row, widths))
        return tbl

    def _row_element(self, table: Table, row: TableRow, widths: list[int]) -> etree._Element:
        tr = etree.Element(w("tr"))
        _set_attributes(tr, row._attributes)

        tr_pr = etree.Element(w("trPr"))
        if row.height is not None:
            height = etree.SubElement(tr_pr, w("trHeight"))
            height.set(w("val"), str(row.height))
            if row.height_rule:
                height.set(w("hRule"), row.height_rule)
        if row.is_header is not None:
            header = etree.SubElement(tr_pr, w("tblHeader"))
            if not row.is_header:
                header.set(w("val"), "0")
        for extra in row._extras:
            tr_pr.append(copy.deepcopy(extra))
        if len(tr_pr):
            tr.append(sort_children(tr_pr, TRPR_ORDER))

        for cell in row.cells:
            if cell.is_absorbed:
                # Folded into the gridSpan of the origin or of the vMerge cell
                continue
            tr.append(self._cell_element(cell, cell.merge_origin, widths))
        return tr

    def _cell_element(self, cell: TableCell, origin: TableCell, widths: list[int]) -> etree._Element:
        tc = etree.Element(w("tc"))
        _set_attributes(tc, cell._attributes)
        colspan = origin.colspan

        tc_pr = etree.SubElement(tc, w("tcPr"))
        if not _has_extra(cell._extras, "tcW"):
            tc_w = etree.SubElement(tc_pr, w("tcW"))
            if cell.width is not None:
                tc_w.set(w("w"), str(cell.width))
                tc_w.set(w("type"), cell.width_type)
            else:
                start = cell.column_index
                tc_w.set(w("w"), str(sum(widths[start : start + colspan])))
                tc_w.set(w("type"), "dxa")
        if colspan > 1:
            etree.SubElement(tc_pr, w("gridSpan")).set(w("val"), str(colspan))
        if cell.is_covered:
            etree.SubElement(tc_pr, w("vMerge"))
        elif cell.rowspan > 1:
            etree.SubElement(tc_pr, w("vMerge")).set(w("val"), "restart")
        if cell.shading:
            shd = etree.SubElement(tc_pr, w("shd"))
            shd.set(w("val"), "clear")
            shd.set(w("color"), "auto")
            shd.set(w("fill"), cell.shading)
        if cell.vertical_alignment:
            etree.SubElement(tc_pr, w("vAlign")).set(w("val"), cell.vertical_alignment)
        for extra in cell._extras:
            tc_pr.append(copy.deepcopy(extra))
        sort_children(tc_pr, TCPR_ORDER)

        blocks = cell.blocks
        self._append_blocks(tc, blocks)
        if not blocks or isinstance(blocks[-1], Table):
            etree.SubElement(tc, w("p"))
        return tc

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def section_properties_element(self, section: Section) -> etree._Element:
        """Build the w:sectPr element of a section."""
        sect_pr = etree.Element(w("sectPr"))
        _set_attributes(sect_pr, section._attributes)

        for kind, header in section.headers.items():
            ref = etree.SubElement(sect_pr, w("headerReference"))
            ref.set(w("type"), kind.value)
            ref.set(r("id"), header.rel_id)
        for kind, footer in section.footers.items():
            ref = etree.SubElement(sect_pr, w("footerReference"))
            ref.set(w("type"), kind.value)
            ref.set(r("id"), footer.rel_id)

        etree.SubElement(sect_pr, w("type")).set(w("val"), section.break_type.value)

        extra_attributes = section._child_attributes
        pg_sz = etree.SubElement(sect_pr, w("pgSz"))
        _set_attributes(pg_sz, extra_attributes.get("pgSz", {}))
        pg_sz.set(w("w"), str(section.page_size.width))
        pg_sz.set(w("h"), str(section.page_size.height))
        if section.orientation is Orientation.LANDSCAPE:
            pg_sz.set(w("orient"), "landscape")

        margins = section.margins
        pg_mar = etree.SubElement(sect_pr, w("pgMar"))
        for name in ("top", "right", "bottom", "left", "header", "footer", "gutter"):
            pg_mar.set(w(name), str(getattr(margins, name)))
        _set_attributes(pg_mar, extra_attributes.get("pgMar", {}))

        if not _has_extra(section._extras, "cols"):
            cols = etree.SubElement(sect_pr, w("cols"))
            _set_attributes(cols, extra_attributes.get("cols", {}))
            if section.column_spacing is not None:
                cols.set(w("space"), str(section.column_spacing))
            if section.columns > 1:
                cols.set(w("num"), str(section.columns))

        if section.has_title_page and not _has_extra(section._extras, "titlePg"):
            etree.SubElement(sect_pr, w("titlePg"))

        for extra in section._extras:
            sect_pr.append(copy.deepcopy(extra))
        return sort_children(sect_pr, SECTPR_ORDER)
