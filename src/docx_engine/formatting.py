"""
Conversion between formatting dataclasses and w:rPr / w:pPr elements.

Properties are emitted in the order required by the WordprocessingML
schema. A container element is only built when at least one property is
set; callers get None for empty formatting and must not append anything.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable

from lxml import etree

from .constants import WORD_NAMESPACE, local_name, namespace_of, w
from .models.style import ParagraphFormatting, RunFormatting

logger = logging.getLogger(__name__)

# CT_RPr child order
RPR_ORDER = (
    "rStyle", "rFonts", "b", "bCs", "i", "iCs", "caps", "smallCaps", "strike", "dstrike",
    "outline", "shadow", "emboss", "imprint", "noProof", "snapToGrid", "vanish", "webHidden",
    "color", "spacing", "w", "kern", "position", "sz", "szCs", "highlight", "u", "effect",
    "bdr", "shd", "fitText", "vertAlign", "rtl", "cs", "em", "lang", "eastAsianLayout",
    "specVanish", "oMath", "rPrChange",
)  # fmt: skip

# CT_PPr child order
PPR_ORDER = (
    "pStyle", "keepNext", "keepLines", "pageBreakBefore", "framePr", "widowControl", "numPr",
    "suppressLineNumbers", "pBdr", "shd", "tabs", "suppressAutoHyphens", "kinsoku", "wordWrap",
    "overflowPunct", "topLinePunct", "autoSpaceDE", "autoSpaceDN", "bidi", "adjustRightInd",
    "snapToGrid", "spacing", "ind", "contextualSpacing", "mirrorIndents", "suppressOverlap",
    "jc", "textDirection", "textAlignment", "textboxTightWrap", "outlineLvl", "divId",
    "cnfStyle", "rPr", "sectPr", "pPrChange",
)  # fmt: skip

# CT_SectPr child order
SECTPR_ORDER = (
    "headerReference", "footerReference", "footnotePr", "endnotePr", "type", "pgSz", "pgMar",
    "paperSrc", "pgBorders", "lnNumType", "pgNumType", "cols", "formProt", "vAlign",
    "noEndnote", "titlePg", "textDirection", "bidi", "rtlGutter", "docGrid", "printerSettings",
    "sectPrChange",
)  # fmt: skip

# CT_TblPr child order
TBLPR_ORDER = (
    "tblStyle", "tblpPr", "tblOverlap", "bidiVisual", "tblStyleRowBandSize",
    "tblStyleColBandSize", "tblW", "jc", "tblCellSpacing", "tblInd", "tblBorders", "shd",
    "tblLayout", "tblCellMar", "tblLook", "tblCaption", "tblDescription", "tblPrChange",
)  # fmt: skip

# CT_TrPr child order
TRPR_ORDER = (
    "cnfStyle", "divId", "gridBefore", "gridAfter", "wBefore", "wAfter", "cantSplit",
    "trHeight", "tblHeader", "tblCellSpacing", "jc", "hidden", "ins", "del", "trPrChange",
)  # fmt: skip

# CT_TcPr child order
TCPR_ORDER = (
    "cnfStyle", "tcW", "gridSpan", "hMerge", "vMerge", "tcBorders", "shd", "noWrap", "tcMar",
    "textDirection", "tcFitText", "vAlign", "hideMark", "headers", "cellIns", "cellDel",
    "cellMerge", "tcPrChange",
)  # fmt: skip

# CT_Style child order
STYLE_ORDER = (
    "name", "aliases", "basedOn", "next", "link", "autoRedefine", "hidden", "uiPriority",
    "semiHidden", "unhideWhenUsed", "qFormat", "locked", "personal", "personalCompose",
    "personalReply", "rsid", "pPr", "rPr", "tblPr", "trPr", "tcPr", "tblStylePr",
)  # fmt: skip


_FALSE_VALUES = ("0", "false", "off")


def sort_children(element: etree._Element, order: tuple[str, ...]) -> etree._Element:
    """Reorder the children of ``element`` to follow a schema sequence.

    Children from other namespaces or with unknown names keep their
    relative order and move to the end.
    """
    positions = {name: index for index, name in enumerate(order)}
    end = len(order)

    def key(child: etree._Element) -> int:
        if namespace_of(child.tag) != WORD_NAMESPACE:
            return end
        return positions.get(local_name(child.tag), end)

    element[:] = sorted(element, key=key)
    return element


# Modeled children an extra of the same tag gives way to, so an explicit
# value set after load never writes the element twice
_REPLACED_BY_MODEL = {w("sz"), w("szCs"), w("spacing"), w("ind")}


def _append_extras(element: etree._Element, extras: Iterable[etree._Element]) -> None:
    emitted = {child.tag for child in element}
    for extra in extras:
        if extra.tag in _REPLACED_BY_MODEL and extra.tag in emitted:
            continue
        element.append(copy.deepcopy(extra))


def _set_bool(parent: etree._Element, tag: str, value: bool | None) -> None:
    if value is None:
        return
    elem = etree.SubElement(parent, w(tag))
    if not value:
        elem.set(w("val"), "0")


def parse_bool(parent: etree._Element, tag_name: str) -> bool | None:
    """Parse a boolean property element.

    In OOXML, boolean properties like w:b (bold) can be:
    - Present with no value: True
    - Present with w:val="1" or w:val="true": True
    - Present with w:val="0" or w:val="false": False
    - Absent: None (inherit from parent)
    """
    elem = parent.find(w(tag_name))
    if elem is None:
        return None
    val = elem.get(w("val"))
    if val is None:
        return True
    return val.lower() not in _FALSE_VALUES


def parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer measure {value!r}")
        return None


def _is_integer(value: str | None) -> bool:
    """True for a missing attribute or one holding a plain integer."""
    if value is None:
        return True
    try:
        int(value)
    except ValueError:
        return False
    return True


# -----------------------------------------------------------------------------
# Run properties
# -----------------------------------------------------------------------------


def run_formatting_to_element(fmt: RunFormatting) -> etree._Element | None:
    """Convert RunFormatting to a w:rPr element.

    Returns:
        The w:rPr element, or None if nothing is set
    """
    if fmt.is_empty():
        return None

    rpr = etree.Element(w("rPr"))

    if fmt.style:
        etree.SubElement(rpr, w("rStyle")).set(w("val"), fmt.style)

    if fmt.font_name:
        fonts = etree.SubElement(rpr, w("rFonts"))
        fonts.set(w("ascii"), fmt.font_name)
        fonts.set(w("hAnsi"), fmt.font_name)
        fonts.set(w("eastAsia"), fmt.font_name)
        fonts.set(w("cs"), fmt.font_name)

    _set_bool(rpr, "b", fmt.bold)
    _set_bool(rpr, "i", fmt.italic)
    _set_bool(rpr, "caps", fmt.all_caps)
    _set_bool(rpr, "smallCaps", fmt.small_caps)
    _set_bool(rpr, "strike", fmt.strike)

    if fmt.color:
        etree.SubElement(rpr, w("color")).set(w("val"), fmt.color)

    if fmt.font_size is not None:
        etree.SubElement(rpr, w("sz")).set(w("val"), str(fmt.font_size))
        etree.SubElement(rpr, w("szCs")).set(w("val"), str(fmt.font_size))

    if fmt.highlight:
        etree.SubElement(rpr, w("highlight")).set(w("val"), fmt.highlight)

    if fmt.underline:
        etree.SubElement(rpr, w("u")).set(w("val"), fmt.underline)

    if fmt.superscript:
        etree.SubElement(rpr, w("vertAlign")).set(w("val"), "superscript")
    elif fmt.subscript:
        etree.SubElement(rpr, w("vertAlign")).set(w("val"), "subscript")
    elif fmt.superscript is False or fmt.subscript is False:
        etree.SubElement(rpr, w("vertAlign")).set(w("val"), "baseline")

    _append_extras(rpr, fmt.extras)
    sort_children(rpr, RPR_ORDER)

    if len(rpr) == 0:
        return None
    return rpr


# Children of w:rPr that parse_run_formatting models
_RPR_MODELED = {
    "rStyle", "b", "i", "caps", "smallCaps", "strike", "color", "sz", "szCs", "highlight",
    "u", "vertAlign",
}  # fmt: skip


def parse_run_formatting(rpr: etree._Element | None) -> RunFormatting:
    """Parse run (character) formatting from a w:rPr element.

    Args:
        rpr: The w:rPr XML element to parse, or None

    Returns:
        A RunFormatting object; unmodeled children land in ``extras``
    """
    if rpr is None:
        return RunFormatting()

    fmt = RunFormatting(
        bold=parse_bool(rpr, "b"),
        italic=parse_bool(rpr, "i"),
        strike=parse_bool(rpr, "strike"),
        small_caps=parse_bool(rpr, "smallCaps"),
        all_caps=parse_bool(rpr, "caps"),
    )

    style_elem = rpr.find(w("rStyle"))
    if style_elem is not None:
        fmt.style = style_elem.get(w("val"))

    color_elem = rpr.find(w("color"))
    if color_elem is not None:
        fmt.color = color_elem.get(w("val"))

    sz_elem = rpr.find(w("sz"))
    if sz_elem is not None and not _is_integer(sz_elem.get(w("val"))):
        # Kept verbatim in extras below
        sz_elem = None
    if sz_elem is not None:
        fmt.font_size = parse_int(sz_elem.get(w("val")))

    highlight_elem = rpr.find(w("highlight"))
    if highlight_elem is not None:
        fmt.highlight = highlight_elem.get(w("val"))

    u_elem = rpr.find(w("u"))
    if u_elem is not None:
        fmt.underline = u_elem.get(w("val"), "single")

    vert_elem = rpr.find(w("vertAlign"))
    if vert_elem is not None:
        vert_val = vert_elem.get(w("val"))
        if vert_val == "superscript":
            fmt.superscript = True
        elif vert_val == "subscript":
            fmt.subscript = True
        else:
            fmt.superscript = False

    for child in rpr:
        name = local_name(child.tag)
        is_word = namespace_of(child.tag) == WORD_NAMESPACE
        if is_word and name in ("sz", "szCs") and sz_elem is None:
            fmt.extras.append(copy.deepcopy(child))
            continue
        if is_word and name in _RPR_MODELED:
            continue
        if is_word and name == "rFonts":
            font_name = child.get(w("ascii")) or child.get(w("hAnsi"))
            theme_attrs = [key for key in child.attrib if "Theme" in key]
            if font_name and not theme_attrs:
                fmt.font_name = font_name
                continue
        fmt.extras.append(copy.deepcopy(child))

    return fmt


# -----------------------------------------------------------------------------
# Paragraph properties
# -----------------------------------------------------------------------------


def paragraph_formatting_to_element(
    fmt: ParagraphFormatting,
    style_id: str | None = None,
    section_properties: etree._Element | None = None,
) -> etree._Element | None:
    """Convert ParagraphFormatting to a w:pPr element.

    Args:
        fmt: Paragraph formatting
        style_id: Paragraph style reference (w:pStyle), if any
        section_properties: A w:sectPr to place in the paragraph (interior
            section break), if any

    Returns:
        The w:pPr element, or None if nothing is set
    """
    if fmt.is_empty() and not style_id and section_properties is None:
        return None

    ppr = etree.Element(w("pPr"))

    if style_id:
        etree.SubElement(ppr, w("pStyle")).set(w("val"), style_id)

    _set_bool(ppr, "keepNext", fmt.keep_next)
    _set_bool(ppr, "keepLines", fmt.keep_lines)
    _set_bool(ppr, "pageBreakBefore", fmt.page_break_before)

    spacing_attrs = {
        "before": fmt.spacing_before,
        "after": fmt.spacing_after,
        "line": fmt.line_spacing,
    }
    if any(value is not None for value in spacing_attrs.values()):
        spacing = etree.SubElement(ppr, w("spacing"))
        for attr, value in spacing_attrs.items():
            if value is not None:
                spacing.set(w(attr), str(value))
        if fmt.line_spacing is not None:
            spacing.set(w("lineRule"), fmt.line_rule or "auto")

    ind_attrs = {
        "left": fmt.indent_left,
        "right": fmt.indent_right,
        "firstLine": fmt.indent_first_line,
        "hanging": fmt.indent_hanging,
    }
    if any(value is not None for value in ind_attrs.values()):
        ind = etree.SubElement(ppr, w("ind"))
        for attr, value in ind_attrs.items():
            if value is not None:
                ind.set(w(attr), str(value))

    if fmt.alignment:
        etree.SubElement(ppr, w("jc")).set(w("val"), fmt.alignment)

    if fmt.outline_level is not None:
        etree.SubElement(ppr, w("outlineLvl")).set(w("val"), str(fmt.outline_level))

    _append_extras(ppr, fmt.extras)
    if section_properties is not None:
        ppr.append(section_properties)
    sort_children(ppr, PPR_ORDER)

    if len(ppr) == 0:
        return None
    return ppr


_PPR_MODELED = {
    "pStyle", "keepNext", "keepLines", "pageBreakBefore", "jc", "outlineLvl", "sectPr",
}  # fmt: skip


def parse_paragraph_formatting(
    ppr: etree._Element | None,
) -> tuple[str | None, ParagraphFormatting, etree._Element | None]:
    """Parse paragraph formatting from a w:pPr element.

    Args:
        ppr: The w:pPr XML element to parse, or None

    Returns:
        Tuple of (pStyle value, formatting, w:sectPr element or None)
    """
    if ppr is None:
        return None, ParagraphFormatting(), None

    fmt = ParagraphFormatting(
        keep_next=parse_bool(ppr, "keepNext"),
        keep_lines=parse_bool(ppr, "keepLines"),
        page_break_before=parse_bool(ppr, "pageBreakBefore"),
    )

    style_elem = ppr.find(w("pStyle"))
    style_id = style_elem.get(w("val")) if style_elem is not None else None

    jc_elem = ppr.find(w("jc"))
    if jc_elem is not None:
        fmt.alignment = jc_elem.get(w("val"))

    outline_elem = ppr.find(w("outlineLvl"))
    if outline_elem is not None:
        fmt.outline_level = parse_int(outline_elem.get(w("val")))

    for child in ppr:
        name = local_name(child.tag)
        is_word = namespace_of(child.tag) == WORD_NAMESPACE
        if is_word and name in _PPR_MODELED:
            continue
        if is_word and name == "spacing" and _parse_spacing(child, fmt):
            continue
        if is_word and name == "ind" and _parse_indent(child, fmt):
            continue
        fmt.extras.append(copy.deepcopy(child))

    sect_pr = ppr.find(w("sectPr"))
    return style_id, fmt, sect_pr


def _parse_spacing(elem: etree._Element, fmt: ParagraphFormatting) -> bool:
    """Read w:spacing into ``fmt``; False if it carries attributes or values we do not model."""
    modeled = {w("before"), w("after"), w("line"), w("lineRule")}
    if any(key not in modeled for key in elem.attrib):
        return False
    if not all(_is_integer(elem.get(w(key))) for key in ("before", "after", "line")):
        return False
    fmt.spacing_before = parse_int(elem.get(w("before")))
    fmt.spacing_after = parse_int(elem.get(w("after")))
    fmt.line_spacing = parse_int(elem.get(w("line")))
    if fmt.line_spacing is not None:
        fmt.line_rule = elem.get(w("lineRule"), "auto")
    return True


def _parse_indent(elem: etree._Element, fmt: ParagraphFormatting) -> bool:
    """Read w:ind into ``fmt``; False if it carries attributes or values we do not model."""
    aliases = {
        w("left"): "indent_left",
        w("start"): "indent_left",
        w("right"): "indent_right",
        w("end"): "indent_right",
        w("firstLine"): "indent_first_line",
        w("hanging"): "indent_hanging",
    }
    if any(key not in aliases for key in elem.attrib):
        return False
    if not all(_is_integer(value) for value in elem.attrib.values()):
        return False
    for key, attr in aliases.items():
        value = elem.get(key)
        if value is not None:
            setattr(fmt, attr, parse_int(value))
    return True
