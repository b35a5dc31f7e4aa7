"""
Tests for DocumentSerializer and the formatting converters.

Covers schema child order, the no-empty-properties rule, text escaping,
section break placement, tables with merged cells and header/footer parts.
"""

import pytest
from lxml import etree

from docx_engine import (
    BreakType,
    HeaderFooterType,
    Orientation,
    ParagraphFormatting,
    Run,
    RunFormatting,
    SectionBreakType,
    create_document,
)
from docx_engine.constants import SECTION_CARRIER_RSID, local_name, r, w, xml
from docx_engine.formatting import (
    PPR_ORDER,
    RPR_ORDER,
    paragraph_formatting_to_element,
    parse_paragraph_formatting,
    parse_run_formatting,
    run_formatting_to_element,
    sort_children,
)
from docx_engine.serializer import DocumentSerializer

WORD_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"


def child_names(element: etree._Element) -> list[str]:
    return [local_name(child.tag) for child in element]


def body_of(doc) -> etree._Element:
    return DocumentSerializer(doc).document_element().find(w("body"))


class TestRunFormatting:
    """Tests for w:rPr output."""

    def test_empty_formatting_emits_nothing(self):
        assert run_formatting_to_element(RunFormatting()) is None

    def test_plain_run_has_no_rpr(self):
        doc = create_document()
        run = doc.add_paragraph().add_run("plain")
        element = DocumentSerializer(doc).run_elements(run)[0]
        assert element.find(w("rPr")) is None

    def test_children_follow_schema_order(self):
        fmt = RunFormatting(
            underline="single",
            font_size=28,
            color="FF0000",
            italic=True,
            bold=True,
            font_name="Arial",
            style="Emphasis",
            superscript=True,
        )
        rpr = run_formatting_to_element(fmt)
        names = child_names(rpr)
        assert names == ["rStyle", "rFonts", "b", "i", "color", "sz", "szCs", "u", "vertAlign"]
        assert names == sorted(names, key=RPR_ORDER.index)

    def test_false_boolean_is_written_explicitly(self):
        rpr = run_formatting_to_element(RunFormatting(bold=False))
        assert rpr.find(w("b")).get(w("val")) == "0"

    def test_extras_are_kept_in_order(self):
        """Unmodeled properties survive and are placed by schema position."""
        rpr = etree.fromstring(
            f'<w:rPr xmlns:w="{WORD_NS}"><w:lang w:val="de-DE"/><w:b/><w:noProof/></w:rPr>'
        )
        fmt = parse_run_formatting(rpr)
        assert fmt.bold is True
        assert [local_name(extra.tag) for extra in fmt.extras] == ["lang", "noProof"]
        assert child_names(run_formatting_to_element(fmt)) == ["b", "noProof", "lang"]

    def test_theme_fonts_stay_as_extras(self):
        rpr = etree.fromstring(f'<w:rPr xmlns:w="{WORD_NS}"><w:rFonts w:asciiTheme="minorHAnsi"/></w:rPr>')
        fmt = parse_run_formatting(rpr)
        assert fmt.font_name is None
        assert child_names(run_formatting_to_element(fmt)) == ["rFonts"]


class TestParagraphFormatting:
    """Tests for w:pPr output."""

    def test_empty_formatting_emits_nothing(self):
        assert paragraph_formatting_to_element(ParagraphFormatting()) is None

    def test_plain_paragraph_has_no_ppr(self):
        doc = create_document()
        para = doc.add_paragraph("plain")
        assert DocumentSerializer(doc).paragraph_element(para).find(w("pPr")) is None

    def test_children_follow_schema_order(self):
        fmt = ParagraphFormatting(
            alignment="center",
            indent_left=720,
            spacing_after=120,
            keep_next=True,
            outline_level=1,
        )
        ppr = paragraph_formatting_to_element(fmt, style_id="Heading2")
        names = child_names(ppr)
        assert names == ["pStyle", "keepNext", "spacing", "ind", "jc", "outlineLvl"]
        assert names == sorted(names, key=PPR_ORDER.index)

    def test_line_spacing_writes_rule(self):
        ppr = paragraph_formatting_to_element(ParagraphFormatting(line_spacing=360, line_rule="auto"))
        spacing = ppr.find(w("spacing"))
        assert spacing.get(w("line")) == "360"
        assert spacing.get(w("lineRule")) == "auto"

    def test_parse_returns_style_and_section(self):
        ppr = etree.fromstring(
            f'<w:pPr xmlns:w="{WORD_NS}"><w:pStyle w:val="Quote"/>'
            f'<w:ind w:start="360" w:hanging="180"/><w:sectPr/></w:pPr>'
        )
        style_id, fmt, sect_pr = parse_paragraph_formatting(ppr)
        assert style_id == "Quote"
        assert fmt.indent_left == 360
        assert fmt.indent_hanging == 180
        assert sect_pr is not None
        assert fmt.extras == []

    def test_unmodeled_spacing_attributes_stay_verbatim(self):
        ppr = etree.fromstring(f'<w:pPr xmlns:w="{WORD_NS}"><w:spacing w:beforeLines="100"/></w:pPr>')
        _, fmt, _ = parse_paragraph_formatting(ppr)
        assert fmt.spacing_before is None
        assert len(fmt.extras) == 1

    def test_sort_children_moves_unknown_to_end(self):
        ppr = etree.fromstring(
            f'<w:pPr xmlns:w="{WORD_NS}" xmlns:x="urn:x"><x:custom/><w:jc w:val="left"/><w:pStyle w:val="A"/></w:pPr>'
        )
        sort_children(ppr, PPR_ORDER)
        assert child_names(ppr) == ["pStyle", "jc", "custom"]


class TestText:
    """Tests for text, tabs and breaks inside runs."""

    def test_tabs_and_newlines(self):
        doc = create_document()
        run = doc.add_paragraph().add_run("a\tb\nc")
        element = DocumentSerializer(doc).run_elements(run)[0]
        assert child_names(element) == ["t", "tab", "t", "br", "t"]

    def test_spaces_are_preserved(self):
        doc = create_document()
        run = doc.add_paragraph().add_run(" padded ")
        text = DocumentSerializer(doc).run_elements(run)[0].find(w("t"))
        assert text.get(xml("space")) == "preserve"

    def test_plain_text_has_no_space_attribute(self):
        doc = create_document()
        run = doc.add_paragraph().add_run("plain")
        text = DocumentSerializer(doc).run_elements(run)[0].find(w("t"))
        assert text.get(xml("space")) is None

    def test_special_characters_are_escaped(self):
        doc = create_document()
        doc.add_paragraph("Fish & <chips>")
        data = etree.tostring(DocumentSerializer(doc).document_element())
        assert b"Fish &amp; &lt;chips&gt;" in data

    def test_page_break(self):
        doc = create_document()
        run = doc.add_paragraph().add_break(BreakType.PAGE)
        br = DocumentSerializer(doc).run_elements(run)[0].find(w("br"))
        assert br.get(w("type")) == "page"

    def test_line_break_has_no_type(self):
        doc = create_document()
        para = doc.add_paragraph()
        para.append_run(Run(break_type=BreakType.LINE))
        br = DocumentSerializer(doc).paragraph_element(para).find(f"{w('r')}/{w('br')}")
        assert br.get(w("type")) is None


class TestParagraphContent:
    """Tests for hyperlinks, bookmarks and images inside paragraphs."""

    def test_hyperlink_element(self):
        doc = create_document()
        para = doc.add_paragraph()
        link = para.add_hyperlink("https://example.com", "Example")
        element = DocumentSerializer(doc).paragraph_element(para).find(w("hyperlink"))
        assert element.get(r("id")) == link.rel_id
        assert element.find(f"{w('r')}/{w('rPr')}/{w('rStyle')}").get(w("val")) == "Hyperlink"

    def test_internal_hyperlink_uses_anchor(self):
        doc = create_document()
        para = doc.add_paragraph()
        para.add_hyperlink(anchor="intro", text="Intro")
        element = DocumentSerializer(doc).paragraph_element(para).find(w("hyperlink"))
        assert element.get(w("anchor")) == "intro"
        assert element.get(r("id")) is None

    def test_bookmark_wraps_content(self):
        doc = create_document()
        para = doc.add_paragraph("Target")
        bookmark = para.add_bookmark("target")
        element = DocumentSerializer(doc).paragraph_element(para)
        names = child_names(element)
        assert names == ["bookmarkStart", "r", "bookmarkEnd"]
        assert element[0].get(w("id")) == str(bookmark.bookmark_id)
        assert element[0].get(w("name")) == "target"

    def test_inline_image_drawing(self):
        doc = create_document()
        png = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
        run = doc.add_paragraph().add_image(png, "a.png", 914400, 457200, description="Alt")
        drawing = DocumentSerializer(doc).drawing_element(run.image)
        wp_ns = "http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing"
        a_ns = "http://schemas.openxmlformats.org/drawingml/2006/main"
        extent = drawing.find(f".//{{{wp_ns}}}extent")
        assert (extent.get("cx"), extent.get("cy")) == ("914400", "457200")
        assert drawing.find(f".//{{{wp_ns}}}docPr").get("descr") == "Alt"
        assert drawing.find(f".//{{{a_ns}}}blip").get(r("embed")) == run.image.rel_id


class TestSections:
    """Tests for w:sectPr placement and content."""

    def test_single_section_is_last_body_child(self):
        doc = create_document()
        doc.add_paragraph("Only")
        body = body_of(doc)
        assert child_names(body) == ["p", "sectPr"]

    def test_interior_section_goes_in_last_paragraph(self):
        doc = create_document()
        doc.add_paragraph("First section")
        doc.add_section(SectionBreakType.NEXT_PAGE, orientation=Orientation.LANDSCAPE)
        doc.add_paragraph("Second section")

        body = body_of(doc)
        assert child_names(body) == ["p", "p", "sectPr"]
        inner = body[0].find(f"{w('pPr')}/{w('sectPr')}")
        assert inner is not None
        assert inner.find(w("type")).get(w("val")) == "nextPage"
        final_size = body[-1].find(w("pgSz"))
        assert final_size.get(w("orient")) == "landscape"
        assert final_size.get(w("w")) == "15840"

    def test_section_ending_with_table_gets_carrier(self):
        doc = create_document()
        doc.add_table(1, 1)
        doc.add_section(SectionBreakType.CONTINUOUS)
        body = body_of(doc)
        assert child_names(body) == ["tbl", "p", "sectPr"]
        carrier = body[1]
        assert child_names(carrier) == ["pPr"]
        assert child_names(carrier[0]) == ["sectPr"]
        assert carrier.get(w("rsidR")) == SECTION_CARRIER_RSID

    def test_sectpr_child_order(self):
        doc = create_document()
        section = doc.sections[0]
        section.add_footer()
        section.add_header(HeaderFooterType.FIRST)
        section.columns = 2
        sect_pr = DocumentSerializer(doc).section_properties_element(section)
        assert child_names(sect_pr) == [
            "headerReference",
            "footerReference",
            "type",
            "pgSz",
            "pgMar",
            "cols",
            "titlePg",
        ]
        assert sect_pr.find(w("cols")).get(w("num")) == "2"

    def test_margins_written(self):
        doc = create_document()
        pg_mar = DocumentSerializer(doc).section_properties_element(doc.sections[0]).find(w("pgMar"))
        assert pg_mar.get(w("top")) == "1440"
        assert pg_mar.get(w("header")) == "720"
        assert pg_mar.get(w("gutter")) == "0"


class TestTables:
    """Tests for w:tbl output."""

    def test_grid_and_cells(self):
        doc = create_document()
        table = doc.add_table(2, 3)
        tbl = DocumentSerializer(doc).table_element(table)
        assert child_names(tbl) == ["tblPr", "tblGrid", "tr", "tr"]
        assert [col.get(w("w")) for col in tbl.find(w("tblGrid"))] == ["3120", "3120", "3120"]
        assert len(tbl.findall(f"{w('tr')}/{w('tc')}")) == 6

    def test_empty_cell_gets_paragraph(self):
        doc = create_document()
        table = doc.add_table(1, 1)
        tc = DocumentSerializer(doc).table_element(table).find(f"{w('tr')}/{w('tc')}")
        assert child_names(tc) == ["tcPr", "p"]

    def test_horizontal_merge_uses_grid_span(self):
        doc = create_document()
        table = doc.add_table(1, 3)
        table.cell(0, 0).merge(colspan=2)
        tr = DocumentSerializer(doc).table_element(table).find(w("tr"))
        cells = tr.findall(w("tc"))
        assert len(cells) == 2
        assert cells[0].find(f"{w('tcPr')}/{w('gridSpan')}").get(w("val")) == "2"
        assert cells[0].find(f"{w('tcPr')}/{w('tcW')}").get(w("w")) == "6240"

    def test_vertical_merge_uses_vmerge(self):
        doc = create_document()
        table = doc.add_table(3, 2)
        table.cell(0, 1).merge(rowspan=3)
        rows = DocumentSerializer(doc).table_element(table).findall(w("tr"))
        first = rows[0].findall(w("tc"))[1].find(f"{w('tcPr')}/{w('vMerge')}")
        assert first.get(w("val")) == "restart"
        for row in rows[1:]:
            continued = row.findall(w("tc"))[1].find(f"{w('tcPr')}/{w('vMerge')}")
            assert continued is not None
            assert continued.get(w("val")) is None

    def test_block_merge(self):
        """A 2x2 merge writes one spanned cell per row."""
        doc = create_document()
        table = doc.add_table(2, 3)
        table.cell(0, 0).merge(colspan=2, rowspan=2)
        rows = DocumentSerializer(doc).table_element(table).findall(w("tr"))
        for row in rows:
            cells = row.findall(w("tc"))
            assert len(cells) == 2
            assert cells[0].find(f"{w('tcPr')}/{w('gridSpan')}").get(w("val")) == "2"

    def test_cell_properties_order(self):
        doc = create_document()
        table = doc.add_table(1, 1)
        cell = table.cell(0, 0)
        cell.vertical_alignment = "center"
        cell.shading = "#d9e2f3"
        cell.width = 2000
        tc_pr = DocumentSerializer(doc).table_element(table).find(f"{w('tr')}/{w('tc')}/{w('tcPr')}")
        assert child_names(tc_pr) == ["tcW", "shd", "vAlign"]
        assert tc_pr.find(w("shd")).get(w("fill")) == "D9E2F3"

    def test_row_properties(self):
        doc = create_document()
        table = doc.add_table(1, 1)
        row = table.row(0)
        row.is_header = True
        row.height = 400
        row.height_rule = "exact"
        tr_pr = DocumentSerializer(doc).table_element(table).find(f"{w('tr')}/{w('trPr')}")
        assert child_names(tr_pr) == ["trHeight", "tblHeader"]

    def test_row_without_properties_has_no_trpr(self):
        doc = create_document()
        table = doc.add_table(1, 1)
        tr = DocumentSerializer(doc).table_element(table).find(w("tr"))
        assert tr.find(w("trPr")) is None


class TestParts:
    """Tests for header, footer and settings parts."""

    def test_empty_header_has_paragraph(self):
        doc = create_document()
        header = doc.sections[0].add_header()
        root = DocumentSerializer(doc).header_element(header)
        assert root.tag == w("hdr")
        assert child_names(root) == ["p"]

    def test_footer_content(self):
        doc = create_document()
        footer = doc.sections[0].add_footer()
        footer.add_paragraph("Footer text")
        root = DocumentSerializer(doc).footer_element(footer)
        assert root.tag == w("ftr")
        assert "".join(root.itertext()) == "Footer text"

    def test_even_headers_enable_setting(self):
        doc = create_document()
        doc.sections[0].add_header(HeaderFooterType.EVEN)
        settings = DocumentSerializer(doc).settings_element()
        names = child_names(settings)
        assert "evenAndOddHeaders" in names
        assert names.index("evenAndOddHeaders") < names.index("characterSpacingControl")

    def test_settings_without_even_headers(self):
        doc = create_document()
        assert "evenAndOddHeaders" not in child_names(DocumentSerializer(doc).settings_element())

    @pytest.mark.parametrize("text,words", [("one two three", 3), ("", 0)])
    def test_app_properties_word_count(self, text, words):
        doc = create_document()
        doc.add_paragraph(text)
        root = DocumentSerializer(doc).app_properties_element()
        ns = "http://schemas.openxmlformats.org/officeDocument/2006/extended-properties"
        assert root.find(f"{{{ns}}}Words").text == str(words)
        assert root.find(f"{{{ns}}}Application").text == "docx-engine"
