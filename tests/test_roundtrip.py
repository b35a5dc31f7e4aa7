"""
Save-and-reopen tests: content built through the API comes back unchanged.
"""

import io
import zipfile

from docx_engine import (
    FieldKind,
    HeaderFooterType,
    Orientation,
    PageSize,
    SectionBreakType,
    Style,
    RunFormatting,
    create_document,
    open_document,
)
from docx_engine.models.field import page_count, page_number, table_of_contents

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def reopen(doc):
    return open_document(doc.to_bytes())


def part_bytes(doc, name: str) -> bytes:
    with zipfile.ZipFile(io.BytesIO(doc.to_bytes())) as docx:
        return docx.read(name)


class TestBasicRoundTrip:
    """Tests for the everyday cases: runs, tables, sections."""

    def test_bold_run(self):
        """A bold "Hello" run is still bold after save and reopen."""
        doc = create_document()
        doc.add_paragraph().add_run("Hello", bold=True)

        run = reopen(doc).paragraphs[0].runs[0]
        assert run.text == "Hello"
        assert run.bold is True

    def test_table_cell_text(self):
        doc = create_document()
        table = doc.add_table(2, 2)
        table.cell(1, 1).text = "X"

        reopened = reopen(doc).tables[0]
        assert reopened.row(1).cell(1).paragraphs[0].text == "X"
        assert reopened.cell(0, 0).text == ""

    def test_portrait_then_landscape(self):
        doc = create_document()
        doc.add_paragraph("Portrait page")
        doc.add_section(SectionBreakType.NEXT_PAGE, orientation=Orientation.LANDSCAPE)
        doc.add_paragraph("Landscape page")

        sections = reopen(doc).sections
        assert len(sections) == 2
        assert sections[0].orientation is Orientation.PORTRAIT
        assert sections[1].orientation is Orientation.LANDSCAPE
        assert sections[1].page_size.width == 15840
        assert sections[1].break_type is SectionBreakType.NEXT_PAGE
        assert [p.text for p in sections[1].paragraphs] == ["Landscape page"]

    def test_section_ending_with_table(self):
        doc = create_document()
        doc.add_table(1, 2).cell(0, 0).text = "in table"
        doc.add_section(SectionBreakType.CONTINUOUS, page_size=PageSize.A4)
        doc.add_paragraph("after")

        sections = reopen(doc).sections
        assert len(sections) == 2
        assert len(sections[0].blocks) == 1
        assert sections[1].page_size == PageSize.A4
        assert sections[1].break_type is SectionBreakType.CONTINUOUS

    def test_empty_paragraph_after_table_ends_section(self):
        """An empty paragraph closing a section is kept, not mistaken for a carrier."""
        doc = create_document()
        doc.add_table(1, 1)
        doc.add_paragraph()
        doc.add_section(SectionBreakType.NEXT_PAGE)
        doc.add_paragraph("x")

        reopened = reopen(doc)
        assert [type(block).__name__ for block in reopened.sections[0].blocks] == ["Table", "Paragraph"]
        assert reopened.sections[0].paragraphs[0].text == ""
        assert [p.text for p in reopened.sections[1].paragraphs] == ["x"]
        assert part_bytes(reopened, "word/document.xml") == part_bytes(reopen(reopened), "word/document.xml")

    def test_empty_section_survives(self):
        doc = create_document()
        doc.add_section(SectionBreakType.CONTINUOUS)
        doc.add_paragraph("second")

        sections = reopen(doc).sections
        assert len(sections) == 2
        assert sections[0].blocks == []

    def test_text_with_whitespace(self):
        doc = create_document()
        doc.add_paragraph("  leading\tand  double  \nlines ")
        assert reopen(doc).paragraphs[0].text == "  leading\tand  double  \nlines "


class TestFormattingRoundTrip:
    """Tests for run and paragraph formatting."""

    def test_run_properties(self):
        doc = create_document()
        doc.add_paragraph().add_run(
            "styled",
            italic=True,
            underline="double",
            font_name="Georgia",
            font_size=30,
            color="1F4E79",
            highlight="yellow",
            superscript=True,
        )
        run = reopen(doc).paragraphs[0].runs[0]
        assert run.italic is True
        assert run.underline == "double"
        assert run.font_name == "Georgia"
        assert run.font_size == 30
        assert run.color == "1F4E79"
        assert run.highlight == "yellow"
        assert run.superscript is True

    def test_paragraph_style_survives(self):
        """A styled paragraph still names its style after reopening."""
        doc = create_document()
        doc.add_paragraph("Chapter", style="Heading1")
        doc.add_paragraph("Body")

        paragraphs = reopen(doc).paragraphs
        assert paragraphs[0].style == "Heading1"
        assert paragraphs[1].style is None

    def test_paragraph_formatting(self):
        doc = create_document()
        para = doc.add_paragraph("Indented")
        para.alignment = "justify"
        para.set_indent(left=720, first_line=360)
        para.set_spacing(before=120, after=240, line=276)

        reopened = reopen(doc).paragraphs[0]
        assert reopened.alignment == "both"
        assert reopened.formatting.indent_left == 720
        assert reopened.formatting.indent_first_line == 360
        assert reopened.formatting.spacing_after == 240
        assert reopened.formatting.line_spacing == 276

    def test_custom_style(self):
        doc = create_document()
        doc.styles.add_style(
            Style("Callout", "Callout", based_on="Normal", run_formatting=RunFormatting(bold=True, color="C00000"))
        )
        doc.add_paragraph("Note", style="Callout")

        reopened = reopen(doc)
        assert reopened.styles.get_style("Callout").based_on == "Normal"
        assert reopened.styles.resolve("Callout").run.bold is True
        assert reopened.paragraphs[0].style == "Callout"


class TestContentRoundTrip:
    """Tests for fields, images, links and bookmarks."""

    def test_fields(self):
        doc = create_document()
        para = doc.add_paragraph("Page ")
        para.add_field(page_number("1"))
        para.add_run(" of ")
        para.add_field(page_count("3"))
        doc.add_paragraph().add_field(table_of_contents(1, 2))

        reopened = reopen(doc)
        kinds = [field.kind for field in reopened.paragraphs[0].fields]
        assert kinds == [FieldKind.PAGE_NUMBER, FieldKind.PAGE_COUNT]
        assert reopened.paragraphs[0].text == "Page 1 of 3"
        toc = reopened.paragraphs[1].fields[0]
        assert toc.kind is FieldKind.TOC
        assert toc.payload.max_level == 2
        assert toc.dirty

    def test_image(self):
        doc = create_document()
        doc.add_paragraph().add_image(PNG, "logo.png", 914400, 914400, description="Logo")

        reopened = reopen(doc)
        image = reopened.paragraphs[0].images[0]
        assert image.width_emu == 914400
        assert image.description == "Logo"
        assert reopened.media.get(image.media_id).data == PNG

    def test_hyperlink(self):
        doc = create_document()
        doc.add_paragraph().add_hyperlink("https://example.com/docs", "Docs")

        link = reopen(doc).paragraphs[0].hyperlinks[0]
        assert link.url == "https://example.com/docs"
        assert link.text == "Docs"

    def test_bookmark(self):
        doc = create_document()
        doc.add_paragraph("Target").add_bookmark("target")

        bookmark = reopen(doc).paragraphs[0].bookmark
        assert bookmark.name == "target"

    def test_merged_table(self):
        doc = create_document()
        table = doc.add_table(3, 3, style="TableGrid")
        table.cell(0, 0).merge(colspan=2, rowspan=2)
        table.cell(0, 0).text = "merged"
        table.cell(2, 2).text = "corner"

        reopened = reopen(doc).tables[0]
        origin = reopened.cell(0, 0)
        assert (origin.colspan, origin.rowspan) == (2, 2)
        assert origin.text == "merged"
        assert reopened.cell(1, 1).is_covered
        assert reopened.cell(2, 2).text == "corner"
        assert reopened.style == "TableGrid"


class TestHeadersAndFooters:
    """Tests for header and footer parts."""

    def test_header_and_footer_text(self):
        doc = create_document()
        section = doc.sections[0]
        section.add_header().add_paragraph("Report")
        footer_para = section.add_footer().add_paragraph("Page ")
        footer_para.add_field(page_number())

        reopened = reopen(doc).sections[0]
        assert reopened.header().text == "Report"
        footer = reopened.footer()
        assert footer.paragraphs[0].fields[0].kind is FieldKind.PAGE_NUMBER

    def test_first_and_even_headers(self):
        doc = create_document()
        section = doc.sections[0]
        section.add_header(HeaderFooterType.FIRST).add_paragraph("Cover")
        section.add_header(HeaderFooterType.EVEN).add_paragraph("Even")

        reopened = reopen(doc)
        headers = reopened.sections[0].headers
        assert headers[HeaderFooterType.FIRST].text == "Cover"
        assert headers[HeaderFooterType.EVEN].text == "Even"
        assert reopened.sections[0].has_title_page
        assert b"evenAndOddHeaders" in part_bytes(reopened, "word/settings.xml")

    def test_header_image(self):
        doc = create_document()
        doc.sections[0].add_header().add_paragraph().add_image(PNG, "logo.png", 100, 100)

        header = reopen(doc).sections[0].header()
        image = header.paragraphs[0].images[0]
        assert image.rel_id.startswith("rId")


class TestIdempotence:
    """Tests for saving an opened document again."""

    def test_second_save_is_identical(self):
        """Opening and saving a saved file reproduces its parts byte for byte."""
        doc = create_document()
        doc.add_paragraph("Title", style="Title")
        doc.add_paragraph().add_run("Body", bold=True)
        doc.add_table(2, 2).cell(0, 1).text = "cell"
        doc.sections[0].add_footer().add_paragraph().add_field(page_number())

        first = reopen(doc)
        second = reopen(first)
        for name in (
            "word/document.xml",
            "word/styles.xml",
            "word/settings.xml",
            "word/footer1.xml",
            "word/_rels/document.xml.rels",
            "[Content_Types].xml",
        ):
            assert part_bytes(first, name) == part_bytes(second, name), name

    def test_relationship_ids_are_kept(self):
        doc = create_document()
        doc.sections[0].add_header().add_paragraph("H")
        rel_id = doc.sections[0].header().rel_id

        reopened = reopen(doc)
        assert reopened.sections[0].header().rel_id == rel_id
        new_footer = reopened.sections[0].add_footer()
        assert new_footer.rel_id != rel_id

    def test_core_properties(self):
        doc = create_document()
        doc.core_properties.title = "Quarterly report"
        doc.core_properties.creator = "Finance"

        props = reopen(doc).core_properties
        assert props.title == "Quarterly report"
        assert props.creator == "Finance"
