"""
Tests for Section: page setup, columns, section breaks and
header/footer parts.
"""

import pytest

from docx_engine import (
    DocumentOptions,
    HeaderFooterType,
    Margins,
    NotFoundError,
    Orientation,
    PageSize,
    SectionBreakType,
    ValidationError,
    create_document,
)
from docx_engine.constants import RelationshipTypes


class TestPageSetup:
    """Tests for page size, orientation and margins."""

    def test_defaults(self):
        section = create_document().sections[0]
        assert section.page_size == PageSize.LETTER
        assert section.orientation is Orientation.PORTRAIT
        assert section.margins == Margins()
        assert section.columns == 1
        assert section.column_spacing == 720
        assert section.break_type is SectionBreakType.NEXT_PAGE

    def test_landscape_swaps_dimensions(self):
        section = create_document().sections[0]
        section.orientation = Orientation.LANDSCAPE
        assert (section.page_size.width, section.page_size.height) == (15840, 12240)
        section.orientation = Orientation.PORTRAIT
        assert section.page_size == PageSize.LETTER

    def test_setting_landscape_twice_keeps_size(self):
        section = create_document().sections[0]
        section.orientation = Orientation.LANDSCAPE
        section.orientation = Orientation.LANDSCAPE
        assert section.page_size.width == 15840

    def test_orientation_type_checked(self):
        section = create_document().sections[0]
        with pytest.raises(ValidationError):
            section.orientation = "landscape"

    @pytest.mark.parametrize("width,height", [(0, 100), (100, 31681), (True, 100)])
    def test_invalid_page_size(self, width, height):
        with pytest.raises(ValidationError):
            PageSize(width, height)

    def test_invalid_margins(self):
        with pytest.raises(ValidationError) as exc_info:
            Margins(top=40000)
        assert exc_info.value.field == "top"

    def test_negative_margin_allowed(self):
        assert Margins(top=-720).top == -720

    def test_options_page_setup(self):
        doc = create_document(DocumentOptions(page_size=PageSize.A4, margins=Margins(left=1000, right=1000)))
        section = doc.sections[0]
        assert section.page_size == PageSize.A4
        assert section.margins.left == 1000


class TestColumns:
    """Tests for text columns."""

    @pytest.mark.parametrize("value", [1, 2, 10])
    def test_valid(self, value):
        section = create_document().sections[0]
        section.columns = value
        assert section.columns == value

    @pytest.mark.parametrize("value", [0, 11, "2", True])
    def test_invalid(self, value):
        section = create_document().sections[0]
        with pytest.raises(ValidationError) as exc_info:
            section.columns = value
        assert exc_info.value.field == "columns"


class TestSectionBreaks:
    """Tests for adding sections to a document."""

    def test_add_section_copies_page_setup(self):
        doc = create_document()
        first = doc.sections[0]
        first.margins = Margins(top=720)
        first.orientation = Orientation.LANDSCAPE
        second = doc.add_section(SectionBreakType.ODD_PAGE)
        assert second.break_type is SectionBreakType.ODD_PAGE
        assert second.margins.top == 720
        assert second.orientation is Orientation.LANDSCAPE
        assert second.page_size == first.page_size

    def test_add_section_with_overrides(self):
        doc = create_document()
        section = doc.add_section(
            SectionBreakType.CONTINUOUS, orientation=Orientation.LANDSCAPE, page_size=PageSize.A4, columns=3
        )
        assert section.page_size == PageSize.A4.swapped()
        assert section.columns == 3

    def test_new_blocks_go_to_last_section(self):
        doc = create_document()
        first_para = doc.add_paragraph("one")
        doc.add_section()
        second_para = doc.add_paragraph("two")
        assert doc.section_of(first_para) is doc.sections[0]
        assert doc.section_of(second_para) is doc.sections[1]
        assert doc.paragraphs == [first_para, second_para]

    def test_section_of_unknown_block(self):
        doc = create_document()
        other = create_document().add_paragraph("elsewhere")
        with pytest.raises(NotFoundError):
            doc.section_of(other)

    def test_remove_block(self):
        doc = create_document()
        para = doc.add_paragraph("gone")
        doc.remove_block(para)
        assert doc.paragraphs == []

    def test_break_type_checked(self):
        section = create_document().sections[0]
        with pytest.raises(ValidationError):
            section.break_type = "nextPage"


class TestHeadersAndFooters:
    """Tests for header and footer parts of a section."""

    def test_add_header_creates_part(self):
        doc = create_document()
        header = doc.sections[0].add_header()
        assert header.part_name == "word/header1.xml"
        assert header.rel_id == "rId6"
        relationship = doc.relationships.get("word/document.xml", header.rel_id)
        assert relationship.rel_type == RelationshipTypes.HEADER
        assert relationship.target == "header1.xml"
        assert doc.relationships.has_part("word/header1.xml")

    def test_add_header_is_idempotent(self):
        section = create_document().sections[0]
        assert section.add_header() is section.add_header()

    def test_each_kind_gets_own_part(self):
        section = create_document().sections[0]
        default = section.add_header()
        first = section.add_header(HeaderFooterType.FIRST)
        footer = section.add_footer()
        assert default.part_name != first.part_name
        assert footer.part_name == "word/footer1.xml"
        assert set(section.headers) == {HeaderFooterType.DEFAULT, HeaderFooterType.FIRST}

    def test_missing_header(self):
        section = create_document().sections[0]
        with pytest.raises(NotFoundError):
            section.header(HeaderFooterType.EVEN)
        with pytest.raises(NotFoundError):
            section.footer()

    def test_first_header_implies_title_page(self):
        section = create_document().sections[0]
        assert not section.has_title_page
        section.add_footer(HeaderFooterType.FIRST)
        assert section.has_title_page

    def test_explicit_title_page(self):
        section = create_document().sections[0]
        section.title_page = True
        assert section.has_title_page

    def test_header_content(self):
        section = create_document().sections[0]
        header = section.add_header()
        header.add_paragraph("Confidential", style="Header")
        table = header.add_table(1, 2)
        assert header.text == "Confidential"
        assert header.tables == [table]
        assert header.root_tag == "hdr"

    def test_linked_header_is_shared(self):
        doc = create_document()
        header = doc.sections[0].add_header()
        second = doc.add_section()
        second.link_header(header)
        assert second.header() is header
        assert doc.header_footer_parts() == [header]
