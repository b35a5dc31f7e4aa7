"""
Tests for Paragraph: style, formatting and the content it owns.
"""

import pytest
from lxml import etree

from docx_engine import (
    BreakType,
    Hyperlink,
    OpaqueNode,
    ParagraphFormatting,
    Run,
    ValidationError,
    create_document,
)
from docx_engine.constants import RelationshipTypes

WORD_NAMESPACE = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"


class TestStyleAndFormatting:
    """Tests for paragraph style and direct formatting."""

    def test_style_from_constructor(self):
        para = create_document().add_paragraph("Heading", style="Heading1")
        assert para.style == "Heading1"

    def test_style_can_be_cleared(self):
        para = create_document().add_paragraph("Text", style="Quote")
        para.style = None
        assert para.style is None

    def test_blank_style_rejected(self):
        para = create_document().add_paragraph()
        with pytest.raises(ValidationError):
            para.style = ""

    @pytest.mark.parametrize("value,expected", [("left", "left"), ("justify", "both"), ("center", "center")])
    def test_alignment(self, value, expected):
        para = create_document().add_paragraph()
        para.alignment = value
        assert para.alignment == expected

    def test_unknown_alignment(self):
        para = create_document().add_paragraph()
        with pytest.raises(ValidationError) as exc_info:
            para.alignment = "middle"
        assert exc_info.value.field == "alignment"

    def test_indent(self):
        para = create_document().add_paragraph()
        para.set_indent(left=1440, hanging=360)
        assert para.formatting.indent_left == 1440
        assert para.formatting.indent_hanging == 360

    def test_first_line_and_hanging_are_exclusive(self):
        para = create_document().add_paragraph()
        with pytest.raises(ValidationError):
            para.set_indent(first_line=360, hanging=360)

    def test_indent_range(self):
        para = create_document().add_paragraph()
        with pytest.raises(ValidationError):
            para.set_indent(left=40000)

    def test_spacing(self):
        para = create_document().add_paragraph()
        para.set_spacing(before=0, after=200, line=480, line_rule="exact")
        fmt = para.formatting
        assert (fmt.spacing_before, fmt.spacing_after, fmt.line_spacing, fmt.line_rule) == (0, 200, 480, "exact")

    def test_spacing_rule_checked(self):
        para = create_document().add_paragraph()
        with pytest.raises(ValidationError):
            para.set_spacing(line=240, line_rule="double")

    def test_formatting_object_can_be_replaced(self):
        para = create_document().add_paragraph()
        para.formatting = ParagraphFormatting(keep_next=True)
        assert para.formatting.keep_next is True
        assert not para.formatting.is_empty()


class TestRuns:
    """Tests for adding, removing and reading runs."""

    def test_add_run_with_properties(self):
        para = create_document().add_paragraph()
        run = para.add_run("Hello", bold=True, font_size=24, color="#ff0000")
        assert para.runs == [run]
        assert run.owner is para
        assert run.color == "FF0000"

    def test_text_concatenates_runs(self):
        para = create_document().add_paragraph("Hello")
        para.add_run(", world")
        assert para.text == "Hello, world"

    def test_text_setter_replaces_content(self):
        para = create_document().add_paragraph("old")
        para.add_run(" text")
        para.text = "new"
        assert para.text == "new"
        assert len(para.runs) == 1

    def test_clear_releases_runs(self):
        para = create_document().add_paragraph()
        run = para.add_run("x")
        para.clear()
        assert para.content == []
        assert run.owner is None

    def test_run_belongs_to_one_paragraph(self):
        doc = create_document()
        run = doc.add_paragraph().add_run("shared")
        with pytest.raises(ValidationError):
            doc.add_paragraph().append_run(run)

    def test_moving_a_run(self):
        doc = create_document()
        source = doc.add_paragraph()
        target = doc.add_paragraph()
        run = source.add_run("moved")
        source.remove_run(run)
        target.append_run(run)
        assert source.text == ""
        assert target.text == "moved"

    def test_remove_foreign_run(self):
        para = create_document().add_paragraph()
        with pytest.raises(ValidationError):
            para.remove_run(Run("stranger"))

    def test_unknown_run_property(self):
        para = create_document().add_paragraph()
        with pytest.raises(TypeError):
            para.add_run("x", weight="heavy")

    def test_page_break(self):
        para = create_document().add_paragraph("before")
        run = para.add_break()
        assert run.break_type is BreakType.PAGE
        assert para.text == "before"

    def test_line_break_counts_as_newline(self):
        para = create_document().add_paragraph("a")
        para.add_break(BreakType.LINE)
        para.add_run("b")
        assert para.text == "a\nb"


class TestHyperlinks:
    """Tests for external and internal links."""

    def test_external_link_registers_relationship(self):
        doc = create_document()
        link = doc.add_paragraph().add_hyperlink("https://example.com", "Example")
        assert isinstance(link, Hyperlink)
        relationship = doc.relationships.get("word/document.xml", link.rel_id)
        assert relationship.rel_type == RelationshipTypes.HYPERLINK
        assert relationship.external
        assert link.runs[0].style == "Hyperlink"

    def test_same_url_reuses_relationship(self):
        doc = create_document()
        para = doc.add_paragraph()
        first = para.add_hyperlink("https://example.com", "one")
        second = para.add_hyperlink("https://example.com", "two")
        assert first.rel_id == second.rel_id

    def test_link_text_defaults_to_url(self):
        link = create_document().add_paragraph().add_hyperlink("https://example.com")
        assert link.text == "https://example.com"

    def test_internal_link(self):
        doc = create_document()
        link = doc.add_paragraph().add_hyperlink(anchor="summary", text="See summary")
        assert link.rel_id is None
        assert link.anchor == "summary"

    def test_link_needs_target(self):
        with pytest.raises(ValidationError):
            create_document().add_paragraph().add_hyperlink(text="nowhere")

    def test_control_character_in_link_rejected(self):
        """A bad URL is refused before its relationship is registered."""
        doc = create_document()
        para = doc.add_paragraph()
        before = len(doc.relationships.table("word/document.xml"))
        with pytest.raises(ValidationError) as exc_info:
            para.add_hyperlink("https://example.com/\x02", "x")
        assert exc_info.value.field == "url"
        with pytest.raises(ValidationError):
            para.add_hyperlink("https://example.com", "tab\x0c")
        assert len(doc.relationships.table("word/document.xml")) == before
        assert para.hyperlinks == []

    def test_link_restores_missing_style(self):
        doc = create_document()
        doc.styles.remove_style("Hyperlink")
        doc.add_paragraph().add_hyperlink("https://example.com")
        assert "Hyperlink" in doc.styles

    def test_paragraph_text_includes_links(self):
        para = create_document().add_paragraph("Visit ")
        para.add_hyperlink("https://example.com", "our site")
        assert para.text == "Visit our site"
        assert para.runs[0].text == "Visit "


class TestBookmarks:
    """Tests for whole-paragraph bookmarks."""

    def test_ids_come_from_shared_counter(self):
        doc = create_document()
        first = doc.add_paragraph("a").add_bookmark("a")
        header_para = doc.sections[0].add_header().add_paragraph("h")
        second = header_para.add_bookmark("h")
        assert second.bookmark_id == first.bookmark_id + 1

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            create_document().add_paragraph().add_bookmark(" ")

    def test_control_character_in_name_rejected(self):
        para = create_document().add_paragraph("x")
        with pytest.raises(ValidationError):
            para.add_bookmark("mark\x1b")
        assert para.bookmark is None

    def test_remove_bookmark(self):
        para = create_document().add_paragraph("x")
        para.add_bookmark("x")
        para.remove_bookmark()
        assert para.bookmark is None


class TestRawContent:
    """Tests for inline XML kept verbatim."""

    def test_add_raw_keeps_a_copy(self):
        para = create_document().add_paragraph()
        element = etree.Element(f"{{{WORD_NAMESPACE}}}proofErr")
        node = para.add_raw(element)
        element.set("changed", "1")
        assert isinstance(node, OpaqueNode)
        assert node.local_name == "proofErr"
        assert node.element.get("changed") is None

    def test_raw_text_is_part_of_paragraph_text(self):
        para = create_document().add_paragraph()
        element = etree.fromstring(
            f'<w:ins xmlns:w="{WORD_NAMESPACE}" w:id="1" w:author="A"><w:r><w:t>added</w:t></w:r></w:ins>'
        )
        para.add_raw(element)
        assert para.text == "added"
