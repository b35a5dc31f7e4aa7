"""
Tests for StyleManager: the style catalogue, basedOn chains and styles.xml.
"""

import pytest
from lxml import etree

from docx_engine import (
    NotFoundError,
    ParagraphFormatting,
    ParseError,
    RunFormatting,
    Style,
    StyleManager,
    StyleType,
    ValidationError,
)
from docx_engine.constants import WORD_NAMESPACE, w

WORD_NS = WORD_NAMESPACE


class TestBuiltinStyles:
    """Tests for the styles a new document starts with."""

    def test_core_styles_present(self):
        styles = StyleManager()
        for style_id in ("Normal", "DefaultParagraphFont", "Heading1", "Title", "Hyperlink", "TableGrid"):
            assert style_id in styles

    def test_get_style_missing_raises(self):
        styles = StyleManager()
        with pytest.raises(NotFoundError) as exc_info:
            styles.get_style("NoSuchStyle")
        assert exc_info.value.value == "NoSuchStyle"
        assert styles.get("NoSuchStyle") is None

    def test_get_by_name_is_case_insensitive(self):
        styles = StyleManager()
        assert styles.get_by_name("Heading 1").style_id == "Heading1"

    def test_list_by_type(self):
        styles = StyleManager()
        character = styles.list(StyleType.CHARACTER)
        assert all(style.style_type is StyleType.CHARACTER for style in character)
        assert "DefaultParagraphFont" in [style.style_id for style in character]


class TestAddStyle:
    """Tests for registering custom styles."""

    def test_add_style(self):
        styles = StyleManager()
        style = styles.add_style(Style("Note", "Note", based_on="Normal"))
        assert styles.get_style("Note") is style

    def test_duplicate_id_raises(self):
        styles = StyleManager()
        with pytest.raises(ValidationError) as exc_info:
            styles.add_style(Style("Normal", "Normal"))
        assert exc_info.value.op == "add_style"

    def test_missing_based_on_raises(self):
        styles = StyleManager()
        with pytest.raises(ValidationError) as exc_info:
            styles.add_style(Style("Orphan", "Orphan", based_on="Missing"))
        assert exc_info.value.field == "based_on"

    def test_cycle_raises(self):
        """A basedOn chain that loops back is rejected."""
        styles = StyleManager()
        styles.add_style(Style("A", "A"))
        styles.add_style(Style("B", "B", based_on="A"))
        with pytest.raises(ValidationError):
            styles.replace_style(Style("A", "A", based_on="B"))

    def test_self_reference_raises(self):
        styles = StyleManager()
        with pytest.raises(ValidationError):
            styles.add_style(Style("Loop", "Loop", based_on="Loop"))

    def test_empty_id_raises(self):
        styles = StyleManager()
        with pytest.raises(ValidationError):
            styles.add_style(Style("", "Empty"))

    def test_remove_style_with_children_raises(self):
        styles = StyleManager()
        styles.add_style(Style("Parent", "Parent"))
        styles.add_style(Style("Child", "Child", based_on="Parent"))
        with pytest.raises(ValidationError):
            styles.remove_style("Parent")
        styles.remove_style("Child")
        styles.remove_style("Parent")
        assert "Parent" not in styles

    def test_ensure_style_restores_builtin(self):
        styles = StyleManager()
        styles.remove_style("Hyperlink")
        assert styles.ensure_style("Hyperlink")
        assert not styles.ensure_style("Hyperlink")
        with pytest.raises(NotFoundError):
            styles.ensure_style("NotABuiltin")


class TestResolve:
    """Tests for following basedOn chains."""

    def test_custom_style_overrides_parent(self):
        """MyStyle (bold) based on Normal (not bold) resolves to bold."""
        styles = StyleManager()
        styles.replace_style(Style("Normal", "Normal", run_formatting=RunFormatting(bold=False)))
        styles.add_style(Style("MyStyle", "My Style", based_on="Normal", run_formatting=RunFormatting(bold=True)))
        assert styles.resolve("MyStyle").run.bold is True
        assert styles.resolve("Normal").run.bold is False

    def test_property_inherited_through_chain(self):
        """A property set only on the root ancestor reaches the leaf."""
        styles = StyleManager()
        styles.add_style(Style("A", "A", run_formatting=RunFormatting(italic=True, font_size=28)))
        styles.add_style(Style("B", "B", based_on="A"))
        styles.add_style(Style("C", "C", based_on="B", run_formatting=RunFormatting(font_size=32)))

        effective = styles.resolve("C")
        assert effective.run.italic is True
        assert effective.run.font_size == 32

    def test_paragraph_properties_inherited(self):
        styles = StyleManager()
        styles.add_style(Style("Base", "Base", paragraph_formatting=ParagraphFormatting(spacing_after=120)))
        styles.add_style(
            Style("Derived", "Derived", based_on="Base", paragraph_formatting=ParagraphFormatting(alignment="center"))
        )
        effective = styles.resolve("Derived")
        assert effective.paragraph.spacing_after == 120
        assert effective.paragraph.alignment == "center"

    def test_heading_inherits_from_normal(self):
        styles = StyleManager()
        assert styles.resolve("Heading1").paragraph.outline_level == 0

    def test_resolve_missing_raises(self):
        with pytest.raises(NotFoundError):
            StyleManager().resolve("Nope")


class TestStylesXml:
    """Tests for building and loading word/styles.xml."""

    def test_to_element_structure(self):
        styles = StyleManager(default_font="Arial", default_font_size=24)
        root = styles.to_element()
        assert root.tag == w("styles")
        assert root[0].tag == w("docDefaults")
        assert root[1].tag == w("latentStyles")
        fonts = root.find(f".//{w('rPrDefault')}//{w('rFonts')}")
        assert fonts.get(w("ascii")) == "Arial"
        size = root.find(f".//{w('rPrDefault')}//{w('sz')}")
        assert size.get(w("val")) == "24"

    def test_style_element_has_no_empty_properties(self):
        """A style without formatting writes neither w:rPr nor w:pPr."""
        styles = StyleManager()
        styles.add_style(Style("Plain", "Plain", based_on="Normal"))
        root = styles.to_element()
        plain = root.find(f"{w('style')}[@{w('styleId')}='Plain']")
        assert plain.find(w("rPr")) is None
        assert plain.find(w("pPr")) is None
        assert plain.find(w("basedOn")).get(w("val")) == "Normal"

    def test_load_replaces_catalogue(self):
        xml = f"""<w:styles xmlns:w="{WORD_NS}">
  <w:docDefaults><w:rPrDefault><w:rPr><w:sz w:val="20"/></w:rPr></w:rPrDefault></w:docDefaults>
  <w:style w:type="paragraph" w:default="1" w:styleId="Normal"><w:name w:val="Normal"/></w:style>
  <w:style w:type="paragraph" w:customStyle="1" w:styleId="Fancy">
    <w:name w:val="Fancy"/>
    <w:basedOn w:val="Normal"/>
    <w:rsid w:val="00112233"/>
    <w:rPr><w:b/><w:color w:val="FF0000"/></w:rPr>
  </w:style>
</w:styles>"""
        styles = StyleManager()
        styles.load(etree.fromstring(xml))

        assert len(styles) == 2
        fancy = styles.get_style("Fancy")
        assert fancy.custom
        assert fancy.based_on == "Normal"
        assert fancy.run_formatting.bold is True
        assert fancy.run_formatting.color == "FF0000"
        assert [etree.QName(extra).localname for extra in fancy.extras] == ["rsid"]

        root = styles.to_element()
        assert root.find(f".//{w('docDefaults')}//{w('sz')}").get(w("val")) == "20"
        written = root.find(f"{w('style')}[@{w('styleId')}='Fancy']")
        assert written.find(w("rsid")) is not None

    @pytest.mark.parametrize(
        "based_on,value",
        [("Second", "First"), ("First", "First"), ("Ghost", "Ghost")],
    )
    def test_load_rejects_broken_chain(self, based_on, value):
        """A basedOn loop or a dangling parent in styles.xml fails the open."""
        xml = f"""<w:styles xmlns:w="{WORD_NS}">
  <w:style w:type="paragraph" w:styleId="First"><w:name w:val="First"/><w:basedOn w:val="{based_on}"/></w:style>
  <w:style w:type="paragraph" w:styleId="Second"><w:name w:val="Second"/><w:basedOn w:val="First"/></w:style>
</w:styles>"""
        with pytest.raises(ParseError) as exc_info:
            StyleManager().load(etree.fromstring(xml))
        assert exc_info.value.op == "open"
        assert exc_info.value.field == "based_on"
        assert exc_info.value.value == value

    def test_non_integer_size_survives_load(self):
        """A w:sz the model cannot hold is written back as it was read."""
        xml = f"""<w:styles xmlns:w="{WORD_NS}">
  <w:style w:type="paragraph" w:styleId="Odd"><w:name w:val="Odd"/><w:rPr><w:sz w:val="21.5"/></w:rPr></w:style>
</w:styles>"""
        styles = StyleManager()
        styles.load(etree.fromstring(xml))
        assert styles.get_style("Odd").run_formatting.font_size is None

        written = styles.to_element().find(f"{w('style')}[@{w('styleId')}='Odd']")
        sizes = written.findall(f"{w('rPr')}/{w('sz')}")
        assert [size.get(w("val")) for size in sizes] == ["21.5"]
