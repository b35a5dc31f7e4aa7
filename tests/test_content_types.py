"""
Tests for the [Content_Types].xml manifest.
"""

from lxml import etree

from docx_engine.constants import CONTENT_TYPES_NAMESPACE, ContentTypes
from docx_engine.content_types import ContentTypeManifest

CT_NS = CONTENT_TYPES_NAMESPACE


class TestContentTypeManifest:
    """Tests for Default and Override entries."""

    def test_default_by_extension(self):
        manifest = ContentTypeManifest()
        manifest.add_default(".PNG", "image/png")
        assert manifest.content_type_for("word/media/image1.png") == "image/png"
        assert manifest.default_for("png") == "image/png"

    def test_first_default_wins(self):
        """A second Default for the same extension is ignored."""
        manifest = ContentTypeManifest()
        manifest.add_default("xml", ContentTypes.XML)
        manifest.add_default("xml", "text/xml")
        assert manifest.default_for("xml") == ContentTypes.XML

    def test_override_wins_over_default(self):
        manifest = ContentTypeManifest()
        manifest.add_default("xml", ContentTypes.XML)
        manifest.add_override("word/document.xml", ContentTypes.DOCUMENT)
        assert manifest.content_type_for("word/document.xml") == ContentTypes.DOCUMENT
        assert manifest.content_type_for("word/other.xml") == ContentTypes.XML

    def test_override_part_names_get_leading_slash(self):
        manifest = ContentTypeManifest()
        manifest.add_override("word/styles.xml", ContentTypes.STYLES)
        assert manifest.overrides == {"/word/styles.xml": ContentTypes.STYLES}
        assert manifest.override_for("/word/styles.xml") == ContentTypes.STYLES

    def test_remove_override(self):
        manifest = ContentTypeManifest()
        manifest.add_override("word/styles.xml", ContentTypes.STYLES)
        assert manifest.remove_override("word/styles.xml")
        assert not manifest.remove_override("word/styles.xml")
        assert not manifest.covers("word/styles.xml")

    def test_round_trip_through_xml(self):
        manifest = ContentTypeManifest()
        manifest.add_default("rels", ContentTypes.RELATIONSHIPS)
        manifest.add_override("word/document.xml", ContentTypes.DOCUMENT)

        root = manifest.to_element()
        assert root.tag == f"{{{CT_NS}}}Types"
        defaults = root.findall(f"{{{CT_NS}}}Default")
        overrides = root.findall(f"{{{CT_NS}}}Override")
        assert defaults[0].get("Extension") == "rels"
        assert overrides[0].get("PartName") == "/word/document.xml"

        parsed = ContentTypeManifest.from_element(etree.fromstring(etree.tostring(root)))
        assert parsed.defaults == manifest.defaults
        assert parsed.overrides == manifest.overrides
